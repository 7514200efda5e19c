"""
Fragrance Tracker Backend: Fragrance Catalog Route Handlers
============================================================

What:  CRUD over the acting user's fragrances plus external search.
How:   Extracts query parameters, delegates to FragranceService or the
       search service on `app.state`, returns the `{success, data}` envelope.

Route Inventory:
    GET    /api/fragrances/search?q=     external lookup (cached)
    GET    /api/fragrances/health        search cache + source reachability
    DELETE /api/fragrances/cache         clear cached searches
    POST   /api/fragrances               create
    GET    /api/fragrances               list with filters and pagination
    GET    /api/fragrances/{id}          detail
    PUT    /api/fragrances/{id}          partial update
    PUT    /api/fragrances/{id}/rating   rating (+ optional personal notes)
    DELETE /api/fragrances/{id}          delete (cascades inventory and logs)

The search/health/cache paths are registered before `/{id}`.
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.database import get_db_session
from fragrance_tracker.routes.deps import get_current_user_id, get_search_service
from fragrance_tracker.schemas.common import ApiResponse, ErrorResponse
from fragrance_tracker.schemas.fragrance import (
    FragranceCreate,
    FragranceResponse,
    FragranceUpdate,
    ListType,
    RatingUpdate,
    SortField,
    SortOrder,
)
from fragrance_tracker.schemas.search import CacheClearResult, ExternalFragrance, SearchHealth
from fragrance_tracker.services.fragrance_service import fragrance_service
from fragrance_tracker.services.search_service import FragranceSearchService

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/fragrances", tags=["Fragrances"])

_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Fragrance not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


# ── External Search ───────────────────────────────────────────────────────


@router.get(
    "/search",
    response_model=ApiResponse[List[ExternalFragrance]],
    responses={400: {"description": "Missing query", "model": ErrorResponse}},
    summary="Search external fragrance databases",
)
async def search_fragrances(
    q: str = Query(description="Name or brand; at least 2 characters to hit any source"),
    search: FragranceSearchService = Depends(get_search_service),
) -> ApiResponse[List[ExternalFragrance]]:
    results = await search.search(q)
    return ApiResponse(data=results, count=len(results))


@router.get(
    "/health",
    response_model=ApiResponse[SearchHealth],
    summary="Search subsystem health",
)
async def search_health(
    search: FragranceSearchService = Depends(get_search_service),
) -> ApiResponse[SearchHealth]:
    return ApiResponse(data=SearchHealth(**await search.health()))


@router.delete(
    "/cache",
    response_model=ApiResponse[CacheClearResult],
    summary="Clear cached search results",
)
async def clear_search_cache(
    pattern: Optional[str] = Query(
        default=None,
        description="Glob over cache keys, e.g. 'fragrance_search:dior*'. Omit to clear everything.",
    ),
    search: FragranceSearchService = Depends(get_search_service),
) -> ApiResponse[CacheClearResult]:
    cleared = search.clear_cache(pattern)
    return ApiResponse(data=CacheClearResult(cleared=cleared), message=f"Cleared {cleared} cache entries")


# ── Catalog CRUD ──────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=ApiResponse[FragranceResponse],
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
    summary="Add a fragrance to the catalog",
)
async def create_fragrance(
    payload: FragranceCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[FragranceResponse]:
    fragrance = await fragrance_service.create(db, user_id, payload)
    return ApiResponse(data=fragrance, message="Fragrance created")


@router.get(
    "",
    response_model=ApiResponse[List[FragranceResponse]],
    responses=_errors,
    summary="List the acting user's fragrances",
)
async def list_fragrances(
    brand: Optional[str] = Query(default=None, description="Brand substring (case-insensitive)"),
    list_type: Optional[ListType] = Query(default=None),
    min_rating: Optional[int] = Query(default=None, ge=1, le=10),
    max_rating: Optional[int] = Query(default=None, ge=1, le=10),
    has_low_inventory: Optional[bool] = Query(
        default=None,
        description="true: only bottles at or below their threshold; false: only those above it",
    ),
    search: Optional[str] = Query(default=None, description="Name or brand substring"),
    sort_by: SortField = Query(default="created_at"),
    sort_order: SortOrder = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[FragranceResponse]]:
    """
    One page of fragrances.

    Example:
        GET /api/fragrances?brand=dior&min_rating=7&sort_by=rating&sort_order=desc
    """
    fragrances, pagination = await fragrance_service.list(
        db,
        user_id,
        page=page,
        limit=limit,
        brand=brand,
        list_type=list_type,
        min_rating=min_rating,
        max_rating=max_rating,
        has_low_inventory=has_low_inventory,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(data=fragrances, count=len(fragrances), pagination=pagination)


@router.get(
    "/{fragrance_id}",
    response_model=ApiResponse[FragranceResponse],
    responses=_errors,
    summary="Get a single fragrance",
)
async def get_fragrance(
    fragrance_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[FragranceResponse]:
    return ApiResponse(data=await fragrance_service.get(db, user_id, fragrance_id))


@router.put(
    "/{fragrance_id}",
    response_model=ApiResponse[FragranceResponse],
    responses=_errors,
    summary="Update a fragrance",
)
async def update_fragrance(
    fragrance_id: uuid.UUID,
    payload: FragranceUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[FragranceResponse]:
    fragrance = await fragrance_service.update(db, user_id, fragrance_id, payload)
    return ApiResponse(data=fragrance, message="Fragrance updated")


@router.put(
    "/{fragrance_id}/rating",
    response_model=ApiResponse[FragranceResponse],
    responses=_errors,
    summary="Rate a fragrance",
)
async def rate_fragrance(
    fragrance_id: uuid.UUID,
    payload: RatingUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[FragranceResponse]:
    fragrance = await fragrance_service.update_rating(db, user_id, fragrance_id, payload)
    return ApiResponse(data=fragrance, message="Rating updated")


@router.delete(
    "/{fragrance_id}",
    response_model=ApiResponse[None],
    responses=_errors,
    summary="Delete a fragrance",
)
async def delete_fragrance(
    fragrance_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await fragrance_service.delete(db, user_id, fragrance_id)
    return ApiResponse(data=None, message="Fragrance deleted")
