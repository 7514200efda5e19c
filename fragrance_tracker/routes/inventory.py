"""
Fragrance Tracker Backend: Inventory Route Handlers
====================================================

What:  HTTP surface of the inventory ledger.
How:   Thin handlers: validate input (Pydantic), call InventoryService, wrap
       the result in the `{success, data}` envelope.

Route Inventory:
    POST /api/inventory                              record usage
    GET  /api/inventory/alerts                       low-stock alerts
    POST /api/inventory/create                       start tracking a bottle
    POST /api/inventory/recalculate                  run the sweep now
    GET  /api/inventory/{fragrance_id}               ledger record
    PUT  /api/inventory/{fragrance_id}               corrective edit
    GET  /api/inventory/{fragrance_id}/status        level, low flag, last use
    GET  /api/inventory/{fragrance_id}/remaining-days  live projection

Static paths are declared before `/{fragrance_id}` so they are matched first.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.database import get_db_session
from fragrance_tracker.exceptions import NotFoundError
from fragrance_tracker.routes.deps import get_current_user_id, get_sweep_scheduler
from fragrance_tracker.schemas.common import ApiResponse, ErrorResponse
from fragrance_tracker.schemas.inventory import (
    InventoryCreate,
    InventoryResponse,
    InventoryStatus,
    InventoryUpdate,
    LowStockAlert,
    RemainingDays,
    SweepResultResponse,
    UsageRecord,
)
from fragrance_tracker.services.inventory_service import inventory_service
from fragrance_tracker.services.scheduler import SweepScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])

_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Fragrance or inventory record not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=ApiResponse[InventoryResponse],
    responses=_errors,
    summary="Record usage against a bottle",
)
async def record_usage(
    payload: UsageRecord,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InventoryResponse]:
    """
    Append a usage event and drain the bottle accordingly.

    Returns the updated ledger. A fragrance without an inventory record is
    a 404 here; nothing is logged for it.
    """
    record = await inventory_service.record_usage(db, payload)
    return ApiResponse(
        data=InventoryResponse.model_validate(record),
        message="Usage recorded",
    )


@router.get(
    "/alerts",
    response_model=ApiResponse[List[LowStockAlert]],
    summary="Owned fragrances at or below their low-stock threshold",
)
async def low_stock_alerts(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[LowStockAlert]]:
    alerts = await inventory_service.list_low_stock(db, user_id)
    return ApiResponse(data=alerts, count=len(alerts))


@router.post(
    "/create",
    response_model=ApiResponse[InventoryResponse],
    status_code=status.HTTP_201_CREATED,
    responses={**_errors, 409: {"description": "Already tracked", "model": ErrorResponse}},
    summary="Start tracking a bottle",
)
async def create_inventory(
    payload: InventoryCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InventoryResponse]:
    record = await inventory_service.create(db, payload, user_id=user_id)
    return ApiResponse(
        data=InventoryResponse.model_validate(record),
        message="Inventory record created",
    )


@router.post(
    "/recalculate",
    response_model=ApiResponse[SweepResultResponse],
    summary="Recompute remaining-days estimates for every tracked bottle",
)
async def recalculate(
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
) -> ApiResponse[SweepResultResponse]:
    result = await scheduler.run_now()
    return ApiResponse(
        data=SweepResultResponse(**result.to_dict()),
        message="Remaining-days estimates recalculated",
    )


@router.get(
    "/{fragrance_id}",
    response_model=ApiResponse[InventoryResponse],
    responses=_errors,
    summary="Inventory record for a fragrance",
)
async def get_inventory(
    fragrance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InventoryResponse]:
    record = await inventory_service.get(db, fragrance_id)
    if record is None:
        raise NotFoundError(resource="inventory record", resource_id=str(fragrance_id))
    return ApiResponse(data=InventoryResponse.model_validate(record))


@router.put(
    "/{fragrance_id}",
    response_model=ApiResponse[InventoryResponse],
    responses=_errors,
    summary="Correct an inventory record",
)
async def edit_inventory(
    fragrance_id: uuid.UUID,
    payload: InventoryUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InventoryResponse]:
    record = await inventory_service.edit_record(db, fragrance_id, payload)
    return ApiResponse(
        data=InventoryResponse.model_validate(record),
        message="Inventory record updated",
    )


@router.get(
    "/{fragrance_id}/status",
    response_model=ApiResponse[InventoryStatus],
    responses=_errors,
    summary="Level, low-stock flag and last use",
)
async def inventory_status(
    fragrance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InventoryStatus]:
    return ApiResponse(data=await inventory_service.get_status(db, fragrance_id))


@router.get(
    "/{fragrance_id}/remaining-days",
    response_model=ApiResponse[RemainingDays],
    summary="Live remaining-days projection",
)
async def remaining_days(
    fragrance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[RemainingDays]:
    """Computed from current state; an untracked fragrance reports 0."""
    days = await inventory_service.estimate_remaining_days(db, fragrance_id)
    return ApiResponse(
        data=RemainingDays(
            fragrance_id=fragrance_id,
            estimated_days_remaining=days,
            unbounded=days is None,
        )
    )
