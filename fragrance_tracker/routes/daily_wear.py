"""
Fragrance Tracker Backend: Daily Wear Route Handlers
=====================================================

What:  Calendar of what the acting user wore, and statistics derived from it.
How:   Delegates to CalendarService; recording a day also drains the bottles
       worn (best effort, see calendar_service).

Route Inventory:
    POST   /api/daily-wear                      record a day (201)
    GET    /api/daily-wear?start_date=&end_date= history, newest first
    GET    /api/daily-wear/statistics           trailing-year statistics
    GET    /api/daily-wear/{YYYY-MM-DD}         one day
    PUT    /api/daily-wear/{id}                 field-level update
    DELETE /api/daily-wear/{id}                 remove a day
"""

import datetime as dt
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.database import get_db_session
from fragrance_tracker.routes.deps import get_current_user_id
from fragrance_tracker.schemas.common import ApiResponse, ErrorResponse
from fragrance_tracker.schemas.daily_wear import (
    DailyWearCreate,
    DailyWearResponse,
    DailyWearUpdate,
    WearHistoryDay,
    WearStatistics,
)
from fragrance_tracker.services.calendar_service import calendar_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/daily-wear", tags=["Daily Wear"])

_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Daily wear or fragrance not found", "model": ErrorResponse},
    409: {"description": "A record already exists for that date", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=ApiResponse[DailyWearResponse],
    status_code=status.HTTP_201_CREATED,
    responses=_errors,
    summary="Record what was worn on a day",
)
async def record_daily_wear(
    payload: DailyWearCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[DailyWearResponse]:
    """
    One record per user and date.

    Entries with a positive `spray_count` are also logged as usage against
    the fragrance's bottle. A fragrance that is not tracked in inventory
    is still recorded as worn.
    """
    wear = await calendar_service.record_wear(db, user_id, payload)
    return ApiResponse(data=DailyWearResponse.from_model(wear), message="Daily wear recorded")


@router.get(
    "",
    response_model=ApiResponse[List[WearHistoryDay]],
    responses={400: _errors[400]},
    summary="Wear history",
)
async def wear_history(
    start_date: Optional[dt.date] = Query(default=None, description="Inclusive, YYYY-MM-DD"),
    end_date: Optional[dt.date] = Query(default=None, description="Inclusive, YYYY-MM-DD"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[WearHistoryDay]]:
    history = await calendar_service.history(db, user_id, start_date, end_date)
    return ApiResponse(data=history, count=len(history))


@router.get(
    "/statistics",
    response_model=ApiResponse[WearStatistics],
    summary="Wear statistics over the last 365 days",
)
async def wear_statistics(
    fragrance_id: Optional[uuid.UUID] = Query(default=None, description="Restrict to one fragrance"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[WearStatistics]:
    stats = await calendar_service.statistics(db, user_id, fragrance_id=fragrance_id)
    return ApiResponse(data=stats)


@router.get(
    "/{wear_date}",
    response_model=ApiResponse[DailyWearResponse],
    responses=_errors,
    summary="What was worn on a date",
)
async def get_daily_wear(
    wear_date: dt.date,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[DailyWearResponse]:
    wear = await calendar_service.get_by_date(db, user_id, wear_date)
    return ApiResponse(data=DailyWearResponse.from_model(wear))


@router.put(
    "/{wear_id}",
    response_model=ApiResponse[DailyWearResponse],
    responses=_errors,
    summary="Update a recorded day",
)
async def update_daily_wear(
    wear_id: uuid.UUID,
    payload: DailyWearUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[DailyWearResponse]:
    wear = await calendar_service.update_wear(db, user_id, wear_id, payload)
    return ApiResponse(data=DailyWearResponse.from_model(wear), message="Daily wear updated")


@router.delete(
    "/{wear_id}",
    response_model=ApiResponse[None],
    responses=_errors,
    summary="Delete a recorded day",
)
async def delete_daily_wear(
    wear_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await calendar_service.delete_wear(db, user_id, wear_id)
    return ApiResponse(data=None, message="Daily wear deleted")
