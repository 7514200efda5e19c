"""
Fragrance Tracker Backend: Shared Route Dependencies
=====================================================

What:  FastAPI dependencies used across route modules.

Acting user:
    There is no authentication layer. The caller names itself through the
    `X-User-ID` header; requests without it act as `settings.default_user_id`.
"""

from typing import Optional

from fastapi import Header, Request

from fragrance_tracker.config import settings
from fragrance_tracker.services.scheduler import SweepScheduler
from fragrance_tracker.services.search_service import FragranceSearchService


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    user_id = (x_user_id or "").strip()
    return user_id or settings.default_user_id


def get_sweep_scheduler(request: Request) -> SweepScheduler:
    return request.app.state.sweep_scheduler


def get_search_service(request: Request) -> FragranceSearchService:
    return request.app.state.search_service
