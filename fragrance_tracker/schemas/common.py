"""
Fragrance Tracker Backend: Response Envelope Schemas
=====================================================

What:  The JSON envelope shared by every endpoint.
Who:   Route handlers wrap their payload in `ApiResponse[...]`; the global
       exception handlers in main.py emit `ErrorResponse`.

Success:
    {"success": true, "data": {...}, "count": 3, "message": "...",
     "pagination": {"page": 1, "limit": 20, "total": 57, "total_pages": 3}}

Failure:
    {"success": false,
     "error": {"code": "NOT_FOUND", "message": "...", "details": {...}},
     "request_id": "a1b2c3d4"}
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total items matching the filters")
    total_pages: int = Field(description="ceil(total / limit)")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope. Optional members serialize as null when unset."""

    success: bool = True
    data: Optional[T] = None
    count: Optional[int] = Field(default=None, description="Number of items in `data` for lists")
    message: Optional[str] = None
    pagination: Optional[Pagination] = None


class ErrorDetail(BaseModel):
    code: str = Field(description="VALIDATION_ERROR, NOT_FOUND, CONFLICT or INTERNAL_ERROR")
    message: str = Field(description="Human-readable description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context")


class ErrorResponse(BaseModel):
    """
    Failure envelope returned by every exception handler.

    Internal details (stack traces, SQL) never appear here; they are logged
    server-side under the same request_id.
    """

    success: bool = False
    error: ErrorDetail
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
