"""Common Pydantic schemas used across the API."""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""

    page: int = 1
    limit: int = 20
    total: int = 0
    total_pages: int = 0

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, total_pages=(total + limit - 1) // limit)


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""

    status: str = "success"
    data: T
    meta: Optional[PaginationMeta] = None


class ErrorDetail(BaseModel):
    """Error detail for error responses.

    ``code`` is the machine-readable error kind (``blocked_by_upstream``,
    ``rate_limited``, ...); ``details`` carries extra context such as the
    rate-limit reset time.
    """

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Standard API error response."""

    status: str = "error"
    error: ErrorDetail
