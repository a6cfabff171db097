"""Pydantic schemas for the price tracker API.

All request/response models are defined here for easy import.
"""

from pricetracker.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, PaginationMeta
from pricetracker.schemas.product import (
    PriceHistoryPoint,
    ProductCandidateResponse,
    ProductDetailResponse,
    ProductResponse,
    TrackedProductResponse,
    TrackRequest,
)
from pricetracker.schemas.shopping import ShoppingResultItem, ShoppingSearchResponse
from pricetracker.schemas.health import HealthCheckResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "PaginationMeta",
    # Product
    "PriceHistoryPoint",
    "ProductCandidateResponse",
    "ProductResponse",
    "ProductDetailResponse",
    "TrackRequest",
    "TrackedProductResponse",
    # Shopping
    "ShoppingResultItem",
    "ShoppingSearchResponse",
    # Health
    "HealthCheckResponse",
]
