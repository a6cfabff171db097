"""Product Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PriceHistoryPoint(BaseModel):
    """Single price history data point."""

    model_config = ConfigDict(from_attributes=True)

    price: Decimal
    sequence: int
    recorded_at: datetime


class ProductCandidateResponse(BaseModel):
    """A scraped product that has not been persisted."""

    model_config = ConfigDict(from_attributes=True)

    url: str
    geturl: str
    title: str
    currency: str
    image: Optional[str] = None
    current_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    discount_rate: Optional[Decimal] = None
    category: str
    reviews_count: int
    stars: float
    is_out_of_stock: bool
    description: str
    lowest_price: Optional[Decimal] = None
    highest_price: Optional[Decimal] = None
    average_price: Optional[Decimal] = None


class ProductResponse(ProductCandidateResponse):
    """Stored product response schema."""

    id: UUID
    created_at: datetime
    updated_at: datetime


class ProductDetailResponse(ProductResponse):
    """Stored product together with its ordered price history."""

    price_history: List[PriceHistoryPoint] = []


class TrackRequest(BaseModel):
    """Request body carrying a product page URL."""

    url: str = Field(
        ...,
        min_length=1,
        description="Product page URL",
        examples=["https://www.amazon.in/dp/B0863TXGM3"],
    )


class TrackedProductResponse(BaseModel):
    """Identifier of the saved product, used to build the redirect path."""

    redirect_id: str
    product_url: str
