"""Pydantic schemas for Google Shopping search results.

A result item is never stored as-is: saving one projects it into a
NormalizedProduct through ``to_candidate``.
"""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pricetracker.scrapers.base import NormalizedProduct


# ---------------------------------------------------------------------------
# Projection constants for shopping results
# ---------------------------------------------------------------------------

SHOPPING_CURRENCY = "₹"
SHOPPING_CATEGORY = "Tech"
# Shopping results carry no list price or history, so the saved record
# gets a fixed synthetic band around the listed price
SHOPPING_PRICE_SPREAD = Decimal("1000")


class ShoppingResultItem(BaseModel):
    """One entry of SerpAPI's ``shopping_results`` list.

    Unknown keys sent by SerpAPI are kept so the item round-trips through
    the UI unchanged.
    """

    model_config = ConfigDict(extra="allow")

    position: Optional[int] = None
    title: str = Field(
        ...,
        min_length=1,
        description="Product title as listed by the seller",
        examples=["Sony WH-1000XM4 Wireless Noise Canceling Headphones"],
    )
    link: Optional[str] = None
    product_link: Optional[str] = Field(
        None,
        description="Google Shopping product page; stored as the product url",
    )
    product_id: Optional[str] = None
    serpapi_product_api: Optional[str] = None
    source: Optional[str] = Field(None, description="Seller name", examples=["Amazon.in"])
    price: Optional[str] = Field(None, examples=["₹19,990.00"])
    extracted_price: Optional[Decimal] = Field(None, ge=0, examples=[19990])
    second_hand_condition: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    extensions: Optional[List[Any]] = None
    thumbnail: Optional[str] = None
    delivery: Optional[str] = None

    def to_candidate(self, geturl: str) -> NormalizedProduct:
        """Project this result into a product candidate.

        Args:
            geturl: Path segment from the cross-reference resolver (or its
                timestamp fallback)

        Raises:
            ValueError: The item has neither ``product_link`` nor ``link``
        """
        price = self.extracted_price
        return NormalizedProduct(
            url=self.product_link or self.link or "",
            geturl=geturl,
            currency=SHOPPING_CURRENCY,
            image=self.thumbnail,
            title=self.title,
            current_price=price,
            original_price=price,
            discount_rate=price + SHOPPING_PRICE_SPREAD if price is not None else None,
            category=SHOPPING_CATEGORY,
            reviews_count=self.reviews or 0,
            stars=self.rating or 0.0,
            is_out_of_stock=False,
            description=self.title,
            lowest_price=price - SHOPPING_PRICE_SPREAD if price is not None else None,
            highest_price=price + SHOPPING_PRICE_SPREAD if price is not None else None,
            average_price=price,
        )


class ShoppingSearchResponse(BaseModel):
    """Shopping search results for one query."""

    query: str
    results: List[ShoppingResultItem]
