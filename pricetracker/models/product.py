"""Tracked product model."""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricetracker.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricetracker.models.price_history import PriceHistory


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A product being tracked, keyed by its canonical source URL.

    Every write is an upsert on ``url``. Price fields are nullable: NULL
    means the price could not be parsed and must be read as "unknown".
    """

    __tablename__ = "products"

    url: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
        unique=True,
        index=True,
        comment="Canonical source URL",
    )
    geturl: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        default="",
        comment="Path segment derived from the price-history cross reference",
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    category: Mapped[str] = mapped_column(String(200), nullable=False, default="category")

    # Pricing
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="$")
    current_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2),
        nullable=True,
        comment="MRP / list price before discounts",
    )
    discount_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    lowest_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    highest_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    average_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # Social proof / availability
    reviews_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stars: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_out_of_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    price_history: Mapped[list["PriceHistory"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="PriceHistory.sequence",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title[:50]}...', url={self.url})>"
