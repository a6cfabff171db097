"""Price history tracking for products."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricetracker.models.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricetracker.models.product import Product


class PriceHistory(UUIDPrimaryKeyMixin, Base):
    """One observed price of a product.

    Entries are append-only. ``sequence`` is the insertion index within the
    product's history, so ordering never depends on clock resolution.
    """

    __tablename__ = "price_history"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, comment="Price at this point in time")
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="When this price was recorded",
    )

    __table_args__ = (
        Index("idx_price_history_product_sequence", "product_id", "sequence", unique=True),
    )

    product: Mapped["Product"] = relationship(back_populates="price_history")

    def __repr__(self) -> str:
        return f"<PriceHistory(id={self.id}, product_id={self.product_id}, price={self.price}, sequence={self.sequence})>"
