"""SQLAlchemy models for the price tracker.

All models are imported here so ``Base.metadata`` knows every table.
"""

from pricetracker.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from pricetracker.models.product import Product
from pricetracker.models.price_history import PriceHistory

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Product",
    "PriceHistory",
]
