"""Product service: the persistence gateway for tracked products.

Handles the upsert-by-url of scraped candidates, appending price history
and recomputing the low/high/average statistics, plus the read queries
behind the product endpoints.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.config import settings
from pricetracker.models.price_history import PriceHistory
from pricetracker.models.product import Product
from pricetracker.scrapers.base import NormalizedProduct

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")

# Every field a save overwrites; price_history is handled separately
PRODUCT_FIELDS = (
    "geturl",
    "currency",
    "image",
    "title",
    "current_price",
    "original_price",
    "discount_rate",
    "category",
    "reviews_count",
    "stars",
    "is_out_of_stock",
    "description",
    "lowest_price",
    "highest_price",
    "average_price",
)


def compute_price_stats(prices: List[Decimal]) -> Tuple[Decimal, Decimal, Decimal]:
    """Lowest, highest and mean of a non-empty price list, mean rounded to cents."""
    average = (sum(prices, Decimal("0")) / len(prices)).quantize(CENT, rounding=ROUND_HALF_UP)
    return min(prices), max(prices), average


class ProductService:
    """Service for managing products and price history.

    ``url`` is the only identity a product has on the way in: saving a
    candidate whose url already exists updates that row in place.
    """

    def __init__(self, db: AsyncSession):
        """Initialize product service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="product_service")

    async def save_product(
        self,
        candidate: NormalizedProduct,
        legacy_price_stats: Optional[bool] = None,
    ) -> Product:
        """Insert or update a product keyed on its url.

        A new product is stored as-is and starts with an empty price
        history. An existing product has every field overwritten from the
        candidate, gets ``candidate.current_price`` appended to its history
        and has its low/high/average recomputed.

        Args:
            candidate: Assembled product from a scraper or search result
            legacy_price_stats: Set low/high/average to the new current
                price instead of computing them over the full history.
                Defaults to ``settings.LEGACY_PRICE_STATS``.

        Returns:
            The persisted Product; ``str(product.id)`` is the redirect id
        """
        if legacy_price_stats is None:
            legacy_price_stats = settings.LEGACY_PRICE_STATS

        self.logger.info("saving_product", url=candidate.url, title=candidate.title[:50])

        product = await self.get_product_by_url(candidate.url)

        if product is None:
            self.logger.info("creating_new_product", url=candidate.url)
            product = Product(url=candidate.url, price_history=[])
            self._apply_candidate(product, candidate)
            self.db.add(product)

        else:
            self.logger.info("updating_existing_product", product_id=str(product.id))
            self._apply_candidate(product, candidate)

            if candidate.current_price is None:
                self.logger.warning("price_history_skipped_unknown_price", product_id=str(product.id))
            else:
                product.price_history.append(
                    PriceHistory(price=candidate.current_price, sequence=len(product.price_history))
                )

            self._recompute_stats(product, candidate, legacy_price_stats)

        await self.db.commit()

        self.logger.info(
            "product_saved",
            product_id=str(product.id),
            history_length=len(product.price_history),
        )
        return product

    def _apply_candidate(self, product: Product, candidate: NormalizedProduct) -> None:
        for name in PRODUCT_FIELDS:
            setattr(product, name, getattr(candidate, name))

    def _recompute_stats(
        self,
        product: Product,
        candidate: NormalizedProduct,
        legacy: bool,
    ) -> None:
        if legacy:
            product.lowest_price = candidate.current_price
            product.highest_price = candidate.current_price
            product.average_price = candidate.current_price
            return

        prices = [entry.price for entry in product.price_history]
        if not prices:
            # Nothing recorded yet, keep the candidate's own seeds
            return

        product.lowest_price, product.highest_price, product.average_price = compute_price_stats(prices)

    async def get_product_by_url(self, url: str) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.url == url))
        return result.scalar_one_or_none()

    async def get_product_by_id(self, product_id: UUID) -> Optional[Product]:
        """Get product by ID with its price history loaded.

        Args:
            product_id: Product UUID

        Returns:
            Product object or None if not found
        """
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def get_products(
        self,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Product], int]:
        """Get paginated products, most recently updated first.

        Args:
            page: Page number (1-indexed)
            limit: Results per page

        Returns:
            Tuple of (products list, total count)
        """
        offset = (page - 1) * limit
        query = (
            select(Product)
            .order_by(Product.updated_at.desc(), Product.id)
            .offset(offset)
            .limit(limit)
        )

        result = await self.db.execute(query)
        products = list(result.scalars().all())

        total_result = await self.db.execute(select(func.count(Product.id)))
        total = total_result.scalar() or 0

        return products, total

    async def get_price_history(self, product_id: UUID) -> List[PriceHistory]:
        """Get the full price history of a product in insertion order.

        Args:
            product_id: Product UUID

        Returns:
            List of PriceHistory records, oldest first
        """
        result = await self.db.execute(
            select(PriceHistory)
            .where(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.sequence.asc())
        )
        history = list(result.scalars().all())

        self.logger.info("price_history_fetched", product_id=str(product_id), count=len(history))
        return history
