"""Entry points that tie scraping, searching and persistence together.

Each method is driven by a single user action and runs as a plain
sequence of awaited calls. Nothing here retries: upstream failures
propagate to the caller.
"""

from typing import TYPE_CHECKING, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.core.results import Outcome
from pricetracker.models.product import Product
from pricetracker.schemas.shopping import ShoppingResultItem
from pricetracker.scrapers.base import NormalizedProduct
from pricetracker.services.cache_service import CacheService
from pricetracker.services.cross_reference import (
    CrossReferenceResolver,
    derive_path_segment,
    fallback_path_segment,
)
from pricetracker.services.product_service import ProductService
from pricetracker.services.shopping_service import GoogleShoppingClient

if TYPE_CHECKING:
    from pricetracker.scrapers.adapters.amazon import AmazonProductScraper

logger = structlog.get_logger(__name__)


class TrackingService:
    """Scrape, search and save operations exposed to the API and the CLI."""

    def __init__(
        self,
        db: AsyncSession,
        scraper: "AmazonProductScraper",
        shopping: GoogleShoppingClient,
        resolver: CrossReferenceResolver,
        cache: Optional[CacheService] = None,
    ):
        self.products = ProductService(db)
        self.scraper = scraper
        self.shopping = shopping
        self.resolver = resolver
        self.cache = cache
        self.logger = logger.bind(service="tracking_service")

    async def scrape_amazon_product(
        self, url: str, client_key: Optional[str] = None
    ) -> NormalizedProduct:
        """Scrape an Amazon product page without saving it."""
        return await self.scraper.scrape(url, client_key)

    async def google_shopping_result(
        self, query: str, client_key: Optional[str] = None
    ) -> Outcome[List[ShoppingResultItem]]:
        """Search Google Shopping; see GoogleShoppingClient.search."""
        return await self.shopping.search(query, client_key)

    async def google_product_save(
        self, item: ShoppingResultItem, client_key: Optional[str] = None
    ) -> str:
        """Save a shopping result and return its redirect id.

        When the cross reference cannot be resolved for any reason, the
        product is still saved under a timestamp-based path segment.
        """
        outcome = await self.resolver.resolve(item.title, client_key)

        geturl = derive_path_segment(outcome.value) if outcome.is_ok else ""
        if not geturl:
            geturl = fallback_path_segment()
            self.logger.info(
                "geturl_fallback_used",
                title=item.title[:50],
                status=outcome.status.value,
                geturl=geturl,
            )

        product = await self._save(item.to_candidate(geturl))
        return str(product.id)

    async def track_product_url(self, url: str, client_key: Optional[str] = None) -> str:
        """Scrape an Amazon product page, save it and return its redirect id."""
        candidate = await self.scraper.scrape(url, client_key)
        product = await self._save(candidate)
        return str(product.id)

    async def _save(self, candidate: NormalizedProduct) -> Product:
        product = await self.products.save_product(candidate)

        if self.cache is not None:
            await self.cache.invalidate_product_views(product.id)

        self.logger.info("product_tracked", product_id=str(product.id), url=product.url)
        return product
