"""Google Shopping search through SerpAPI."""

from typing import List, Optional

import structlog
from pydantic import ValidationError

from pricetracker.config import settings
from pricetracker.core.exceptions import MissingCredentialError, PriceTrackerException
from pricetracker.core.results import Outcome
from pricetracker.schemas.shopping import ShoppingResultItem
from pricetracker.scrapers.utils.rate_limiter import FixedWindowRateLimiter
from pricetracker.services.cross_reference import ANONYMOUS_CLIENT
from pricetracker.services.serpapi_client import SerpAPIClient

logger = structlog.get_logger(__name__)


class GoogleShoppingClient:
    """Searches Google Shopping for a free-text query.

    Shares its rate limiter with the cross-reference resolver, so one
    client's searches and saves draw from the same window.
    """

    def __init__(self, serpapi: SerpAPIClient, rate_limiter: FixedWindowRateLimiter):
        self.serpapi = serpapi
        self.rate_limiter = rate_limiter
        self.logger = logger.bind(service="google_shopping")

    def build_params(self, query: str) -> dict:
        return {
            "q": query,
            "location": settings.SHOPPING_LOCATION,
            "hl": settings.SHOPPING_LANGUAGE,
            "gl": settings.SHOPPING_COUNTRY,
            "num": settings.SHOPPING_RESULT_COUNT,
        }

    async def search(
        self,
        query: str,
        client_key: Optional[str] = None,
    ) -> Outcome[List[ShoppingResultItem]]:
        """Run a shopping search.

        Args:
            query: Free-text product query
            client_key: Rate-limit key of the requesting client

        Returns:
            ok(items), rate_limited(), not_found() for an empty result list,
            or failed(error) on an upstream failure

        Raises:
            MissingCredentialError: No SerpAPI key configured
        """
        key = client_key or ANONYMOUS_CLIENT
        permit = await self.rate_limiter.limit(key)
        if not permit.allowed:
            self.logger.warning("shopping_search_rate_limited", client=key, reset_at=permit.reset_at)
            return Outcome.rate_limited()

        self.logger.info("shopping_search_started", query=query)
        try:
            data = await self.serpapi.search("google_shopping", **self.build_params(query))
        except MissingCredentialError:
            raise
        except PriceTrackerException as e:
            self.logger.error("shopping_search_failed", query=query, error=e.message)
            return Outcome.failed(e)

        items = []
        for raw in data.get("shopping_results") or []:
            try:
                items.append(ShoppingResultItem.model_validate(raw))
            except ValidationError as e:
                # One malformed listing should not sink the whole page
                self.logger.warning("shopping_item_skipped", position=raw.get("position"), error=str(e))

        if not items:
            self.logger.info("shopping_search_empty", query=query)
            return Outcome.not_found()

        self.logger.info("shopping_search_complete", query=query, count=len(items))
        return Outcome.ok(items)
