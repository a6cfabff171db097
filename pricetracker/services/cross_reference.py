"""Cross-reference a product title against the price-history site.

The first organic Google result restricted to the price-history site gives
a canonical URL; the part after its fourth ``/`` becomes the product's
stable ``geturl`` path segment.
"""

import re
import time
from typing import Optional

import structlog

from pricetracker.config import settings
from pricetracker.core.exceptions import MissingCredentialError, PriceTrackerException
from pricetracker.core.results import Outcome
from pricetracker.scrapers.utils.rate_limiter import FixedWindowRateLimiter
from pricetracker.services.serpapi_client import SerpAPIClient

logger = structlog.get_logger(__name__)

MAX_QUERY_TOKENS = 7
ANONYMOUS_CLIENT = "anonymous"


def build_title_slug(title: str) -> str:
    """First 7 space-separated words, commas and pipes removed, hyphen-joined."""
    words = title.split(" ")
    query = " ".join(words[:MAX_QUERY_TOKENS])
    query = re.sub(r"[,|]", "", query)
    return re.sub(r"\s+", "-", query.strip())


def derive_path_segment(link: Optional[str]) -> str:
    """Everything after the 4th ``/``-delimited segment of a link, or ""."""
    if not link:
        return ""
    parts = link.split("/")
    return "/".join(parts[4:]) if len(parts) > 4 else ""


def fallback_path_segment() -> str:
    """Synthetic path segment used when no cross reference could be found."""
    return f"products/{int(time.time() * 1000)}"


class CrossReferenceResolver:
    """Resolves a product title to its page on the price-history site."""

    def __init__(
        self,
        serpapi: SerpAPIClient,
        rate_limiter: FixedWindowRateLimiter,
        site: Optional[str] = None,
    ):
        self.serpapi = serpapi
        self.rate_limiter = rate_limiter
        self.site = site or settings.PRICE_HISTORY_SITE
        self.logger = logger.bind(service="cross_reference")

    def build_query(self, title: str) -> str:
        return f"{build_title_slug(title)} site:{self.site}"

    async def resolve(self, title: str, client_key: Optional[str] = None) -> Outcome[str]:
        """Find the price-history page for a title.

        Never raises for rate limiting, empty results or upstream failures;
        those come back as Outcome variants. A missing API key still raises.

        Returns:
            Outcome.ok(link), rate_limited(), not_found() or failed(error)
        """
        key = client_key or ANONYMOUS_CLIENT
        permit = await self.rate_limiter.limit(key)
        if not permit.allowed:
            self.logger.warning("cross_reference_rate_limited", client=key, reset_at=permit.reset_at)
            return Outcome.rate_limited()

        query = self.build_query(title)
        self.logger.info("cross_reference_search", query=query)

        try:
            result = await self.serpapi.search("google", q=query)
        except MissingCredentialError:
            raise
        except PriceTrackerException as e:
            self.logger.error("cross_reference_failed", query=query, error=e.message)
            return Outcome.failed(e)

        organic = result.get("organic_results") or []
        if not organic or not organic[0].get("link"):
            self.logger.warning("no_organic_results", query=query)
            return Outcome.not_found()

        link = organic[0]["link"]
        self.logger.info("cross_reference_resolved", query=query, link=link)
        return Outcome.ok(link)
