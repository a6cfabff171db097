"""Base scraper adapter interface.

Platform-specific scrapers inherit from BaseProxyScraperAdapter, which
fetches pages through the rendering proxy, and implement ``scrape()``.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple

import httpx
import structlog

from pricetracker.config import settings
from pricetracker.core.exceptions import (
    BlockedByUpstreamError,
    MissingCredentialError,
    upstream_error_from,
)


@dataclass
class NormalizedProduct:
    """Canonical product record assembled by a scraper, not yet persisted."""

    url: str
    title: str = ""
    geturl: str = ""
    currency: str = "$"
    image: Optional[str] = None
    current_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    discount_rate: Optional[Decimal] = None
    category: str = "category"
    reviews_count: int = 0
    stars: float = 0.0
    is_out_of_stock: bool = False
    description: str = ""
    lowest_price: Optional[Decimal] = None
    highest_price: Optional[Decimal] = None
    average_price: Optional[Decimal] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.url:
            raise ValueError("url is required")
        for name in ("current_price", "original_price"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be a non-negative Decimal")


class BaseAdapter(ABC):
    """Abstract base class for all product scrapers."""

    platform: str = ""  # Must be overridden in subclass (e.g., "amazon")
    platform_name: str = ""  # Display name used in error messages

    def __init__(self):
        self.logger = structlog.get_logger(adapter=self.platform)

    @abstractmethod
    async def scrape(self, url: str, client_key: Optional[str] = None) -> NormalizedProduct:
        """Scrape a product page into a NormalizedProduct.

        Args:
            url: Product page URL
            client_key: Rate-limit key of the requesting client, if any

        Raises:
            PriceTrackerException: If the page cannot be fetched or is blocked
        """
        pass


class BaseProxyScraperAdapter(BaseAdapter):
    """Base class for scrapers that fetch HTML through the ScraperAPI proxy.

    Provides the credential check, the randomized politeness delay, the
    proxy request itself and bot-challenge detection. Nothing here retries:
    a failed fetch is mapped onto the error taxonomy and raised.
    """

    # Substrings that mean we got an anti-bot page instead of content
    BOT_MARKERS: Sequence[str] = ()
    REQUEST_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        delay_range: Optional[Tuple[float, float]] = None,
    ):
        """Initialize proxy scraper.

        Args:
            http_client: Shared httpx client; a short-lived one is created per
                request when omitted
            delay_range: (min, max) seconds slept before each fetch
        """
        super().__init__()
        self.http_client = http_client
        self.api_url = settings.SCRAPER_API_URL
        self.country_code = settings.SCRAPER_COUNTRY_CODE
        self.timeout = settings.SCRAPER_TIMEOUT_SECONDS
        self.min_body_length = settings.BOT_BLOCK_MIN_BODY_LENGTH
        self.delay_range = delay_range or (
            settings.SCRAPE_DELAY_MIN_SECONDS,
            settings.SCRAPE_DELAY_MAX_SECONDS,
        )

    def _get_proxy_api_key(self) -> str:
        """Return the ScraperAPI key or fail fatally."""
        key = settings.SCRAPER_API_KEY
        if not key:
            raise MissingCredentialError(
                "ScraperAPI",
                "SCRAPER_API_KEY",
                "https://www.scraperapi.com/",
            )
        return key

    async def _polite_delay(self) -> None:
        low, high = self.delay_range
        if high <= 0:
            return
        delay = random.uniform(low, high)
        self.logger.info("pre_request_delay", delay_ms=round(delay * 1000))
        await asyncio.sleep(delay)

    async def _proxy_get(self, params: dict) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.get(
                self.api_url, params=params, headers=self.REQUEST_HEADERS, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self.api_url, params=params, headers=self.REQUEST_HEADERS)

    async def _fetch_via_proxy(self, url: str) -> str:
        """Fetch a page through the rendering proxy and reject bot challenges.

        Raises:
            MissingCredentialError: SCRAPER_API_KEY is not set
            BlockedByUpstreamError: The body is a bot challenge or too short
            UpstreamAuthError / UpstreamUnavailableError / NetworkError /
            ScrapeFailedError: Mapped from the transport failure
        """
        api_key = self._get_proxy_api_key()
        params = {
            "api_key": api_key,
            "url": url,
            "render": "false",
            "country_code": self.country_code,
        }

        await self._polite_delay()

        self.logger.info("fetching_via_proxy", url=url)
        try:
            response = await self._proxy_get(params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            status = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            self.logger.error(
                "proxy_fetch_failed",
                url=url,
                status=status,
                error=str(e),
                body_preview=e.response.text[:200] if status else None,
            )
            raise upstream_error_from(e, "ScraperAPI", "SCRAPER_API_KEY") from e

        html = response.text
        self.logger.info("proxy_fetch_complete", status=response.status_code, size=len(html))

        marker = self._detect_block(html)
        if marker:
            self.logger.warning("bot_detection_triggered", url=url, marker=marker, preview=html[:300])
            raise BlockedByUpstreamError(self.platform_name or self.platform, marker=marker)

        return html

    def _detect_block(self, html: str) -> Optional[str]:
        """Return the matched bot signature, or None if the page looks real."""
        matched = next((m for m in self.BOT_MARKERS if m in html), None)
        if matched:
            return matched
        if len(html) < self.min_body_length:
            return "short_body"
        return None
