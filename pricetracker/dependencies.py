"""FastAPI dependency injection providers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.config import settings
from pricetracker.db.utils import get_db
from pricetracker.scrapers.adapters.amazon import AmazonProductScraper
from pricetracker.scrapers.utils.rate_limiter import FixedWindowRateLimiter
from pricetracker.services.cache_service import CacheService, get_cache
from pricetracker.services.cross_reference import ANONYMOUS_CLIENT, CrossReferenceResolver
from pricetracker.services.serpapi_client import SerpAPIClient
from pricetracker.services.shopping_service import GoogleShoppingClient
from pricetracker.services.tracking_service import TrackingService


def get_client_key(request: Request) -> str:
    """Rate-limit key of the caller.

    The first ``X-Forwarded-For`` entry is the original client behind a
    proxy; without the header the socket peer is used.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    if request.client and request.client.host:
        return request.client.host
    return ANONYMOUS_CLIENT


async def get_rate_limiter(cache: CacheService = Depends(get_cache)) -> FixedWindowRateLimiter:
    """Fixed-window limiter sharing the cache's Redis connection."""
    return FixedWindowRateLimiter(
        await cache.client(),
        permits=settings.RATE_LIMIT_PERMITS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )


def get_serpapi_client() -> SerpAPIClient:
    return SerpAPIClient()


def get_resolver(
    serpapi: SerpAPIClient = Depends(get_serpapi_client),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> CrossReferenceResolver:
    return CrossReferenceResolver(serpapi, rate_limiter)


def get_shopping_client(
    serpapi: SerpAPIClient = Depends(get_serpapi_client),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> GoogleShoppingClient:
    return GoogleShoppingClient(serpapi, rate_limiter)


def get_scraper(resolver: CrossReferenceResolver = Depends(get_resolver)) -> AmazonProductScraper:
    return AmazonProductScraper(resolver=resolver)


def get_tracking_service(
    db: AsyncSession = Depends(get_db),
    scraper: AmazonProductScraper = Depends(get_scraper),
    shopping: GoogleShoppingClient = Depends(get_shopping_client),
    resolver: CrossReferenceResolver = Depends(get_resolver),
    cache: CacheService = Depends(get_cache),
) -> TrackingService:
    """Wire the tracking service for one request."""
    return TrackingService(db, scraper, shopping, resolver, cache)
