"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.config import settings
from pricetracker.dependencies import get_db
from pricetracker.schemas import HealthCheckResponse
from pricetracker.services.cache_service import CacheService, get_cache

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Return service health status.

    Checks connectivity to:
    - Database
    - Redis (rate-limit counters and cache)

    and reports whether the ScraperAPI and SerpAPI keys are configured.
    """
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    redis_status = "ok" if await cache.health_check() else "error: ping failed"

    credentials = {
        "scraperapi": bool(settings.SCRAPER_API_KEY),
        "serpapi": bool(settings.get_serpapi_key()),
    }

    overall_status = "ok" if db_status == "ok" and redis_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        environment=settings.ENVIRONMENT,
        database=db_status,
        redis=redis_status,
        credentials=credentials,
    )
