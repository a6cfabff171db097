"""Price Tracker Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricetracker.api.v1.router import api_v1_router
from pricetracker.config import settings
from pricetracker.core.exceptions import PriceTrackerException
from pricetracker.db.session import get_database
from pricetracker.schemas import ErrorDetail, ErrorResponse
from pricetracker.services.cache_service import get_cache_service

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info("Starting Price Tracker API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    database = get_database()
    await database.connect()
    logger.info("Database connected, tables verified/created")

    if not settings.SCRAPER_API_KEY:
        logger.warning("SCRAPER_API_KEY is not set; Amazon scraping will fail")
    if not settings.get_serpapi_key():
        logger.warning("SERPAPI_API_KEY is not set; shopping search and cross references will fail")

    cache = get_cache_service()
    if await cache.health_check():
        logger.info("Redis connected successfully")
    else:
        logger.warning("Redis connection failed (searches will be rate limited until it recovers)")

    yield

    # Shutdown
    logger.info("Shutting down Price Tracker API server...")

    await cache.close()
    await database.dispose()


app = FastAPI(
    title="Price Tracker API",
    description="Amazon and Google Shopping price tracking API",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PriceTrackerException)
async def price_tracker_exception_handler(request: Request, exc: PriceTrackerException):
    """Render domain errors as ErrorResponse with the error's status code."""
    logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Price Tracker API",
        "version": "0.1.0",
        "description": "Amazon and Google Shopping price tracking",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
