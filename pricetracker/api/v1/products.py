"""Products API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pricetracker.core.exceptions import NotFoundError
from pricetracker.dependencies import get_client_key, get_db, get_tracking_service
from pricetracker.schemas import (
    ApiResponse,
    PaginationMeta,
    PriceHistoryPoint,
    ProductDetailResponse,
    ProductResponse,
    TrackedProductResponse,
    TrackRequest,
)
from pricetracker.services.cache_service import (
    CacheService,
    cache_key_for_product,
    cache_key_for_products,
    get_cache,
)
from pricetracker.services.product_service import ProductService
from pricetracker.services.tracking_service import TrackingService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """List tracked products, most recently updated first.

    This endpoint is cached until the next product save.
    """
    cache_key = cache_key_for_products(page=page, limit=limit)
    cached = await cache.get(cache_key)
    if cached:
        return ApiResponse.model_validate_json(cached)

    service = ProductService(db)
    products, total = await service.get_products(page=page, limit=limit)

    response = ApiResponse(
        status="success",
        data=[ProductResponse.model_validate(p) for p in products],
        meta=PaginationMeta.build(page=page, limit=limit, total=total),
    )

    await cache.set(cache_key, response.model_dump_json())
    return response


@router.post("/track", response_model=ApiResponse, status_code=201)
async def track_product(
    body: TrackRequest,
    client_key: str = Depends(get_client_key),
    tracking: TrackingService = Depends(get_tracking_service),
):
    """Scrape an Amazon product URL and save it.

    Returns the redirect id of the stored product.
    """
    redirect_id = await tracking.track_product_url(body.url, client_key)
    return ApiResponse(
        status="success",
        data=TrackedProductResponse(redirect_id=redirect_id, product_url=f"/products/{redirect_id}"),
    )


@router.get("/{product_id}", response_model=ApiResponse)
async def get_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Get product details by ID, including its ordered price history."""
    cache_key = cache_key_for_product(product_id)
    cached = await cache.get(cache_key)
    if cached:
        return ApiResponse.model_validate_json(cached)

    service = ProductService(db)
    product = await service.get_product_by_id(product_id)

    if not product:
        raise NotFoundError("Product", str(product_id))

    response = ApiResponse(
        status="success",
        data=ProductDetailResponse.model_validate(product),
    )

    await cache.set(cache_key, response.model_dump_json())
    return response


@router.get("/{product_id}/price-history", response_model=ApiResponse)
async def get_price_history(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get every recorded price of a product, oldest first."""
    service = ProductService(db)

    product = await service.get_product_by_id(product_id)
    if not product:
        raise NotFoundError("Product", str(product_id))

    history = await service.get_price_history(product_id)

    return ApiResponse(
        status="success",
        data=[PriceHistoryPoint.model_validate(h) for h in history],
    )


@router.get("/{product_id}/redirect", response_class=RedirectResponse, status_code=307)
async def redirect_to_source(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Redirect to the product's source page."""
    service = ProductService(db)
    product = await service.get_product_by_id(product_id)

    if not product:
        raise NotFoundError("Product", str(product_id))

    return RedirectResponse(url=product.url, status_code=307)
