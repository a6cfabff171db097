"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from pricetracker.api.v1 import health, products, scrape, shopping

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(products.router, prefix="/products", tags=["products"])
api_v1_router.include_router(scrape.router, prefix="/scrape", tags=["scrape"])
api_v1_router.include_router(shopping.router, prefix="/shopping", tags=["shopping"])
