"""Services module for business logic and data operations.

This module contains the service classes that talk to SerpAPI, persist
tracked products and orchestrate the scrape/search/save flows.
"""

from pricetracker.services.serpapi_client import SerpAPIClient
from pricetracker.services.cross_reference import CrossReferenceResolver
from pricetracker.services.shopping_service import GoogleShoppingClient
from pricetracker.services.product_service import ProductService
from pricetracker.services.cache_service import CacheService
from pricetracker.services.tracking_service import TrackingService

__all__ = [
    "SerpAPIClient",
    "CrossReferenceResolver",
    "GoogleShoppingClient",
    "ProductService",
    "CacheService",
    "TrackingService",
]
