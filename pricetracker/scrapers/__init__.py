"""Scraper system for fetching product pages from e-commerce platforms.

This package provides:
- Base adapter classes for building shop-specific scrapers
- Utility modules for rate limiting, field extraction and data normalization
"""

from .base import (
    BaseAdapter,
    BaseProxyScraperAdapter,
    NormalizedProduct,
)

__all__ = [
    # Base classes
    "BaseAdapter",
    "BaseProxyScraperAdapter",
    # Data structures
    "NormalizedProduct",
]
