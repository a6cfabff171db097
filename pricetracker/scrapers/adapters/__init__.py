"""Shop-specific adapter implementations.

Each adapter module implements a class that inherits from BaseAdapter
(for API adapters) or BaseProxyScraperAdapter (for proxy-scraped pages).
"""

from .amazon import AmazonProductScraper

__all__ = [
    "AmazonProductScraper",
]
