"""Scraper utilities for rate limiting, field extraction and data normalization."""

from .rate_limiter import FixedWindowRateLimiter, RateLimitResult
from .extractors import (
    ExtractionResult,
    ExtractionState,
    SelectorChain,
    SelectorStrategy,
    attr,
    extract_currency,
    extract_description,
    extract_image_urls,
    extract_price,
    first_text,
    price_text,
)
from .normalizer import (
    PriceNormalizer,
    clean_amazon_url,
    clean_description,
    currency_from_symbol,
    normalize_url,
    parse_count,
    parse_rating,
)


__all__ = [
    # Rate limiting
    "FixedWindowRateLimiter",
    "RateLimitResult",
    # Extraction
    "ExtractionResult",
    "ExtractionState",
    "SelectorChain",
    "SelectorStrategy",
    "attr",
    "extract_currency",
    "extract_description",
    "extract_image_urls",
    "extract_price",
    "first_text",
    "price_text",
    # Normalization
    "PriceNormalizer",
    "clean_amazon_url",
    "clean_description",
    "currency_from_symbol",
    "normalize_url",
    "parse_count",
    "parse_rating",
]
