"""Data normalization utilities for price parsing, text cleanup and URLs."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import structlog

logger = structlog.get_logger()


# Glyphs and prefixes seen in retailer price symbols, mapped to the symbol we store
CURRENCY_SYMBOLS = {
    "₹": "₹",
    "Rs": "₹",
    "INR": "₹",
    "$": "$",
    "USD": "$",
    "€": "€",
    "EUR": "€",
    "£": "£",
    "GBP": "£",
    "¥": "¥",
    "JPY": "¥",
}

DEFAULT_CURRENCY = "$"


class PriceNormalizer:
    """Price string parsing.

    Retailer markup mixes currency glyphs, thousands separators and trailing
    dots ("₹1,299." / "$12.99"), so every price goes through here before it
    becomes a Decimal.
    """

    _TWO_DECIMALS = re.compile(r"\d+\.\d{2}")

    @classmethod
    def clean_price_string(cls, raw: Optional[str]) -> str:
        """Reduce a price text to digits and dots.

        If the cleaned text contains an ``ddd.dd`` amount, only that first
        amount is kept, which drops the second half of range prices.

        Handles:
        - "₹1,299." -> "1299."
        - "$12.99$15.99" -> "12.99"
        - "Currently unavailable" -> ""
        """
        if not raw:
            return ""

        cleaned = re.sub(r"[^\d.]", "", raw)
        if not cleaned:
            return ""

        match = cls._TWO_DECIMALS.search(cleaned)
        return match.group(0) if match else cleaned

    @staticmethod
    def parse_price(text: Optional[str]) -> Optional[Decimal]:
        """Parse a cleaned price string into a positive Decimal.

        Zero, empty and malformed values all count as "no price", so a
        caller can fall through to the next source with ``or``.

        Returns:
            Decimal price, or None if the text holds no usable price
        """
        if not text:
            return None

        try:
            price = Decimal(text)
        except InvalidOperation:
            return None

        if not price.is_finite() or price <= 0:
            return None
        return price

    @staticmethod
    def parse_percentage(text: Optional[str]) -> Optional[Decimal]:
        """Parse "-23%" style savings badges into Decimal("23")."""
        if not text:
            return None

        cleaned = re.sub(r"[-%\s]", "", text)
        try:
            return Decimal(cleaned) if cleaned else None
        except InvalidOperation:
            return None


def parse_count(text: Optional[str]) -> int:
    """Keep only the digits of a text like "1,234 ratings"; 0 if none."""
    digits = re.sub(r"[^0-9]", "", text or "")
    return int(digits) if digits else 0


def parse_rating(text: Optional[str]) -> float:
    """Parse "4.3 out of 5 stars" into 4.3; 0.0 if unparsable."""
    if not text:
        return 0.0

    # Take the leading number so "out of 5" does not get glued onto it
    match = re.search(r"\d+(?:\.\d+)?", text)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def currency_from_symbol(symbol_text: Optional[str], default: str = DEFAULT_CURRENCY) -> str:
    """Map a price-symbol text to the currency symbol we store.

    Args:
        symbol_text: Text of the retailer's price-symbol element
        default: Symbol to use when the glyph is not recognised

    Returns:
        A currency symbol such as "₹" or "$"
    """
    text = (symbol_text or "").strip()
    if not text:
        return default

    # Longest prefixes first so "Rs" wins over a bare letter
    for prefix in sorted(CURRENCY_SYMBOLS, key=len, reverse=True):
        if text.upper().startswith(prefix.upper()):
            return CURRENCY_SYMBOLS[prefix]

    return default


def clean_description(raw: Optional[str]) -> str:
    """Collapse escaped newlines and run-on whitespace into single spaces."""
    if not raw:
        return ""

    text = raw.replace("\\n", " ")
    return re.sub(r"\s+", " ", text).strip()


# Query parameters that only carry tracking/session noise
TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
    "ref",
    "ref_",
    "tag",
    "source",
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "psc",
    "th",
    "smid",
    "qid",
    "sr",
    "keywords",
    "crid",
    "sprefix",
    "dib",
    "dib_tag",
    "linkCode",
    "linkId",
    "content-id",
    "spLa",
}

TRACKING_PREFIXES = ("utm_", "pd_rd_", "pf_rd_")


def _is_tracking_param(name: str) -> bool:
    return name in TRACKING_PARAMS or name.startswith(TRACKING_PREFIXES)


def normalize_url(url: str) -> str:
    """Normalize a URL by removing tracking parameters and the fragment.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL (idempotent)
    """
    if not url:
        return url

    parsed = urlparse(url.strip())
    query_params = parse_qsl(parsed.query, keep_blank_values=True)

    filtered_params = [(k, v) for k, v in query_params if not _is_tracking_param(k)]

    return urlunparse(
        (parsed.scheme, parsed.netloc, parsed.path, parsed.params, urlencode(filtered_params), "")
    )


_ASIN_PATH = re.compile(r"/(?:dp|gp/product|gp/aw/d)/([A-Z0-9]{10})(?:[/?]|$)", re.IGNORECASE)


def extract_asin(url: str) -> Optional[str]:
    """Extract the 10-character ASIN from an Amazon product URL."""
    match = _ASIN_PATH.search(urlparse(url).path + "/")
    return match.group(1).upper() if match else None


def is_amazon_host(netloc: str) -> bool:
    host = netloc.lower().split(":")[0]
    return host == "amzn.in" or host == "amzn.to" or "amazon." in host


def clean_amazon_url(url: str) -> str:
    """Reduce an Amazon product URL to ``scheme://host/dp/<ASIN>``.

    The slug, ``/ref=...`` path suffix and tracking query are all dropped,
    keeping only the segment that identifies the product. Non-Amazon URLs
    or URLs without an ASIN go through ``normalize_url`` instead.
    """
    if not url:
        return url

    parsed = urlparse(url.strip())
    if is_amazon_host(parsed.netloc):
        asin = extract_asin(url)
        if asin:
            scheme = parsed.scheme or "https"
            return f"{scheme}://{parsed.netloc.lower()}/dp/{asin}"

    return normalize_url(url)
