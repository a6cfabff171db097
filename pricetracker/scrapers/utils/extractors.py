"""Ordered-fallback field extraction over parsed HTML.

Retailer markup differs between in-stock, sale and range-priced pages, so
each field is described as a list of independent (selector, extractor)
strategies tried in priority order. The first strategy that yields a
non-empty value wins; a missing element is a normal miss, never an error.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

import structlog
from bs4 import BeautifulSoup, Tag

from pricetracker.scrapers.utils.normalizer import (
    DEFAULT_CURRENCY,
    PriceNormalizer,
    currency_from_symbol,
)

logger = structlog.get_logger(__name__)

Extractor = Callable[[Tag], Optional[str]]


def element_text(element: Optional[Tag]) -> str:
    """Trimmed text of an element, "" for a missing element."""
    if element is None:
        return ""
    return element.get_text().strip()


def attr(name: str) -> Extractor:
    """Build an extractor returning a trimmed attribute value."""

    def _extract(element: Tag) -> Optional[str]:
        value = element.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if value else None

    return _extract


def first_text(*elements: Optional[Tag]) -> str:
    """First non-empty trimmed text among pre-selected element handles."""
    for element in elements:
        text = element_text(element)
        if text:
            return text
    return ""


def extract_price(*elements: Optional[Tag]) -> str:
    """First usable price string among pre-selected element handles.

    Elements whose text holds no digits are skipped so that e.g. a
    "Currently unavailable" badge does not hide a later price.
    """
    for element in elements:
        text = element_text(element)
        if not text:
            continue
        cleaned = PriceNormalizer.clean_price_string(text)
        if cleaned:
            return cleaned
    return ""


def price_text(element: Tag) -> Optional[str]:
    """Extractor returning the cleaned price string of an element."""
    return extract_price(element) or None


class ExtractionState(str, Enum):
    TRYING = "trying"
    FOUND = "found"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class SelectorStrategy:
    """One way of reading a field: a CSS selector plus how to read the match."""

    selector: str
    extractor: Extractor = first_text
    last: bool = False  # Use the last match instead of the first

    def apply(self, soup: Tag) -> Optional[str]:
        if self.last:
            matches = soup.select(self.selector)
            element = matches[-1] if matches else None
        else:
            element = soup.select_one(self.selector)

        if element is None:
            return None
        return self.extractor(element) or None


@dataclass
class ExtractionResult:
    state: ExtractionState
    value: Optional[str] = None
    selector: Optional[str] = None
    attempts: int = 0


@dataclass
class SelectorChain:
    """Priority-ordered list of strategies for a single field."""

    name: str
    strategies: List[SelectorStrategy] = field(default_factory=list)

    def run(self, soup: Tag) -> ExtractionResult:
        """Try each strategy in order until one yields a value."""
        result = ExtractionResult(state=ExtractionState.TRYING)

        for strategy in self.strategies:
            result.attempts += 1
            value = strategy.apply(soup)
            if value:
                result.state = ExtractionState.FOUND
                result.value = value
                result.selector = strategy.selector
                break

        if result.state is ExtractionState.TRYING:
            result.state = ExtractionState.EXHAUSTED

        logger.debug(
            "field_extraction",
            field=self.name,
            state=result.state.value,
            selector=result.selector,
            attempts=result.attempts,
        )
        return result

    def evaluate(self, soup: Tag) -> Optional[str]:
        """First non-empty value of the chain, or None when exhausted."""
        return self.run(soup).value


def extract_currency(elements: Sequence[Tag], default: str = DEFAULT_CURRENCY) -> str:
    """Currency symbol from the retailer's price-symbol elements."""
    text = "".join(element_text(el) for el in elements)
    return currency_from_symbol(text, default=default)


DESCRIPTION_SELECTORS = [
    ".a-unordered-list .a-list-item",
    ".a-expander-content p",
]


def extract_description(soup: BeautifulSoup) -> str:
    """Feature bullets (or expander paragraphs) joined by newlines."""
    for selector in DESCRIPTION_SELECTORS:
        elements = soup.select(selector)
        if elements:
            return "\n".join(element_text(el) for el in elements)
    return ""


def extract_image_urls(soup: BeautifulSoup) -> List[str]:
    """Image URLs from the ``data-a-dynamic-image`` JSON map.

    Falls back to the plain ``src`` of the landing image when the JSON
    cannot be decoded.
    """
    raw = None
    for selector in ("#imgBlkFront", "#landingImage"):
        element = soup.select_one(selector)
        if element is not None and element.get("data-a-dynamic-image"):
            raw = element.get("data-a-dynamic-image")
            break

    try:
        images = json.loads(raw or "{}")
        if isinstance(images, dict):
            return list(images.keys())
        return []
    except (TypeError, ValueError):
        logger.debug("image_json_parse_failed")

    landing = soup.select_one("#landingImage")
    fallback = landing.get("src") if landing is not None else None
    if not fallback:
        dynamic = soup.select_one(".a-dynamic-image")
        fallback = dynamic.get("src") if dynamic is not None else None

    return [fallback] if fallback else []
