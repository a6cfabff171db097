"""Amazon product page scraper.

Fetches a single product page through the ScraperAPI rendering proxy and
assembles a NormalizedProduct from it. Amazon markup varies between
in-stock, deal and range-priced pages, so every field is read through an
ordered selector chain.
"""

from typing import Optional, Tuple

import httpx
import structlog
from bs4 import BeautifulSoup

from pricetracker.scrapers.base import BaseProxyScraperAdapter, NormalizedProduct
from pricetracker.scrapers.utils.extractors import (
    SelectorChain,
    SelectorStrategy,
    attr,
    extract_currency,
    extract_description,
    extract_image_urls,
    price_text,
)
from pricetracker.scrapers.utils.normalizer import (
    PriceNormalizer,
    clean_amazon_url,
    clean_description,
    parse_count,
    parse_rating,
)
from pricetracker.services.cross_reference import CrossReferenceResolver, derive_path_segment


logger = structlog.get_logger()

# Phrases only found on Amazon's anti-bot interstitials
_BOT_MARKERS = (
    "Robot Check",
    "To discuss automated access",
    "Enter the characters you see below",
    "Sorry, we just need to make sure you're not a robot",
)

TITLE_CHAIN = SelectorChain("title", [SelectorStrategy("#productTitle")])

CURRENT_PRICE_CHAIN = SelectorChain(
    "current_price",
    [
        SelectorStrategy(".priceToPay .a-price-whole", price_text),
        SelectorStrategy(".a-price-whole", price_text),
        SelectorStrategy(".a-size-base.a-color-price", price_text),
        SelectorStrategy(".a-button-selected .a-color-base", price_text),
        SelectorStrategy(".a-price .a-offscreen", price_text),
    ],
)

ORIGINAL_PRICE_CHAIN = SelectorChain(
    "original_price",
    [
        SelectorStrategy(".a-price.a-text-price .a-offscreen", price_text),
        SelectorStrategy("#listPrice", price_text),
        SelectorStrategy(".a-text-strike", price_text),
        SelectorStrategy("#priceblock_ourprice", price_text),
        SelectorStrategy("#priceblock_dealprice", price_text),
    ],
)

AVAILABILITY_CHAIN = SelectorChain("availability", [SelectorStrategy("#availability span")])

DISCOUNT_CHAIN = SelectorChain("discount_rate", [SelectorStrategy(".savingsPercentage")])

CATEGORY_CHAIN = SelectorChain(
    "category",
    [
        SelectorStrategy("#wayfinding-breadcrumbs_container .a-link-normal", last=True),
        SelectorStrategy(".nav-a-content img", attr("alt")),
        SelectorStrategy(".nav-categ-image", attr("alt")),
        SelectorStrategy(".nav-a-content"),
        SelectorStrategy("#nav-subnav .nav-a-content"),
        SelectorStrategy(".a-subheader"),
    ],
)


def _count_text(element) -> Optional[str]:
    count = parse_count(element.get_text())
    return str(count) if count else None


REVIEWS_CHAIN = SelectorChain(
    "reviews_count",
    [
        SelectorStrategy("#acrCustomerReviewText", _count_text),
        SelectorStrategy("[data-automation-id='reviews-block'] span", _count_text),
    ],
)

STARS_CHAIN = SelectorChain(
    "stars",
    [
        SelectorStrategy("#averageCustomerReviews .a-icon-star"),
        SelectorStrategy("[data-automation-id='reviews-block'] .a-icon-star"),
    ],
)

DEFAULT_CATEGORY = "category"
DEFAULT_TITLE_QUERY = "Product"


class AmazonProductScraper(BaseProxyScraperAdapter):
    """Scrapes one Amazon product page into a NormalizedProduct."""

    platform = "amazon"
    platform_name = "Amazon"
    BOT_MARKERS = _BOT_MARKERS

    def __init__(
        self,
        resolver: Optional[CrossReferenceResolver] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        delay_range: Optional[Tuple[float, float]] = None,
    ):
        super().__init__(http_client=http_client, delay_range=delay_range)
        self.resolver = resolver
        self.logger = logger.bind(adapter=self.platform)

    async def scrape(self, url: str, client_key: Optional[str] = None) -> NormalizedProduct:
        """Fetch, parse and assemble an Amazon product.

        The returned product is not persisted; hand it to
        ProductService.save_product for that.

        Raises:
            MissingCredentialError, BlockedByUpstreamError, UpstreamAuthError,
            UpstreamUnavailableError, NetworkError, ScrapeFailedError
        """
        clean_url = clean_amazon_url(url)
        self.logger.info("amazon_scrape_started", original_url=url, clean_url=clean_url)

        html = await self._fetch_via_proxy(clean_url)
        soup = BeautifulSoup(html, "html.parser")

        product = self.parse_product_page(soup, clean_url)

        product.geturl = await self._resolve_geturl(product.title or DEFAULT_TITLE_QUERY, client_key)

        self.logger.info(
            "amazon_scrape_complete",
            url=url,
            title=product.title[:50],
            current_price=str(product.current_price) if product.current_price is not None else None,
            geturl=product.geturl,
        )
        return product

    def parse_product_page(self, soup: BeautifulSoup, url: str) -> NormalizedProduct:
        """Run every field extractor over a parsed product page.

        Args:
            soup: Parsed product page
            url: Canonical product URL stored on the product

        Returns:
            NormalizedProduct with ``geturl`` left empty
        """
        title = TITLE_CHAIN.evaluate(soup) or ""
        self.logger.debug(
            "amazon_page_overview",
            page_title=(soup.title.get_text().strip() if soup.title else ""),
            has_product_title=bool(title),
            price_elements=len(soup.select(".a-price")),
        )

        current_text = CURRENT_PRICE_CHAIN.evaluate(soup)
        original_text = ORIGINAL_PRICE_CHAIN.evaluate(soup)
        if not current_text and not original_text:
            self._log_price_debug(soup)

        current = PriceNormalizer.parse_price(current_text)
        original = PriceNormalizer.parse_price(original_text)
        current_price = current or original
        original_price = original or current

        availability_text = (AVAILABILITY_CHAIN.evaluate(soup) or "").lower()
        is_out_of_stock = availability_text == "currently unavailable"

        image_urls = extract_image_urls(soup)
        currency = extract_currency(soup.select(".a-price-symbol"))

        discount_rate = PriceNormalizer.parse_percentage(DISCOUNT_CHAIN.evaluate(soup))

        category = CATEGORY_CHAIN.evaluate(soup) or DEFAULT_CATEGORY
        reviews_count = int(REVIEWS_CHAIN.evaluate(soup) or 0)
        stars = self._parse_stars(soup)

        description = clean_description(extract_description(soup))

        return NormalizedProduct(
            url=url,
            geturl="",
            currency=currency,
            image=image_urls[0] if image_urls else None,
            title=title,
            current_price=current_price,
            original_price=original_price,
            discount_rate=discount_rate,
            category=category,
            reviews_count=reviews_count,
            stars=stars,
            is_out_of_stock=is_out_of_stock,
            description=description,
            lowest_price=current_price,
            highest_price=original_price,
            average_price=current_price,
        )

    def _parse_stars(self, soup: BeautifulSoup) -> float:
        # A chain hit like "out of 5 stars" with no number must fall through
        for strategy in STARS_CHAIN.strategies:
            rating = parse_rating(strategy.apply(soup))
            if rating:
                return rating
        return 0.0

    async def _resolve_geturl(self, title: str, client_key: Optional[str]) -> str:
        if self.resolver is None:
            return ""
        outcome = await self.resolver.resolve(title, client_key)
        if not outcome.is_ok:
            self.logger.info("geturl_unresolved", status=outcome.status.value, error=outcome.error_kind)
            return ""
        return derive_path_segment(outcome.value)

    def _log_price_debug(self, soup: BeautifulSoup) -> None:
        """Log what price-like markup the page does have, for selector upkeep."""

        def _first(selector: str) -> str:
            element = soup.select_one(selector)
            return element.get_text().strip() if element else ""

        self.logger.warning(
            "amazon_no_price_found",
            a_price_count=len(soup.select(".a-price")),
            a_price_first=_first(".a-price"),
            a_price_whole_count=len(soup.select(".a-price-whole")),
            offscreen=_first(".a-price .a-offscreen"),
            mrp_offscreen=_first(".a-price.a-text-price .a-offscreen"),
            strike=_first(".a-text-strike"),
            asin_price=_first("[data-asin-price]"),
            price_range=_first(".a-price-range"),
            price_to_pay=_first(".priceToPay"),
            individual_prices=[el.get_text().strip() for el in soup.select(".a-price")[:5]],
        )
