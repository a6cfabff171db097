"""Tests for the Amazon product page scraper."""

from decimal import Decimal

import httpx
import pytest

from conftest import amazon_page, mock_http_client
from pricetracker.core.exceptions import (
    BlockedByUpstreamError,
    MissingCredentialError,
    NetworkError,
    ScrapeFailedError,
    UpstreamAuthError,
    UpstreamUnavailableError,
)
from pricetracker.scrapers.adapters.amazon import AmazonProductScraper


PRODUCT_URL = "https://www.amazon.in/Sony-WH-1000XM4/dp/B0863TXGM3/ref=sr_1_3?keywords=sony&qid=1"

FULL_PRODUCT_HTML = amazon_page(
    """
    <div id="wayfinding-breadcrumbs_container">
      <a class="a-link-normal"> Electronics </a>
      <a class="a-link-normal"> Headphones </a>
    </div>
    <span id="productTitle"> Sony WH-1000XM4 Wireless Headphones </span>
    <div id="averageCustomerReviews"><i class="a-icon-star"><span>4.5 out of 5 stars</span></i></div>
    <span id="acrCustomerReviewText">12,345 ratings</span>
    <div class="a-section priceToPay">
      <span class="a-price"><span class="a-price-symbol">₹</span><span class="a-price-whole">19,990.</span></span>
    </div>
    <span class="savingsPercentage">-33%</span>
    <span class="a-price a-text-price"><span class="a-offscreen">₹29,990.00</span></span>
    <div id="availability"><span> In stock </span></div>
    <img id="landingImage" src="https://m.media-amazon.com/small.jpg"
         data-a-dynamic-image='{"https://m.media-amazon.com/big.jpg": [1000, 1000]}'>
    <ul class="a-unordered-list">
      <li><span class="a-list-item">Industry-leading noise cancellation</span></li>
      <li><span class="a-list-item">Up to   30 hours battery</span></li>
    </ul>
    """
)

PRICE_HISTORY_LINK = "https://pricehistoryapp.com/product/sony-wh-1000xm4-wireless-headphones"


def build_scraper(http_client, resolver=None) -> AmazonProductScraper:
    return AmazonProductScraper(resolver=resolver, http_client=http_client, delay_range=(0, 0))


# ============================================================================
# TESTS: EXTRACTION
# ============================================================================

class TestAmazonExtraction:
    """Tests for field extraction and assembly."""

    async def test_minimal_page_price_fallback(self):
        """Only a whole-price element: both prices equal it."""
        html = amazon_page('<div id="productTitle">Widget</div><span class="a-price-whole">499</span>')
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000001")

        assert product.title == "Widget"
        assert product.current_price == Decimal("499")
        assert product.original_price == Decimal("499")
        assert product.lowest_price == Decimal("499")
        assert product.highest_price == Decimal("499")
        assert product.average_price == Decimal("499")
        assert product.category == "category"
        assert product.currency == "$"
        assert product.reviews_count == 0
        assert product.stars == 0.0
        assert product.image is None
        assert product.geturl == ""

    async def test_only_original_price_found(self):
        html = amazon_page('<span id="productTitle">Lamp</span><span class="a-text-strike">₹2,999.00</span>')
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000002")

        assert product.current_price == Decimal("2999.00")
        assert product.original_price == Decimal("2999.00")

    async def test_no_price_anywhere_is_unknown(self):
        html = amazon_page('<span id="productTitle">Mystery</span>')
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000003")

        assert product.current_price is None
        assert product.original_price is None
        assert product.average_price is None

    async def test_full_page(self, resolver_factory):
        requests = []
        client = mock_http_client(
            scraper_html=FULL_PRODUCT_HTML,
            serpapi_payloads={"google": {"organic_results": [{"link": PRICE_HISTORY_LINK}]}},
            requests=requests,
        )
        scraper = build_scraper(client, resolver=resolver_factory(client))

        product = await scraper.scrape(PRODUCT_URL, client_key="203.0.113.7")

        assert product.url == "https://www.amazon.in/dp/B0863TXGM3"
        assert product.title == "Sony WH-1000XM4 Wireless Headphones"
        assert product.current_price == Decimal("19990")
        assert product.original_price == Decimal("29990.00")
        assert product.lowest_price == Decimal("19990")
        assert product.highest_price == Decimal("29990.00")
        assert product.average_price == Decimal("19990")
        assert product.currency == "₹"
        assert product.discount_rate == Decimal("33")
        assert product.category == "Headphones"
        assert product.reviews_count == 12345
        assert product.stars == 4.5
        assert product.is_out_of_stock is False
        assert product.image == "https://m.media-amazon.com/big.jpg"
        assert product.description == "Industry-leading noise cancellation Up to 30 hours battery"
        assert product.geturl == "sony-wh-1000xm4-wireless-headphones"

        proxy_request, search_request = requests
        assert proxy_request.url.params["url"] == "https://www.amazon.in/dp/B0863TXGM3"
        assert proxy_request.url.params["api_key"] == "test-scraper-key"
        assert proxy_request.url.params["render"] == "false"
        assert proxy_request.url.params["country_code"] == "in"
        assert search_request.url.params["engine"] == "google"
        assert search_request.url.params["q"] == (
            "Sony-WH-1000XM4-Wireless-Headphones site:pricehistoryapp.com"
        )

    async def test_out_of_stock(self):
        html = amazon_page(
            '<span id="productTitle">Gone</span>'
            '<div id="availability"><span> Currently unavailable </span></div>'
        )
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000004")

        assert product.is_out_of_stock is True

    async def test_nested_availability_spans_read_once(self):
        html = amazon_page(
            '<span id="productTitle">Gone</span>'
            '<div id="availability"><span><span>Currently unavailable</span></span></div>'
        )
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000004")

        assert product.is_out_of_stock is True

    async def test_repeated_savings_badge_uses_first(self):
        """Deal pages repeat the savings badge; only the first one is read."""
        html = amazon_page(
            '<span id="productTitle">Deal</span><span class="a-price-whole">499</span>'
            '<span class="savingsPercentage">-33%</span><span class="savingsPercentage">-33%</span>'
        )
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000006")

        assert product.discount_rate == Decimal("33")

    async def test_category_falls_back_to_nav_image_alt(self):
        html = amazon_page(
            '<span id="productTitle">Mouse</span>'
            '<div class="nav-a-content"><img alt="Computers"></div>'
        )
        scraper = build_scraper(mock_http_client(scraper_html=html))

        product = await scraper.scrape("https://www.amazon.in/dp/B000000005")

        assert product.category == "Computers"

    async def test_unresolved_cross_reference_leaves_geturl_empty(self, resolver_factory):
        client = mock_http_client(
            scraper_html=FULL_PRODUCT_HTML,
            serpapi_payloads={"google": {"organic_results": []}},
        )
        scraper = build_scraper(client, resolver=resolver_factory(client))

        product = await scraper.scrape(PRODUCT_URL)

        assert product.geturl == ""
        assert product.title == "Sony WH-1000XM4 Wireless Headphones"

    async def test_rate_limited_cross_reference_leaves_geturl_empty(self, resolver_factory, rate_limiter):
        for _ in range(4):
            await rate_limiter.limit("203.0.113.7")

        requests = []
        client = mock_http_client(scraper_html=FULL_PRODUCT_HTML, requests=requests)
        scraper = build_scraper(client, resolver=resolver_factory(client))

        product = await scraper.scrape(PRODUCT_URL, client_key="203.0.113.7")

        assert product.geturl == ""
        assert [r.url.host for r in requests] == ["api.scraperapi.com"]


# ============================================================================
# TESTS: BLOCKING AND FAILURE MAPPING
# ============================================================================

class TestAmazonFailures:
    """Tests for bot detection and upstream error mapping."""

    async def test_short_bot_challenge_is_blocked(self):
        body = "<html><body><p>Enter the characters you see below</p></body></html>"
        body = body + " " * (500 - len(body))
        scraper = build_scraper(mock_http_client(scraper_html=body))

        with pytest.raises(BlockedByUpstreamError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert exc_info.value.marker == "Enter the characters you see below"
        assert exc_info.value.status_code == 503

    async def test_long_page_with_robot_check_is_blocked(self):
        scraper = build_scraper(mock_http_client(scraper_html=amazon_page("<h4>Robot Check</h4>")))

        with pytest.raises(BlockedByUpstreamError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert exc_info.value.marker == "Robot Check"

    async def test_short_body_without_marker_is_blocked(self):
        scraper = build_scraper(mock_http_client(scraper_html="<html><body>ok</body></html>"))

        with pytest.raises(BlockedByUpstreamError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert exc_info.value.marker == "short_body"

    @pytest.mark.parametrize(
        "status, error_cls",
        [
            (401, UpstreamAuthError),
            (403, UpstreamAuthError),
            (500, UpstreamUnavailableError),
            (503, UpstreamUnavailableError),
            (404, ScrapeFailedError),
            (429, ScrapeFailedError),
        ],
    )
    async def test_http_status_mapping(self, status, error_cls):
        client = mock_http_client(handler=lambda request: httpx.Response(status, text="upstream says no"))
        scraper = build_scraper(client)

        with pytest.raises(error_cls):
            await scraper.scrape(PRODUCT_URL)

    async def test_503_message(self):
        client = mock_http_client(handler=lambda request: httpx.Response(503))
        scraper = build_scraper(client)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert "temporarily unavailable (503)" in exc_info.value.message

    async def test_connection_refused(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        scraper = build_scraper(mock_http_client(handler=refuse))

        with pytest.raises(NetworkError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert exc_info.value.reason == "ECONNREFUSED"

    async def test_timeout(self):
        def time_out(request):
            raise httpx.ReadTimeout("timed out", request=request)

        scraper = build_scraper(mock_http_client(handler=time_out))

        with pytest.raises(NetworkError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert exc_info.value.reason == "ETIMEDOUT"

    async def test_missing_key_is_fatal_and_sends_nothing(self, test_settings, monkeypatch):
        monkeypatch.setattr(test_settings, "SCRAPER_API_KEY", "")
        requests = []
        scraper = build_scraper(mock_http_client(scraper_html=FULL_PRODUCT_HTML, requests=requests))

        with pytest.raises(MissingCredentialError) as exc_info:
            await scraper.scrape(PRODUCT_URL)

        assert "SCRAPER_API_KEY" in exc_info.value.message
        assert requests == []
