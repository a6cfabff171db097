"""Tests for price, text and URL normalization."""

from decimal import Decimal

import pytest

from pricetracker.scrapers.utils.normalizer import (
    PriceNormalizer,
    clean_amazon_url,
    clean_description,
    currency_from_symbol,
    extract_asin,
    normalize_url,
    parse_count,
    parse_rating,
)


# ============================================================================
# TESTS: URL NORMALIZATION
# ============================================================================

class TestUrlNormalization:
    """Tests for tracking-noise removal from product URLs."""

    def test_amazon_url_reduced_to_asin(self):
        url = (
            "https://www.amazon.in/Sony-WH-1000XM4-Cancelling-Headphones/dp/B0863TXGM3/"
            "ref=sr_1_3?crid=2X&keywords=sony+headphones&qid=1700000000&sr=8-3&th=1"
        )
        assert clean_amazon_url(url) == "https://www.amazon.in/dp/B0863TXGM3"

    def test_gp_product_path(self):
        url = "https://www.amazon.com/gp/product/B08N5WRWNW?psc=1"
        assert clean_amazon_url(url) == "https://www.amazon.com/dp/B08N5WRWNW"

    def test_non_amazon_url_drops_tracking_params_only(self):
        url = "https://shop.example.com/item?id=5&utm_source=news&utm_medium=mail&ref=abc#reviews"
        assert normalize_url(url) == "https://shop.example.com/item?id=5"
        assert clean_amazon_url(url) == "https://shop.example.com/item?id=5"

    def test_amazon_url_without_asin_falls_back(self):
        url = "https://www.amazon.in/s?k=headphones&ref=nb_sb_noss"
        assert clean_amazon_url(url) == "https://www.amazon.in/s?k=headphones"

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.amazon.in/Sony-WH-1000XM4/dp/B0863TXGM3/ref=sr_1_3?keywords=sony&qid=1",
            "https://www.amazon.com/gp/product/B08N5WRWNW?psc=1&pd_rd_w=abc&pf_rd_p=def",
            "https://shop.example.com/item?id=5&utm_campaign=x&color=red#top",
            "https://shop.example.com/plain",
            "https://www.amazon.in/dp/B0863TXGM3",
        ],
    )
    def test_normalization_is_idempotent(self, url):
        once = clean_amazon_url(url)
        assert clean_amazon_url(once) == once
        assert normalize_url(normalize_url(url)) == normalize_url(url)

    def test_extract_asin(self):
        assert extract_asin("https://www.amazon.in/dp/b0863txgm3/") == "B0863TXGM3"
        assert extract_asin("https://www.amazon.in/s?k=tv") is None


# ============================================================================
# TESTS: PRICE PARSING
# ============================================================================

class TestPriceNormalizer:
    """Tests for price string cleanup and parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("₹1,299.", "1299."),
            ("$12.99", "12.99"),
            ("$12.99$15.99", "12.99"),
            ("₹ 24,990.00 - ₹ 29,990.00", "24990.00"),
            ("Currently unavailable", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_clean_price_string(self, raw, expected):
        assert PriceNormalizer.clean_price_string(raw) == expected

    def test_parse_price(self):
        assert PriceNormalizer.parse_price("1299.") == Decimal("1299")
        assert PriceNormalizer.parse_price("12.99") == Decimal("12.99")

    @pytest.mark.parametrize("text", ["", None, "0", "0.00", "1.2.3", "."])
    def test_unparsable_prices_are_none(self, text):
        assert PriceNormalizer.parse_price(text) is None

    def test_parse_percentage(self):
        assert PriceNormalizer.parse_percentage("-23%") == Decimal("23")
        assert PriceNormalizer.parse_percentage("") is None
        assert PriceNormalizer.parse_percentage("save") is None


# ============================================================================
# TESTS: TEXT FIELDS
# ============================================================================

class TestTextFields:
    """Tests for counts, ratings, currency and description cleanup."""

    def test_parse_count(self):
        assert parse_count("1,234 ratings") == 1234
        assert parse_count("no reviews") == 0
        assert parse_count(None) == 0

    def test_parse_rating_takes_leading_number(self):
        assert parse_rating("4.3 out of 5 stars") == 4.3
        assert parse_rating("5 out of 5 stars") == 5.0
        assert parse_rating("") == 0.0
        assert parse_rating("no rating") == 0.0

    @pytest.mark.parametrize(
        "symbol, expected",
        [
            ("₹", "₹"),
            ("Rs.", "₹"),
            ("INR", "₹"),
            ("$", "$"),
            ("€", "€"),
            ("£", "£"),
            ("¥", "¥"),
            ("", "$"),
            ("?", "$"),
        ],
    )
    def test_currency_from_symbol(self, symbol, expected):
        assert currency_from_symbol(symbol) == expected

    def test_currency_unknown_uses_given_default(self):
        assert currency_from_symbol("kr", default="₹") == "₹"

    def test_clean_description_collapses_whitespace(self):
        raw = "  Active noise cancelling\\nUp to 30h battery\n\n   Quick   charge  "
        assert clean_description(raw) == "Active noise cancelling Up to 30h battery Quick charge"

    def test_clean_description_empty(self):
        assert clean_description(None) == ""
        assert clean_description("   ") == ""
