"""Manual product tracker for testing and debugging the Amazon scraper.

Scrapes one Amazon product page and prints what was extracted. With
``--save`` the product is also written to the database and its redirect
id printed.

Usage:
    python scripts/track_product.py https://www.amazon.in/dp/B0863TXGM3
    python scripts/track_product.py https://www.amazon.in/dp/B0863TXGM3 --save
"""

import argparse
import asyncio
from decimal import Decimal
from typing import Optional

from pricetracker.config import settings
from pricetracker.core.exceptions import PriceTrackerException
from pricetracker.db.session import get_database
from pricetracker.scrapers.adapters.amazon import AmazonProductScraper
from pricetracker.scrapers.base import NormalizedProduct
from pricetracker.scrapers.utils.rate_limiter import FixedWindowRateLimiter
from pricetracker.services.cache_service import get_cache_service
from pricetracker.services.cross_reference import CrossReferenceResolver
from pricetracker.services.product_service import ProductService
from pricetracker.services.serpapi_client import SerpAPIClient

CLI_CLIENT_KEY = "cli"


async def track_product(url: str, save: bool = False) -> int:
    """Scrape a product page, optionally save it, and display the result.

    Returns:
        Process exit code
    """
    print(f"\n{'='*70}")
    print("  Tracking Amazon product")
    print(f"{'='*70}")
    print(f"  🔗 URL: {url}")
    print(f"  💾 Save: {'yes' if save else 'no'}")
    print(f"{'='*70}\n")

    cache = get_cache_service()
    rate_limiter = FixedWindowRateLimiter(
        await cache.client(),
        permits=settings.RATE_LIMIT_PERMITS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    resolver = CrossReferenceResolver(SerpAPIClient(), rate_limiter)
    scraper = AmazonProductScraper(resolver=resolver)

    database = get_database()
    try:
        print("🔍 Scraping...\n")
        product = await scraper.scrape(url, CLI_CLIENT_KEY)
        _print_product(product)

        if save:
            await database.connect()
            async with database.session() as session:
                saved = await ProductService(session).save_product(product)
                await cache.invalidate_product_views(saved.id)
            print(f"✅ Saved. Redirect id: {saved.id}")
            print(f"   Price history entries: {len(saved.price_history)}\n")

        return 0

    except PriceTrackerException as e:
        print(f"\n❌ {type(e).__name__} ({e.code}):")
        print(f"   {e.message}\n")
        return 1

    finally:
        await cache.close()
        await database.dispose()


def _print_product(product: NormalizedProduct) -> None:
    print(f"[{product.category}] {product.title or '(no title)'}")
    print(f"    💰 Price: {_format_price(product.current_price, product.currency)}")
    print(f"    🔖 Original: {_format_price(product.original_price, product.currency)}")
    if product.discount_rate is not None:
        print(f"    📉 Discount: {product.discount_rate}%")
    print(f"    ⭐ Stars: {product.stars} ({product.reviews_count} reviews)")
    print(f"    📦 Out of stock: {product.is_out_of_stock}")
    print(f"    🖼️  Image: {product.image or '-'}")
    print(f"    🧭 geturl: {product.geturl or '(unresolved)'}")
    if product.description:
        print(f"    📝 {product.description[:120]}...")
    print()


def _format_price(price: Optional[Decimal], currency: str) -> str:
    """Format price with currency symbol, "unknown" when unparsed."""
    if price is None:
        return "unknown"
    return f"{currency}{price:,.2f}"


def main():
    """Parse arguments and run the tracker."""
    parser = argparse.ArgumentParser(
        description="Scrape (and optionally save) an Amazon product",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/track_product.py https://www.amazon.in/dp/B0863TXGM3
  python scripts/track_product.py https://www.amazon.in/dp/B0863TXGM3 --save
        """,
    )

    parser.add_argument("url", help="Amazon product page URL")
    parser.add_argument(
        "--save",
        action="store_true",
        help="Persist the product and append to its price history",
    )

    args = parser.parse_args()

    raise SystemExit(asyncio.run(track_product(args.url, args.save)))


if __name__ == "__main__":
    main()
