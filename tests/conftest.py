"""Pytest configuration and shared fixtures."""

import fnmatch
import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pricetracker.config import settings
from pricetracker.models import Base
from pricetracker.scrapers.utils.rate_limiter import FixedWindowRateLimiter
from pricetracker.services.cache_service import CacheService
from pricetracker.services.cross_reference import CrossReferenceResolver
from pricetracker.services.serpapi_client import SerpAPIClient


# ============================================================================
# FAKE REDIS
# ============================================================================

class FakePipeline:
    """MULTI/EXEC pipeline over FakeRedis; commands run on execute()."""

    def __init__(self, redis: "FakeRedis"):
        self.redis = redis
        self.commands: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def incr(self, key: str):
        self.commands.append(("incr", key))
        return self

    def expire(self, key: str, seconds: int):
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self):
        self.redis._check()
        results = []
        for command in self.commands:
            if command[0] == "incr":
                value = int(self.redis.store.get(command[1], 0)) + 1
                self.redis.store[command[1]] = str(value)
                results.append(value)
            else:
                self.redis.ttls[command[1]] = command[2]
                results.append(True)
        self.commands = []
        return results


class FakeRedis:
    """In-process stand-in for the handful of redis.asyncio calls we make."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.down = False
        self.closed = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("Connection refused")

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self._check()
        self.store[key] = value
        if ex:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    async def scan_iter(self, match: str = "*", count: int = 100):
        self._check()
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self):
        self.closed = True


class FakeClock:
    """Manually advanced wall clock for rate-limit windows."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


# ============================================================================
# HTML / HTTP HELPERS
# ============================================================================

def amazon_page(body: str, title: str = "Amazon.in") -> str:
    """Wrap product markup in a page long enough to pass the short-body check."""
    padding = "<!-- " + "x" * 12000 + " -->"
    return f"<html><head><title>{title}</title></head><body>{body}{padding}</body></html>"


def mock_http_client(
    scraper_html: Optional[str] = None,
    serpapi_payloads: Optional[Dict[str, dict]] = None,
    handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    requests: Optional[List[httpx.Request]] = None,
) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered in-process.

    Args:
        scraper_html: Body returned for ScraperAPI requests
        serpapi_payloads: SerpAPI JSON keyed by ``engine`` parameter
        handler: Custom handler, overriding the two above
        requests: List that collects every request sent
    """
    serpapi_payloads = serpapi_payloads or {}

    def _default(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.scraperapi.com":
            return httpx.Response(200, text=scraper_html or "")
        if request.url.host == "serpapi.com":
            engine = request.url.params.get("engine")
            return httpx.Response(200, content=json.dumps(serpapi_payloads.get(engine, {})))
        return httpx.Response(404)

    def _record(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return (handler or _default)(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(_record))


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Configure credentials and disable politeness delays for every test."""
    monkeypatch.setattr(settings, "SCRAPER_API_KEY", "test-scraper-key")
    monkeypatch.setattr(settings, "SERPAPI_API_KEY", "test-serpapi-key")
    monkeypatch.setattr(settings, "API_KEY", "")
    monkeypatch.setattr(settings, "SCRAPE_DELAY_MIN_SECONDS", 0.0)
    monkeypatch.setattr(settings, "SCRAPE_DELAY_MAX_SECONDS", 0.0)
    monkeypatch.setattr(settings, "LEGACY_PRICE_STATS", False)
    return settings


@pytest_asyncio.fixture
async def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(fake_redis: FakeRedis, clock: FakeClock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(fake_redis, permits=4, window_seconds=100, clock=clock)


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheService:
    return CacheService("redis://test", client=fake_redis)


@pytest.fixture
def resolver_factory(rate_limiter: FixedWindowRateLimiter):
    """Build a CrossReferenceResolver whose SerpAPI calls hit a mock client."""

    def _build(http_client: httpx.AsyncClient) -> CrossReferenceResolver:
        return CrossReferenceResolver(SerpAPIClient(http_client=http_client), rate_limiter)

    return _build
