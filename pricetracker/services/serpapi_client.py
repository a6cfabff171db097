"""SerpAPI transport shared by the shopping search and the cross-reference resolver."""

from typing import Any, Dict, Optional

import httpx
import structlog

from pricetracker.config import settings
from pricetracker.core.exceptions import MissingCredentialError, upstream_error_from

logger = structlog.get_logger(__name__)


class SerpAPIClient:
    """Thin async client for ``serpapi.com/search.json``.

    The API key is resolved on every call so a missing key surfaces as
    MissingCredentialError at first use rather than at import time.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.http_client = http_client
        self.base_url = base_url or settings.SERPAPI_URL
        self.timeout = timeout or settings.SERPAPI_TIMEOUT_SECONDS
        self.logger = logger.bind(service="serpapi")

    def _get_api_key(self) -> str:
        key = settings.get_serpapi_key()
        if not key:
            raise MissingCredentialError(
                "SerpAPI API",
                "SERPAPI_API_KEY (preferred) or API_KEY",
                "https://serpapi.com/manage-api-key",
            )
        return key

    async def search(self, engine: str, **params: Any) -> Dict[str, Any]:
        """Run one SerpAPI search.

        Args:
            engine: SerpAPI engine name ("google", "google_shopping", ...)
            **params: Engine-specific query parameters

        Returns:
            Decoded JSON response

        Raises:
            MissingCredentialError: No SerpAPI key configured
            PriceTrackerException: Transport or HTTP failure, mapped
        """
        query = {"engine": engine, "api_key": self._get_api_key(), **params}

        self.logger.debug("serpapi_request", engine=engine, q=params.get("q"))
        try:
            if self.http_client is not None:
                response = await self.http_client.get(self.base_url, params=query, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.base_url, params=query)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error("serpapi_request_failed", engine=engine, error=str(e))
            raise upstream_error_from(e, "SerpAPI", "SERPAPI_API_KEY") from e

        if "error" in data:
            # SerpAPI reports "no results" as an error string with a 200
            self.logger.info("serpapi_reported_error", engine=engine, error=data["error"])

        return data
