"""Custom exception classes for the application."""

from typing import Optional

import httpx


class PriceTrackerException(Exception):
    """Base exception for all price tracker errors."""

    code: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(PriceTrackerException):
    """Raised when a requested resource is not found."""

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class MissingCredentialError(PriceTrackerException):
    """Raised when a required external API key is not configured.

    Fatal: retrying cannot succeed until the environment is fixed.
    """

    code = "missing_credential"
    status_code = 500

    def __init__(self, service: str, env_var: str, signup_url: Optional[str] = None):
        message = f"Missing {service} key. Set {env_var} in your environment."
        if signup_url:
            message += f" Get a key at {signup_url}"
        self.service = service
        self.env_var = env_var
        super().__init__(message)


class BlockedByUpstreamError(PriceTrackerException):
    """Raised when the retailer served a bot challenge instead of the product page."""

    code = "blocked_by_upstream"
    status_code = 503

    def __init__(self, platform: str, marker: Optional[str] = None):
        self.marker = marker
        super().__init__(f"{platform} detected bot activity - requests are being blocked")


class UpstreamAuthError(PriceTrackerException):
    """Raised when an upstream API rejects our credentials (401/403)."""

    code = "upstream_auth_failed"
    status_code = 502

    def __init__(self, service: str, env_var: str):
        super().__init__(f"{service} authentication failed. Check your {env_var} in .env")


class UpstreamUnavailableError(PriceTrackerException):
    """Raised when an upstream answers 500/503. Callers may retry later."""

    code = "upstream_unavailable"
    status_code = 503

    def __init__(self, service: str, upstream_status: int):
        self.upstream_status = upstream_status
        if upstream_status == 503:
            message = f"{service} temporarily unavailable (503). Try again in a few moments."
        else:
            message = (
                f"Scraping error ({upstream_status}). "
                "The URL might be invalid or temporarily unavailable."
            )
        super().__init__(message)


class NetworkError(PriceTrackerException):
    """Raised on connection refusals and timeouts."""

    code = "network_error"
    status_code = 504

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Network error: {reason}. Check your internet connection.")


class ScrapeFailedError(PriceTrackerException):
    """Catch-all for scrape failures, carrying the upstream message."""

    code = "scrape_failed"
    status_code = 502

    def __init__(self, message: str):
        super().__init__(f"Error in fetching product: {message}")


def upstream_error_from(
    exc: Exception,
    service: str,
    env_var: str,
) -> PriceTrackerException:
    """Map an exception raised during an outbound call onto the error taxonomy.

    Args:
        exc: The exception raised by httpx (or anything else)
        service: Human-readable upstream name used in messages
        env_var: Name of the credential variable for auth failures

    Returns:
        The PriceTrackerException that best describes the failure
    """
    if isinstance(exc, PriceTrackerException):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return UpstreamAuthError(service, env_var)
        if status in (500, 503):
            return UpstreamUnavailableError(service, status)
        return ScrapeFailedError(str(exc))

    if isinstance(exc, httpx.TimeoutException):
        return NetworkError("ETIMEDOUT")

    if isinstance(exc, httpx.ConnectError):
        return NetworkError("ECONNREFUSED")

    return ScrapeFailedError(str(exc))
