"""Tagged result type for lookups that can be rate limited or come back empty.

Search and cross-reference calls have three non-exceptional ways to end
besides success. Returning an Outcome lets callers branch on ``status``
instead of checking for ``None`` or an ``error`` key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from pricetracker.core.exceptions import PriceTrackerException

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an external lookup: Ok(value) | RateLimited | NotFound | Error(kind)."""

    status: OutcomeStatus
    value: Optional[T] = None
    error: Optional[PriceTrackerException] = None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(status=OutcomeStatus.OK, value=value)

    @classmethod
    def rate_limited(cls) -> "Outcome[T]":
        return cls(status=OutcomeStatus.RATE_LIMITED)

    @classmethod
    def not_found(cls) -> "Outcome[T]":
        return cls(status=OutcomeStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: PriceTrackerException) -> "Outcome[T]":
        return cls(status=OutcomeStatus.ERROR, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def error_kind(self) -> Optional[str]:
        """Error code of a failed outcome, None otherwise."""
        return self.error.code if self.error else None
