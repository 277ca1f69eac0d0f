"""
Backoff Policy

Pure retry decision for rate-limited requests. Only HTTP 429 is retried;
every other status gives up immediately. The delay doubles with each
attempt: `base_delay_ms * 2 ** attempt`.
"""

from dataclasses import dataclass
from typing import Union

RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class Retry:
    """Wait `delay_ms` and send the request again."""

    delay_ms: int


@dataclass(frozen=True)
class GiveUp:
    """Stop retrying. `rate_limited` tells why."""

    rate_limited: bool = False


Decision = Union[Retry, GiveUp]


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Exponential backoff on rate limiting.

    Attributes:
        max_attempts: Ceiling on HTTP attempts for one request
        base_delay_ms: Delay for attempt 0; doubled for every later attempt
    """

    max_attempts: int = 4
    base_delay_ms: int = 500

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must not be negative")

    def delay_for(self, attempt: int) -> int:
        return self.base_delay_ms * 2**attempt

    def decide(self, attempt: int, status: int) -> Decision:
        """
        Decide whether to retry after a response.

        Args:
            attempt: Number of attempts already made (>= 0)
            status: HTTP status of the last response

        Returns:
            Retry with the delay to wait, or GiveUp
        """
        if attempt < 0:
            raise ValueError("attempt must not be negative")
        if attempt >= self.max_attempts:
            return GiveUp(rate_limited=status == RATE_LIMIT_STATUS)
        if status != RATE_LIMIT_STATUS:
            return GiveUp(rate_limited=False)
        return Retry(delay_ms=self.delay_for(attempt))


@dataclass
class RetryContext:
    """Per-invocation retry bookkeeping; discarded when the call terminates."""

    max_attempts: int
    attempt: int = 0
    delay_ms: int = 0
