from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .domain.errors import RetryExhaustedError, TransportError, UpstreamStatusError
from .ports.clock_port import ClockPort, SystemClock

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(unit_seconds: float = 1.0) -> Callable[[int], float]:
    """Wait ``attempt * unit_seconds`` before retry number ``attempt`` (0 before the first try)."""

    def _delay(attempt: int) -> float:
        return attempt * unit_seconds

    return _delay


def retry_on(*error_types: type[BaseException]) -> Callable[[BaseException], bool]:
    def _predicate(exc: BaseException) -> bool:
        return isinstance(exc, error_types)

    return _predicate


DEFAULT_RETRYABLE = retry_on(TransportError, UpstreamStatusError)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a pluggable backoff and retryable-error predicate.

    ``max_retries=2`` means three attempts in total. Errors rejected by
    ``is_retryable`` propagate immediately without consuming further attempts.

    Example:
        policy = RetryPolicy(max_retries=2, backoff=linear_backoff(1.0))
        data = policy.call(lambda: http.get_bytes(url), operation="download x.json")
    """

    max_retries: int = 2
    backoff: Callable[[int], float] = field(default_factory=linear_backoff)
    is_retryable: Callable[[BaseException], bool] = DEFAULT_RETRYABLE
    clock: ClockPort = field(default_factory=SystemClock)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def with_predicate(self, is_retryable: Callable[[BaseException], bool]) -> "RetryPolicy":
        return RetryPolicy(
            max_retries=self.max_retries,
            backoff=self.backoff,
            is_retryable=is_retryable,
            clock=self.clock,
        )

    def call(self, fn: Callable[[], T], *, operation: str = "operation") -> T:
        last_error: BaseException | None = None
        for attempt in range(self.max_attempts):
            if attempt > 0:
                delay = self.backoff(attempt)
                logger.warning(
                    "Retrying %s (attempt %d/%d) in %.1fs after: %s",
                    operation, attempt, self.max_retries, delay, last_error,
                )
                if delay > 0:
                    self.clock.sleep(delay)
            try:
                return fn()
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                last_error = e
                logger.debug("%s attempt %d failed: %s", operation, attempt + 1, e)

        raise RetryExhaustedError(operation, self.max_attempts, last_error) from last_error
