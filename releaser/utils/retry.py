import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, TypeVar

from releaser.models import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always(_: Exception) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for idempotent collaborator calls.

    ``is_transient`` decides whether a failure is worth another attempt;
    anything else is re-raised immediately. The last error is re-raised
    once ``max_attempts`` is exhausted, so call sites wrap it in their own
    stage error.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0
    is_transient: Callable[[Exception], bool] = _always
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_config(cls, config: RetryConfig, **overrides) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay_seconds,
            backoff_factor=config.backoff_factor,
            max_delay=config.max_delay_seconds,
            **overrides,
        )

    def with_predicate(self, is_transient: Callable[[Exception], bool]) -> "RetryPolicy":
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            backoff_factor=self.backoff_factor,
            max_delay=self.max_delay,
            is_transient=is_transient,
            sleep=self.sleep,
        )

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay
        for _ in range(max(1, self.max_attempts) - 1):
            yield min(delay, self.max_delay)
            delay *= self.backoff_factor

    def call(self, fn: Callable[..., T], *args, description: str = "call", **kwargs) -> T:
        delays = self.delays()
        attempt = 1
        while True:
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                if not self.is_transient(e):
                    raise
                delay = next(delays, None)
                if delay is None:
                    logger.error(f"{description} failed after {attempt} attempt(s): {e}")
                    raise
                logger.warning(f"{description} failed (attempt {attempt}/{self.max_attempts}), retrying in {delay:.1f}s: {e}")
                self.sleep(delay)
                attempt += 1
