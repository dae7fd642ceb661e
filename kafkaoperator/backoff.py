"""Constant backoff policy and a retry helper built on it."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ConstantBackoffConfig:
    """Settings for a constant backoff; zero limits mean no limit.

    Times are in seconds; ``max_retries`` counts attempts in total.
    """

    delay: float
    max_elapsed_time: float = 0.0
    max_retries: int = 0


class ConstantBackoffPolicy:
    """Waits the same delay between attempts, within the configured limits."""

    def __init__(
        self,
        config: ConstantBackoffConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.sleep = sleep

    def delays(self) -> Iterator[float]:
        """Yield the wait before each attempt; the first attempt is immediate."""
        yield 0.0
        attempts = 1
        elapsed = 0.0
        max_retries = self.config.max_retries
        max_elapsed = self.config.max_elapsed_time
        while not max_retries or attempts < max_retries:
            elapsed += self.config.delay
            if max_elapsed and elapsed > max_elapsed:
                return
            attempts += 1
            yield self.config.delay


class PermanentError(Exception):
    """Wraps an error that must not be retried."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(str(error))
        self.error = error


class RetryError(Exception):
    """Raised when retrying gives up."""

    def __init__(
        self, message: str, last_error: BaseException, permanent: bool = False
    ) -> None:
        super().__init__(f"{message}: {last_error}")
        self.message = message
        self.last_error = last_error
        self.permanent = permanent


def mark_error_permanent(err: BaseException) -> PermanentError:
    """Mark ``err`` so that :func:`retry` stops at once when it is raised."""
    return PermanentError(err)


def retry(function: Callable[[], T], policy: ConstantBackoffPolicy) -> T:
    """Call ``function`` until it succeeds or the policy runs out of attempts."""
    last_error: BaseException | None = None
    for delay in policy.delays():
        if delay:
            policy.sleep(delay)
        try:
            return function()
        except PermanentError as err:
            raise RetryError(
                "permanent error happened during retrying", err.error, permanent=True
            ) from err.error
        except Exception as err:  # every other failure is transient
            last_error = err
    assert last_error is not None
    raise RetryError("all attempts failed", last_error) from last_error