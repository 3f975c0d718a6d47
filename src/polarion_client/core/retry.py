from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import RetryCancelledError, RetryExhaustedError, is_retryable

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]


def backoff_wait(
    attempt: int,
    min_wait: float,
    max_wait: float,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Exponential backoff with jitter, in seconds.

    base = min_wait * 2**attempt capped at max_wait; the result is uniform in
    [base * 0.75, base * 1.25). ``attempt`` is 0-indexed.
    """
    if attempt < 0:
        raise ValueError(f"attempt must be non-negative, got {attempt}")

    if min_wait <= 0:
        base = 0.0
    else:
        try:
            base = min(min_wait * (2.0**attempt), max_wait)
        except OverflowError:
            base = max_wait

    jitter = (rng or random).random() * (base / 2)
    return base - base / 4 + jitter


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 1  # extra attempts after the first one
    min_wait: float = 5.0
    max_wait: float = 15.0
    retry_if: Optional[RetryPredicate] = field(default=is_retryable, compare=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(
                f"max retries must be non-negative, got {self.max_retries}"
            )
        if self.min_wait < 0:
            raise ValueError(f"min wait must be non-negative, got {self.min_wait}")
        if self.max_wait < self.min_wait:
            raise ValueError(
                f"max wait ({self.max_wait}) must be >= min wait ({self.min_wait})"
            )

    def backoff(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        return backoff_wait(attempt, self.min_wait, self.max_wait, rng)


class Retrier:
    """
    Runs an async operation with exponential backoff between attempts.

    Cancellation is cooperative: ``cancel`` (an asyncio.Event) or ``deadline``
    (event loop time) stop the loop before a new attempt and interrupt the
    wait between attempts. An attempt already in flight is never interrupted.
    """

    def __init__(self, config: RetryConfig, *, rng: Optional[random.Random] = None):
        self.config = config
        self._rng = rng

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> T:
        loop = asyncio.get_running_loop()
        last_error: Optional[BaseException] = None
        attempts = 0

        for attempt in range(self.config.max_retries + 1):
            if _signalled(cancel, deadline, loop):
                raise RetryCancelledError(
                    "operation cancelled before attempt", last_error=last_error
                )

            attempts += 1
            try:
                return await operation()
            except Exception as exc:
                last_error = exc
                if self.config.retry_if is not None and not self.config.retry_if(exc):
                    raise

            if attempt == self.config.max_retries:
                break

            await self._wait(
                self.config.backoff(attempt, self._rng),
                cancel=cancel,
                deadline=deadline,
                loop=loop,
                last_error=last_error,
            )

        assert last_error is not None
        raise RetryExhaustedError(last_error, attempts) from last_error

    async def _wait(
        self,
        delay: float,
        *,
        cancel: Optional[asyncio.Event],
        deadline: Optional[float],
        loop: asyncio.AbstractEventLoop,
        last_error: Optional[BaseException],
    ) -> None:
        hits_deadline = False
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= delay:
                delay = max(remaining, 0.0)
                hits_deadline = True

        if cancel is None:
            await asyncio.sleep(delay)
        else:
            try:
                await asyncio.wait_for(cancel.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            else:
                raise RetryCancelledError(
                    "operation cancelled during backoff", last_error=last_error
                )

        if hits_deadline:
            raise RetryCancelledError(
                "deadline exceeded during backoff", last_error=last_error
            )


class NoRetrier:
    """Runs the operation exactly once (non-idempotent writes, disabled retries)."""

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> T:
        return await operation()


def _signalled(
    cancel: Optional[asyncio.Event],
    deadline: Optional[float],
    loop: asyncio.AbstractEventLoop,
) -> bool:
    if cancel is not None and cancel.is_set():
        return True
    return deadline is not None and loop.time() >= deadline


__all__ = ["RetryConfig", "Retrier", "NoRetrier", "backoff_wait", "RetryPredicate"]
