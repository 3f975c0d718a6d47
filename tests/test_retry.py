import asyncio
import random

import pytest
from polarion_client.core.errors import (
    PolarionDecodeError,
    PolarionHTTPError,
    RetryCancelledError,
    RetryExhaustedError,
    is_retryable,
)
from polarion_client.core.retry import NoRetrier, Retrier, RetryConfig, backoff_wait

FAST = dict(min_wait=0.001, max_wait=0.002)


class Boom(Exception):
    pass


def _counting(results):
    """Operation that pops the next result; exceptions are raised."""
    calls = {"n": 0}
    pending = list(results)

    async def op():
        calls["n"] += 1
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return op, calls


# --- Backoff ---


def test_backoff_stays_within_jitter_bounds():
    rng = random.Random(42)
    for attempt in range(12):
        base = min(0.5 * 2**attempt, 8.0)
        for _ in range(200):
            wait = backoff_wait(attempt, 0.5, 8.0, rng)
            assert 0.75 * base <= wait <= 1.25 * base


def test_backoff_is_capped_and_handles_huge_attempts():
    wait = backoff_wait(5000, 1.0, 3.0)
    assert 2.25 <= wait <= 3.75


def test_backoff_zero_min_wait_is_zero():
    assert backoff_wait(3, 0.0, 0.0) == 0.0
    assert backoff_wait(3, 0.0, 3.0) == 0.0
    assert backoff_wait(2000, 0.0, 3.0) == 0.0


def test_backoff_rejects_negative_attempt():
    with pytest.raises(ValueError):
        backoff_wait(-1, 1.0, 2.0)


def test_retry_config_validation():
    with pytest.raises(ValueError):
        RetryConfig(max_retries=-1)
    with pytest.raises(ValueError):
        RetryConfig(min_wait=-0.1)
    with pytest.raises(ValueError):
        RetryConfig(min_wait=2.0, max_wait=1.0)
    assert RetryConfig().retry_if is is_retryable


# --- Retrier ---


@pytest.mark.asyncio
async def test_zero_retries_invokes_once_on_failure():
    op, calls = _counting([Boom("x")])
    retrier = Retrier(RetryConfig(max_retries=0, **FAST))

    with pytest.raises(RetryExhaustedError) as exc:
        await retrier.run(op)

    assert calls["n"] == 1
    assert isinstance(exc.value.last_error, Boom)
    assert exc.value.__cause__ is exc.value.last_error


@pytest.mark.asyncio
async def test_zero_retries_invokes_once_on_success():
    op, calls = _counting(["ok"])
    retrier = Retrier(RetryConfig(max_retries=0, **FAST))

    assert await retrier.run(op) == "ok"
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_success_returns_immediately_without_more_attempts():
    op, calls = _counting([Boom("1"), "value", "never"])
    retrier = Retrier(RetryConfig(max_retries=5, **FAST))

    assert await retrier.run(op) == "value"
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_exhaustion_wraps_last_error():
    errors = [Boom("1"), Boom("2"), Boom("3")]
    op, calls = _counting(errors)
    retrier = Retrier(RetryConfig(max_retries=2, retry_if=None, **FAST))

    with pytest.raises(RetryExhaustedError) as exc:
        await retrier.run(op)

    assert calls["n"] == 3
    assert exc.value.attempts == 3
    assert exc.value.last_error is errors[-1]
    assert "max retries exceeded" in str(exc.value)


@pytest.mark.asyncio
async def test_predicate_false_stops_immediately_with_original_error():
    err = PolarionHTTPError(status_code=400, message="bad")
    op, calls = _counting([err, "unused"])
    retrier = Retrier(RetryConfig(max_retries=5, **FAST))

    with pytest.raises(PolarionHTTPError) as exc:
        await retrier.run(op)

    assert exc.value is err
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_retryable_statuses_are_retried():
    op, calls = _counting(
        [
            PolarionHTTPError(status_code=503, message="busy"),
            PolarionHTTPError(status_code=429, message="slow down"),
            {"ok": True},
        ]
    )
    retrier = Retrier(RetryConfig(max_retries=3, **FAST))

    assert await retrier.run(op) == {"ok": True}
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_already_cancelled_never_attempts():
    op, calls = _counting(["ok"])
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(RetryCancelledError):
        await Retrier(RetryConfig(**FAST)).run(op, cancel=cancel)

    assert calls["n"] == 0


@pytest.mark.asyncio
async def test_cancel_during_wait_aborts_before_next_attempt():
    op, calls = _counting([Boom("1"), "never"])
    cancel = asyncio.Event()
    retrier = Retrier(RetryConfig(max_retries=3, min_wait=30.0, max_wait=30.0))

    loop = asyncio.get_running_loop()
    loop.call_later(0.02, cancel.set)
    started = loop.time()

    with pytest.raises(RetryCancelledError) as exc:
        await retrier.run(op, cancel=cancel)

    assert calls["n"] == 1
    assert loop.time() - started < 5
    assert isinstance(exc.value.last_error, Boom)


@pytest.mark.asyncio
async def test_deadline_during_wait_aborts_before_next_attempt():
    op, calls = _counting([Boom("1"), "never"])
    retrier = Retrier(RetryConfig(max_retries=3, min_wait=30.0, max_wait=30.0))
    loop = asyncio.get_running_loop()

    with pytest.raises(RetryCancelledError):
        await retrier.run(op, deadline=loop.time() + 0.05)

    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_decode_errors_are_not_retried_by_default():
    op, calls = _counting([PolarionDecodeError("bad json"), "never"])

    with pytest.raises(PolarionDecodeError):
        await Retrier(RetryConfig(max_retries=3, **FAST)).run(op)

    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_no_retrier_runs_exactly_once():
    op, calls = _counting([Boom("1"), "never"])

    with pytest.raises(Boom):
        await NoRetrier().run(op)

    assert calls["n"] == 1
