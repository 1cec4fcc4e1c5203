from __future__ import annotations

import asyncio

import pytest

from farmtractor.core.errors import TransientRemoteError
from farmtractor.core.result import Err, Ok
from farmtractor.core.retry import RetryScheduler


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _counter():
    calls = {"count": 0}

    async def action():
        calls["count"] += 1
        return Ok(calls["count"])

    return calls, action


def test_repeat_stops_when_predicate_is_false() -> None:
    sleep = _RecordingSleep()
    calls, action = _counter()
    scheduler = RetryScheduler(delay=1.5, max_attempts=10, sleep=sleep)

    outcome = asyncio.run(scheduler.repeat(action, should_continue=lambda result: result.value < 3))

    assert outcome.result == Ok(3)
    assert outcome.attempts == 3
    assert outcome.exhausted is False
    assert calls["count"] == 3
    assert sleep.delays == [1.5, 1.5]


def test_repeat_returns_last_result_when_attempts_run_out() -> None:
    sleep = _RecordingSleep()
    calls, action = _counter()
    scheduler = RetryScheduler(delay=0.5, max_attempts=4, sleep=sleep)

    outcome = asyncio.run(scheduler.repeat(action, should_continue=lambda result: True))

    assert outcome.result == Ok(4)
    assert outcome.attempts == 4
    assert outcome.exhausted is True
    assert len(sleep.delays) == 3


def test_unbounded_scheduler_keeps_polling_until_told_to_stop() -> None:
    sleep = _RecordingSleep()
    calls, action = _counter()
    scheduler = RetryScheduler(delay=0.0, max_attempts=None, sleep=sleep)

    outcome = asyncio.run(scheduler.repeat(action, should_continue=lambda result: result.value < 250))

    assert outcome.attempts == 250
    assert outcome.exhausted is False
    assert scheduler.max_attempts is None


def test_observer_sees_every_attempt_including_errors() -> None:
    results = iter([Err(TransientRemoteError("boom")), Ok("ready")])
    seen = []

    async def action():
        return next(results)

    scheduler = RetryScheduler(delay=0.0, max_attempts=5, sleep=_RecordingSleep())
    outcome = asyncio.run(
        scheduler.repeat(
            action,
            should_continue=lambda result: isinstance(result, Err),
            on_attempt=lambda attempt, result: seen.append((attempt, result.is_ok)),
        )
    )

    assert outcome.result == Ok("ready")
    assert seen == [(1, False), (2, True)]


def test_single_attempt_never_sleeps() -> None:
    sleep = _RecordingSleep()
    _, action = _counter()
    scheduler = RetryScheduler(delay=3.0, max_attempts=1, sleep=sleep)

    outcome = asyncio.run(scheduler.repeat(action, should_continue=lambda result: True))

    assert outcome.exhausted is True
    assert sleep.delays == []


@pytest.mark.parametrize("kwargs", [{"delay": -1.0}, {"delay": 1.0, "max_attempts": 0}])
def test_scheduler_rejects_invalid_bounds(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryScheduler(**kwargs)
