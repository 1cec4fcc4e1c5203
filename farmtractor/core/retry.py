from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .result import Result

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Last result observed by the scheduler and how many attempts produced it."""

    result: Result[T]
    attempts: int
    exhausted: bool


class RetryScheduler:
    """
    Repeat an action at fixed spacing until a predicate over its latest result says stop.

    The scheduler never retries on its own: whether an error is worth another
    attempt is decided by ``should_continue``. ``max_attempts=None`` polls forever,
    leaving the caller to bound the loop through task cancellation.
    """

    def __init__(
        self,
        *,
        delay: float,
        max_attempts: Optional[int] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._delay = delay
        self._max_attempts = max_attempts
        self._sleep = sleep

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def max_attempts(self) -> Optional[int]:
        return self._max_attempts

    async def repeat(
        self,
        action: Callable[[], Awaitable[Result[T]]],
        *,
        should_continue: Callable[[Result[T]], bool],
        on_attempt: Optional[Callable[[int, Result[T]], None]] = None,
    ) -> RetryOutcome[T]:
        attempt = 0
        while True:
            attempt += 1
            result = await action()
            if on_attempt is not None:
                on_attempt(attempt, result)

            if not should_continue(result):
                return RetryOutcome(result=result, attempts=attempt, exhausted=False)
            if self._max_attempts is not None and attempt >= self._max_attempts:
                return RetryOutcome(result=result, attempts=attempt, exhausted=True)

            await self._sleep(self._delay)
