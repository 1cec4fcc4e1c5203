from __future__ import annotations

import asyncio

from loguru import logger

from farmtractor.core.errors import ValidationError
from farmtractor.core.result import Err, Ok, Result
from farmtractor.core.retry import RetryScheduler, Sleeper
from farmtractor.gateway.interfaces import RunsGateway
from farmtractor.gateway.models import Run, RunTestType, ScheduleRunRequest

SUPPORTED_TEST_TYPES = frozenset({RunTestType.APPIUM_NODE, RunTestType.APPIUM_WEB_NODE})


class RunMonitor:
    """
    Schedule a run and wait for Device Farm to report it COMPLETED.

    Test executions take as long as they take, so polling has no attempt bound and
    every fetch error is treated as transient. Only cancelling the awaiting task
    stops the loop.
    """

    def __init__(
        self,
        runs: RunsGateway,
        *,
        poll_interval: float = 10.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._runs = runs
        self._scheduler = RetryScheduler(delay=poll_interval, max_attempts=None, sleep=sleep)

    async def schedule_and_wait(self, request: ScheduleRunRequest) -> Result[Run]:
        problem = self._validate(request)
        if problem is not None:
            return Err(problem)

        logger.info("I will schedule the run {} and wait until it finishes", request.name)
        scheduled = await self._runs.schedule_run(request)
        if isinstance(scheduled, Err):
            return scheduled
        initial = scheduled.value
        logger.info("Run {} scheduled with status {}", initial.arn, initial.status.value)
        if initial.is_completed:
            return scheduled

        def on_attempt(attempt: int, result: Result[Run]) -> None:
            if isinstance(result, Err):
                logger.warning("Could not fetch the run {}, I will keep waiting: {}", initial.arn, result.error)
            else:
                logger.info("Current run status = {}", result.value.status.value)

        outcome = await self._scheduler.repeat(
            lambda: self._runs.get_run(initial.arn),
            should_continue=lambda result: isinstance(result, Err) or not result.value.is_completed,
            on_attempt=on_attempt,
        )
        completed = outcome.result
        if isinstance(completed, Ok):
            logger.info("Test execution just finished with result = {}", completed.value.result.value)
        return completed

    @staticmethod
    def _validate(request: ScheduleRunRequest) -> ValidationError | None:
        if request.test.type not in SUPPORTED_TEST_TYPES:
            return ValidationError(f"The execution type {request.test.type.value} is not supported")
        if not request.is_web and not request.app_arn.strip():
            return ValidationError("The app ARN must not be empty")
        if not request.device_pool_arn.strip():
            return ValidationError("The device pool ARN must not be empty")
        if not request.project_arn.strip():
            return ValidationError("The project ARN must not be empty")
        return None
