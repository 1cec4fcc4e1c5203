from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping

from loguru import logger

from farmtractor.core.errors import TractorError
from farmtractor.core.result import Err, Ok, Result
from farmtractor.gateway.models import Upload, UploadType

from .coordinator import ArtifactUploadCoordinator


class ArtifactRole(str, Enum):
    """Part an uploaded artifact plays in a test run."""

    APP = "app"
    TEST_PACKAGE = "test_package"
    TEST_SPEC = "test_spec"


@dataclass(frozen=True)
class ArtifactSpec:
    path: Path | str
    upload_type: UploadType


class MultiArtifactFanOut:
    """
    Upload several artifacts concurrently, failing fast.

    The first branch to fail cancels every sibling still in flight and its error
    becomes the only outcome; partial successes are discarded.
    """

    def __init__(self, coordinator: ArtifactUploadCoordinator) -> None:
        self._coordinator = coordinator

    async def upload_all(
        self,
        project_arn: str,
        artifacts: Mapping[ArtifactRole, ArtifactSpec],
    ) -> Result[dict[ArtifactRole, Upload]]:
        if not artifacts:
            return Ok({})

        tasks: dict[asyncio.Task, ArtifactRole] = {
            asyncio.create_task(
                self._coordinator.upload(project_arn, spec.path, spec.upload_type),
                name=f"upload:{role.value}",
            ): role
            for role, spec in artifacts.items()
        }
        uploads: dict[ArtifactRole, Upload] = {}
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    role = tasks[task]
                    result = self._task_result(task)
                    if isinstance(result, Err):
                        logger.error(
                            "Upload of the {} failed, cancelling the other uploads: {}", role.value, result.error
                        )
                        return result
                    uploads[role] = result.value
        finally:
            await self._cancel(pending)

        return Ok(uploads)

    @staticmethod
    def _task_result(task: asyncio.Task) -> Result[Upload]:
        error = task.exception()
        if error is None:
            return task.result()
        if isinstance(error, TractorError):
            return Err(error)
        # Coordinators return their failures; anything raised here is a bug.
        raise error

    @staticmethod
    async def _cancel(pending: set[asyncio.Task]) -> None:
        if not pending:
            return
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
