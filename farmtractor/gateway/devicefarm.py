from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from farmtractor.core.errors import FatalRemoteError, TransientRemoteError, ValidationError
from farmtractor.core.result import Err, Ok, Result

from .models import Artifact, DevicePool, Job, Project, Run, ScheduleRunRequest, Upload, UploadType

T = TypeVar("T")

UPLOAD_CONTENT_TYPE = "application/octet-stream"
ARTIFACT_CATEGORY = "FILE"


class BotoDeviceFarmGateway:
    """
    Device Farm gateway backed by a boto3 ``devicefarm`` client.

    boto3 is blocking, so every call is pushed to a worker thread; the awaiting
    task can then be cancelled like any other coroutine. Errors answered by the
    service (``ClientError``) are fatal, connection-level errors are transient.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def list_projects(self) -> Result[list[Project]]:
        return await self._call(
            "list_projects",
            lambda: [Project.from_api(item) for item in self._paginate("list_projects", "projects")],
        )

    async def create_project(self, name: str) -> Result[Project]:
        if not name.strip():
            return Err(ValidationError("The project name must not be empty"))
        return await self._call(
            "create_project",
            lambda: Project.from_api(self._client.create_project(name=name)["project"]),
        )

    async def list_device_pools(self, project_arn: str) -> Result[list[DevicePool]]:
        if not project_arn.strip():
            return Err(ValidationError("The project ARN must not be empty"))
        return await self._call(
            "list_device_pools",
            lambda: [
                DevicePool.from_api(item)
                for item in self._paginate("list_device_pools", "devicePools", arn=project_arn)
            ],
        )

    async def create_upload(self, project_arn: str, upload_type: UploadType, name: str) -> Result[Upload]:
        if not project_arn.strip():
            return Err(ValidationError("The project ARN must not be empty"))
        if not name.strip():
            return Err(ValidationError("The artifact name must not be empty"))
        return await self._call(
            "create_upload",
            lambda: Upload.from_api(
                self._client.create_upload(
                    projectArn=project_arn,
                    name=name,
                    type=upload_type.value,
                    contentType=UPLOAD_CONTENT_TYPE,
                )["upload"]
            ),
        )

    async def get_upload(self, upload_arn: str) -> Result[Upload]:
        if not upload_arn.strip():
            return Err(ValidationError("The upload ARN must not be empty"))
        return await self._call(
            "get_upload",
            lambda: Upload.from_api(self._client.get_upload(arn=upload_arn)["upload"]),
        )

    async def delete_upload(self, upload_arn: str) -> Result[None]:
        if not upload_arn.strip():
            return Err(ValidationError("The upload ARN must not be empty"))

        def _delete() -> None:
            response = self._client.delete_upload(arn=upload_arn)
            status = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode", 200)
            if status >= 300:
                raise _UnexpectedStatus(status)

        return await self._call("delete_upload", _delete)

    async def schedule_run(self, request: ScheduleRunRequest) -> Result[Run]:
        return await self._call(
            "schedule_run",
            lambda: Run.from_api(self._client.schedule_run(**request.to_api())["run"]),
        )

    async def get_run(self, run_arn: str) -> Result[Run]:
        if not run_arn.strip():
            return Err(ValidationError("The run ARN must not be empty"))
        return await self._call("get_run", lambda: Run.from_api(self._client.get_run(arn=run_arn)["run"]))

    async def list_jobs(self, run_arn: str) -> Result[list[Job]]:
        if not run_arn.strip():
            return Err(ValidationError("The run ARN must not be empty"))
        return await self._call(
            "list_jobs",
            lambda: [Job.from_api(item) for item in self._paginate("list_jobs", "jobs", arn=run_arn)],
        )

    async def list_artifacts(self, arn: str) -> Result[list[Artifact]]:
        if not arn.strip():
            return Err(ValidationError("The ARN must not be empty"))
        return await self._call(
            "list_artifacts",
            lambda: [
                Artifact.from_api(item)
                for item in self._paginate("list_artifacts", "artifacts", arn=arn, type=ARTIFACT_CATEGORY)
            ],
        )

    def _paginate(self, operation: str, key: str, **params: Any) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator(operation)
        items: list[dict[str, Any]] = []
        for page in paginator.paginate(**params):
            items.extend(page.get(key) or [])
        return items

    async def _call(self, operation: str, func: Callable[[], T]) -> Result[T]:
        try:
            return Ok(await asyncio.to_thread(func))
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code", "Unknown")
            message = f"Device Farm rejected {operation}: {code} {error.get('Message', '')}".strip()
            logger.debug(message)
            return Err(FatalRemoteError(message, operation=operation, cause=exc))
        except _UnexpectedStatus as exc:
            return Err(FatalRemoteError(f"{operation} returned HTTP {exc.status}", operation=operation, cause=exc))
        except (BotoCoreError, OSError) as exc:
            logger.debug("Device Farm call {} failed: {}", operation, exc)
            return Err(TransientRemoteError(f"{operation} failed: {exc}", operation=operation, cause=exc))


class _UnexpectedStatus(RuntimeError):
    def __init__(self, status: int) -> None:
        super().__init__(f"unexpected HTTP status {status}")
        self.status = status
