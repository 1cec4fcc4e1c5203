"""
In-process stand-in for Device Farm.

Used by ``demo`` mode to exercise the whole orchestration without AWS
credentials, and by the test-suite as a scriptable gateway. Status sequences
advance one step per fetch and stick on their last element.
"""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Iterable, Optional, Sequence

from farmtractor.core.errors import ArtifactTransferError, TractorError
from farmtractor.core.result import Err, Ok, Result

from .models import (
    Artifact,
    ArtifactType,
    DevicePool,
    ExecutionResult,
    ExecutionStatus,
    Job,
    Project,
    Run,
    ScheduleRunRequest,
    Upload,
    UploadStatus,
    UploadType,
)

_ARN_PREFIX = "arn:aws:devicefarm:us-west-2:000000000000"

DEFAULT_UPLOAD_STATUSES = (UploadStatus.INITIALIZED, UploadStatus.PROCESSING, UploadStatus.SUCCEEDED)
DEFAULT_RUN_STATUSES = (ExecutionStatus.SCHEDULING, ExecutionStatus.RUNNING, ExecutionStatus.COMPLETED)


def _arn(kind: str) -> str:
    return f"{_ARN_PREFIX}:{kind}:{uuid.uuid4().hex}"


class InMemoryDeviceFarm:
    """Scriptable implementation of every gateway protocol."""

    def __init__(
        self,
        *,
        projects: Iterable[str] = (),
        device_pools: Sequence[str] = ("Top Devices",),
        devices: Sequence[str] = ("Google Pixel 7",),
        upload_statuses: Sequence[UploadStatus] = DEFAULT_UPLOAD_STATUSES,
        run_statuses: Sequence[ExecutionStatus] = DEFAULT_RUN_STATUSES,
        run_result: ExecutionResult = ExecutionResult.PASSED,
        artifact_types: Sequence[ArtifactType] = (ArtifactType.CUSTOMER_ARTIFACT, ArtifactType.VIDEO),
        latency: float = 0.0,
    ) -> None:
        if not upload_statuses or not run_statuses:
            raise ValueError("status sequences must not be empty")
        self.projects = [Project(arn=_arn("project"), name=name) for name in projects]
        self.device_pool_names = list(device_pools)
        self.devices = list(devices)
        self.run_result = run_result
        self.artifact_types = list(artifact_types)
        self.latency = latency

        self.calls: list[tuple[str, str]] = []
        self.uploads: dict[str, Upload] = {}
        self.deleted_uploads: list[str] = []
        self.scheduled: list[ScheduleRunRequest] = []

        self._default_upload_statuses = list(upload_statuses)
        self._upload_scripts: dict[str, tuple[list[UploadStatus], str]] = {}
        self._upload_progress: dict[str, int] = {}
        self._run_statuses = list(run_statuses)
        self._runs: dict[str, Run] = {}
        self._run_progress: dict[str, int] = {}
        self._jobs: dict[str, list[Job]] = {}
        self._failures: dict[tuple[str, Optional[str]], TractorError] = {}

    def script_upload(self, name: str, statuses: Sequence[UploadStatus], *, message: str = "") -> None:
        """Use ``statuses`` for the upload created with file name ``name``."""
        if not statuses:
            raise ValueError("statuses must not be empty")
        self._upload_scripts[name] = (list(statuses), message)

    def fail(self, operation: str, error: TractorError, *, key: Optional[str] = None) -> None:
        """Make ``operation`` return ``error``; ``key`` narrows it to one ARN or name."""
        self._failures[(operation, key)] = error

    def calls_to(self, operation: str) -> list[str]:
        return [key for name, key in self.calls if name == operation]

    async def list_projects(self) -> Result[list[Project]]:
        await self._enter("list_projects", "")
        return self._failure("list_projects", None) or Ok(list(self.projects))

    async def create_project(self, name: str) -> Result[Project]:
        await self._enter("create_project", name)
        failure = self._failure("create_project", name)
        if failure:
            return failure
        project = Project(arn=_arn("project"), name=name)
        self.projects.append(project)
        return Ok(project)

    async def list_device_pools(self, project_arn: str) -> Result[list[DevicePool]]:
        await self._enter("list_device_pools", project_arn)
        failure = self._failure("list_device_pools", project_arn)
        if failure:
            return failure
        return Ok(
            [
                DevicePool(arn=f"{_ARN_PREFIX}:devicepool:{index}", name=name)
                for index, name in enumerate(self.device_pool_names)
            ]
        )

    async def create_upload(self, project_arn: str, upload_type: UploadType, name: str) -> Result[Upload]:
        await self._enter("create_upload", name)
        failure = self._failure("create_upload", name)
        if failure:
            return failure
        arn = _arn("upload")
        upload = Upload(
            arn=arn,
            name=name,
            type=upload_type,
            status=UploadStatus.INITIALIZED,
            url=f"memory://uploads/{arn}",
            content_type="application/octet-stream",
        )
        self.uploads[arn] = upload
        self._upload_progress[arn] = 0
        return Ok(upload)

    async def get_upload(self, upload_arn: str) -> Result[Upload]:
        await self._enter("get_upload", upload_arn)
        upload = self.uploads.get(upload_arn)
        failure = self._failure("get_upload", upload_arn) or (upload and self._failure("get_upload", upload.name))
        if failure:
            return failure
        if upload is None:
            return Err(TractorError(f"upload not found: {upload_arn}"))

        statuses, message = self._upload_scripts.get(upload.name, (self._default_upload_statuses, ""))
        step = self._upload_progress[upload_arn]
        self._upload_progress[upload_arn] = step + 1
        status = statuses[min(step, len(statuses) - 1)]
        snapshot = upload.model_copy(update={"status": status, "message": message})
        self.uploads[upload_arn] = snapshot
        return Ok(snapshot)

    async def delete_upload(self, upload_arn: str) -> Result[None]:
        await self._enter("delete_upload", upload_arn)
        failure = self._failure("delete_upload", upload_arn)
        if failure:
            return failure
        self.uploads.pop(upload_arn, None)
        self.deleted_uploads.append(upload_arn)
        return Ok(None)

    async def schedule_run(self, request: ScheduleRunRequest) -> Result[Run]:
        await self._enter("schedule_run", request.name)
        failure = self._failure("schedule_run", request.name)
        if failure:
            return failure
        self.scheduled.append(request)
        run = Run(arn=_arn("run"), name=request.name, status=self._run_statuses[0])
        self._runs[run.arn] = run
        self._run_progress[run.arn] = 1
        self._jobs[run.arn] = [
            Job(arn=_arn("job"), name=device, device_name=device, result=self.run_result)
            for device in self.devices
        ]
        return Ok(run)

    async def get_run(self, run_arn: str) -> Result[Run]:
        await self._enter("get_run", run_arn)
        failure = self._failure("get_run", run_arn)
        if failure:
            return failure
        run = self._runs.get(run_arn)
        if run is None:
            return Err(TractorError(f"run not found: {run_arn}"))
        step = self._run_progress[run_arn]
        self._run_progress[run_arn] = step + 1
        status = self._run_statuses[min(step, len(self._run_statuses) - 1)]
        result = self.run_result if status is ExecutionStatus.COMPLETED else ExecutionResult.PENDING
        snapshot = run.model_copy(update={"status": status, "result": result})
        self._runs[run_arn] = snapshot
        return Ok(snapshot)

    async def list_jobs(self, run_arn: str) -> Result[list[Job]]:
        await self._enter("list_jobs", run_arn)
        failure = self._failure("list_jobs", run_arn)
        if failure:
            return failure
        return Ok(list(self._jobs.get(run_arn, [])))

    async def list_artifacts(self, arn: str) -> Result[list[Artifact]]:
        await self._enter("list_artifacts", arn)
        failure = self._failure("list_artifacts", arn)
        if failure:
            return failure
        return Ok(
            [
                Artifact(
                    arn=f"{arn}:artifact:{artifact_type.value.lower()}",
                    name=artifact_type.pretty_name,
                    type=artifact_type,
                    extension="mp4" if artifact_type is ArtifactType.VIDEO else "zip",
                    url=f"memory://artifacts/{arn}/{artifact_type.value.lower()}",
                )
                for artifact_type in self.artifact_types
            ]
        )

    async def _enter(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if self.latency:
            await asyncio.sleep(self.latency)

    def _failure(self, operation: str, key: Optional[str]) -> Optional[Err]:
        error = self._failures.get((operation, key)) or self._failures.get((operation, None))
        return Err(error) if error else None


class InMemoryBlobStore:
    """BlobTransport keeping uploaded bytes in a dict keyed by URL."""

    def __init__(self, *, latency: float = 0.0) -> None:
        self.blobs: dict[str, bytes] = {}
        self.latency = latency
        self._failing_urls: set[str] = set()

    def fail_url(self, url: str) -> None:
        self._failing_urls.add(url)

    async def put_file(self, url: str, source: Path, *, content_type: str) -> Result[int]:
        if self.latency:
            await asyncio.sleep(self.latency)
        if url in self._failing_urls:
            return Err(ArtifactTransferError(f"There was an error uploading the file {source.name}"))
        self.blobs[url] = source.read_bytes()
        return Ok(200)

    async def download(self, url: str, destination: Path) -> Result[int]:
        if self.latency:
            await asyncio.sleep(self.latency)
        if url in self._failing_urls:
            return Err(ArtifactTransferError(f"There was an error downloading {destination.name}"))
        payload = self.blobs.get(url, f"demo artifact from {url}\n".encode("utf-8"))
        try:
            destination.write_bytes(payload)
        except OSError as exc:
            return Err(ArtifactTransferError(f"There was an error downloading {destination.name}", cause=exc))
        return Ok(len(payload))
