from __future__ import annotations

from pathlib import Path
from typing import Protocol

from farmtractor.core.result import Result

from .models import Artifact, DevicePool, Job, Project, Run, ScheduleRunRequest, Upload, UploadType


class ProjectsGateway(Protocol):
    async def list_projects(self) -> Result[list[Project]]:
        ...

    async def create_project(self, name: str) -> Result[Project]:
        ...


class DevicePoolsGateway(Protocol):
    async def list_device_pools(self, project_arn: str) -> Result[list[DevicePool]]:
        ...


class UploadsGateway(Protocol):
    """Upload records tracked by the service; the bytes travel through a BlobTransport."""

    async def create_upload(self, project_arn: str, upload_type: UploadType, name: str) -> Result[Upload]:
        ...

    async def get_upload(self, upload_arn: str) -> Result[Upload]:
        ...

    async def delete_upload(self, upload_arn: str) -> Result[None]:
        ...


class RunsGateway(Protocol):
    async def schedule_run(self, request: ScheduleRunRequest) -> Result[Run]:
        ...

    async def get_run(self, run_arn: str) -> Result[Run]:
        ...

    async def list_jobs(self, run_arn: str) -> Result[list[Job]]:
        ...


class ArtifactsGateway(Protocol):
    async def list_artifacts(self, arn: str) -> Result[list[Artifact]]:
        ...


class BlobTransport(Protocol):
    """Moves bytes between the local filesystem and presigned URLs."""

    async def put_file(self, url: str, source: Path, *, content_type: str) -> Result[int]:
        ...

    async def download(self, url: str, destination: Path) -> Result[int]:
        ...


class DeviceFarmGateway(ProjectsGateway, DevicePoolsGateway, UploadsGateway, RunsGateway, ArtifactsGateway, Protocol):
    """Every remote capability the orchestration consumes."""
