from .blobs import HttpBlobTransport
from .devicefarm import BotoDeviceFarmGateway
from .interfaces import (
    ArtifactsGateway,
    BlobTransport,
    DeviceFarmGateway,
    DevicePoolsGateway,
    ProjectsGateway,
    RunsGateway,
    UploadsGateway,
)
from .memory import InMemoryBlobStore, InMemoryDeviceFarm
from .models import (
    Artifact,
    ArtifactType,
    BillingMethod,
    DevicePool,
    ExecutionResult,
    ExecutionStatus,
    Job,
    Project,
    Run,
    RunTestType,
    ScheduleRunRequest,
    ScheduleRunTest,
    Upload,
    UploadStatus,
    UploadType,
)

__all__ = [
    "Artifact",
    "ArtifactType",
    "ArtifactsGateway",
    "BillingMethod",
    "BlobTransport",
    "BotoDeviceFarmGateway",
    "DeviceFarmGateway",
    "DevicePool",
    "DevicePoolsGateway",
    "ExecutionResult",
    "ExecutionStatus",
    "HttpBlobTransport",
    "InMemoryBlobStore",
    "InMemoryDeviceFarm",
    "Job",
    "Project",
    "ProjectsGateway",
    "Run",
    "RunTestType",
    "RunsGateway",
    "ScheduleRunRequest",
    "ScheduleRunTest",
    "Upload",
    "UploadStatus",
    "UploadType",
    "UploadsGateway",
]
