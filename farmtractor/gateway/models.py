from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ServiceEnum(str, Enum):
    """String enum that tolerates values added to the service after this release."""

    @classmethod
    def _missing_(cls, value: object) -> "_ServiceEnum":
        return cls("UNKNOWN")


class UploadType(_ServiceEnum):
    ANDROID_APP = "ANDROID_APP"
    IOS_APP = "IOS_APP"
    WEB_APP = "WEB_APP"
    APPIUM_NODE_TEST_PACKAGE = "APPIUM_NODE_TEST_PACKAGE"
    APPIUM_NODE_TEST_SPEC = "APPIUM_NODE_TEST_SPEC"
    APPIUM_WEB_NODE_TEST_PACKAGE = "APPIUM_WEB_NODE_TEST_PACKAGE"
    APPIUM_WEB_NODE_TEST_SPEC = "APPIUM_WEB_NODE_TEST_SPEC"
    APPIUM_PYTHON_TEST_PACKAGE = "APPIUM_PYTHON_TEST_PACKAGE"
    APPIUM_PYTHON_TEST_SPEC = "APPIUM_PYTHON_TEST_SPEC"
    INSTRUMENTATION_TEST_PACKAGE = "INSTRUMENTATION_TEST_PACKAGE"
    INSTRUMENTATION_TEST_SPEC = "INSTRUMENTATION_TEST_SPEC"
    XCTEST_UI_TEST_PACKAGE = "XCTEST_UI_TEST_PACKAGE"
    XCTEST_UI_TEST_SPEC = "XCTEST_UI_TEST_SPEC"
    UNKNOWN = "UNKNOWN"


class UploadStatus(_ServiceEnum):
    """Lifecycle states of a Device Farm upload."""

    INITIALIZED = "INITIALIZED"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"


PENDING_UPLOAD_STATUSES = frozenset({UploadStatus.INITIALIZED, UploadStatus.PROCESSING})


class ExecutionStatus(_ServiceEnum):
    PENDING = "PENDING"
    PENDING_CONCURRENCY = "PENDING_CONCURRENCY"
    PENDING_DEVICE = "PENDING_DEVICE"
    PROCESSING = "PROCESSING"
    SCHEDULING = "SCHEDULING"
    PREPARING = "PREPARING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    STOPPING = "STOPPING"
    UNKNOWN = "UNKNOWN"


class ExecutionResult(_ServiceEnum):
    PENDING = "PENDING"
    PASSED = "PASSED"
    WARNED = "WARNED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    ERRORED = "ERRORED"
    STOPPED = "STOPPED"
    UNKNOWN = "UNKNOWN"


class ArtifactType(_ServiceEnum):
    SCREENSHOT = "SCREENSHOT"
    DEVICE_LOG = "DEVICE_LOG"
    MESSAGE_LOG = "MESSAGE_LOG"
    VIDEO_LOG = "VIDEO_LOG"
    RESULT_LOG = "RESULT_LOG"
    SERVICE_LOG = "SERVICE_LOG"
    WEBKIT_LOG = "WEBKIT_LOG"
    INSTRUMENTATION_OUTPUT = "INSTRUMENTATION_OUTPUT"
    EXERCISER_MONKEY_OUTPUT = "EXERCISER_MONKEY_OUTPUT"
    APPIUM_SERVER_OUTPUT = "APPIUM_SERVER_OUTPUT"
    APPIUM_JAVA_OUTPUT = "APPIUM_JAVA_OUTPUT"
    APPIUM_PYTHON_OUTPUT = "APPIUM_PYTHON_OUTPUT"
    XCTEST_LOG = "XCTEST_LOG"
    VIDEO = "VIDEO"
    CUSTOMER_ARTIFACT = "CUSTOMER_ARTIFACT"
    CUSTOMER_ARTIFACT_LOG = "CUSTOMER_ARTIFACT_LOG"
    TESTSPEC_OUTPUT = "TESTSPEC_OUTPUT"
    UNKNOWN = "UNKNOWN"

    @property
    def pretty_name(self) -> str:
        if self is ArtifactType.VIDEO:
            return "Recorded video"
        if self is ArtifactType.CUSTOMER_ARTIFACT:
            return "Test reports"
        return self.value


class RunTestType(_ServiceEnum):
    APPIUM_NODE = "APPIUM_NODE"
    APPIUM_WEB_NODE = "APPIUM_WEB_NODE"
    UNKNOWN = "UNKNOWN"


class BillingMethod(_ServiceEnum):
    METERED = "METERED"
    UNMETERED = "UNMETERED"
    UNKNOWN = "UNKNOWN"


class _Snapshot(BaseModel):
    """Read-only view over a Device Farm API payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]):
        return cls.model_validate(dict(payload))


class Project(_Snapshot):
    arn: str
    name: str = ""


class DevicePool(_Snapshot):
    arn: str
    name: str = ""
    description: Optional[str] = None


class Upload(_Snapshot):
    """Server-tracked record of an artifact transfer and its processing result."""

    arn: str
    name: str = ""
    type: UploadType = UploadType.UNKNOWN
    status: UploadStatus = UploadStatus.INITIALIZED
    message: str = ""
    url: Optional[str] = None
    content_type: Optional[str] = Field(None, alias="contentType")

    @field_validator("message", mode="before")
    @classmethod
    def _none_message(cls, value: Any) -> Any:
        return value or ""

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_UPLOAD_STATUSES


class Run(_Snapshot):
    """One scheduled test execution against a device pool."""

    arn: str
    name: str = ""
    status: ExecutionStatus = ExecutionStatus.SCHEDULING
    result: ExecutionResult = ExecutionResult.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status is ExecutionStatus.COMPLETED


class Job(_Snapshot):
    """Per-device execution unit of a run."""

    arn: str
    name: str = ""
    device_name: str = ""
    result: ExecutionResult = ExecutionResult.PENDING

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Job":
        data = dict(payload)
        device = data.get("device") or {}
        data.setdefault("device_name", device.get("name") or "")
        return cls.model_validate(data)


class Artifact(_Snapshot):
    """A named output (log, video, report) produced by a job."""

    arn: str
    name: str = ""
    type: ArtifactType = ArtifactType.UNKNOWN
    extension: str = ""
    url: Optional[str] = None

    @property
    def file_name(self) -> str:
        if not self.extension:
            return self.name
        return f"{self.name}.{self.extension}"


class ScheduleRunTest(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: RunTestType
    test_package_arn: str
    test_spec_arn: str
    parameters: dict[str, str] = Field(default_factory=dict)

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.type.value,
            "testPackageArn": self.test_package_arn,
            "testSpecArn": self.test_spec_arn,
        }
        if self.parameters:
            payload["parameters"] = dict(self.parameters)
        return payload


class ScheduleRunRequest(BaseModel):
    """Everything needed to schedule a run; mirrors the ScheduleRun API call."""

    model_config = ConfigDict(frozen=True)

    project_arn: str
    device_pool_arn: str
    test: ScheduleRunTest
    app_arn: str = ""
    name: str = ""
    billing_method: BillingMethod = BillingMethod.METERED
    video_capture: bool = True

    @property
    def is_web(self) -> bool:
        return self.test.type is RunTestType.APPIUM_WEB_NODE

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "projectArn": self.project_arn,
            "devicePoolArn": self.device_pool_arn,
            "test": self.test.to_api(),
            "configuration": {"billingMethod": self.billing_method.value},
            "executionConfiguration": {"videoCapture": self.video_capture},
        }
        if not self.is_web:
            payload["appArn"] = self.app_arn
        if self.name:
            payload["name"] = self.name
        return payload
