from .errors import (
    ArtifactTransferError,
    DevicePoolNotFoundError,
    DomainStateError,
    FatalRemoteError,
    NoDevicePoolsError,
    RemoteError,
    TractorError,
    TransientRemoteError,
    UploadFailedError,
    UploadTimeoutError,
    ValidationError,
)
from .result import Err, Ok, Result
from .retry import RetryOutcome, RetryScheduler

__all__ = [
    "ArtifactTransferError",
    "DevicePoolNotFoundError",
    "DomainStateError",
    "Err",
    "FatalRemoteError",
    "NoDevicePoolsError",
    "Ok",
    "RemoteError",
    "Result",
    "RetryOutcome",
    "RetryScheduler",
    "TractorError",
    "TransientRemoteError",
    "UploadFailedError",
    "UploadTimeoutError",
    "ValidationError",
]
