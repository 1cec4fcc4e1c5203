from __future__ import annotations

from typing import Optional


class TractorError(Exception):
    """Base class for every expected failure of a test orchestration."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class ValidationError(TractorError):
    """Raised for blank identifiers, missing files or wrong file extensions."""


class RemoteError(TractorError):
    """The Device Farm gateway could not complete a call."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.operation = operation


class TransientRemoteError(RemoteError):
    """Connection-level failure; the owning component decides whether to retry."""


class FatalRemoteError(RemoteError):
    """The service itself rejected the call. Upload polling stops on this error."""


class ArtifactTransferError(TransientRemoteError):
    """Streaming bytes to or from a presigned URL failed."""


class DomainStateError(TractorError):
    """A remote entity reached a state the orchestration cannot continue from."""


class UploadFailedError(DomainStateError):
    pass


class UploadTimeoutError(DomainStateError):
    pass


class NoDevicePoolsError(DomainStateError):
    pass


class DevicePoolNotFoundError(DomainStateError):
    pass
