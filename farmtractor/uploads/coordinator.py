from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from farmtractor.core.errors import (
    ArtifactTransferError,
    FatalRemoteError,
    UploadFailedError,
    UploadTimeoutError,
)
from farmtractor.core.result import Err, Ok, Result
from farmtractor.core.retry import RetryOutcome, RetryScheduler, Sleeper
from farmtractor.gateway.interfaces import BlobTransport, UploadsGateway
from farmtractor.gateway.models import Upload, UploadStatus, UploadType

from .validation import validate_artifact

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ArtifactUploadCoordinator:
    """
    Drive one artifact from the local disk to a ready-to-use Device Farm upload.

    Device Farm decides readiness asynchronously, so finishing the byte transfer
    says nothing about whether the upload can be used. The coordinator therefore
    races the transfer against status polling and joins them:

    1. a failed transfer wins immediately and polling is cancelled;
    2. otherwise polling decides: SUCCEEDED returns the upload, FAILED becomes an
       ``UploadFailedError``, running out of attempts an ``UploadTimeoutError``.

    Polling stops early on a ``FatalRemoteError``; transient errors keep it going.
    """

    def __init__(
        self,
        uploads: UploadsGateway,
        blobs: BlobTransport,
        *,
        poll_interval: float = 2.0,
        max_attempts: int = 3_600,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._uploads = uploads
        self._blobs = blobs
        self._scheduler = RetryScheduler(delay=poll_interval, max_attempts=max_attempts, sleep=sleep)

    async def upload(self, project_arn: str, artifact_path: str | Path, upload_type: UploadType) -> Result[Upload]:
        validated = validate_artifact(artifact_path, upload_type)
        if isinstance(validated, Err):
            logger.error("Rejected artifact {}: {}", artifact_path, validated.error)
            return validated
        path = validated.value

        logger.info("I will start to upload the artifact {}", path.name)
        created = await self._uploads.create_upload(project_arn, upload_type, path.name)
        if isinstance(created, Err):
            return created
        initial = created.value

        transfer = asyncio.create_task(self._transfer(path, initial), name=f"transfer:{path.name}")
        polling = asyncio.create_task(self._poll(path, initial), name=f"poll:{path.name}")
        try:
            transferred = await transfer
            if isinstance(transferred, Err):
                logger.error("Upload of {} aborted: {}", path.name, transferred.error)
                return transferred
            outcome = await polling
        finally:
            for task in (transfer, polling):
                if not task.done():
                    task.cancel()
            await asyncio.gather(transfer, polling, return_exceptions=True)

        return self._settle(path, outcome)

    async def _transfer(self, path: Path, upload: Upload) -> Result[int]:
        if not upload.url:
            return Err(ArtifactTransferError(f"Device Farm did not return an upload URL for {path.name}"))
        result = await self._blobs.put_file(
            upload.url,
            path,
            content_type=upload.content_type or DEFAULT_CONTENT_TYPE,
        )
        if isinstance(result, Ok) and result.value != 200:
            return Err(
                ArtifactTransferError(
                    f"The upload of the file {path.stem} was not successful, status code was {result.value}"
                )
            )
        return result

    async def _poll(self, path: Path, upload: Upload) -> RetryOutcome[Upload]:
        def should_continue(result: Result[Upload]) -> bool:
            if isinstance(result, Err):
                return not isinstance(result.error, FatalRemoteError)
            return result.value.is_pending

        def on_attempt(attempt: int, result: Result[Upload]) -> None:
            if isinstance(result, Err):
                logger.info("{} upload is not ready yet ({})", path.stem, result.error)
            else:
                logger.info("Current status of {} upload: {}", path.stem, result.value.status.value)

        return await self._scheduler.repeat(
            lambda: self._uploads.get_upload(upload.arn),
            should_continue=should_continue,
            on_attempt=on_attempt,
        )

    def _settle(self, path: Path, outcome: RetryOutcome[Upload]) -> Result[Upload]:
        result = outcome.result
        if isinstance(result, Err):
            if isinstance(result.error, FatalRemoteError):
                return result
            return Err(
                UploadTimeoutError(
                    f"The artifact {path.name} was not ready after {outcome.attempts} attempts",
                    cause=result.error,
                )
            )

        upload = result.value
        if upload.status is UploadStatus.SUCCEEDED:
            logger.info("The artifact {} was uploaded and is ready to use", path.name)
            return result
        if upload.is_pending:
            return Err(
                UploadTimeoutError(
                    f"The artifact {path.name} was still {upload.status.value} after {outcome.attempts} attempts"
                )
            )
        message = upload.message or "There was no error message, please check that the file is valid"
        return Err(
            UploadFailedError(
                f"The artifact {path.name} upload status was {upload.status.value}, message = {message}"
            )
        )
