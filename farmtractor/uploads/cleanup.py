from __future__ import annotations

import asyncio
from typing import Iterable

from loguru import logger

from farmtractor.core.result import Err, Result
from farmtractor.gateway.interfaces import UploadsGateway
from farmtractor.gateway.models import Upload


class UploadJanitor:
    """Best-effort removal of uploads once a run no longer needs them."""

    def __init__(self, uploads: UploadsGateway) -> None:
        self._uploads = uploads

    async def delete_uploads(self, uploads: Iterable[Upload]) -> list[Result[None]]:
        """Delete every upload in parallel; a failing delete never stops the others."""
        batch = list(uploads)
        if not batch:
            return []
        return list(await asyncio.gather(*(self._delete(upload) for upload in batch)))

    async def _delete(self, upload: Upload) -> Result[None]:
        result = await self._uploads.delete_upload(upload.arn)
        if isinstance(result, Err):
            logger.warning("Could not delete the upload {} ({}): {}", upload.name, upload.arn, result.error)
        else:
            logger.info("The upload {} with arn {} was deleted", upload.name, upload.arn)
        return result
