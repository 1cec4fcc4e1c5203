from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Optional

import requests
from loguru import logger

from farmtractor.core.errors import ArtifactTransferError
from farmtractor.core.result import Err, Ok, Result

CHUNK_SIZE = 1024 * 1024


class TransferCancelled(OSError):
    """Raised inside a worker thread once the awaiting coroutine was cancelled."""


class _CancellableReader:
    """File wrapper handed to ``requests`` as the PUT body; stops reading once ``cancelled`` is set."""

    def __init__(self, handle, size: int, cancelled: threading.Event) -> None:
        self._handle = handle
        self._size = size
        self._cancelled = cancelled

    def __len__(self) -> int:
        return self._size

    def read(self, size: int = -1) -> bytes:
        if self._cancelled.is_set():
            raise TransferCancelled("upload cancelled")
        if size is None or size < 0 or size > CHUNK_SIZE:
            size = CHUNK_SIZE
        return self._handle.read(size)


class HttpBlobTransport:
    """Streams artifacts to and from the presigned S3 URLs handed out by Device Farm."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        request_timeout: float = 300.0,
    ) -> None:
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self._session = session or requests.Session()
        self._timeout = request_timeout

    async def put_file(self, url: str, source: Path, *, content_type: str) -> Result[int]:
        cancelled = threading.Event()
        try:
            status = await asyncio.to_thread(self._put, url, source, content_type, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            logger.debug("Upload of {} cancelled", source.name)
            raise
        except (requests.RequestException, OSError) as exc:
            logger.debug("Upload of {} failed: {}", source.name, exc)
            return Err(ArtifactTransferError(f"There was an error uploading the file {source.name}", cause=exc))
        return Ok(status)

    async def download(self, url: str, destination: Path) -> Result[int]:
        cancelled = threading.Event()
        try:
            written = await asyncio.to_thread(self._get, url, destination, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            logger.debug("Download into {} cancelled", destination)
            raise
        except (requests.RequestException, OSError) as exc:
            logger.debug("Download into {} failed: {}", destination, exc)
            return Err(ArtifactTransferError(f"There was an error downloading {destination.name}", cause=exc))
        return Ok(written)

    def _put(self, url: str, source: Path, content_type: str, cancelled: threading.Event) -> int:
        with source.open("rb") as handle:
            body = _CancellableReader(handle, source.stat().st_size, cancelled)
            response = self._session.put(
                url,
                data=body,
                headers={"Content-Type": content_type},
                timeout=self._timeout,
            )
        return response.status_code

    def _get(self, url: str, destination: Path, cancelled: threading.Event) -> int:
        # Bytes land in a sibling file that only replaces the target once complete.
        partial = destination.with_name(destination.name + ".part")
        total = 0
        try:
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                with partial.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if cancelled.is_set():
                            raise TransferCancelled(f"download of {destination.name} cancelled")
                        if not chunk:
                            continue
                        handle.write(chunk)
                        total += len(chunk)
            partial.replace(destination)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        return total
