"""
Firmware download transport.

Streams a release asset into the downloads directory through a temporary file
and an atomic replace, so a partially written file never carries the final
firmware name.
"""

import asyncio
import os
import time
from pathlib import Path
from typing import Any, Optional

import aiofiles  # type: ignore[import-untyped]
import aiohttp
from aiohttp import ClientSession, ClientTimeout

from flashsync.constants import (
    BYTES_PER_MEGABYTE,
    DEFAULT_CHUNK_SIZE,
    DOWNLOAD_REQUEST_TIMEOUT,
    HTTP_STATUS_ERROR_THRESHOLD,
)
from flashsync.exceptions import DownloadError
from flashsync.log_utils import logger
from flashsync.utils import filename_from_url, get_user_agent

from .interfaces import DownloadResult, DownloadTransport, Pathish


class FirmwareDownloader(DownloadTransport):
    """Downloads firmware assets into a target directory with aiohttp."""

    def __init__(
        self,
        target_dir: Pathish,
        timeout: float = DOWNLOAD_REQUEST_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.target_dir = Path(target_dir)
        self.timeout = ClientTimeout(total=timeout)
        self.chunk_size = chunk_size
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "FirmwareDownloader":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                timeout=self.timeout, headers={"User-Agent": get_user_agent()}
            )
        return self._session

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def target_path_for(self, url: str) -> Path:
        """
        Return where the asset at `url` is saved.

        Raises:
            DownloadError: If the URL has no usable filename.
        """
        name = filename_from_url(url)
        if not name or os.sep in name or (os.altsep and os.altsep in name):
            raise DownloadError("Download URL has no usable filename", url=url)
        return self.target_dir / name

    async def _download_to(self, url: str, target: Path) -> int:
        """
        Stream `url` into `target`, returning the number of bytes written.

        Raises:
            DownloadError: On HTTP, network or filesystem failures. The temporary
                file is removed before raising.
        """
        session = await self._ensure_session()
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(
            f"{target.name}.tmp.{os.getpid()}.{int(time.time() * 1000)}"
        )

        try:
            downloaded = 0
            async with session.get(url) as response:
                if response.status >= HTTP_STATUS_ERROR_THRESHOLD:
                    raise DownloadError(
                        f"HTTP error {response.status}",
                        url=url,
                        status_code=response.status,
                    )
                async with aiofiles.open(temp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        downloaded += len(chunk)

            temp_path.replace(target)
            return downloaded
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(
                "Download failed", url=url, details=str(e) or type(e).__name__
            ) from e
        except OSError as e:
            raise DownloadError(
                f"Filesystem error saving {target}", url=url, details=str(e)
            ) from e
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass

    async def download(self, url: str) -> DownloadResult:
        """
        Download `url` into the target directory.

        Returns:
            DownloadResult: `success=True` with the saved file path, or
            `success=False` with the error message. Never raises for download failures.
        """
        start_time = time.time()
        try:
            target = self.target_path_for(url)
            downloaded = await self._download_to(url, target)
        except DownloadError as e:
            logger.error(f"Firmware download failed for {url}: {e}")
            return DownloadResult(success=False, url=url, error_message=str(e))

        elapsed = time.time() - start_time
        logger.info(
            f"Downloaded: {target.name} ({downloaded / BYTES_PER_MEGABYTE:.1f} MB in {elapsed:.1f}s)"
        )
        return DownloadResult(success=True, url=url, file_path=str(target))
