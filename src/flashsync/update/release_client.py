"""
Latest-release client for the MCU firmware repository.

One best-effort GET per call against the "latest release" endpoint using
aiohttp. Failures never propagate: the caller gets None and the reason is
logged.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from flashsync.constants import GITHUB_API_TIMEOUT, LATEST_MCU_RELEASE_URL
from flashsync.exceptions import ReleaseFetchError
from flashsync.log_utils import logger
from flashsync.utils import get_release_request_headers

from .interfaces import FirmwareRelease


class RemoteReleaseClient:
    """
    Queries the latest published firmware release.

    Example:
        async with RemoteReleaseClient() as client:
            release = await client.fetch_latest_release()
    """

    def __init__(
        self,
        url: str = LATEST_MCU_RELEASE_URL,
        github_token: Optional[str] = None,
        timeout: float = GITHUB_API_TIMEOUT,
    ) -> None:
        self.url = url
        self.github_token = github_token
        self.timeout = ClientTimeout(total=timeout)
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "RemoteReleaseClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        """
        Ensure a session exists, creating one if needed.

        Returns:
            ClientSession: The active aiohttp session.
        """
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _fetch_payload(self) -> Dict[str, Any]:
        """
        Perform the GET and decode the JSON body.

        Raises:
            ReleaseFetchError: On network errors, HTTP errors or a non-object body.
        """
        session = await self._ensure_session()
        headers = get_release_request_headers(self.github_token)
        try:
            async with session.get(self.url, headers=headers) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            raise ReleaseFetchError(
                f"HTTP error {e.status} from release endpoint",
                url=self.url,
                status_code=e.status,
                details=e.message,
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ReleaseFetchError(
                "Network error querying release endpoint",
                url=self.url,
                details=str(e) or type(e).__name__,
            ) from e
        except ValueError as e:
            raise ReleaseFetchError(
                "Release endpoint returned invalid JSON", url=self.url, details=str(e)
            ) from e

        if not isinstance(data, dict):
            raise ReleaseFetchError(
                "Unexpected release payload",
                url=self.url,
                details=f"expected object, got {type(data).__name__}",
            )
        return data

    def parse_release(self, data: Dict[str, Any]) -> FirmwareRelease:
        """
        Build a FirmwareRelease from a latest-release payload.

        Raises:
            ReleaseFetchError: If the tag is missing or there is no downloadable asset.
        """
        tag_name = data.get("tag_name")
        if not isinstance(tag_name, str) or not tag_name.strip():
            raise ReleaseFetchError("Release has no tag_name", url=self.url)

        assets = data.get("assets")
        if not isinstance(assets, list) or not assets:
            raise ReleaseFetchError(
                f"Release {tag_name} has no downloadable assets", url=self.url
            )

        first = assets[0]
        download_url = first.get("browser_download_url") if isinstance(first, dict) else None
        if not isinstance(download_url, str) or not download_url.strip():
            raise ReleaseFetchError(
                f"Release {tag_name} asset has no download URL", url=self.url
            )

        asset_name = first.get("name")
        return FirmwareRelease(
            version=tag_name.strip(),
            download_url=download_url.strip(),
            asset_name=asset_name if isinstance(asset_name, str) else None,
        )

    async def fetch_latest_release(self) -> Optional[FirmwareRelease]:
        """
        Return the newest published release, or None when it cannot be determined.

        No retries are made; the caller re-invokes later if it wants a fresh answer.
        """
        try:
            release = self.parse_release(await self._fetch_payload())
        except ReleaseFetchError as e:
            logger.warning(f"Could not determine latest firmware release: {e}")
            return None

        logger.debug(f"Latest firmware release is {release.version}")
        return release
