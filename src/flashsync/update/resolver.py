"""
Update resolver for the MCU firmware image.

Combines the latest published release with the newest firmware already in the
downloads directory, adopts the local image as the current selection, and
starts a download when a newer release exists. Everything here is a
background convenience: failures are logged, never raised to the user.
"""

import asyncio
from typing import TYPE_CHECKING, Optional

from flashsync.constants import DOWNLOAD_LABEL_PREFIX, DOWNLOADING_LABEL
from flashsync.log_utils import logger

from .interfaces import (
    DownloadResult,
    DownloadTransport,
    FirmwareRelease,
    LocalFirmwareFile,
    UpdateCheckState,
    UpdateState,
)
from .local import LocalImageRepository
from .release_client import RemoteReleaseClient
from .version import VersionComparator

if TYPE_CHECKING:
    from flashsync.context import AppContext
    from flashsync.selection.coordinator import SelectionCoordinator


class UpdateResolver:
    """
    Drives the update-check state machine:

        IDLE -> CHECKING -> {UP_TO_DATE, UPDATE_AVAILABLE} -> DOWNLOADING
             -> {IDLE, DOWNLOAD_FAILED}

    At most one check and one download are in flight at any time. A call to
    `check_for_update()` while a check is running waits for that check instead
    of starting another, and no download starts while one is pending.
    """

    def __init__(
        self,
        context: "AppContext",
        release_client: RemoteReleaseClient,
        coordinator: "SelectionCoordinator",
        transport: DownloadTransport,
        repository: Optional[LocalImageRepository] = None,
        comparator: Optional[VersionComparator] = None,
    ) -> None:
        self.context = context
        self.release_client = release_client
        self.coordinator = coordinator
        self.transport = transport
        self.repository = repository or LocalImageRepository()
        self.comparator = comparator or VersionComparator()
        self._check_task: Optional["asyncio.Task[UpdateState]"] = None
        self._download_task: Optional["asyncio.Task[UpdateState]"] = None
        self._completed_downloads = 0

    @property
    def state(self) -> UpdateCheckState:
        return self.context.update_state

    @property
    def download_task(self) -> Optional["asyncio.Task[UpdateState]"]:
        return self._download_task

    def update_available(self) -> bool:
        return self.comparator.update_available(
            self.state.available_version, self.state.current_version
        )

    def download_prompt_label(self) -> str:
        if self.state.downloading:
            return DOWNLOADING_LABEL
        return DOWNLOAD_LABEL_PREFIX + (self.state.available_version or "")

    async def check_for_update(self, allow_download: bool = False) -> UpdateState:
        """
        Run one update check, or join the one already in flight.

        Parameters:
            allow_download (bool): Start a download when a newer release exists.

        Returns:
            UpdateState: The state the check settled in.
        """
        if self._check_task is not None and not self._check_task.done():
            logger.debug("Update check already in progress; waiting for it")
            return await self._check_task

        self._check_task = asyncio.ensure_future(self._run_check(allow_download))
        return await self._check_task

    async def _fetch_release(self) -> Optional[FirmwareRelease]:
        try:
            return await self.release_client.fetch_latest_release()
        except Exception as e:
            logger.warning(f"Latest release lookup failed: {e}")
            return None

    async def _scan_local(self) -> Optional[LocalFirmwareFile]:
        try:
            return await asyncio.to_thread(
                self.repository.latest, self.context.downloads_dir
            )
        except Exception as e:
            logger.warning(f"Local firmware scan failed: {e}")
            return None

    async def _adopt_local(self, local: LocalFirmwareFile) -> None:
        try:
            await self.coordinator.select_trusted_firmware(local.path)
        except Exception as e:
            logger.warning(f"Could not select local firmware {local.filename}: {e}")

    def _should_offer_download(
        self, release: Optional[FirmwareRelease], local: Optional[LocalFirmwareFile]
    ) -> bool:
        if release is None:
            return False
        if local is None:
            return True
        return self.comparator.update_available(release.version, local.version)

    async def _run_check(self, allow_download: bool) -> UpdateState:
        state = self.state
        state.state = UpdateState.CHECKING

        generation = self._completed_downloads
        release, local = await asyncio.gather(self._fetch_release(), self._scan_local())
        while generation != self._completed_downloads:
            # A download landed while this check was in flight; its scan is stale.
            logger.debug("Firmware download finished during update check; rescanning")
            generation = self._completed_downloads
            local = await self._scan_local()

        state.available_version = release.version if release else None
        state.current_version = local.version if local else None
        logger.debug(
            f"Update check: remote={state.available_version} local={state.current_version}"
        )

        if local is not None:
            await self._adopt_local(local)

        offer = self._should_offer_download(release, local)
        if release is None:
            state.state = UpdateState.UP_TO_DATE if local else UpdateState.IDLE
        elif offer:
            state.state = UpdateState.UPDATE_AVAILABLE
        else:
            state.state = UpdateState.UP_TO_DATE

        if offer and allow_download and release is not None:
            self._start_download(release)

        if state.downloading:
            state.state = UpdateState.DOWNLOADING
        return state.state

    def _start_download(self, release: FirmwareRelease) -> None:
        if self.state.downloading:
            logger.debug("Firmware download already in progress; not starting another")
            return

        logger.info(f"Downloading firmware {release.version}")
        self.state.downloading = True
        self.state.state = UpdateState.DOWNLOADING
        self._download_task = asyncio.create_task(
            self._run_download(release.download_url)
        )

    async def _run_download(self, url: str) -> UpdateState:
        try:
            result = await self.transport.download(url)
        except asyncio.CancelledError:
            self.state.downloading = False
            self.state.state = UpdateState.DOWNLOAD_FAILED
            raise
        except Exception as e:
            logger.exception(f"Firmware download raised unexpectedly: {e}")
            result = DownloadResult(success=False, url=url, error_message=str(e))
        return await self.on_download_complete(result)

    async def on_download_complete(self, result: DownloadResult) -> UpdateState:
        """
        Handle the end of a firmware download.

        On success the new file is selected through the trusted firmware path
        and the state is refreshed with a check that never starts a download.
        """
        self.state.downloading = False

        if not result.success or not result.file_path:
            logger.warning(f"Firmware download failed: {result.error_message}")
            self.state.state = UpdateState.DOWNLOAD_FAILED
            return self.state.state

        self._completed_downloads += 1
        self.state.state = UpdateState.IDLE
        try:
            await self.coordinator.select_trusted_firmware(result.file_path)
        except Exception as e:
            logger.warning(f"Could not select downloaded firmware: {e}")
        return await self.check_for_update(allow_download=False)

    async def wait_for_download(self) -> Optional[UpdateState]:
        """Wait for the pending download, if any, and return the resulting state."""
        if self._download_task is None:
            return None
        return await self._download_task
