"""
Core Interfaces for the Flashsync Update Subsystem

This module defines the data structures shared by the release client, the
local firmware scan, the download transport and the update resolver.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

Pathish = Union[str, Path]


@dataclass(frozen=True)
class FirmwareRelease:
    """The newest published firmware release."""

    version: str
    """The release tag (e.g., 'v1.3.0')"""

    download_url: str
    """Download URL of the release's first asset"""

    asset_name: Optional[str] = None
    """Filename of the first asset, when the endpoint reports one"""


@dataclass(frozen=True)
class LocalFirmwareFile:
    """A firmware image found in the downloads directory."""

    filename: str
    """The file's name, e.g. 'mcu_v1.2.0.img.zip'"""

    version: str
    """The '<major>.<minor>.<patch>' part of the filename"""

    path: str
    """Absolute path of the file"""


@dataclass
class DownloadResult:
    """Result of a firmware download."""

    success: bool
    """Whether the download succeeded"""

    url: str
    """The URL that was downloaded"""

    file_path: Optional[str] = None
    """Path of the downloaded file (if successful)"""

    error_message: Optional[str] = None
    """Error message (if failed)"""


class UpdateState(Enum):
    """States of the update resolver."""

    IDLE = "idle"
    CHECKING = "checking"
    UP_TO_DATE = "up-to-date"
    UPDATE_AVAILABLE = "update-available"
    DOWNLOADING = "downloading"
    DOWNLOAD_FAILED = "download-failed"


@dataclass
class UpdateCheckState:
    """
    Update-check state shared between the resolver and the UI layer.

    One instance exists per application session; it is owned by the AppContext.
    """

    available_version: Optional[str] = None
    current_version: Optional[str] = None
    downloading: bool = False
    state: UpdateState = UpdateState.IDLE


class DownloadTransport(ABC):
    """Starts firmware downloads and reports their outcome."""

    @abstractmethod
    async def download(self, url: str) -> DownloadResult:
        """
        Download `url` and report the outcome.

        Implementations must not raise for download failures; they return a
        DownloadResult with `success=False` and an error message instead.
        """
