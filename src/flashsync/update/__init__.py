"""
Flashsync Update Subsystem

Keeps the MCU firmware image in sync with the newest published release.

Core Components:
- interfaces: Release, local file and download result data structures
- version: Semantic version comparison
- local: Downloads-directory firmware scan
- release_client: Latest-release query
- downloader: Firmware download transport
- resolver: Update-check state machine
"""

from .downloader import FirmwareDownloader
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
from .resolver import UpdateResolver
from .version import Comparison, VersionComparator

__all__ = [
    "Comparison",
    "DownloadResult",
    "DownloadTransport",
    "FirmwareDownloader",
    "FirmwareRelease",
    "LocalFirmwareFile",
    "LocalImageRepository",
    "RemoteReleaseClient",
    "UpdateCheckState",
    "UpdateResolver",
    "UpdateState",
    "VersionComparator",
]
