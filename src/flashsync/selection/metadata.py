"""
Default image metadata extraction.

Reads just enough of an image to fill in an Image record: the size on disk,
whether the first sector carries a boot signature, and for zip bundles whether
a logo or block map ships alongside the image. File access runs in a worker
thread so the event loop is never blocked on disk I/O.
"""

import asyncio
import bz2
import gzip
import lzma
import os
import zipfile
import zlib
from typing import BinaryIO, Callable, Dict, Optional

from flashsync.constants import (
    BOOT_SECTOR_SIZE,
    BOOT_SIGNATURE,
    BOOT_SIGNATURE_OFFSET,
    UNCOMPRESSED_IMAGE_EXTENSIONS,
)
from flashsync.exceptions import MetadataExtractionError
from flashsync.log_utils import logger

from .formats import SupportedFormats, get_last_file_extension
from .interfaces import FormatRegistry, Image, MetadataExtractor

_STREAM_OPENERS: Dict[str, Callable[[str], BinaryIO]] = {
    "gz": lambda path: gzip.open(path, "rb"),  # type: ignore[dict-item]
    "bz2": lambda path: bz2.open(path, "rb"),  # type: ignore[dict-item]
    "xz": lambda path: lzma.open(path, "rb"),  # type: ignore[dict-item]
}


def has_boot_signature(sector: bytes) -> bool:
    """Return True if `sector` is a full boot sector ending in 0x55AA."""
    if len(sector) < BOOT_SECTOR_SIZE:
        return False
    end = BOOT_SIGNATURE_OFFSET + len(BOOT_SIGNATURE)
    return sector[BOOT_SIGNATURE_OFFSET:end] == BOOT_SIGNATURE


def _pick_zip_member(archive: zipfile.ZipFile) -> Optional[zipfile.ZipInfo]:
    members = [info for info in archive.infolist() if not info.is_dir()]
    for info in members:
        if get_last_file_extension(info.filename) in UNCOMPRESSED_IMAGE_EXTENSIONS:
            return info
    return members[0] if members else None


class ImageMetadataExtractor(MetadataExtractor):
    """Builds Image records from raw, compressed and zipped images."""

    def __init__(self, formats: Optional[FormatRegistry] = None) -> None:
        self.formats = formats or SupportedFormats()

    def _read_zip(self, path: str) -> Dict[str, object]:
        with zipfile.ZipFile(path) as archive:
            names = [name.lower() for name in archive.namelist()]
            member = _pick_zip_member(archive)
            sector = b""
            if member is not None:
                with archive.open(member) as f:
                    sector = f.read(BOOT_SECTOR_SIZE)
        return {
            "has_mbr": has_boot_signature(sector),
            "logo": any(os.path.basename(name) == "logo.svg" for name in names),
            "bmap": any(name.endswith(".bmap") for name in names),
        }

    def _read_sector(self, path: str, extension: Optional[str]) -> bytes:
        opener = _STREAM_OPENERS.get(extension or "")
        if opener is not None:
            with opener(path) as f:
                return f.read(BOOT_SECTOR_SIZE)
        with open(path, "rb") as f:
            return f.read(BOOT_SECTOR_SIZE)

    def read_metadata(self, path: str) -> Image:
        """
        Synchronously read metadata for `path`.

        Raises:
            MetadataExtractionError: If the file cannot be opened or decoded.
        """
        absolute = os.path.abspath(path)
        extension = get_last_file_extension(absolute)
        try:
            size = os.path.getsize(absolute)
            if extension == "zip":
                fields = self._read_zip(absolute)
            else:
                sector = self._read_sector(absolute, extension)
                fields = {"has_mbr": has_boot_signature(sector)}
        except (
            OSError,
            EOFError,
            RuntimeError,
            NotImplementedError,
            zipfile.BadZipFile,
            lzma.LZMAError,
            zlib.error,
        ) as e:
            raise MetadataExtractionError(
                str(e) or type(e).__name__, path=absolute
            ) from e

        image = Image(
            path=absolute,
            size=size,
            looks_like_windows_image=self.formats.looks_like_windows_image(absolute),
            **fields,  # type: ignore[arg-type]
        )
        logger.debug(f"Read image metadata: {image}")
        return image

    async def get_image_metadata(self, path: str) -> Image:
        return await asyncio.to_thread(self.read_metadata, path)
