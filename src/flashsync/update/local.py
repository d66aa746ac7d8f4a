"""
Local firmware image discovery.

Scans a directory for files following the `mcu_v<major>.<minor>.<patch>.img.zip`
convention. The directory contents are the source of truth on every call;
nothing is cached.
"""

import os
import re
from typing import List, Optional, Tuple

from flashsync.constants import MCU_IMAGE_PATTERN
from flashsync.exceptions import DirectoryUnreadableError
from flashsync.log_utils import logger

from .interfaces import LocalFirmwareFile, Pathish


class LocalImageRepository:
    """Read-only view of the firmware images stored in a directory."""

    MCU_IMAGE_RX = re.compile(MCU_IMAGE_PATTERN)

    def _read_entries(self, directory: Pathish) -> List[str]:
        """
        List the regular files in `directory`.

        Raises:
            DirectoryUnreadableError: If the directory is missing or cannot be listed.
        """
        try:
            with os.scandir(directory) as iterator:
                return [entry.name for entry in iterator if entry.is_file()]
        except OSError as e:
            raise DirectoryUnreadableError(
                "Cannot read firmware directory", path=str(directory), details=str(e)
            ) from e

    def _sort_key(self, image: LocalFirmwareFile) -> Tuple[Tuple[int, ...], str]:
        match = self.MCU_IMAGE_RX.match(image.filename)
        numbers = tuple(int(part) for part in match.groups()) if match else ()
        return numbers, image.filename

    def list_firmware_images(self, directory: Pathish) -> List[LocalFirmwareFile]:
        """
        Return the firmware images in `directory`, newest first.

        Files not matching the naming convention are excluded. Ordering is by
        numeric (major, minor, patch), so 1.10.0 sorts above 1.9.0. An unreadable
        or missing directory is logged and treated as containing no images.

        Parameters:
            directory (Pathish): Directory to scan.

        Returns:
            List[LocalFirmwareFile]: Matching files; index 0 is the newest.
        """
        try:
            names = self._read_entries(directory)
        except DirectoryUnreadableError as e:
            logger.debug(f"No local firmware images: {e}")
            return []

        images: List[LocalFirmwareFile] = []
        for name in names:
            match = self.MCU_IMAGE_RX.match(name)
            if not match:
                continue
            images.append(
                LocalFirmwareFile(
                    filename=name,
                    version=".".join(match.groups()),
                    path=os.path.abspath(os.path.join(directory, name)),
                )
            )

        images.sort(key=self._sort_key, reverse=True)
        return images

    def latest(self, directory: Pathish) -> Optional[LocalFirmwareFile]:
        """Return the newest firmware image in `directory`, or None if there is none."""
        images = self.list_firmware_images(directory)
        return images[0] if images else None
