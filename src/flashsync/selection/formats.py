"""
Supported image formats.

An image is flashable when its last extension is an uncompressed image or
archive extension, or a compression extension directly preceded by an
uncompressed image extension (e.g. `disk.img.xz`).
"""

import os
import re
from typing import FrozenSet, List, Optional

from flashsync.constants import (
    ARCHIVE_IMAGE_EXTENSIONS,
    COMPRESSED_IMAGE_EXTENSIONS,
    MAIN_SUPPORTED_EXTENSIONS,
    UNCOMPRESSED_IMAGE_EXTENSIONS,
    WINDOWS_IMAGE_PATTERN,
)

from .interfaces import FormatRegistry


def _extensions(path: str) -> List[str]:
    """Return the lower-cased dot-separated extensions of the basename, in order."""
    parts = os.path.basename(path).lower().split(".")
    return parts[1:] if len(parts) > 1 else []


def get_last_file_extension(path: str) -> Optional[str]:
    extensions = _extensions(path)
    return extensions[-1] if extensions else None


def get_penultimate_file_extension(path: str) -> Optional[str]:
    extensions = _extensions(path)
    return extensions[-2] if len(extensions) > 1 else None


class SupportedFormats(FormatRegistry):
    """Default registry of flashable image formats."""

    WINDOWS_IMAGE_RX = re.compile(WINDOWS_IMAGE_PATTERN, re.IGNORECASE)

    def __init__(
        self,
        uncompressed=UNCOMPRESSED_IMAGE_EXTENSIONS,
        compressed=COMPRESSED_IMAGE_EXTENSIONS,
        archive=ARCHIVE_IMAGE_EXTENSIONS,
    ) -> None:
        self.uncompressed = frozenset(uncompressed)
        self.compressed = frozenset(compressed)
        self.archive = frozenset(archive)

    def get_all_extensions(self) -> FrozenSet[str]:
        return self.uncompressed | self.compressed | self.archive

    def is_supported_image(self, path: str) -> bool:
        last = get_last_file_extension(path)
        if last in self.uncompressed or last in self.archive:
            return True
        if last not in self.compressed:
            return False
        return get_penultimate_file_extension(path) in self.uncompressed

    def looks_like_windows_image(self, path: str) -> bool:
        return bool(self.WINDOWS_IMAGE_RX.search(os.path.basename(path)))

    def main_supported_extensions(self) -> List[str]:
        """The headline extensions shown to users, in display order."""
        all_extensions = self.get_all_extensions()
        return [ext for ext in MAIN_SUPPORTED_EXTENSIONS if ext in all_extensions]

    def extra_supported_extensions(self) -> List[str]:
        """Every other supported extension, sorted."""
        return sorted(self.get_all_extensions() - set(self.main_supported_extensions()))
