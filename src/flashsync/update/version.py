"""
Version comparison for firmware releases.

Versions are dotted numeric strings with an optional leading "v" and an
optional semantic-version prerelease tag ("1.3.0-rc.1"). Parsing goes through
packaging so prerelease tags sort before the corresponding release.
"""

import re
from enum import Enum
from typing import Optional

from packaging.version import InvalidVersion, Version

from flashsync.exceptions import InvalidVersionFormatError
from flashsync.log_utils import logger


class Comparison(Enum):
    """Outcome of comparing two versions."""

    GREATER = 1
    EQUAL = 0
    LESS = -1


class VersionComparator:
    """
    Compares semantic version strings.

    `compare()` raises InvalidVersionFormatError on malformed input.
    `update_available()` never raises: absence or invalidity means no update.
    """

    DOTTED_VERSION_RX = re.compile(
        r"^(\d+(?:\.\d+)*)"  # numeric release (major.minor.patch)
        r"(?:[-.]?([0-9A-Za-z][0-9A-Za-z.-]*))?"  # optional prerelease tag
        r"$"
    )
    PRERELEASE_RX = re.compile(r"^(alpha|beta|rc|a|b|c|pre|preview|dev)\.?(\d*)$")

    def parse(self, version: Optional[str]) -> Version:
        """
        Parse a version string into a comparable Version.

        Raises:
            InvalidVersionFormatError: If the input is empty or not a dotted numeric version.
        """
        if version is None or not str(version).strip():
            raise InvalidVersionFormatError("Version is empty", value=version)

        trimmed = str(version).strip()
        if trimmed[:1] in ("v", "V"):
            trimmed = trimmed[1:]

        match = self.DOTTED_VERSION_RX.match(trimmed)
        if not match:
            raise InvalidVersionFormatError(
                f"Not a dotted numeric version: {version}", value=version
            )

        release, tag = match.group(1), match.group(2)
        candidate = release
        if tag:
            pre = self.PRERELEASE_RX.match(tag.lower())
            if not pre:
                raise InvalidVersionFormatError(
                    f"Unsupported prerelease tag in version: {version}",
                    value=version,
                )
            candidate = f"{release}{pre.group(1)}{pre.group(2) or '0'}"

        try:
            return Version(candidate)
        except InvalidVersion as e:
            raise InvalidVersionFormatError(
                f"Not a dotted numeric version: {version}", value=version
            ) from e

    def compare(self, a: str, b: str) -> Comparison:
        """
        Compare two versions by semantic-version precedence.

        Returns:
            Comparison: GREATER if `a` is newer than `b`, EQUAL if they are the
            same release, LESS otherwise.

        Raises:
            InvalidVersionFormatError: If either input does not parse.
        """
        va, vb = self.parse(a), self.parse(b)
        if va > vb:
            return Comparison.GREATER
        if va < vb:
            return Comparison.LESS
        return Comparison.EQUAL

    def update_available(self, remote: Optional[str], local: Optional[str]) -> bool:
        """
        Return True iff both versions are present, parse, and `remote` is newer.
        """
        if not remote or not local:
            return False
        try:
            return self.compare(remote, local) is Comparison.GREATER
        except InvalidVersionFormatError as e:
            logger.debug(f"Ignoring unparseable version during update check: {e}")
            return False
