"""
Core Interfaces for the Flashsync Selection Subsystem

Data structures for candidate images and validation outcomes, plus the
abstract collaborators the selection coordinator depends on.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Image:
    """A candidate or selected disk image."""

    path: str
    """Absolute filesystem location"""

    has_mbr: bool = False
    """Whether a partition table was detected"""

    looks_like_windows_image: bool = False
    """Heuristic set by metadata extraction"""

    size: Optional[int] = None
    """Size in bytes, when known"""

    logo: bool = False
    """Whether the image ships a compression logo"""

    bmap: bool = False
    """Whether the image ships a block map"""

    @property
    def extension(self) -> str:
        """Lower-cased last extension of `path`, without the dot."""
        return os.path.splitext(self.path)[1].lstrip(".").lower()

    @property
    def basename(self) -> str:
        return os.path.basename(self.path)


class ValidationStatus(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    NEEDS_CONFIRMATION = "needs-confirmation"


class ValidationReason(Enum):
    UNSUPPORTED_FORMAT = "unsupported-format"
    LOOKS_LIKE_WINDOWS_IMAGE = "looks-like-windows-image"
    MISSING_PARTITION_TABLE = "missing-partition-table"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of running an image through the validation gate."""

    status: ValidationStatus
    reason: Optional[ValidationReason] = None
    message: Optional[str] = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ValidationStatus.ACCEPTED)

    @classmethod
    def rejected(cls, reason: ValidationReason, message: str) -> "ValidationResult":
        return cls(ValidationStatus.REJECTED, reason, message)

    @classmethod
    def needs_confirmation(
        cls, reason: ValidationReason, message: str
    ) -> "ValidationResult":
        return cls(ValidationStatus.NEEDS_CONFIRMATION, reason, message)


class SelectionOutcome(Enum):
    """What a selection attempt ended up doing."""

    SELECTED = "selected"
    REJECTED = "rejected"
    RESELECTING = "reselecting"
    FAILED = "failed"
    BUSY = "busy"


class SelectionStore(ABC):
    """Durable record of the image the user intends to flash."""

    @abstractmethod
    def has_image(self) -> bool: ...

    @abstractmethod
    def get_image(self) -> Optional[Image]: ...

    @abstractmethod
    def get_image_path(self) -> Optional[str]: ...

    @abstractmethod
    def set_image(self, image: Image) -> None: ...


class MetadataExtractor(ABC):
    """Resolves image metadata from a filesystem path."""

    @abstractmethod
    async def get_image_metadata(self, path: str) -> Image:
        """
        Raises:
            MetadataExtractionError: If the image cannot be read.
        """


class FormatRegistry(ABC):
    """Knows which image formats can be flashed."""

    @abstractmethod
    def get_all_extensions(self) -> FrozenSet[str]: ...

    @abstractmethod
    def is_supported_image(self, path: str) -> bool: ...

    @abstractmethod
    def looks_like_windows_image(self, path: str) -> bool: ...


class ConfirmationModal(ABC):
    """Asks the user to confirm a risky selection."""

    @abstractmethod
    async def display(
        self, confirmation_label: str, rejection_label: str, description: str
    ) -> bool:
        """
        Show the warning and wait for the user.

        Returns:
            bool: True if the user chose the confirmation action, False for the
            rejection action or dismissing the modal.
        """


class ImagePicker(ABC):
    """Lets the user choose an image file."""

    @abstractmethod
    async def select_image(self) -> Optional[str]:
        """Return the chosen path, or None if the picker was closed."""
