"""
Flashsync Selection Subsystem

Validates candidate images and commits them as the image to flash.

Core Components:
- interfaces: Image, validation results and collaborator interfaces
- formats: Supported-format registry
- metadata: Default image metadata extraction
- state: In-memory selection store
- validation: Format and safety checks
- coordinator: Selection workflow
"""

from .coordinator import SelectionCoordinator
from .formats import SupportedFormats
from .interfaces import (
    ConfirmationModal,
    FormatRegistry,
    Image,
    ImagePicker,
    MetadataExtractor,
    SelectionOutcome,
    SelectionStore,
    ValidationReason,
    ValidationResult,
    ValidationStatus,
)
from .metadata import ImageMetadataExtractor
from .state import SelectionState
from .validation import ImageValidationGate

__all__ = [
    "ConfirmationModal",
    "FormatRegistry",
    "Image",
    "ImageMetadataExtractor",
    "ImagePicker",
    "ImageValidationGate",
    "MetadataExtractor",
    "SelectionCoordinator",
    "SelectionOutcome",
    "SelectionState",
    "SelectionStore",
    "SupportedFormats",
    "ValidationReason",
    "ValidationResult",
    "ValidationStatus",
]
