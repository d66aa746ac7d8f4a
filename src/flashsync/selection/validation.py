"""
Image validation gate.

Checks run in a fixed order and the first match wins: an unsupported format is
an unconditional rejection; a Windows-looking image and a missing partition
table each ask for confirmation, with the Windows check taking precedence.
"""

from flashsync.constants import (
    CONFIRMATION_LABEL,
    EVENT_INVALID_IMAGE,
    EVENT_MISSING_PARTITION_TABLE,
    EVENT_WINDOWS_IMAGE,
    MSG_INVALID_IMAGE,
    MSG_LOOKS_LIKE_WINDOWS_IMAGE,
    MSG_MISSING_PARTITION_TABLE,
    REJECTION_LABEL,
)
from flashsync.reporting import Analytics, safe_log_event

from .interfaces import (
    ConfirmationModal,
    FormatRegistry,
    Image,
    ValidationReason,
    ValidationResult,
    ValidationStatus,
)


class ImageValidationGate:
    """Decides whether an image can be committed directly."""

    def __init__(
        self,
        formats: FormatRegistry,
        modal: ConfirmationModal,
        analytics: Analytics,
    ) -> None:
        self.formats = formats
        self.modal = modal
        self.analytics = analytics

    def validate(self, image: Image) -> ValidationResult:
        if not self.formats.is_supported_image(image.path):
            safe_log_event(self.analytics, EVENT_INVALID_IMAGE, image)
            return ValidationResult.rejected(
                ValidationReason.UNSUPPORTED_FORMAT,
                MSG_INVALID_IMAGE.format(path=image.path),
            )

        if image.looks_like_windows_image or self.formats.looks_like_windows_image(
            image.path
        ):
            safe_log_event(self.analytics, EVENT_WINDOWS_IMAGE, image)
            return ValidationResult.needs_confirmation(
                ValidationReason.LOOKS_LIKE_WINDOWS_IMAGE, MSG_LOOKS_LIKE_WINDOWS_IMAGE
            )

        if not image.has_mbr:
            safe_log_event(self.analytics, EVENT_MISSING_PARTITION_TABLE, image)
            return ValidationResult.needs_confirmation(
                ValidationReason.MISSING_PARTITION_TABLE, MSG_MISSING_PARTITION_TABLE
            )

        return ValidationResult.accepted()

    async def should_change(self, result: ValidationResult) -> bool:
        """
        Run the confirmation modal for a NEEDS_CONFIRMATION result.

        The primary action is "Change" (pick another image) and dismissing the
        modal counts as "Continue" with the new image.

        Returns:
            bool: True if the user wants to pick a different image, False to
            keep the new one.
        """
        if result.status is not ValidationStatus.NEEDS_CONFIRMATION:
            return False
        return bool(
            await self.modal.display(
                confirmation_label=CONFIRMATION_LABEL,
                rejection_label=REJECTION_LABEL,
                description=result.message or "",
            )
        )
