"""
Selection coordinator.

Owns the path from "the user (or the updater) proposes an image" to "the
selection store holds it". Manual picks go through the validation gate and,
when needed, the confirmation modal. Firmware bundles produced by the updater
take a trusted path that skips the OS-image checks.
"""

import os
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from flashsync.constants import (
    EVENT_IMAGE_SELECTOR_CLOSED,
    EVENT_OPEN_IMAGE_SELECTOR,
    EVENT_RESELECT_IMAGE,
    EVENT_SELECT_IMAGE,
    MSG_INVALID_IMAGE_TITLE,
    MSG_OPEN_IMAGE,
    MSG_OPEN_IMAGE_TITLE,
)
from flashsync.exceptions import (
    FailurePolicy,
    FlashsyncError,
    MetadataExtractionError,
    UnsupportedFormatError,
    failure_policy,
)
from flashsync.log_utils import logger
from flashsync.reporting import safe_log_event, safe_log_exception, safe_show_error

from .interfaces import (
    Image,
    ImagePicker,
    MetadataExtractor,
    SelectionOutcome,
    ValidationStatus,
)
from .validation import ImageValidationGate

if TYPE_CHECKING:
    from flashsync.context import AppContext


class SelectionCoordinator:
    """
    Commits images to the session's selection store.

    Only one manual selection may be pending at a time; a second `select()`
    while the first waits on the confirmation modal returns BUSY.
    """

    def __init__(
        self,
        context: "AppContext",
        gate: ImageValidationGate,
        extractor: MetadataExtractor,
        picker: Optional[ImagePicker] = None,
    ) -> None:
        self.context = context
        self.gate = gate
        self.extractor = extractor
        self.picker = picker
        self._selecting = False

    @property
    def is_selecting(self) -> bool:
        return self._selecting

    def _handle_failure(self, title: str, error: FlashsyncError) -> None:
        if failure_policy(error) is FailurePolicy.SURFACE:
            safe_show_error(self.context.errors, title, error.message)
        else:
            logger.warning(f"{title}: {error}")

    def _commit(self, image: Image) -> Image:
        normalized = replace(image, logo=bool(image.logo), bmap=bool(image.bmap))
        self.context.selection.set_image(normalized)
        safe_log_event(self.context.analytics, EVENT_SELECT_IMAGE, normalized)
        logger.info(f"Selected image: {normalized.basename}")
        return normalized

    async def _validate_and_commit(self, image: Image) -> SelectionOutcome:
        result = self.gate.validate(image)

        if result.status is ValidationStatus.REJECTED:
            error = UnsupportedFormatError(result.message or "", path=image.path)
            self._handle_failure(MSG_INVALID_IMAGE_TITLE, error)
            return SelectionOutcome.REJECTED

        if result.status is ValidationStatus.NEEDS_CONFIRMATION:
            try:
                should_change = await self.gate.should_change(result)
            except Exception as e:
                logger.exception(f"Confirmation failed for {image.basename}: {e}")
                safe_log_exception(self.context.analytics, e)
                return SelectionOutcome.FAILED
            if should_change:
                return SelectionOutcome.RESELECTING

        self._commit(image)
        return SelectionOutcome.SELECTED

    async def select(self, image: Image) -> SelectionOutcome:
        """
        Validate `image` and commit it to the selection store.

        Rejected images surface an error and are never committed. Images that
        need confirmation wait on the modal; choosing "Change" keeps the
        previous selection and reopens the image selector.
        """
        if self._selecting:
            logger.warning(
                f"Ignoring selection of {image.basename}: another selection is pending"
            )
            return SelectionOutcome.BUSY

        self._selecting = True
        try:
            outcome = await self._validate_and_commit(image)
        finally:
            self._selecting = False

        if outcome is SelectionOutcome.RESELECTING:
            await self.reselect_image()
        return outcome

    async def _resolve_image(self, path: str) -> Optional[Image]:
        try:
            return await self.extractor.get_image_metadata(path)
        except (MetadataExtractionError, OSError) as e:
            message = e.message if isinstance(e, MetadataExtractionError) else str(e)
            error = MetadataExtractionError(
                MSG_OPEN_IMAGE.format(basename=os.path.basename(path), error=message),
                path=path,
            )
            self._handle_failure(MSG_OPEN_IMAGE_TITLE, error)
            safe_log_exception(self.context.analytics, e)
            return None

    async def select_by_path(self, path: str) -> SelectionOutcome:
        """Resolve metadata for `path`, then run the normal selection path."""
        image = await self._resolve_image(path)
        if image is None:
            return SelectionOutcome.FAILED
        return await self.select(image)

    async def select_trusted_firmware(self, path: str) -> SelectionOutcome:
        """
        Commit a firmware bundle from the updater without OS-image validation.

        Format, partition-table and Windows checks do not apply to firmware
        zip bundles, so only metadata extraction can fail here.
        """
        image = await self._resolve_image(path)
        if image is None:
            return SelectionOutcome.FAILED
        self._commit(image)
        return SelectionOutcome.SELECTED

    async def open_image_selector(self) -> SelectionOutcome:
        """Ask the image picker for a path and select it."""
        safe_log_event(self.context.analytics, EVENT_OPEN_IMAGE_SELECTOR)
        if self.picker is None:
            logger.warning("No image picker available; keeping current selection")
            return SelectionOutcome.FAILED

        path = await self.picker.select_image()
        if not path:
            safe_log_event(self.context.analytics, EVENT_IMAGE_SELECTOR_CLOSED)
            return SelectionOutcome.FAILED

        return await self.select_by_path(path)

    async def reselect_image(self) -> SelectionOutcome:
        safe_log_event(
            self.context.analytics,
            EVENT_RESELECT_IMAGE,
            {"previousImage": self.context.selection.get_image()},
        )
        return await self.open_image_selector()

    def current_basename(self) -> str:
        """Base filename of the selected image, or an empty string."""
        if not self.context.selection.has_image():
            return ""
        return os.path.basename(self.context.selection.get_image_path() or "")
