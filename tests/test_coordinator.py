"""
Tests for the selection coordinator.

Tests cover:
- Committing accepted images and normalising optional flags
- Confirmation flow ("Change" keeps the previous image and reopens the picker)
- Rejection and metadata errors surfaced to the user
- The trusted firmware path that skips validation
- Busy handling while a selection is pending
"""

import asyncio
import zipfile

import pytest

from flashsync.constants import MSG_OPEN_IMAGE_TITLE
from flashsync.selection.interfaces import Image, SelectionOutcome
from flashsync.selection.metadata import ImageMetadataExtractor

pytestmark = [pytest.mark.unit, pytest.mark.core]

GOOD = Image(path="/images/raspbian.img", has_mbr=True)
NO_MBR = Image(path="/images/custom.img", has_mbr=False)
WINDOWS = Image(path="/images/Win10.iso", has_mbr=True, looks_like_windows_image=True)


def _event_names(context):
    return [name for name, _ in context.analytics.events]


class TestSelect:
    """Test SelectionCoordinator.select()."""

    @pytest.mark.asyncio
    async def test_accepted_image_is_committed(self, context, coordinator_factory):
        coordinator, modal, _, _ = coordinator_factory()

        outcome = await coordinator.select(GOOD)

        assert outcome is SelectionOutcome.SELECTED
        assert context.selection.get_image() == GOOD
        assert modal.calls == []
        assert "Select image" in _event_names(context)

    @pytest.mark.asyncio
    async def test_later_selection_replaces_earlier(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()
        other = Image(path="/images/other.iso", has_mbr=True)

        await coordinator.select(GOOD)
        await coordinator.select(other)

        assert context.selection.get_image() == other
        assert coordinator.current_basename() == "other.iso"

    @pytest.mark.asyncio
    async def test_continue_commits_image_without_mbr(
        self, context, coordinator_factory
    ):
        coordinator, modal, picker, _ = coordinator_factory(modal_answer=False)

        outcome = await coordinator.select(NO_MBR)

        assert outcome is SelectionOutcome.SELECTED
        assert context.selection.get_image_path() == NO_MBR.path
        assert modal.calls[0]["confirmation_label"] == "Change"
        assert modal.calls[0]["rejection_label"] == "Continue"
        assert picker.calls == 0

    @pytest.mark.asyncio
    async def test_change_keeps_previous_and_reopens_picker(
        self, context, coordinator_factory
    ):
        coordinator, modal, picker, _ = coordinator_factory(modal_answer=True)
        await coordinator.select(GOOD)

        outcome = await coordinator.select(NO_MBR)

        assert outcome is SelectionOutcome.RESELECTING
        assert context.selection.get_image() == GOOD
        assert len(modal.calls) == 1
        assert picker.calls == 1
        names = _event_names(context)
        assert "Reselect image" in names
        assert "Image selector closed" in names

    @pytest.mark.asyncio
    async def test_reselect_event_carries_previous_image(
        self, context, coordinator_factory
    ):
        coordinator, _, _, _ = coordinator_factory(modal_answer=True)
        await coordinator.select(GOOD)

        await coordinator.select(WINDOWS)

        data = dict(context.analytics.events)["Reselect image"]
        assert data["previousImage"] == GOOD

    @pytest.mark.asyncio
    async def test_rejected_image_surfaces_error(self, context, coordinator_factory):
        coordinator, modal, _, _ = coordinator_factory()
        await coordinator.select(GOOD)

        outcome = await coordinator.select(Image(path="/images/readme.txt"))

        assert outcome is SelectionOutcome.REJECTED
        assert context.selection.get_image() == GOOD
        assert modal.calls == []
        title, description = context.errors.shown[0]
        assert title == "Invalid image"
        assert "/images/readme.txt" in description

    @pytest.mark.asyncio
    async def test_logo_and_bmap_are_normalised(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()
        image = Image(path="/images/a.img", has_mbr=True, logo=1, bmap=0)

        await coordinator.select(image)

        stored = context.selection.get_image()
        assert stored.logo is True
        assert stored.bmap is False

    @pytest.mark.asyncio
    async def test_second_select_while_pending_is_busy(
        self, context, coordinator_factory
    ):
        coordinator, modal, _, _ = coordinator_factory()
        released = asyncio.Event()

        async def slow_display(**_kwargs):
            await released.wait()
            return False

        coordinator.gate.modal.display = slow_display

        first = asyncio.create_task(coordinator.select(NO_MBR))
        await asyncio.sleep(0)
        assert coordinator.is_selecting is True

        second = await coordinator.select(GOOD)
        released.set()
        first_outcome = await first

        assert second is SelectionOutcome.BUSY
        assert first_outcome is SelectionOutcome.SELECTED
        assert context.selection.get_image() == NO_MBR
        assert coordinator.is_selecting is False

    @pytest.mark.asyncio
    async def test_modal_failure_is_logged_not_raised(
        self, context, coordinator_factory
    ):
        coordinator, _, _, _ = coordinator_factory()

        async def broken_display(**_kwargs):
            raise RuntimeError("window closed")

        coordinator.gate.modal.display = broken_display

        outcome = await coordinator.select(NO_MBR)

        assert outcome is SelectionOutcome.FAILED
        assert context.selection.has_image() is False
        assert coordinator.is_selecting is False


class TestSelectByPath:
    """Test SelectionCoordinator.select_by_path()."""

    @pytest.mark.asyncio
    async def test_resolves_metadata_then_selects(self, context, coordinator_factory):
        coordinator, _, _, extractor = coordinator_factory(images={GOOD.path: GOOD})

        outcome = await coordinator.select_by_path(GOOD.path)

        assert outcome is SelectionOutcome.SELECTED
        assert extractor.calls == [GOOD.path]
        assert context.selection.get_image() == GOOD

    @pytest.mark.asyncio
    async def test_metadata_failure_shows_basename(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()
        await coordinator.select(GOOD)

        outcome = await coordinator.select_by_path("/images/missing.img")

        assert outcome is SelectionOutcome.FAILED
        assert context.selection.get_image() == GOOD
        title, description = context.errors.shown[0]
        assert title == MSG_OPEN_IMAGE_TITLE
        assert "missing.img" in description
        assert "No such file or directory" in description


class TestTrustedFirmware:
    """Test SelectionCoordinator.select_trusted_firmware()."""

    @pytest.mark.asyncio
    async def test_skips_validation(self, context, coordinator_factory):
        firmware = Image(path="/dl/mcu_v1.2.0.img.zip", has_mbr=False)
        coordinator, modal, _, _ = coordinator_factory(
            modal_answer=True, images={firmware.path: firmware}
        )

        outcome = await coordinator.select_trusted_firmware(firmware.path)

        assert outcome is SelectionOutcome.SELECTED
        assert context.selection.get_image() == firmware
        assert modal.calls == []
        assert "Missing partition table" not in _event_names(context)

    @pytest.mark.asyncio
    async def test_metadata_failure_is_surfaced(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()

        outcome = await coordinator.select_trusted_firmware("/dl/mcu_v1.2.0.img.zip")

        assert outcome is SelectionOutcome.FAILED
        assert context.selection.has_image() is False
        assert "mcu_v1.2.0.img.zip" in context.errors.shown[0][1]


class TestImageSelector:
    """Test open_image_selector() and reselect_image()."""

    @pytest.mark.asyncio
    async def test_picked_path_is_selected(self, context, coordinator_factory):
        coordinator, _, picker, _ = coordinator_factory(
            images={GOOD.path: GOOD}, picker_path=GOOD.path
        )

        outcome = await coordinator.open_image_selector()

        assert outcome is SelectionOutcome.SELECTED
        assert picker.calls == 1
        assert _event_names(context)[0] == "Open image selector"

    @pytest.mark.asyncio
    async def test_closed_picker_keeps_selection(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory(picker_path=None)
        await coordinator.select(GOOD)

        outcome = await coordinator.open_image_selector()

        assert outcome is SelectionOutcome.FAILED
        assert context.selection.get_image() == GOOD
        assert "Image selector closed" in _event_names(context)

    @pytest.mark.asyncio
    async def test_no_picker_configured(self, context, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()
        coordinator.picker = None

        assert await coordinator.open_image_selector() is SelectionOutcome.FAILED


class TestCurrentBasename:
    @pytest.mark.asyncio
    async def test_empty_without_selection(self, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()

        assert coordinator.current_basename() == ""

    @pytest.mark.asyncio
    async def test_basename_of_selection(self, coordinator_factory):
        coordinator, _, _, _ = coordinator_factory()

        await coordinator.select(GOOD)

        assert coordinator.current_basename() == "raspbian.img"


class TestUndecodableImage:
    """select_by_path() with the real extractor on a zip it cannot decode."""

    @pytest.mark.asyncio
    async def test_unsupported_zip_compression_is_surfaced(
        self, context, coordinator_factory, tmp_path
    ):
        path = tmp_path / "bundle.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("image.img", b"\x00" * 512)
        data = bytearray(path.read_bytes())
        data[8:10] = (99).to_bytes(2, "little")
        central = data.find(b"PK\x01\x02")
        data[central + 10 : central + 12] = (99).to_bytes(2, "little")
        path.write_bytes(bytes(data))

        coordinator, modal, _, _ = coordinator_factory()
        coordinator.extractor = ImageMetadataExtractor()
        await coordinator.select(GOOD)

        outcome = await coordinator.select_by_path(str(path))

        assert outcome is SelectionOutcome.FAILED
        assert context.selection.get_image() == GOOD
        assert modal.calls == []
        title, description = context.errors.shown[0]
        assert title == MSG_OPEN_IMAGE_TITLE
        assert "bundle.zip" in description
