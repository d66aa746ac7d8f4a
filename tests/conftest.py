from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import List, Optional, Tuple, TypeVar

import aiohttp
import platformdirs
import pytest

from flashsync.config import default_config
from flashsync.context import AppContext
from flashsync.exceptions import MetadataExtractionError
from flashsync.reporting import ErrorReporter
from flashsync.selection.coordinator import SelectionCoordinator
from flashsync.selection.formats import SupportedFormats
from flashsync.selection.interfaces import (
    ConfirmationModal,
    Image,
    ImagePicker,
    MetadataExtractor,
)
from flashsync.selection.validation import ImageValidationGate

T = TypeVar("T")

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` suggesting to mock `aiohttp.ClientSession`.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line("markers", "core: image selection and update core")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the Flashsync environment variables at a temp layout
    and block real HTTP requests made through aiohttp.
    """
    base = tmp_path_factory.mktemp("flashsync")
    config_dir = base / "config"
    log_dir = base / "log"
    downloads_dir = base / "downloads"
    for path in (config_dir, log_dir, downloads_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("FLASHSYNC_DISABLE_FILE_LOGGING", "1")
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )
    monkeypatch.setattr(
        platformdirs,
        "user_downloads_dir",
        lambda *_args, **_kwargs: str(downloads_dir),
    )
    monkeypatch.setattr(aiohttp.ClientSession, "_request", _async_block_network)


class RecordingErrorReporter(ErrorReporter):
    def __init__(self) -> None:
        self.shown: List[Tuple[str, str]] = []

    def show_error(self, title: str, description: str) -> None:
        self.shown.append((title, description))


class ScriptedModal(ConfirmationModal):
    """Answers every display() with a fixed choice and records the calls."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.calls: List[dict] = []

    async def display(
        self, confirmation_label: str, rejection_label: str, description: str
    ) -> bool:
        self.calls.append(
            {
                "confirmation_label": confirmation_label,
                "rejection_label": rejection_label,
                "description": description,
            }
        )
        return self.answer


class ScriptedPicker(ImagePicker):
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self.calls = 0

    async def select_image(self) -> Optional[str]:
        self.calls += 1
        return self.path


class StubExtractor(MetadataExtractor):
    """Builds images from a path-to-Image table; unknown paths fail."""

    def __init__(self, images: Optional[dict] = None) -> None:
        self.images = dict(images or {})
        self.calls: List[str] = []

    async def get_image_metadata(self, path: str) -> Image:
        self.calls.append(path)
        if path not in self.images:
            raise MetadataExtractionError("No such file or directory", path=path)
        return self.images[path]


@pytest.fixture
def downloads_dir(tmp_path) -> Path:
    path = tmp_path / "Downloads"
    path.mkdir()
    return path


@pytest.fixture
def context(downloads_dir) -> AppContext:
    config = default_config()
    config["DOWNLOADS_DIR"] = str(downloads_dir)
    return AppContext(config=config, errors=RecordingErrorReporter())


@pytest.fixture
def formats() -> SupportedFormats:
    return SupportedFormats()


def make_coordinator(
    context: AppContext,
    modal_answer: bool = False,
    images: Optional[dict] = None,
    picker_path: Optional[str] = None,
) -> Tuple[SelectionCoordinator, ScriptedModal, ScriptedPicker, StubExtractor]:
    """Build a coordinator with scripted collaborators."""
    modal = ScriptedModal(modal_answer)
    picker = ScriptedPicker(picker_path)
    extractor = StubExtractor(images)
    gate = ImageValidationGate(SupportedFormats(), modal, context.analytics)
    coordinator = SelectionCoordinator(context, gate, extractor, picker)
    return coordinator, modal, picker, extractor


@pytest.fixture
def coordinator_factory(context):
    """Return a builder for coordinators wired to the test context."""

    def _build(**kwargs):
        return make_coordinator(context, **kwargs)

    return _build


async def make_async_iter(items: Iterable[T]) -> AsyncIterator[T]:
    """Yield the elements of a synchronous iterable asynchronously."""
    for item in items:
        yield item


@pytest.fixture
def async_iter():
    """Expose make_async_iter to tests that fake aiohttp's chunked reader."""
    return make_async_iter
