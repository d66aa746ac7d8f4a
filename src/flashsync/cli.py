# src/flashsync/cli.py

import argparse
import asyncio
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from flashsync import log_utils
from flashsync.config import load_config
from flashsync.constants import DISABLE_FILE_LOGGING_ENV_VAR
from flashsync.context import AppContext
from flashsync.exceptions import ConfigurationError
from flashsync.menus import TerminalConfirmationModal, TerminalImagePicker
from flashsync.selection import (
    ImageMetadataExtractor,
    ImageValidationGate,
    SelectionCoordinator,
    SelectionOutcome,
    SupportedFormats,
)
from flashsync.update import (
    FirmwareDownloader,
    LocalImageRepository,
    RemoteReleaseClient,
    UpdateResolver,
)


@dataclass
class Session:
    context: AppContext
    formats: SupportedFormats
    coordinator: SelectionCoordinator
    resolver: UpdateResolver


@asynccontextmanager
async def open_session(config: Dict[str, Any]) -> AsyncIterator[Session]:
    """
    Wire up one application session and close its network clients on exit.
    """
    context = AppContext(config=config)
    formats = SupportedFormats()
    gate = ImageValidationGate(formats, TerminalConfirmationModal(), context.analytics)
    coordinator = SelectionCoordinator(
        context, gate, ImageMetadataExtractor(formats), TerminalImagePicker()
    )
    async with RemoteReleaseClient(
        url=config["RELEASES_URL"],
        github_token=config.get("GITHUB_TOKEN"),
        timeout=config["REQUEST_TIMEOUT"],
    ) as client, FirmwareDownloader(context.downloads_dir) as downloader:
        resolver = UpdateResolver(context, client, coordinator, downloader)
        yield Session(context, formats, coordinator, resolver)


def _print_state(session: Session) -> None:
    state = session.context.update_state
    print(f"State:             {state.state.value}")
    print(f"Available version: {state.available_version or 'unknown'}")
    print(f"Current version:   {state.current_version or 'none'}")
    print(f"Selected image:    {session.coordinator.current_basename() or 'none'}")
    if session.resolver.update_available() or (
        state.available_version and not state.current_version
    ):
        print(f"Action:            {session.resolver.download_prompt_label()}")


async def _run_check(config: Dict[str, Any], download: bool) -> int:
    async with open_session(config) as session:
        allow_download = download or bool(config.get("AUTO_DOWNLOAD"))
        await session.resolver.check_for_update(allow_download=allow_download)
        if session.context.update_state.downloading:
            print(session.resolver.download_prompt_label())
            await session.resolver.wait_for_download()
        _print_state(session)
    return 0


async def _run_select(config: Dict[str, Any], path: str) -> int:
    async with open_session(config) as session:
        outcome = await session.coordinator.select_by_path(path)
        if outcome in (SelectionOutcome.REJECTED, SelectionOutcome.FAILED):
            return 1
        print(f"Selected image: {session.coordinator.current_basename() or 'none'}")
    return 0


def _run_list(config: Dict[str, Any]) -> int:
    images = LocalImageRepository().list_firmware_images(config["DOWNLOADS_DIR"])
    if not images:
        print(f"No firmware images found in {config['DOWNLOADS_DIR']}")
        return 0
    for image in images:
        print(f"{image.version:<12} {image.path}")
    return 0


def _run_formats() -> int:
    formats = SupportedFormats()
    print("Main:  " + ", ".join(formats.main_supported_extensions()))
    print("Extra: " + ", ".join(formats.extra_supported_extensions()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flashsync",
        description="Select disk images and keep the MCU firmware image up to date.",
    )
    parser.add_argument("--config", help="Path to an alternate flashsync.yaml")
    parser.add_argument("--log-level", help="Override the log level (e.g. DEBUG)")
    subparsers = parser.add_subparsers(dest="command")

    check_parser = subparsers.add_parser(
        "check", help="Check for a newer firmware release"
    )
    check_parser.add_argument(
        "--download",
        action="store_true",
        help="Download the newer release if one is available",
    )

    select_parser = subparsers.add_parser("select", help="Select an image to flash")
    select_parser.add_argument("path", help="Path to the image file")

    subparsers.add_parser("list", help="List downloaded firmware images")
    subparsers.add_parser("formats", help="List supported image formats")
    return parser


def _configure_logging(config: Dict[str, Any], override: Optional[str]) -> None:
    level = override or config.get("LOG_LEVEL")
    if level:
        log_utils.set_log_level(str(level))
    if config.get("LOG_TO_FILE") and not _file_logging_disabled():
        log_utils.add_file_logging(Path(config["LOG_DIR"]), str(level or "INFO"))


def _file_logging_disabled() -> bool:
    return os.environ.get(DISABLE_FILE_LOGGING_ENV_VAR, "").strip() not in ("", "0")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except ConfigurationError as error:
        log_utils.logger.error(f"Failed to load configuration: {error}")
        return 1

    _configure_logging(config, args.log_level)

    if args.command == "check":
        return asyncio.run(_run_check(config, args.download))
    if args.command == "select":
        return asyncio.run(_run_select(config, args.path))
    if args.command == "list":
        return _run_list(config)
    if args.command == "formats":
        return _run_formats()

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
