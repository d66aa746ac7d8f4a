"""
Constants and configuration values for Flashsync.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com/repos"
MCU_RELEASES_REPO = "autodesk/machine-collaboration-utility"
LATEST_MCU_RELEASE_URL = f"{GITHUB_API_BASE}/{MCU_RELEASES_REPO}/releases/latest"

# Network timeouts (in seconds)
GITHUB_API_TIMEOUT = 10
DOWNLOAD_REQUEST_TIMEOUT = 300

# Always bypass intermediary caches for the latest-release query
NO_CACHE_HEADERS = {
    "pragma": "no-cache",
    "cache-control": "no-cache",
}

# Download settings
DEFAULT_CHUNK_SIZE = 8192
BYTES_PER_MEGABYTE = 1024 * 1024
HTTP_STATUS_ERROR_THRESHOLD = 400

# Firmware file naming convention: mcu_v<major>.<minor>.<patch>.img.zip
MCU_IMAGE_PATTERN = r"^mcu_v(\d+)\.(\d+)\.(\d+)\.img\.zip$"

# Supported image formats
UNCOMPRESSED_IMAGE_EXTENSIONS = (
    "img",
    "iso",
    "bin",
    "dsk",
    "hddimg",
    "raw",
    "dmg",
    "sdcard",
    "rpi-sdimg",
    "wic",
)
COMPRESSED_IMAGE_EXTENSIONS = ("gz", "bz2", "xz")
ARCHIVE_IMAGE_EXTENSIONS = ("zip", "etch")
MAIN_SUPPORTED_EXTENSIONS = ("img", "iso", "zip")
WINDOWS_IMAGE_PATTERN = r"windows|win7|win8|win10|winxp"

# Partition table detection
BOOT_SECTOR_SIZE = 512
BOOT_SIGNATURE = b"\x55\xaa"
BOOT_SIGNATURE_OFFSET = 510

# UI labels
DOWNLOADING_LABEL = "Downloading..."
DOWNLOAD_LABEL_PREFIX = "Download "
CONFIRMATION_LABEL = "Change"
REJECTION_LABEL = "Continue"

# User-facing messages
MSG_INVALID_IMAGE_TITLE = "Invalid image"
MSG_INVALID_IMAGE = "{path} is not a supported image type."
MSG_OPEN_IMAGE_TITLE = "Error opening image"
MSG_OPEN_IMAGE = "Something went wrong while opening {basename}\n\nError: {error}"
MSG_LOOKS_LIKE_WINDOWS_IMAGE = (
    "It looks like you are trying to burn a Windows image.\n\n"
    "Unlike other images, Windows images require special processing to be made "
    "bootable. We suggest you use a tool specially designed for this purpose, "
    "such as Rufus (Windows) or Boot Camp Assistant (macOS)."
)
MSG_MISSING_PARTITION_TABLE = (
    "It looks like this is not a bootable image.\n\n"
    "The image does not appear to contain a partition table, and might not be "
    "recognized or bootable by your device."
)

# Number of analytics events kept in memory per session
ANALYTICS_EVENT_HISTORY = 1000

# Analytics event names
EVENT_INVALID_IMAGE = "Invalid image"
EVENT_WINDOWS_IMAGE = "Possibly Windows image"
EVENT_MISSING_PARTITION_TABLE = "Missing partition table"
EVENT_SELECT_IMAGE = "Select image"
EVENT_RESELECT_IMAGE = "Reselect image"
EVENT_OPEN_IMAGE_SELECTOR = "Open image selector"
EVENT_IMAGE_SELECTOR_CLOSED = "Image selector closed"

# Logging configuration
LOGGER_NAME = "flashsync"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "flashsync.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "FLASHSYNC_LOG_LEVEL"
DISABLE_FILE_LOGGING_ENV_VAR = "FLASHSYNC_DISABLE_FILE_LOGGING"

# Configuration
APP_NAME = "flashsync"
CONFIG_FILE_NAME = "flashsync.yaml"
DEFAULT_AUTO_DOWNLOAD = False
DEFAULT_LOG_LEVEL = "INFO"
