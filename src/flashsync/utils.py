import importlib.metadata
import os
from typing import Dict, Optional
from urllib.parse import unquote, urlparse

from flashsync.constants import NO_CACHE_HEADERS

_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `flashsync/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("flashsync")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"flashsync/{app_version}"

    return _USER_AGENT_CACHE


def get_release_request_headers(github_token: Optional[str] = None) -> Dict[str, str]:
    """
    Build the headers for the latest-release query.

    Includes the GitHub Accept/API-version headers, the User-Agent, the
    cache-defeating pragma/cache-control pair and, when a token is given,
    an Authorization header.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": get_user_agent(),
    }
    headers.update(NO_CACHE_HEADERS)
    token = (github_token or "").strip()
    if token:
        headers["Authorization"] = f"token {token}"
    return headers


def filename_from_url(url: str) -> str:
    """
    Return the unquoted last path segment of a download URL.

    Returns an empty string when the URL has no usable filename.
    """
    name = unquote(os.path.basename(urlparse(url).path))
    if name in {"", ".", ".."} or "\x00" in name:
        return ""
    return name
