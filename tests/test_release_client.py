"""
Tests for the latest-release client.

Tests cover:
- Request headers (cache-defeating pair, optional token)
- Payload parsing into FirmwareRelease
- Degradation to None on network, HTTP and payload errors
- Session lifecycle
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, Mock

import aiohttp
import pytest

from flashsync.constants import LATEST_MCU_RELEASE_URL
from flashsync.exceptions import ReleaseFetchError
from flashsync.update.interfaces import FirmwareRelease
from flashsync.update.release_client import RemoteReleaseClient

pytestmark = [pytest.mark.unit, pytest.mark.core]

RELEASE_PAYLOAD = {
    "tag_name": "v1.3.0",
    "assets": [
        {
            "name": "mcu_v1.3.0.img.zip",
            "browser_download_url": "https://example.com/mcu_v1.3.0.img.zip",
        },
        {
            "name": "checksums.txt",
            "browser_download_url": "https://example.com/checksums.txt",
        },
    ],
}


def _mock_session(mocker, payload=None, json_side_effect=None, status_error=None):
    mock_response = MagicMock()
    mock_response.status = 200
    mock_response.raise_for_status = Mock(side_effect=status_error)
    mock_response.json = AsyncMock(return_value=payload, side_effect=json_side_effect)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = mocker.MagicMock()
    mock_session.get = mocker.MagicMock(return_value=mock_response)
    return mock_session


class TestRequest:
    """Test the HTTP request made for the latest release."""

    @pytest.mark.asyncio
    async def test_default_endpoint_and_no_cache_headers(self, mocker):
        client = RemoteReleaseClient()
        session = _mock_session(mocker, payload=RELEASE_PAYLOAD)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        await client.fetch_latest_release()

        session.get.assert_called_once()
        url = session.get.call_args.args[0]
        headers = session.get.call_args.kwargs["headers"]
        assert url == LATEST_MCU_RELEASE_URL
        assert url.endswith(
            "/repos/autodesk/machine-collaboration-utility/releases/latest"
        )
        assert headers["pragma"] == "no-cache"
        assert headers["cache-control"] == "no-cache"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_token_adds_authorization_header(self, mocker):
        client = RemoteReleaseClient(github_token="abc123")
        session = _mock_session(mocker, payload=RELEASE_PAYLOAD)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        await client.fetch_latest_release()

        headers = session.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "token abc123"


class TestFetchLatestRelease:
    """Test RemoteReleaseClient.fetch_latest_release()."""

    @pytest.mark.asyncio
    async def test_returns_first_asset(self, mocker):
        client = RemoteReleaseClient()
        session = _mock_session(mocker, payload=RELEASE_PAYLOAD)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        release = await client.fetch_latest_release()

        assert release == FirmwareRelease(
            version="v1.3.0",
            download_url="https://example.com/mcu_v1.3.0.img.zip",
            asset_name="mcu_v1.3.0.img.zip",
        )

    @pytest.mark.asyncio
    async def test_no_assets_returns_none(self, mocker):
        client = RemoteReleaseClient()
        session = _mock_session(mocker, payload={"tag_name": "v1.3.0", "assets": []})
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_missing_tag_returns_none(self, mocker):
        client = RemoteReleaseClient()
        payload = {"assets": RELEASE_PAYLOAD["assets"]}
        session = _mock_session(mocker, payload=payload)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_non_object_payload_returns_none(self, mocker):
        client = RemoteReleaseClient()
        session = _mock_session(mocker, payload=["not", "a", "release"])
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self, mocker):
        client = RemoteReleaseClient()
        session = _mock_session(mocker, json_side_effect=ValueError("bad json"))
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, mocker):
        client = RemoteReleaseClient()
        error = aiohttp.ClientResponseError(
            request_info=Mock(), history=(), status=403, message="rate limited"
        )
        session = _mock_session(mocker, status_error=error)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self, mocker):
        client = RemoteReleaseClient()
        session = mocker.MagicMock()
        session.get = mocker.MagicMock(
            side_effect=aiohttp.ClientConnectionError("offline")
        )
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, mocker):
        client = RemoteReleaseClient()
        session = mocker.MagicMock()
        session.get = mocker.MagicMock(side_effect=asyncio.TimeoutError())
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        assert await client.fetch_latest_release() is None


class TestFetchPayloadErrors:
    """Test the ReleaseFetchError raised by the private fetch step."""

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self, mocker):
        client = RemoteReleaseClient(url="https://example.com/latest")
        error = aiohttp.ClientResponseError(
            request_info=Mock(), history=(), status=500, message="boom"
        )
        session = _mock_session(mocker, status_error=error)
        mocker.patch.object(client, "_ensure_session", AsyncMock(return_value=session))

        with pytest.raises(ReleaseFetchError) as exc_info:
            await client._fetch_payload()

        assert exc_info.value.status_code == 500
        assert exc_info.value.url == "https://example.com/latest"


class TestParseRelease:
    """Test RemoteReleaseClient.parse_release()."""

    def test_asset_without_url_raises(self):
        client = RemoteReleaseClient()

        with pytest.raises(ReleaseFetchError):
            client.parse_release({"tag_name": "v1.0.0", "assets": [{"name": "x"}]})

    def test_asset_name_is_optional(self):
        client = RemoteReleaseClient()

        release = client.parse_release(
            {
                "tag_name": " v1.0.0 ",
                "assets": [{"browser_download_url": "https://example.com/a.zip"}],
            }
        )

        assert release.version == "v1.0.0"
        assert release.asset_name is None


class TestSessionLifecycle:
    """Test session creation and cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        async with RemoteReleaseClient() as client:
            session = client._session
            assert session is not None
            assert not session.closed

        assert session.closed
        assert client._session is None

    @pytest.mark.asyncio
    async def test_close_without_session_is_noop(self):
        client = RemoteReleaseClient()

        await client.close()

        assert client._session is None
