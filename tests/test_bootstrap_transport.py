"""
Unit tests for the registry transport in social.graze.rdap.bootstrap.transport

Tests cover plain and conditional requests, 304 handling, and the conversion of
statuses, connection errors and timeouts into FetchError.
"""

import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock, patch
from aiohttp import ClientResponse, ClientSession

from social.graze.rdap.bootstrap.transport import BootstrapTransport
from social.graze.rdap.errors import FetchError
from social.graze.rdap.model.cache import RevalidationToken

URL = "https://data.iana.org/rdap/dns.json"


def mock_session_with(status, body=b"", headers=None):
    mock_session = AsyncMock(spec=ClientSession)
    mock_response = AsyncMock(spec=ClientResponse)
    mock_response.status = status
    mock_response.headers = headers or {}
    mock_response.read.return_value = body
    mock_session.get.return_value.__aenter__.return_value = mock_response
    return mock_session


class TestBootstrapTransport:
    """Test suite for BootstrapTransport.fetch."""

    @pytest.mark.asyncio
    async def test_fetch_success(self):
        """Test a 200 response returns the body and validators."""
        mock_session = mock_session_with(
            200,
            body=b'{"services": []}',
            headers={"ETag": '"v2"', "Last-Modified": "Thu, 02 May 2024 12:00:00 GMT"},
        )
        transport = BootstrapTransport(mock_session, timeout=5)

        response = await transport.fetch(URL)

        assert response.status == 200
        assert not response.not_modified
        assert response.body == b'{"services": []}'
        assert response.token == RevalidationToken(
            etag='"v2"', last_modified="Thu, 02 May 2024 12:00:00 GMT"
        )
        args, kwargs = mock_session.get.call_args
        assert args == (URL,)
        assert kwargs["headers"] == {"Accept": "application/json"}
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_fetch_conditional_headers(self):
        """Test cached validators are sent as conditional headers."""
        mock_session = mock_session_with(200, body=b"{}")
        transport = BootstrapTransport(mock_session)

        await transport.fetch(
            URL, RevalidationToken(etag='"v1"', last_modified="yesterday")
        )

        _, kwargs = mock_session.get.call_args
        assert kwargs["headers"] == {
            "Accept": "application/json",
            "If-None-Match": '"v1"',
            "If-Modified-Since": "yesterday",
        }

    @pytest.mark.asyncio
    async def test_fetch_not_modified(self):
        """Test a 304 has no body and keeps the previous validators."""
        mock_session = mock_session_with(304)
        transport = BootstrapTransport(mock_session)

        response = await transport.fetch(URL, RevalidationToken(etag='"v1"'))

        assert response.not_modified
        assert response.body is None
        assert response.token == RevalidationToken(etag='"v1"')

    @pytest.mark.asyncio
    async def test_fetch_not_modified_new_validators(self):
        mock_session = mock_session_with(304, headers={"ETag": '"v3"'})
        transport = BootstrapTransport(mock_session)

        response = await transport.fetch(URL, RevalidationToken(etag='"v1"'))

        assert response.token.etag == '"v3"'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 500, 503])
    async def test_fetch_error_status(self, status):
        """Test any other status is a FetchError carrying the status."""
        transport = BootstrapTransport(mock_session_with(status))

        with pytest.raises(FetchError) as excinfo:
            await transport.fetch(URL)

        assert excinfo.value.status == status
        assert excinfo.value.url == URL

    @pytest.mark.asyncio
    async def test_fetch_connection_error(self):
        mock_session = AsyncMock(spec=ClientSession)
        mock_session.get.side_effect = aiohttp.ClientConnectionError("refused")
        transport = BootstrapTransport(mock_session)

        with pytest.raises(FetchError) as excinfo:
            await transport.fetch(URL)

        assert excinfo.value.status is None
        assert isinstance(excinfo.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_fetch_timeout(self):
        """Test timeouts surface as FetchError."""
        mock_session = AsyncMock(spec=ClientSession)
        mock_session.get.side_effect = asyncio.TimeoutError()
        transport = BootstrapTransport(mock_session)

        with pytest.raises(FetchError, match="timed out"):
            await transport.fetch(URL)

    @pytest.mark.asyncio
    @patch("social.graze.rdap.bootstrap.transport.sentry_sdk")
    async def test_network_failures_are_reported(self, mock_sentry):
        """Test connection errors and timeouts reach Sentry but error statuses do not."""
        mock_session = AsyncMock(spec=ClientSession)
        mock_session.get.side_effect = aiohttp.ClientConnectionError("refused")
        with pytest.raises(FetchError):
            await BootstrapTransport(mock_session).fetch(URL)

        mock_session.get.side_effect = asyncio.TimeoutError()
        with pytest.raises(FetchError):
            await BootstrapTransport(mock_session).fetch(URL)

        assert mock_sentry.capture_exception.call_count == 2

        with pytest.raises(FetchError):
            await BootstrapTransport(mock_session_with(404)).fetch(URL)

        assert mock_sentry.capture_exception.call_count == 2
