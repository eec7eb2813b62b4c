"""
Tests for the resolution CLI in social.graze.rdap.resolve.__main__
"""

import logging
from unittest.mock import AsyncMock, patch

import pytest

from social.graze.rdap.errors import FetchError, NoServiceFound
from social.graze.rdap.resolve.__main__ import realMain
from social.graze.rdap.resolve.identifier import IdentifierType, ParsedIdentifier


@pytest.fixture
def mock_resolver():
    with patch("social.graze.rdap.resolve.__main__.RegistryResolver") as resolver_cls:
        resolver = resolver_cls.return_value
        resolver.resolve = AsyncMock()
        resolver.lookup_urls = AsyncMock()
        yield resolver


class TestRealMain:
    """Test suite for the resolve command."""

    @pytest.mark.asyncio
    async def test_prints_base_urls(self, mock_resolver, tmp_path, capsys):
        mock_resolver.resolve.side_effect = ["https://b/", "https://ripe/"]
        argv = ["resolve", "--cache-dir", str(tmp_path), "www.example.com", "AS55"]

        with patch("sys.argv", argv):
            await realMain()

        assert capsys.readouterr().out.splitlines() == [
            "www.example.com https://b/",
            "AS55 https://ripe/",
        ]
        mock_resolver.resolve.assert_any_call("AS55", False)

    @pytest.mark.asyncio
    async def test_prints_lookup_urls(self, mock_resolver, tmp_path, capsys):
        mock_resolver.lookup_urls.return_value = [
            "https://b/domain/www.example.com",
            "http://b/domain/www.example.com",
        ]
        argv = [
            "resolve",
            "--cache-dir",
            str(tmp_path),
            "--lookup",
            "--force",
            "www.example.com",
        ]

        with patch("sys.argv", argv):
            await realMain()

        assert capsys.readouterr().out == (
            "www.example.com https://b/domain/www.example.com\n"
        )
        mock_resolver.lookup_urls.assert_called_once_with("www.example.com", True)

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, mock_resolver, tmp_path, capsys, caplog):
        """Test a failing identifier is logged and does not stop the others."""
        mock_resolver.resolve.side_effect = [
            NoServiceFound("example.invalid"),
            FetchError("https://data.iana.org/rdap/asn.json", "refused"),
            ValueError("empty identifier"),
            "https://a/",
        ]
        argv = [
            "resolve",
            "--cache-dir",
            str(tmp_path),
            "example.invalid",
            "AS1",
            "a..com",
            "other.com",
        ]

        with caplog.at_level(logging.WARNING), patch("sys.argv", argv):
            await realMain()

        assert capsys.readouterr().out == "other.com https://a/\n"
        assert "No RDAP service found for example.invalid" in caplog.text
        assert "Exception resolving identifier AS1" in caplog.text
        assert "Exception resolving identifier a..com" in caplog.text

    @pytest.mark.asyncio
    async def test_explicit_type(self, mock_resolver, tmp_path, capsys):
        """Test --type parses identifiers as that type before resolving them."""
        mock_resolver.lookup_urls.return_value = ["https://b/nameserver/ns1.example.com"]
        argv = [
            "resolve",
            "--cache-dir",
            str(tmp_path),
            "--lookup",
            "--type",
            "nameserver",
            "NS1.example.com",
        ]

        with patch("sys.argv", argv):
            await realMain()

        assert capsys.readouterr().out == (
            "NS1.example.com https://b/nameserver/ns1.example.com\n"
        )
        mock_resolver.lookup_urls.assert_called_once_with(
            ParsedIdentifier(
                identifier_type=IdentifierType.nameserver, subject="ns1.example.com"
            ),
            False,
        )
