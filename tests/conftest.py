"""
Shared test configuration and fixtures for the RDAP bootstrap tests.

Provides sample bootstrap registries in the IANA format, a controllable clock, cache
stores backed by a temporary directory or fakeredis, and a mock transport.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
import pytest_asyncio

from social.graze.rdap.bootstrap.cache import FileCacheStore, RedisCacheStore
from social.graze.rdap.bootstrap.transport import BootstrapTransport, TransportResponse
from social.graze.rdap.model.cache import RevalidationToken


def registry_body(services: List[Any], **extra: Any) -> bytes:
    """Build a bootstrap registry body from a list of service arrays."""
    document = {"services": services}
    document.update(extra)
    return json.dumps(document).encode()


DNS_BODY = registry_body(
    [
        [["com", "net"], ["https://rdap.verisign.example/com/v1/"]],
        [["example.com"], ["https://rdap.example.com/", "http://rdap.example.com/"]],
        [["org"], ["https://rdap.publicinterestregistry.example/rdap/"]],
        [["xn--p1ai"], ["https://rdap.tcinet.example/"]],
    ],
    version="1.0",
    publication="2024-05-01T12:00:00Z",
    description="Test DNS registry",
)

IPV4_BODY = registry_body(
    [
        [["10.0.0.0/8"], ["https://rdap.arin.example/registry/"]],
        [["10.1.0.0/16"], ["https://rdap.ripe.example/"]],
        [["192.0.2.0/24"], ["https://rdap.apnic.example/"]],
    ],
    version="1.0",
    publication="2024-05-01T12:00:00Z",
)

IPV6_BODY = registry_body(
    [
        [["2001:db8::/32"], ["https://rdap.apnic.example/"]],
        [["2001:db8:1000::/36"], ["https://rdap.lacnic.example/rdap/"]],
    ],
    version="1.0",
)

ASN_BODY = registry_body(
    [
        [["1-100"], ["https://rdap.arin.example/registry/"]],
        [["50-60"], ["https://rdap.ripe.example/"]],
        [["64512-65534"], ["https://rdap.private.example/"]],
    ],
    version="1.0",
)

OBJECT_TAGS_BODY = registry_body(
    [
        [
            ["hostmaster@arin.example"],
            ["ARIN"],
            ["https://rdap.arin.example/registry/"],
        ],
        [["rdap@frnic.example"], ["FRNIC"], ["https://rdap.nic.example/"]],
    ],
    version="1.0",
)


class FakeClock:
    """Controllable replacement for the loader's clock."""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


def ok_response(
    body: bytes, etag: Optional[str] = '"v1"', last_modified: Optional[str] = None
) -> TransportResponse:
    return TransportResponse(
        status=200,
        body=body,
        token=RevalidationToken(etag=etag, last_modified=last_modified),
    )


def not_modified_response(etag: Optional[str] = '"v1"') -> TransportResponse:
    return TransportResponse(status=304, token=RevalidationToken(etag=etag))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def file_store(tmp_path):
    return FileCacheStore(tmp_path / "cache")


@pytest.fixture
def transport():
    return AsyncMock(spec=BootstrapTransport)


@pytest_asyncio.fixture
async def fake_redis():
    """Provide fake Redis client for unit tests."""
    redis_client = fakeredis.aioredis.FakeRedis(decode_responses=False)
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()


@pytest_asyncio.fixture
async def redis_store(fake_redis):
    return RedisCacheStore(fake_redis, prefix="test:bootstrap")
