"""Conditional HTTP transport for bootstrap registry documents."""

import asyncio
import logging
from typing import Optional

import aiohttp
import sentry_sdk
from aiohttp import ClientSession
from pydantic import BaseModel

from social.graze.rdap.errors import FetchError
from social.graze.rdap.model.cache import RevalidationToken

logger = logging.getLogger(__name__)


class TransportResponse(BaseModel):
    """Outcome of a successful (200 or 304) registry request."""

    status: int
    body: Optional[bytes] = None
    token: RevalidationToken

    @property
    def not_modified(self) -> bool:
        return self.status == 304


class BootstrapTransport:
    """
    Issues GET requests for registry documents, optionally conditional.

    Timeouts are enforced by aiohttp; every transport level failure is raised as
    FetchError so callers can fall back to a cached copy.
    """

    def __init__(self, session: ClientSession, timeout: float = 30.0) -> None:
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(
        self, url: str, token: Optional[RevalidationToken] = None
    ) -> TransportResponse:
        """Fetch a registry document.

        Args:
            url: Registry URL
            token: Validators from a cached copy, sent as conditional headers

        Returns:
            TransportResponse with status 200 and a body, or 304 without one

        Raises:
            FetchError: On connection errors, timeouts and any other status
        """
        headers = {"Accept": "application/json"}
        if token is not None:
            headers.update(token.request_headers())

        try:
            async with self.session.get(
                url, headers=headers, timeout=self.timeout
            ) as resp:
                if resp.status == 304:
                    logger.debug("Registry %s not modified", url)
                    return TransportResponse(
                        status=304,
                        token=RevalidationToken(
                            etag=resp.headers.get("ETag")
                            or (token.etag if token else None),
                            last_modified=resp.headers.get("Last-Modified")
                            or (token.last_modified if token else None),
                        ),
                    )
                if resp.status != 200:
                    raise FetchError(
                        url, f"unexpected status {resp.status}", status=resp.status
                    )
                body = await resp.read()
                return TransportResponse(
                    status=200,
                    body=body,
                    token=RevalidationToken(
                        etag=resp.headers.get("ETag"),
                        last_modified=resp.headers.get("Last-Modified"),
                    ),
                )
        except asyncio.TimeoutError as e:
            sentry_sdk.capture_exception(e)
            raise FetchError(url, "request timed out") from e
        except aiohttp.ClientError as e:
            sentry_sdk.capture_exception(e)
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
