"""Bootstrap registry loader.

Combines the cache store and the transport: serves fresh cached registries, revalidates
stale ones, fetches missing ones and falls back to a stale copy when the registry
origin is unreachable.
"""

import logging
from datetime import datetime, timezone
from enum import IntEnum
from typing import Callable, Dict, Mapping, Optional, Tuple

from social.graze.rdap.app.metrics import MetricsClient, NoOpMetricsClient
from social.graze.rdap.bootstrap.cache import CacheStore
from social.graze.rdap.bootstrap.transport import BootstrapTransport
from social.graze.rdap.errors import FetchError, ParseError
from social.graze.rdap.model.bootstrap import (
    REGISTRY_URLS,
    BootstrapDocument,
    RegistryKind,
    parse_bootstrap_document,
)
from social.graze.rdap.model.cache import CacheEntry

logger = logging.getLogger(__name__)


class FetchPlan(IntEnum):
    """What a load should do given the state of the cache."""

    return_cached = 1
    revalidate = 2
    fetch_fresh = 3


def plan_fetch(
    entry: Optional[CacheEntry],
    now: datetime,
    is_fresh: Callable[[CacheEntry, datetime], bool],
    force_revalidate: bool = False,
) -> FetchPlan:
    """Decide how to obtain a registry.

    Args:
        entry: Usable cached entry, or None when there is none
        now: Current time
        is_fresh: Freshness policy of the cache store
        force_revalidate: Revalidate even a fresh entry

    Returns:
        FetchPlan for the load
    """
    if entry is None:
        return FetchPlan.fetch_fresh
    if is_fresh(entry, now) and not force_revalidate:
        return FetchPlan.return_cached
    return FetchPlan.revalidate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BootstrapLoader:
    """
    Loads bootstrap registries through the cache.

    Documents are parsed on every call and never kept in memory between calls; the
    cache store holds the only long-lived copy.
    """

    def __init__(
        self,
        transport: BootstrapTransport,
        cache_store: CacheStore,
        urls: Optional[Mapping[RegistryKind, str]] = None,
        metrics_client: Optional[MetricsClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.transport = transport
        self.cache_store = cache_store
        self.urls: Dict[RegistryKind, str] = dict(REGISTRY_URLS)
        if urls is not None:
            self.urls.update(urls)
        self.metrics_client = metrics_client or NoOpMetricsClient()
        self.clock = clock

    async def cached(
        self, kind: RegistryKind
    ) -> Tuple[Optional[CacheEntry], Optional[BootstrapDocument]]:
        """Return the cached entry and its parsed document, if the entry is usable.

        A cached body that no longer parses is treated as a miss so that it is
        neither served nor revalidated.
        """
        entry = await self.cache_store.get(kind)
        if entry is None:
            self.metrics_client.increment(
                "rdap.bootstrap.cache.miss", tag_dict={"registry": kind.value}
            )
            return None, None

        try:
            document = parse_bootstrap_document(entry.body)
        except ParseError as e:
            logger.warning("Discarding corrupt cached %s registry: %s", kind.value, e)
            self.metrics_client.increment(
                "rdap.bootstrap.cache.corrupt", tag_dict={"registry": kind.value}
            )
            return None, None

        return entry, document

    async def load(
        self, kind: RegistryKind, force_revalidate: bool = False
    ) -> BootstrapDocument:
        """Obtain the current bootstrap document for a registry.

        Args:
            kind: Registry to load
            force_revalidate: Revalidate with the origin even if the cache is fresh

        Returns:
            Parsed BootstrapDocument

        Raises:
            FetchError: The registry could not be fetched and nothing usable is cached
            ParseError: The origin returned a body that is not a bootstrap document
        """
        url = self.urls[kind]
        entry, document = await self.cached(kind)
        if entry is not None and entry.source_url != url:
            logger.info(
                "Ignoring cached %s registry from %s", kind.value, entry.source_url
            )
            entry, document = None, None
        now = self.clock()

        plan = plan_fetch(entry, now, self.cache_store.is_fresh, force_revalidate)
        if plan == FetchPlan.return_cached and document is not None:
            self.metrics_client.increment(
                "rdap.bootstrap.cache.hit", tag_dict={"registry": kind.value}
            )
            return document
        if plan == FetchPlan.revalidate:
            self.metrics_client.increment(
                "rdap.bootstrap.cache.stale",
                tag_dict={"registry": kind.value, "forced": force_revalidate},
            )

        token = entry.token if plan == FetchPlan.revalidate and entry else None
        try:
            response = await self.transport.fetch(url, token)
        except FetchError as e:
            self.metrics_client.increment(
                "rdap.bootstrap.fetch.error", tag_dict={"registry": kind.value}
            )
            if entry is None or document is None:
                raise
            logger.warning(
                "Serving stale %s registry fetched at %s: %s",
                kind.value,
                entry.fetched_at.isoformat(),
                e,
            )
            self.metrics_client.increment(
                "rdap.bootstrap.stale_served", tag_dict={"registry": kind.value}
            )
            return document

        if response.not_modified and entry is not None and document is not None:
            self.metrics_client.increment(
                "rdap.bootstrap.fetch.not_modified", tag_dict={"registry": kind.value}
            )
            await self.cache_store.put(
                kind,
                entry.model_copy(update={"fetched_at": now, "token": response.token}),
            )
            return document

        if response.body is None:
            raise FetchError(url, "origin reported not modified without a cached copy")

        self.metrics_client.increment(
            "rdap.bootstrap.fetch.count", tag_dict={"registry": kind.value}
        )
        document = parse_bootstrap_document(response.body)
        logger.info(
            "Fetched %s registry (version %s, published %s)",
            kind.value,
            document.version or "unknown",
            document.publication,
        )
        await self.cache_store.put(
            kind,
            CacheEntry(
                source_url=url,
                fetched_at=now,
                token=response.token,
                body=response.body,
            ),
        )
        return document
