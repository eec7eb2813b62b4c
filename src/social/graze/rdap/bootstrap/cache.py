"""Durable caches for raw bootstrap registry bodies.

Caching is best-effort: read failures look like a cache miss and write failures are
logged and reported, never raised.
"""

import asyncio
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Final, Optional, Union

import sentry_sdk
from pydantic import ValidationError
from redis.exceptions import RedisError

from social.graze.rdap.model.bootstrap import RegistryKind
from social.graze.rdap.model.cache import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE: Final = timedelta(hours=24)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_record_name(name: str) -> str:
    """Make a cache record name safe for common filesystems.

    Colons, slashes and anything else outside `[A-Za-z0-9._-]` become underscores.
    """
    return _UNSAFE_NAME_CHARS.sub("_", name)


class CacheStore(ABC):
    """
    Key/value store holding one CacheEntry per registry kind.

    Implementations must make each put atomic: a concurrent reader sees either the
    previous entry or the new one, never a partial write.
    """

    def __init__(self, max_age: timedelta = DEFAULT_MAX_AGE) -> None:
        self.max_age = max_age

    @abstractmethod
    async def get(self, kind: RegistryKind) -> Optional[CacheEntry]:
        """Return the cached entry for a registry, or None on a miss or failure."""

    @abstractmethod
    async def put(self, kind: RegistryKind, entry: CacheEntry) -> None:
        """Store the entry for a registry, logging rather than raising on failure."""

    async def exists(self, kind: RegistryKind) -> bool:
        """Whether a record is stored for a registry, without decoding it."""
        return await self.get(kind) is not None

    def is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.fetched_at < self.max_age


class FileCacheStore(CacheStore):
    """
    Filesystem cache storing one JSON document per registry kind.

    Writes go to a temporary file in the cache directory that is then renamed over
    the record, so concurrent writers for the same registry end last-writer-wins.
    """

    def __init__(
        self, directory: Union[str, Path], max_age: timedelta = DEFAULT_MAX_AGE
    ) -> None:
        super().__init__(max_age)
        self.directory = Path(directory).expanduser()

    def path_for(self, kind: RegistryKind) -> Path:
        return self.directory / f"{safe_record_name(kind.value)}.json"

    async def exists(self, kind: RegistryKind) -> bool:
        return await asyncio.to_thread(self.path_for(kind).is_file)

    async def get(self, kind: RegistryKind) -> Optional[CacheEntry]:
        path = self.path_for(kind)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Unable to read bootstrap cache %s: %s", path, e)
            sentry_sdk.capture_exception(e)
            return None

        try:
            return CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Ignoring undecodable bootstrap cache %s: %s", path, e)
            return None

    async def put(self, kind: RegistryKind, entry: CacheEntry) -> None:
        path = self.path_for(kind)
        try:
            await asyncio.to_thread(
                self._write_atomic, path, entry.model_dump_json().encode()
            )
        except OSError as e:
            logger.error("Unable to write bootstrap cache %s: %s", path, e)
            sentry_sdk.capture_exception(e)

    def _write_atomic(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as fl:
                fl.write(data)
                fl.flush()
                os.fsync(fl.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class RedisCacheStore(CacheStore):
    """
    Redis cache storing one key per registry kind.

    A single SET replaces the whole record, which gives the atomicity the loader
    needs without transactions.
    """

    def __init__(
        self,
        redis_client: Any,
        prefix: str = "rdap:bootstrap",
        max_age: timedelta = DEFAULT_MAX_AGE,
    ) -> None:
        super().__init__(max_age)
        self.redis_client = redis_client
        self.prefix = prefix

    def key_for(self, kind: RegistryKind) -> str:
        return f"{self.prefix}:{kind.value}"

    async def exists(self, kind: RegistryKind) -> bool:
        key = self.key_for(kind)
        try:
            return await self.redis_client.exists(key) > 0
        except (RedisError, OSError) as e:
            logger.warning("Unable to check bootstrap cache %s: %s", key, e)
            sentry_sdk.capture_exception(e)
            return False

    async def get(self, kind: RegistryKind) -> Optional[CacheEntry]:
        key = self.key_for(kind)
        try:
            data = await self.redis_client.get(key)
        except (RedisError, OSError) as e:
            logger.warning("Unable to read bootstrap cache %s: %s", key, e)
            sentry_sdk.capture_exception(e)
            return None

        if data is None:
            return None

        try:
            return CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Ignoring undecodable bootstrap cache %s: %s", key, e)
            return None

    async def put(self, kind: RegistryKind, entry: CacheEntry) -> None:
        key = self.key_for(kind)
        try:
            await self.redis_client.set(key, entry.model_dump_json())
        except (RedisError, OSError) as e:
            logger.error("Unable to write bootstrap cache %s: %s", key, e)
            sentry_sdk.capture_exception(e)
