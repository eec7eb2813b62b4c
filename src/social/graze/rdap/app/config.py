"""
Configuration Module for the RDAP Bootstrap Service

This module defines the settings of the service using Pydantic settings, and the typed
AppKeys used to share resources between aiohttp handlers and background tasks.

Settings are loaded from environment variables with defaults suitable for local
development. Key configuration areas include:
- Service networking and debugging
- Bootstrap cache backend (filesystem or Redis) and freshness
- Registry fetching (timeouts, background refresh interval)
- Monitoring (Sentry, Telegraf/StatsD)

The IANA registry URLs are deliberately not settings: they are fixed by RFC 9224 and
RFC 8521 and only overridden in code, for tests.
"""

import asyncio
from datetime import timedelta
from typing import Final, Literal, Optional
import logging
from pydantic import (
    AliasChoices,
    Field,
    RedisDsn,
)
from pydantic_settings import BaseSettings
from aiohttp import web
from aiohttp import ClientSession
from redis import asyncio as redis

from social.graze.rdap.app.metrics import MetricsClient
from social.graze.rdap.bootstrap.cache import CacheStore
from social.graze.rdap.bootstrap.loader import BootstrapLoader
from social.graze.rdap.resolve.registry import RegistryResolver


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the RDAP bootstrap service.

    Environment variables map to fields by name (for example CACHE_BACKEND sets
    cache_backend), with aliases kept where the name is commonly spelled differently.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging and request tracing.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=5200)
    """
    HTTP port for the internal API to listen on.
    Set with PORT environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    # Bootstrap cache
    cache_backend: Literal["file", "redis"] = "file"
    """
    Where bootstrap registries are cached: "file" or "redis".
    Set with CACHE_BACKEND environment variable.
    """

    cache_dir: str = "~/.cache/graze-rdap"
    """
    Directory for the file cache backend. One JSON file is kept per registry.
    Set with CACHE_DIR environment variable.
    """

    redis_dsn: RedisDsn = Field(
        "redis://valkey:6379/2",
        validation_alias=AliasChoices("redis_dsn", "redis_url"),
    )  # type: ignore
    """
    Redis connection string for the redis cache backend.
    Set with REDIS_DSN or REDIS_URL environment variables.
    """

    cache_prefix: str = "rdap:bootstrap"
    """
    Key prefix for registries cached in Redis.
    Set with CACHE_PREFIX environment variable.
    """

    cache_max_age: int = 86400  # 24 hours
    """
    Seconds a cached registry is served without revalidation.
    Set with CACHE_MAX_AGE environment variable.
    Default: 86400 (24 hours)
    """

    # Registry fetching
    http_timeout: float = 30.0
    """
    Total timeout in seconds for one registry request.
    Set with HTTP_TIMEOUT environment variable.
    """

    refresh_interval: int = 3600
    """
    Seconds between background passes that load every registry, revalidating the
    ones that have gone stale. Zero disables the background task.
    Set with REFRESH_INTERVAL environment variable.
    """

    # Monitoring
    metrics_backend: Literal["telegraf", "none"] = "none"
    """
    Metrics backend: "telegraf" or "none".
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "graze"
    """
    Prefix for all StatsD metrics from this service.
    Set with STATSD_PREFIX environment variable.
    """

    @property
    def cache_max_age_delta(self) -> timedelta:
        return timedelta(seconds=self.cache_max_age)


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

RedisClientAppKey: Final = web.AppKey("redis_client", redis.Redis)
"""AppKey for accessing the Redis client, set only for the redis cache backend"""

CacheStoreAppKey: Final = web.AppKey("cache_store", CacheStore)
"""AppKey for accessing the bootstrap cache store"""

LoaderAppKey: Final = web.AppKey("bootstrap_loader", BootstrapLoader)
"""AppKey for accessing the bootstrap registry loader"""

ResolverAppKey: Final = web.AppKey("registry_resolver", RegistryResolver)
"""AppKey for accessing the registry resolver"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""

RefreshTaskAppKey: Final = web.AppKey("refresh_task", asyncio.Task[None])
"""AppKey for the background task that keeps the bootstrap registries warm"""
