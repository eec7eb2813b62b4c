"""
Metrics Abstraction Layer

This module provides a small metrics interface so the bootstrap loader and the internal
API can report counters and timings without depending on a specific backend.

Key Components:
- MetricsClient: Abstract interface for all metrics operations
- TelegrafMetricsClient: Telegraf/StatsD backend built on aio-statsd
- NoOpMetricsClient: No-op client used by default and in tests
- create_metrics_client: Factory function for backend selection

Metric names used by the service:
- rdap.bootstrap.cache.{hit,stale,miss,corrupt}: Cache lookups by outcome; stale
  entries are the ones revalidated, tagged with whether a refresh forced it
- rdap.bootstrap.fetch.{count,not_modified,error}: Registry requests by outcome
- rdap.bootstrap.stale_served: Stale registries served after a fetch failure
- rdap.resolve.{count,not_found}: Resolutions by outcome
- rdap.server.request.{count,time,exception}: Internal API requests
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from aio_statsd import TelegrafStatsdClient

logger = logging.getLogger(__name__)


class MetricsClient(ABC):
    """
    Abstract metrics client.

    Tags are passed as a flat dictionary and forwarded to the backend as-is.
    """

    @abstractmethod
    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name (e.g., 'rdap.bootstrap.cache.hit')
            value: Amount to increment by (default: 1)
            tag_dict: Optional tags for metric dimensions
        """

    @abstractmethod
    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Set a gauge metric to the specified value."""

    @abstractmethod
    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a duration in seconds."""

    async def connect(self) -> None:
        """Open any network resources needed by the backend."""

    @abstractmethod
    async def close(self) -> None:
        """Flush pending metrics and release network resources."""


class TelegrafMetricsClient(MetricsClient):
    """
    Telegraf/StatsD metrics client.

    Wraps aio-statsd's TelegrafStatsdClient, prefixing every metric name with the
    configured prefix when one is set.
    """

    def __init__(self, telegraf_client: Any, prefix: str = "") -> None:
        self.client = telegraf_client
        self.prefix = prefix

    def _name(self, name: str) -> str:
        return f"{self.prefix}.{name}" if self.prefix else name

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.increment(self._name(name), value, tag_dict=tag_dict or {})

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.gauge(self._name(name), value, tag_dict=tag_dict or {})

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.timer(self._name(name), value, tag_dict=tag_dict or {})

    async def connect(self) -> None:
        await self.client.connect()

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing Telegraf client: {e}")


class NoOpMetricsClient(MetricsClient):
    """Metrics client that records nothing."""

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(
    backend: str,
    host: str = "localhost",
    port: int = 8125,
    prefix: str = "",
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: Backend type ('telegraf' or 'none')
        host: Telegraf/StatsD host
        port: Telegraf/StatsD port
        prefix: Prefix added to every metric name
        debug: Enable aio-statsd debug logging

    Returns:
        MetricsClient: Unconnected metrics client

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = backend.lower()

    if backend == "telegraf":
        return TelegrafMetricsClient(
            TelegrafStatsdClient(host=host, port=port, debug=debug), prefix=prefix
        )

    elif backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'none'"
    )
