import asyncio
import logging
from time import time
from typing import NoReturn
from aiohttp import web
import sentry_sdk

from social.graze.rdap.app.config import (
    LoaderAppKey,
    MetricsClientAppKey,
    SettingsAppKey,
)
from social.graze.rdap.app.metrics import MetricsClient
from social.graze.rdap.bootstrap.loader import BootstrapLoader
from social.graze.rdap.errors import FetchError, ParseError
from social.graze.rdap.model.bootstrap import RegistryKind

logger = logging.getLogger(__name__)


async def refresh_registries(
    loader: BootstrapLoader, metrics_client: MetricsClient
) -> int:
    """
    Load every bootstrap registry once so the cache stays warm.

    Fresh registries are served from cache, stale ones are revalidated. Returns the
    number of registries that could not be loaded.
    """
    failures = 0
    for kind in RegistryKind:
        start_time = time()
        try:
            await loader.load(kind)
        except (FetchError, ParseError) as e:
            failures += 1
            sentry_sdk.capture_exception(e)
            logger.exception("Error refreshing %s registry", kind.value)
            metrics_client.increment(
                "rdap.task.refresh.exception",
                1,
                tag_dict={"exception": type(e).__name__, "registry": kind.value},
            )
        finally:
            metrics_client.timer(
                "rdap.task.refresh.time",
                time() - start_time,
                tag_dict={"registry": kind.value},
            )
    return failures


async def bootstrap_refresh_task(app: web.Application) -> NoReturn:
    """
    Background task that periodically refreshes the bootstrap registries.

    Runs until cancelled at shutdown; a failing pass is reported and retried on the
    next interval.
    """
    settings = app[SettingsAppKey]
    loader = app[LoaderAppKey]
    metrics_client = app[MetricsClientAppKey]

    while True:
        try:
            failures = await refresh_registries(loader, metrics_client)
            metrics_client.gauge("rdap.task.refresh.failures", failures)
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception("Unexpected error refreshing registries")

        await asyncio.sleep(settings.refresh_interval)
