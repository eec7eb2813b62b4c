import asyncio
import contextlib
import logging
from time import time
from typing import (
    Optional,
)
from aiohttp import web
import aiohttp
import redis.asyncio as redis
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.graze.rdap.app.config import (
    CacheStoreAppKey,
    LoaderAppKey,
    MetricsClientAppKey,
    RedisClientAppKey,
    RefreshTaskAppKey,
    ResolverAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
)
from social.graze.rdap.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_ready,
    handle_internal_refresh,
    handle_internal_resolve,
)
from social.graze.rdap.app.metrics import create_metrics_client
from social.graze.rdap.app.tasks import bootstrap_refresh_task
from social.graze.rdap.bootstrap.cache import (
    CacheStore,
    FileCacheStore,
    RedisCacheStore,
)
from social.graze.rdap.bootstrap.loader import BootstrapLoader
from social.graze.rdap.bootstrap.transport import BootstrapTransport
from social.graze.rdap.resolve.registry import RegistryResolver

logger = logging.getLogger(__name__)


def create_cache_store(app: web.Application, settings: Settings) -> CacheStore:
    if settings.cache_backend == "redis":
        redis_client = redis.Redis.from_url(str(settings.redis_dsn))
        app[RedisClientAppKey] = redis_client
        return RedisCacheStore(
            redis_client,
            prefix=settings.cache_prefix,
            max_age=settings.cache_max_age_delta,
        )
    return FileCacheStore(settings.cache_dir, max_age=settings.cache_max_age_delta)


async def background_tasks(app):
    logger.info("Starting up")
    settings: Settings = app[SettingsAppKey]

    trace_config = aiohttp.TraceConfig()

    if settings.debug:

        async def on_request_start(
            session, trace_config_ctx, params: aiohttp.TraceRequestStartParams
        ):
            logging.info("Starting request: %s", params)

        async def on_request_end(session, trace_config_ctx, params):
            logging.info("Ending request: %s", params)

        trace_config.on_request_start.append(on_request_start)
        trace_config.on_request_end.append(on_request_end)

    app[SessionAppKey] = aiohttp.ClientSession(trace_configs=[trace_config])

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        prefix=settings.statsd_prefix,
        debug=settings.debug,
    )
    await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    app[CacheStoreAppKey] = create_cache_store(app, settings)
    app[LoaderAppKey] = BootstrapLoader(
        BootstrapTransport(app[SessionAppKey], timeout=settings.http_timeout),
        app[CacheStoreAppKey],
        metrics_client=metrics_client,
    )
    app[ResolverAppKey] = RegistryResolver(app[LoaderAppKey], metrics_client)

    logger.info("Startup complete")

    if settings.refresh_interval > 0:
        app[RefreshTaskAppKey] = asyncio.create_task(bootstrap_refresh_task(app))

    yield

    logger.info("Shutting down background tasks")

    if RefreshTaskAppKey in app:
        app[RefreshTaskAppKey].cancel()
        with contextlib.suppress(asyncio.exceptions.CancelledError):
            await app[RefreshTaskAppKey]

    await app[SessionAppKey].close()
    if RedisClientAppKey in app:
        await app[RedisClientAppKey].aclose()
    await app[MetricsClientAppKey].close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        response = await handler(request)
        return response
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise e


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    metrics_client = request.app[MetricsClientAppKey]
    request_method: str = request.method
    request_path = request.path

    start_time: float = time()
    response_status_code = 0

    try:
        response = await handler(request)
        response_status_code = response.status
        return response
    except Exception as e:
        metrics_client.increment(
            "rdap.server.request.exception",
            1,
            tag_dict={
                "exception": type(e).__name__,
                "path": request_path,
                "method": request_method,
            },
        )
        raise e
    finally:
        metrics_client.timer(
            "rdap.server.request.time",
            time() - start_time,
            tag_dict={"path": request_path, "method": request_method},
        )
        metrics_client.increment(
            "rdap.server.request.count",
            1,
            tag_dict={
                "path": request_path,
                "method": request_method,
                "status": response_status_code,
            },
        )


def add_internal_routes(app: web.Application) -> None:
    app.add_routes(
        [
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
            web.get("/internal/api/resolve", handle_internal_resolve),
            web.post("/internal/api/refresh", handle_internal_refresh),
        ]
    )


async def start_web_server(settings: Optional[Settings] = None):

    if settings is None:
        settings = Settings()  # type: ignore
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            send_default_pii=False,
            integrations=[AioHttpIntegration()],
        )
    app = web.Application(middlewares=[statsd_middleware, sentry_middleware])

    app[SettingsAppKey] = settings

    add_internal_routes(app)

    app.cleanup_ctx.append(background_tasks)

    return app
