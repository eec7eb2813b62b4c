import logging
from typing import Any, Dict, List, Optional
from aiohttp import web
from pydantic import BaseModel
from social.graze.rdap.app.config import (
    CacheStoreAppKey,
    LoaderAppKey,
    ResolverAppKey,
)
from social.graze.rdap.errors import FetchError, NoServiceFound, ParseError
from social.graze.rdap.model.bootstrap import RegistryKind
from social.graze.rdap.resolve.identifier import IdentifierType, parse_identifier

logger = logging.getLogger(__name__)


class ResolveResult(BaseModel):
    """Outcome of resolving one identifier through the internal API.

    Successful results carry the service URLs; failed ones only carry `error`.
    """

    identifier: str
    type: Optional[str] = None
    registry: Optional[str] = None
    url: Optional[str] = None
    locations: Optional[List[str]] = None
    error: Optional[str] = None


async def handle_internal_ready(request: web.Request):
    cache_store = request.app[CacheStoreAppKey]
    for kind in RegistryKind:
        if not await cache_store.exists(kind):
            return web.Response(status=503)
    return web.Response(status=200)


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)


async def handle_internal_resolve(request: web.Request):
    identifiers = request.query.getall("identifier", [])

    identifier_type = None
    type_name = request.query.get("type")
    if type_name is not None:
        try:
            identifier_type = IdentifierType[type_name]
        except KeyError:
            raise web.HTTPBadRequest(
                text='{"error": "unknown identifier type"}',
                content_type="application/json",
            )

    if len(identifiers) == 0:
        return web.json_response([])

    resolver = request.app[ResolverAppKey]

    results: List[Dict[str, Any]] = []
    for identifier in identifiers:
        try:
            parsed = parse_identifier(identifier, identifier_type)
        except ValueError:
            results.append(
                ResolveResult(
                    identifier=identifier, error="invalid_identifier"
                ).model_dump(exclude_none=True)
            )
            continue

        result = ResolveResult(
            identifier=identifier,
            type=parsed.identifier_type.name,
            registry=parsed.registry_kind.value,
        )
        try:
            service = await resolver.resolve_service(parsed)
        except NoServiceFound:
            result.error = "not_found"
        except FetchError as e:
            logger.warning("Unable to fetch registry for %s: %s", identifier, e)
            result.error = "fetch_error"
        except ParseError as e:
            logger.error("Invalid registry for %s: %s", identifier, e)
            result.error = "parse_error"
        else:
            result.url = service.locations[0]
            result.locations = service.locations
        results.append(result.model_dump(exclude_none=True))
    return web.json_response(results)


async def handle_internal_refresh(request: web.Request):
    names = request.query.getall("registry", [])
    try:
        kinds = [RegistryKind(name) for name in names] or list(RegistryKind)
    except ValueError:
        raise web.HTTPBadRequest(
            text='{"error": "unknown registry"}', content_type="application/json"
        )

    loader = request.app[LoaderAppKey]

    results: Dict[str, Any] = {}
    for kind in kinds:
        try:
            document = await loader.load(kind, force_revalidate=True)
        except FetchError as e:
            logger.warning("Unable to refresh %s registry: %s", kind.value, e)
            results[kind.value] = {"error": "fetch_error"}
        except ParseError as e:
            logger.error("Refreshed %s registry is invalid: %s", kind.value, e)
            results[kind.value] = {"error": "parse_error"}
        else:
            results[kind.value] = {
                "version": document.version,
                "publication": (
                    document.publication.isoformat() if document.publication else None
                ),
                "services": len(document.services),
            }
    return web.json_response(results)
