"""Registry resolver.

Picks the bootstrap registry for an identifier, loads it and returns the most specific
service entry.
"""

import logging
from typing import Callable, Dict, Final, List, Optional, Union

from social.graze.rdap.app.metrics import MetricsClient, NoOpMetricsClient
from social.graze.rdap.bootstrap.loader import BootstrapLoader
from social.graze.rdap.bootstrap.match import (
    match_address,
    match_autnum,
    match_domain,
    match_tag,
)
from social.graze.rdap.errors import NoServiceFound
from social.graze.rdap.model.bootstrap import (
    BootstrapDocument,
    RegistryKind,
    ServiceEntry,
)
from social.graze.rdap.resolve.identifier import (
    IdentifierType,
    ParsedIdentifier,
    ensure_parsed,
    reverse_network,
)
from social.graze.rdap.resolve.service import help_url, lookup_url

logger = logging.getLogger(__name__)

Matcher = Callable[[BootstrapDocument, ParsedIdentifier], List[ServiceEntry]]

MATCHERS: Final[Dict[IdentifierType, Matcher]] = {
    IdentifierType.domain: lambda document, parsed: match_domain(
        document, parsed.subject
    ),
    IdentifierType.ipv4: lambda document, parsed: match_address(
        document, parsed.subject
    ),
    IdentifierType.ipv6: lambda document, parsed: match_address(
        document, parsed.subject
    ),
    IdentifierType.autnum: lambda document, parsed: match_autnum(
        document, int(parsed.subject)
    ),
    IdentifierType.entity: lambda document, parsed: match_tag(
        document, parsed.tag or ""
    ),
    IdentifierType.nameserver: lambda document, parsed: match_domain(
        document, parsed.subject
    ),
}


class RegistryResolver:
    """
    Resolves identifiers to RDAP service base URLs.

    The only fallback offered to callers is the list of locations of the winning
    entry; other matching entries are never tried.
    """

    def __init__(
        self,
        loader: BootstrapLoader,
        metrics_client: Optional[MetricsClient] = None,
    ) -> None:
        self.loader = loader
        self.metrics_client = metrics_client or NoOpMetricsClient()

    async def candidates(
        self, parsed: ParsedIdentifier, force_revalidate: bool = False
    ) -> List[ServiceEntry]:
        """Return every matching service entry, most specific first."""
        document = await self.loader.load(parsed.registry_kind, force_revalidate)
        matches = MATCHERS[parsed.identifier_type](document, parsed)
        if matches or parsed.identifier_type != IdentifierType.domain:
            return matches

        network = reverse_network(parsed.subject)
        if network is None:
            return matches

        # reverse zones are mostly delegated to the RIRs, which the IP registries cover
        kind = RegistryKind.ipv4 if network.version == 4 else RegistryKind.ipv6
        logger.debug("Resolving reverse name %s as %s", parsed.subject, network)
        document = await self.loader.load(kind, force_revalidate)
        return match_address(document, network)

    async def resolve_service(
        self,
        identifier: Union[str, ParsedIdentifier],
        force_revalidate: bool = False,
    ) -> ServiceEntry:
        """Resolve an identifier to the service entry responsible for it.

        Args:
            identifier: Raw or parsed identifier
            force_revalidate: Revalidate the registry with IANA even if cached

        Returns:
            The most specific matching ServiceEntry

        Raises:
            NoServiceFound: No entry in the registry covers the identifier
            FetchError: The registry is unavailable and not cached
            ParseError: The registry is malformed
            ValueError: The identifier is malformed
        """
        parsed = ensure_parsed(identifier)
        matches = await self.candidates(parsed, force_revalidate)
        tags = {"type": parsed.identifier_type.name}
        if not matches:
            self.metrics_client.increment("rdap.resolve.not_found", tag_dict=tags)
            raise NoServiceFound(parsed.subject)
        self.metrics_client.increment("rdap.resolve.count", tag_dict=tags)
        return matches[0]

    async def resolve(
        self,
        identifier: Union[str, ParsedIdentifier],
        force_revalidate: bool = False,
    ) -> str:
        """Resolve an identifier to the base URL of its RDAP service."""
        service = await self.resolve_service(identifier, force_revalidate)
        return service.locations[0]

    async def resolve_locations(
        self,
        identifier: Union[str, ParsedIdentifier],
        force_revalidate: bool = False,
    ) -> List[str]:
        """Resolve an identifier to every base URL of its RDAP service, in order."""
        service = await self.resolve_service(identifier, force_revalidate)
        return list(service.locations)

    async def lookup_urls(
        self,
        identifier: Union[str, ParsedIdentifier],
        force_revalidate: bool = False,
    ) -> List[str]:
        """Resolve an identifier to its RDAP lookup URL on each service location."""
        parsed = ensure_parsed(identifier)
        service = await self.resolve_service(parsed, force_revalidate)
        return [lookup_url(location, parsed) for location in service.locations]

    async def help_urls(
        self,
        identifier: Union[str, ParsedIdentifier],
        force_revalidate: bool = False,
    ) -> List[str]:
        """Resolve an identifier to the help URL of each location of its service."""
        service = await self.resolve_service(identifier, force_revalidate)
        return [help_url(location) for location in service.locations]
