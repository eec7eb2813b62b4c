"""RDAP lookup URL construction.

Builds the RFC 9082 lookup and help paths under a service base URL.
"""

from typing import Final
from urllib.parse import quote

from social.graze.rdap.resolve.identifier import IdentifierType, ParsedIdentifier

LOOKUP_PATHS: Final = {
    IdentifierType.domain: "domain",
    IdentifierType.ipv4: "ip",
    IdentifierType.ipv6: "ip",
    IdentifierType.autnum: "autnum",
    IdentifierType.entity: "entity",
    IdentifierType.nameserver: "nameserver",
}


def lookup_url(base: str, identifier: ParsedIdentifier) -> str:
    """Join a service base URL with the lookup path for an identifier.

    Examples:
        `https://rdap.example/` and `example.com` give
        `https://rdap.example/domain/example.com`; a CIDR prefix keeps its slash,
        as in `ip/192.0.2.0/24`.
    """
    if identifier.identifier_type in (IdentifierType.ipv4, IdentifierType.ipv6):
        # the prefix length is its own path segment
        segment = quote(identifier.subject, safe="/:")
    else:
        segment = quote(identifier.subject, safe="")
    path = LOOKUP_PATHS[identifier.identifier_type]
    return f"{base.rstrip('/')}/{path}/{segment}"


def help_url(base: str) -> str:
    """Return the URL of the help query of a service, `<base>/help`."""
    return f"{base.rstrip('/')}/help"
