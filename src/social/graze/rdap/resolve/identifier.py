"""RDAP identifier parsing.

Classifies a raw identifier once into a typed ParsedIdentifier so the resolver never
has to inspect the raw string again.
"""

import ipaddress
import re
import string
from enum import IntEnum
from typing import Final, Optional, Union

from pydantic import BaseModel

from social.graze.rdap.bootstrap.match import IPNetwork, domain_labels
from social.graze.rdap.model.bootstrap import RegistryKind

MAX_AUTNUM: Final = 2**32 - 1

AUTNUM_PATTERN = re.compile(r"(?:as)?(\d+)", re.IGNORECASE)


class IdentifierType(IntEnum):
    """RDAP identifier type enumeration.

    Each type is served by exactly one bootstrap registry.
    """

    domain = 1
    ipv4 = 2
    ipv6 = 3
    autnum = 4
    entity = 5
    nameserver = 6


IDENTIFIER_REGISTRIES: Final = {
    IdentifierType.domain: RegistryKind.dns,
    IdentifierType.ipv4: RegistryKind.ipv4,
    IdentifierType.ipv6: RegistryKind.ipv6,
    IdentifierType.autnum: RegistryKind.asn,
    IdentifierType.entity: RegistryKind.object_tags,
    IdentifierType.nameserver: RegistryKind.dns,
}


class ParsedIdentifier(BaseModel):
    """Classified and normalised RDAP identifier.

    `subject` is the normalised identifier: a lowercase domain without the trailing
    dot (`.` for the root zone), a nameserver host name, an address or CIDR prefix,
    a decimal AS number or an entity handle. `tag` is only set for entity handles.
    """

    identifier_type: IdentifierType
    subject: str
    tag: Optional[str] = None

    @property
    def registry_kind(self) -> RegistryKind:
        return IDENTIFIER_REGISTRIES[self.identifier_type]


def _parse_autnum(value: str) -> ParsedIdentifier:
    match = AUTNUM_PATTERN.fullmatch(value)
    if match is None:
        raise ValueError(f"invalid AS number {value!r}")
    number = int(match.group(1))
    if number > MAX_AUTNUM:
        raise ValueError(f"AS number {number} is out of range")
    return ParsedIdentifier(identifier_type=IdentifierType.autnum, subject=str(number))


def _parse_ip(value: str) -> ParsedIdentifier:
    if "%" in value:
        raise ValueError(f"scoped address {value!r} is not globally routable")
    if "/" in value:
        network = ipaddress.ip_network(value, strict=False)
        subject = str(network)
        version = network.version
    else:
        address = ipaddress.ip_address(value)
        subject = str(address)
        version = address.version
    identifier_type = IdentifierType.ipv4 if version == 4 else IdentifierType.ipv6
    return ParsedIdentifier(identifier_type=identifier_type, subject=subject)


def _parse_domain(value: str) -> ParsedIdentifier:
    labels = domain_labels(value)
    return ParsedIdentifier(
        identifier_type=IdentifierType.domain, subject=".".join(labels) or "."
    )


def _parse_nameserver(value: str) -> ParsedIdentifier:
    labels = domain_labels(value)
    if not labels:
        raise ValueError("the root zone is not a nameserver")
    return ParsedIdentifier(
        identifier_type=IdentifierType.nameserver, subject=".".join(labels)
    )


def _parse_entity(value: str) -> ParsedIdentifier:
    _, sep, tag = value.rpartition("-")
    if not sep or not tag:
        raise ValueError(f"entity handle {value!r} has no object tag")
    return ParsedIdentifier(
        identifier_type=IdentifierType.entity, subject=value, tag=tag
    )


_PARSERS: Final = {
    IdentifierType.domain: _parse_domain,
    IdentifierType.ipv4: _parse_ip,
    IdentifierType.ipv6: _parse_ip,
    IdentifierType.autnum: _parse_autnum,
    IdentifierType.entity: _parse_entity,
    IdentifierType.nameserver: _parse_nameserver,
}


def parse_identifier(
    value: str, identifier_type: Optional[IdentifierType] = None
) -> ParsedIdentifier:
    """Parse and classify an RDAP identifier.

    Without an explicit type, the value is classified in this order:
    1. `AS65536` or a bare number is an AS number
    2. An IPv4 or IPv6 address or CIDR prefix
    3. Anything containing a dot (or the root zone `.`) is a domain
    4. A single label containing `-` is an entity handle tagged after the last `-`,
       except IDNA labels (`xn--...`) which are domains
    5. Any other single label (a TLD such as `com`) is a domain

    Nameserver names look like domains and are only produced when
    `IdentifierType.nameserver` is passed explicitly.

    Args:
        value: Raw identifier
        identifier_type: Skip classification and parse the value as this type

    Returns:
        ParsedIdentifier

    Raises:
        ValueError: If the identifier is empty or malformed for its type
    """
    value = value.strip()
    if not value:
        raise ValueError("empty identifier")

    if identifier_type is not None:
        parsed = _PARSERS[identifier_type](value)
        if parsed.identifier_type != identifier_type:
            raise ValueError(
                f"{value!r} is not a valid {identifier_type.name} identifier"
            )
        return parsed

    if AUTNUM_PATTERN.fullmatch(value):
        return _parse_autnum(value)

    try:
        return _parse_ip(value)
    except ValueError:
        # colons never appear in domain names or handles
        if ":" in value:
            raise

    if value == "." or "." in value:
        return _parse_domain(value)

    if "-" in value and not value.lower().startswith("xn--"):
        return _parse_entity(value)

    return _parse_domain(value)


def reverse_network(name: str) -> Optional[IPNetwork]:
    """Convert a reverse DNS name to the network it describes.

    `2.0.192.in-addr.arpa` becomes `192.0.2.0/24` and each `ip6.arpa` nibble adds four
    bits of prefix. Returns None for names outside the reverse zones or with
    malformed labels.
    """
    try:
        labels = domain_labels(name)
    except ValueError:
        return None

    if labels[-2:] == ["in-addr", "arpa"]:
        octets = labels[:-2][::-1]
        if not 1 <= len(octets) <= 4:
            return None
        if not all(octet.isdigit() and int(octet) <= 255 for octet in octets):
            return None
        address = ".".join(octets + ["0"] * (4 - len(octets)))
        return ipaddress.ip_network(f"{address}/{8 * len(octets)}")

    if labels[-2:] == ["ip6", "arpa"]:
        nibbles = labels[:-2][::-1]
        if not 1 <= len(nibbles) <= 32:
            return None
        if not all(len(n) == 1 and n in string.hexdigits for n in nibbles):
            return None
        digits = "".join(nibbles).ljust(32, "0")
        address = ":".join(digits[i : i + 4] for i in range(0, 32, 4))
        return ipaddress.ip_network(f"{address}/{4 * len(nibbles)}")

    return None


def ensure_parsed(identifier: Union[str, ParsedIdentifier]) -> ParsedIdentifier:
    if isinstance(identifier, ParsedIdentifier):
        return identifier
    return parse_identifier(identifier)
