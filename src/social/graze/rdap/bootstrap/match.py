"""Bootstrap registry matching algorithms.

Each matcher returns the service entries that cover a query, most specific first.
Entries that are equally specific keep their registry order, so the first listed
entry wins a tie. No match is an empty list, not an error.

Individually malformed keys (an unparseable CIDR block or AS range) are skipped with a
warning; the rest of the registry is still used.
"""

import ipaddress
import logging
from typing import Iterable, List, Tuple, Union

import idna

from social.graze.rdap.model.bootstrap import BootstrapDocument, ServiceEntry

logger = logging.getLogger(__name__)

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _ranked(candidates: Iterable[Tuple[int, ServiceEntry]]) -> List[ServiceEntry]:
    # sorted() is stable, so equal scores stay in registry order
    return [
        entry
        for _, entry in sorted(candidates, key=lambda candidate: -candidate[0])
    ]


def _idna_label(label: str) -> str:
    if label.isascii():
        return label
    # IDNA2008 with UTS #46 mapping keeps deviation characters such as "ß"
    try:
        return idna.encode(label, uts46=True).decode("ascii")
    except idna.IDNAError as e:
        raise ValueError(f"invalid domain label {label!r}: {e}") from e


def domain_labels(name: str) -> List[str]:
    """Split a domain name into normalised labels.

    The root zone (`.` or an empty string) has no labels. Labels are lowercased and
    internationalised labels are converted to their IDNA2008 `xn--` form.

    Raises:
        ValueError: If the name contains an empty label
    """
    name = name.strip().lower()
    if name in ("", "."):
        return []
    name = name.removesuffix(".")
    labels = name.split(".")
    if "" in labels:
        raise ValueError(f"invalid domain name {name!r}")
    return [_idna_label(label) for label in labels]


def match_domain(document: BootstrapDocument, name: str) -> List[ServiceEntry]:
    """Find the entries whose domain suffix covers a name.

    A key matches when its labels are a right-aligned, label-exact suffix of the
    name: `com` matches `a.b.com` but not `notcom`. More labels is more specific. A
    root zone key only matches a query for the root zone itself.
    """
    query = domain_labels(name)
    candidates = []
    for entry in document.services:
        best = None
        for key in entry.keys:
            try:
                suffix = domain_labels(key)
            except ValueError:
                logger.warning("Skipping malformed domain key %r", key)
                continue
            if not suffix:
                if not query:
                    best = 0
                continue
            if len(suffix) <= len(query) and query[-len(suffix) :] == suffix:
                best = max(best or 0, len(suffix))
        if best is not None:
            candidates.append((best, entry))
    return _ranked(candidates)


def as_network(query: Union[str, IPNetwork]) -> IPNetwork:
    """Convert an address or CIDR string to a network; an address becomes a /32 or /128."""
    if isinstance(query, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return query
    return ipaddress.ip_network(query.strip(), strict=False)


def match_address(
    document: BootstrapDocument, query: Union[str, IPNetwork]
) -> List[ServiceEntry]:
    """Find the entries whose CIDR block fully contains an address or range.

    A longer prefix (a smaller block) is more specific. Blocks of the other IP
    version never match.
    """
    network = as_network(query)
    candidates = []
    for entry in document.services:
        best = None
        for key in entry.keys:
            try:
                block = ipaddress.ip_network(key.strip(), strict=False)
            except ValueError:
                logger.warning("Skipping malformed address block %r", key)
                continue
            if block.version != network.version:
                continue
            if network.subnet_of(block):  # type: ignore[arg-type]
                best = max(best or 0, block.prefixlen)
        if best is not None:
            candidates.append((best, entry))
    return _ranked(candidates)


def parse_autnum_range(key: str) -> Tuple[int, int]:
    """Parse an AS number registry key, either `first-last` or a single number.

    Raises:
        ValueError: If the key is not a valid, ordered range
    """
    first, sep, last = key.strip().partition("-")
    start = int(first)
    end = int(last) if sep else start
    if start < 0 or end < start:
        raise ValueError(f"invalid AS number range {key!r}")
    return start, end


def match_autnum(document: BootstrapDocument, number: int) -> List[ServiceEntry]:
    """Find the entries whose AS number range contains a number.

    The range with the smallest span is the most specific.
    """
    candidates = []
    for entry in document.services:
        best = None
        for key in entry.keys:
            try:
                start, end = parse_autnum_range(key)
            except ValueError:
                logger.warning("Skipping malformed AS number range %r", key)
                continue
            if start <= number <= end:
                score = -(end - start)
                best = score if best is None else max(best, score)
        if best is not None:
            candidates.append((best, entry))
    return _ranked(candidates)


def match_tag(document: BootstrapDocument, tag: str) -> List[ServiceEntry]:
    """Find the entries registered for an object tag (RFC 8521).

    Comparison is exact but case-insensitive. A valid registry lists each tag once;
    duplicates are reported and the first listed entry wins.
    """
    wanted = tag.strip().casefold()
    matches = [
        entry
        for entry in document.services
        if any(key.strip().casefold() == wanted for key in entry.keys)
    ]
    if len(matches) > 1:
        logger.warning(
            "Object tag %r is registered by %d services, using the first",
            tag,
            len(matches),
        )
    return matches
