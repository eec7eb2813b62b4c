"""
RDAP Service Resolution

This package resolves Internet identifiers to the RDAP service responsible for them.

Key Components:
- identifier.py: Identifier classification (domain, IP, AS number, entity handle)
- registry.py: The registry resolver that ties loading and matching together
- service.py: RFC 9082 lookup URL construction under a service base URL
- __main__.py: CLI interface for resolution

Identifier Types and Registries:
1. Domain names → dns registry, longest matching suffix
   - Reverse names under in-addr.arpa and ip6.arpa fall back to the IP registries
2. IPv4 and IPv6 addresses or prefixes → ipv4/ipv6 registries, longest prefix
3. AS numbers → asn registry, smallest containing range
4. Entity handles (`HANDLE-TAG`) → object-tags registry, exact tag

A missing match raises NoServiceFound, which callers should treat as a normal
outcome rather than an error in the registry or the network.
"""
