"""
RDAP Bootstrap Resolver

This package finds the authoritative RDAP service for an Internet identifier using the
IANA bootstrap registries (RFC 9224 for domains, IP addresses and AS numbers, RFC 8521
for tagged entity handles).

Key Components:
- model: Pydantic models for bootstrap documents and cache entries
- bootstrap: Registry loading (transport, cache store, loader) and the matching algorithms
- resolve: Identifier parsing, the registry resolver and a command line interface
- app: Internal HTTP API, settings, metrics and background registry refresh

Resolution Flow:
1. The identifier is classified once (domain, IPv4, IPv6, AS number or entity handle)
2. The bootstrap registry for that type is loaded from cache, revalidated against
   IANA when stale, or fetched when missing
3. The matching algorithm for the registry picks the most specific service entry
4. The first base URL of that entry is returned; the remaining URLs are fallbacks

Bootstrap documents are cached as raw bytes so they survive process restarts, and a
stale copy is served when IANA cannot be reached.
"""
