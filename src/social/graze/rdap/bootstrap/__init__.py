"""
Bootstrap Registry Loading and Matching

This package obtains the IANA bootstrap registries and matches identifiers against them.

Key Components:
- transport.py: Conditional HTTP GET of registry documents over aiohttp
- cache.py: Durable cache stores (filesystem and Redis) for raw registry bodies
- loader.py: Fetch-or-serve-from-cache logic with revalidation and stale fallback
- match.py: The four matching algorithms (domain suffix, address range, AS number
  range and object tag)

Loading follows these steps:
1. Read the cached entry for the registry and check that it still parses
2. Serve it directly while it is fresh (24 hours by default)
3. Revalidate it with If-None-Match/If-Modified-Since once it is stale
4. Fetch the registry unconditionally when nothing usable is cached
5. Serve the stale copy if the registry origin cannot be reached
"""
