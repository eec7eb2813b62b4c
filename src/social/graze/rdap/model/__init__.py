"""
Bootstrap Data Models

Pydantic models for the data the resolver reads and persists.

Key Models:
- bootstrap.py: Registry kinds, service entries and parsed bootstrap documents
- cache.py: Cache entries holding the raw registry body and revalidation token

Bootstrap documents are short-lived: they are parsed from a cache entry or a fresh
response for a single resolution and then dropped. Only cache entries persist.
"""
