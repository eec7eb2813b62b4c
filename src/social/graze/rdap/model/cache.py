"""Persisted bootstrap registry cache records."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class RevalidationToken(BaseModel):
    """Validators returned by the registry origin for conditional requests."""

    etag: Optional[str] = None
    last_modified: Optional[str] = None

    def request_headers(self) -> Dict[str, str]:
        headers = {}
        if self.etag:
            headers["If-None-Match"] = self.etag
        if self.last_modified:
            headers["If-Modified-Since"] = self.last_modified
        return headers


class CacheEntry(BaseModel):
    """Last successfully fetched body of one bootstrap registry.

    The body is kept as raw bytes and re-parsed on every use. Only bodies that parsed
    as a valid bootstrap document are ever stored.
    """

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    source_url: str
    fetched_at: datetime
    token: RevalidationToken = Field(default_factory=RevalidationToken)
    body: bytes
