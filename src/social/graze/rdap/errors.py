"""Exceptions raised while resolving an identifier to an RDAP service.

FetchError, ParseError and NoServiceFound are the three outcomes a caller can see
besides a successful resolution. Cache failures never surface as exceptions.
"""

from typing import Optional


class RDAPBootstrapError(Exception):
    """Base class for bootstrap resolution errors."""


class FetchError(RDAPBootstrapError):
    """A bootstrap registry could not be fetched and no usable cached copy exists.

    Covers connection failures, timeouts and non-success HTTP statuses.
    """

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class ParseError(RDAPBootstrapError):
    """A fetched or cached bootstrap document does not have the expected shape."""


class NoServiceFound(RDAPBootstrapError):
    """The registry loaded fine but no service entry covers the identifier.

    This is an expected outcome: the identifier has no known RDAP service yet.
    """

    def __init__(self, identifier: str) -> None:
        super().__init__(f"no RDAP service found for {identifier}")
        self.identifier = identifier
