"""IANA bootstrap registry data models.

Parses RFC 9224 bootstrap documents (and the RFC 8521 object tag variant) into
typed service entries.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Final, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from social.graze.rdap.errors import ParseError


class RegistryKind(str, Enum):
    """The five IANA bootstrap registries.

    Values match the registry file names published under https://data.iana.org/rdap/.
    """

    dns = "dns"
    ipv4 = "ipv4"
    ipv6 = "ipv6"
    asn = "asn"
    object_tags = "object-tags"


REGISTRY_URLS: Final[Dict[RegistryKind, str]] = {
    kind: f"https://data.iana.org/rdap/{kind.value}.json" for kind in RegistryKind
}


class ServiceEntry(BaseModel):
    """One row of a bootstrap registry.

    All locations are equally authoritative for the keys of the entry; callers try
    them in order.
    """

    keys: Annotated[List[str], Field(min_length=1)]
    locations: Annotated[List[str], Field(min_length=1)]
    registrants: List[str] = Field(default_factory=list)


class BootstrapDocument(BaseModel):
    """Parsed form of one bootstrap registry."""

    version: str = ""
    publication: Optional[datetime] = None
    description: Optional[str] = None
    services: List[ServiceEntry]

    @field_validator("services", mode="before")
    @classmethod
    def decode_services(cls, v: Any) -> Any:
        """
        Convert the registry's positional arrays into ServiceEntry fields.

        RFC 9224 services are `[keys, urls]` pairs. RFC 8521 object tag services carry
        a leading array of registrant contact data: `[registrants, keys, urls]`.
        Already decoded entries are passed through untouched.
        """
        if not isinstance(v, list):
            raise ValueError("services must be an array")
        services = []
        for index, service in enumerate(v):
            if isinstance(service, (dict, ServiceEntry)):
                services.append(service)
                continue
            if not isinstance(service, list) or len(service) not in (2, 3):
                raise ValueError(
                    f"service {index} must be an array of two or three arrays"
                )
            if len(service) == 3:
                registrants, keys, locations = service
            else:
                registrants, (keys, locations) = [], service
            services.append(
                {"registrants": registrants, "keys": keys, "locations": locations}
            )
        return services


def parse_bootstrap_document(body: bytes) -> BootstrapDocument:
    """Parse and validate a raw bootstrap registry body.

    Raises:
        ParseError: If the body is not JSON or does not have the bootstrap shape
    """
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError(f"bootstrap document is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("bootstrap document must be a JSON object")

    try:
        return BootstrapDocument.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"invalid bootstrap document: {e}") from e
