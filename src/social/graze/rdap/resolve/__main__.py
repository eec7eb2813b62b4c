from typing import List, Union
import argparse
import aiohttp
import asyncio
import logging

from social.graze.rdap.bootstrap.cache import FileCacheStore
from social.graze.rdap.bootstrap.loader import BootstrapLoader
from social.graze.rdap.bootstrap.transport import BootstrapTransport
from social.graze.rdap.errors import NoServiceFound, RDAPBootstrapError
from social.graze.rdap.resolve.identifier import (
    IdentifierType,
    ParsedIdentifier,
    parse_identifier,
)
from social.graze.rdap.resolve.registry import RegistryResolver

logger = logging.getLogger(__name__)


async def realMain() -> None:
    parser = argparse.ArgumentParser(
        prog="resolve", description="Resolve identifiers to RDAP services"
    )
    parser.add_argument(
        "identifier",
        nargs="+",
        help="Domain names, IP addresses or prefixes, AS numbers or entity handles.",
    )
    parser.add_argument(
        "--cache-dir",
        default="~/.cache/graze-rdap",
        help="Directory for cached bootstrap registries.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Revalidate cached registries with IANA before resolving.",
    )
    parser.add_argument(
        "--type",
        choices=[identifier_type.name for identifier_type in IdentifierType],
        help="Parse every identifier as this type instead of guessing it.",
    )
    parser.add_argument(
        "--lookup",
        action="store_true",
        help="Print the full lookup URL instead of the service base URL.",
    )

    args = vars(parser.parse_args())

    identifiers: List[str] = args.get("identifier", [])
    identifier_type = IdentifierType[args["type"]] if args.get("type") else None

    async with aiohttp.ClientSession() as session:
        resolver = RegistryResolver(
            BootstrapLoader(
                BootstrapTransport(session), FileCacheStore(args["cache_dir"])
            )
        )
        for identifier in identifiers:
            try:
                subject: Union[str, ParsedIdentifier] = identifier
                if identifier_type is not None:
                    subject = parse_identifier(identifier, identifier_type)
                if args.get("lookup"):
                    urls = await resolver.lookup_urls(subject, args["force"])
                    print(f"{identifier} {urls[0]}")
                else:
                    url = await resolver.resolve(subject, args["force"])
                    print(f"{identifier} {url}")
            except NoServiceFound:
                logger.warning("No RDAP service found for %s", identifier)
            except (RDAPBootstrapError, ValueError):
                logger.exception("Exception resolving identifier %s", identifier)


def main() -> None:
    logging.basicConfig()
    asyncio.run(realMain())


if __name__ == "__main__":
    main()
