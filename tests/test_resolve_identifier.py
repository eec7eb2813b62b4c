"""
Unit tests for identifier classification in social.graze.rdap.resolve.identifier
"""

import ipaddress

import pytest

from social.graze.rdap.model.bootstrap import RegistryKind
from social.graze.rdap.resolve.identifier import (
    IdentifierType,
    ParsedIdentifier,
    ensure_parsed,
    parse_identifier,
    reverse_network,
)


class TestParseIdentifier:
    """Test suite for parse_identifier."""

    @pytest.mark.parametrize(
        "value,identifier_type,subject",
        [
            ("www.Example.COM.", IdentifierType.domain, "www.example.com"),
            ("com", IdentifierType.domain, "com"),
            (".", IdentifierType.domain, "."),
            ("xn--p1ai", IdentifierType.domain, "xn--p1ai"),
            ("пример.рф", IdentifierType.domain, "xn--e1afmkfd.xn--p1ai"),
            ("straße.de", IdentifierType.domain, "xn--strae-oqa.de"),
            ("192.0.2.1", IdentifierType.ipv4, "192.0.2.1"),
            ("192.0.2.7/24", IdentifierType.ipv4, "192.0.2.0/24"),
            ("2001:DB8::1", IdentifierType.ipv6, "2001:db8::1"),
            ("2001:db8::/32", IdentifierType.ipv6, "2001:db8::/32"),
            ("AS65536", IdentifierType.autnum, "65536"),
            ("as55", IdentifierType.autnum, "55"),
            ("55", IdentifierType.autnum, "55"),
        ],
    )
    def test_classification(self, value, identifier_type, subject):
        parsed = parse_identifier(value)
        assert parsed.identifier_type == identifier_type
        assert parsed.subject == subject
        assert parsed.tag is None

    def test_entity_handle(self):
        """Test entity handles carry the tag after their last hyphen."""
        parsed = parse_identifier("XXXX1-FRNIC")

        assert parsed.identifier_type == IdentifierType.entity
        assert parsed.subject == "XXXX1-FRNIC"
        assert parsed.tag == "FRNIC"
        assert parsed.registry_kind == RegistryKind.object_tags

    def test_registry_kinds(self):
        assert parse_identifier("example.com").registry_kind == RegistryKind.dns
        assert parse_identifier("10.0.0.1").registry_kind == RegistryKind.ipv4
        assert parse_identifier("::1").registry_kind == RegistryKind.ipv6
        assert parse_identifier("AS1").registry_kind == RegistryKind.asn

    def test_explicit_type(self):
        """Test an explicit type skips classification."""
        parsed = parse_identifier("net-tld", IdentifierType.domain)
        assert parsed.identifier_type == IdentifierType.domain
        assert parsed.subject == "net-tld"

    def test_explicit_type_mismatch(self):
        with pytest.raises(ValueError, match="not a valid ipv6 identifier"):
            parse_identifier("192.0.2.1", IdentifierType.ipv6)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "   ",
            "a..com",
            "AS4294967296",
            "HANDLE-",
            "fe80::1%eth0",
            "example.com:443",
        ],
    )
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_identifier(value)

    def test_scoped_address_explicit_type(self):
        with pytest.raises(ValueError):
            parse_identifier("fe80::1%eth0", IdentifierType.ipv6)

    def test_nameserver(self):
        """Test nameserver names are only produced on request and use the dns registry."""
        parsed = parse_identifier("NS1.Example.com.", IdentifierType.nameserver)

        assert parsed.identifier_type == IdentifierType.nameserver
        assert parsed.subject == "ns1.example.com"
        assert parsed.registry_kind == RegistryKind.dns
        assert (
            parse_identifier("ns1.example.com").identifier_type == IdentifierType.domain
        )

    def test_root_zone_is_not_a_nameserver(self):
        with pytest.raises(ValueError):
            parse_identifier(".", IdentifierType.nameserver)

    def test_ensure_parsed(self):
        parsed = parse_identifier("example.com")
        assert ensure_parsed(parsed) is parsed
        assert ensure_parsed("example.com") == parsed
        assert isinstance(ensure_parsed("AS1"), ParsedIdentifier)


class TestReverseNetwork:
    """Test suite for reverse DNS name conversion."""

    @pytest.mark.parametrize(
        "name,network",
        [
            ("10.in-addr.arpa", "10.0.0.0/8"),
            ("2.0.192.in-addr.arpa", "192.0.2.0/24"),
            ("4.3.2.10.in-addr.arpa.", "10.2.3.4/32"),
            ("8.b.d.0.1.0.0.2.ip6.arpa", "2001:db8::/32"),
            ("1.8.b.d.0.1.0.0.2.IP6.ARPA", "2001:db8:1000::/36"),
        ],
    )
    def test_reverse_names(self, name, network):
        assert reverse_network(name) == ipaddress.ip_network(network)

    @pytest.mark.parametrize(
        "name",
        [
            "example.com",
            "in-addr.arpa",
            "300.in-addr.arpa",
            "1.2.3.4.5.in-addr.arpa",
            "x.ip6.arpa",
            "10.ip6.arpa",
            "a..in-addr.arpa",
        ],
    )
    def test_not_reverse(self, name):
        assert reverse_network(name) is None
