"""Tests for the query engine."""

import dns.exception
import pytest

from dns_resolver.exceptions import (
    InvalidAddressError,
    InvalidDomainError,
    UnsupportedRecordTypeError,
)
from dns_resolver.models import RecordType
from dns_resolver.query_engine import (
    ALL_SERVERS_FAILED,
    DNSQueryEngine,
    normalize_domain,
    reverse_name,
)

from conftest import PRIMARY, SECONDARY, FakeTransport


class TestNormalization:
    """Tests for domain and reverse name helpers."""

    def test_normalize_domain(self):
        assert normalize_domain("  Example.COM. ") == "example.com"

    def test_normalize_keeps_root(self):
        assert normalize_domain(" . ") == "."

    @pytest.mark.parametrize("value", ["example.com..", "a..b.com", "x" * 64 + ".com"])
    def test_normalize_malformed(self, value):
        with pytest.raises(InvalidDomainError):
            normalize_domain(value)

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_normalize_empty(self, value):
        with pytest.raises(InvalidDomainError):
            normalize_domain(value)

    def test_reverse_name_ipv4(self):
        assert reverse_name("8.8.8.8") == "8.8.8.8.in-addr.arpa."
        assert reverse_name("192.0.2.10") == "10.2.0.192.in-addr.arpa."

    def test_reverse_name_ipv6(self):
        name = reverse_name("2001:db8::1")
        assert name.endswith(".ip6.arpa.")
        assert name.startswith("1.0.0.0.")
        # 32 nibbles plus "ip6" and "arpa"
        assert len(name.rstrip(".").split(".")) == 34

    @pytest.mark.parametrize("value", ["", "8.8.8", "not-an-ip", "999.1.1.1"])
    def test_reverse_name_invalid(self, value):
        with pytest.raises(InvalidAddressError):
            reverse_name(value)


class TestResolve:
    """Tests for DNSQueryEngine.resolve."""

    @pytest.mark.asyncio
    async def test_resolve_a(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("  Example.COM. ", RecordType.A)

        assert result.domain == "example.com"
        assert result.record_type == RecordType.A
        assert result.records == ["93.184.216.34"]
        assert result.ttl == 300
        assert result.server == PRIMARY
        assert result.error is None
        assert result.timestamp is not None
        assert result.response_time_ms >= 0

        host, port, name, rdtype, message = transport.calls[0]
        assert (host, port) == ("10.0.0.1", 53)
        assert message.question[0].name.to_text() == "example.com."
        assert rdtype == "A"

    @pytest.mark.asyncio
    async def test_resolve_accepts_type_string(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", "mx")

        assert result.record_type == RecordType.MX
        assert result.records == ["10 mail.example.com", "20 backup.example.com"]

    @pytest.mark.asyncio
    async def test_unsupported_type_before_network(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        with pytest.raises(UnsupportedRecordTypeError):
            await engine.resolve("example.com", "ANY")

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_root_domain_queried(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve(".", RecordType.NS)

        assert result.domain == "."
        assert result.error is None
        message = transport.calls[0][4]
        assert message.question[0].name.to_text() == "."

    @pytest.mark.asyncio
    async def test_malformed_domain_before_network(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        with pytest.raises(InvalidDomainError):
            await engine.resolve("example..com", RecordType.A)

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_empty_domain_before_network(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        with pytest.raises(InvalidDomainError):
            await engine.resolve("  ", RecordType.A)

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_failover_to_next_server(self, settings, zone):
        transport = FakeTransport(zone=zone, down={"10.0.0.1"})
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", RecordType.A)

        assert result.server == SECONDARY
        assert result.records == ["93.184.216.34"]
        assert [call[0] for call in transport.calls] == ["10.0.0.1", "10.0.0.2"]

    @pytest.mark.asyncio
    async def test_connection_errors_fail_over(self, settings, zone):
        transport = FakeTransport(
            zone=zone,
            errors={("example.com", "A"): ConnectionRefusedError()},
        )
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", RecordType.A)

        assert result.error == ALL_SERVERS_FAILED
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_all_servers_fail(self, settings, zone):
        transport = FakeTransport(zone=zone, down={"10.0.0.1", "10.0.0.2"})
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", RecordType.A)

        assert result.error == "all DNS servers failed to respond"
        assert result.records == []
        assert result.server == ""
        assert result.timestamp is not None

    @pytest.mark.asyncio
    async def test_error_status_does_not_fail_over(self, settings, zone):
        transport = FakeTransport(zone=zone, nxdomain={"missing.example"})
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("missing.example", RecordType.A)

        assert result.error == "NXDOMAIN"
        assert result.records == []
        assert result.server == PRIMARY
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_servfail_reported(self, settings, zone):
        transport = FakeTransport(zone=zone, servfail={"10.0.0.1"})
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", RecordType.A)

        assert result.error == "SERVFAIL"
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_no_records(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve("example.com", RecordType.CNAME)

        assert result.records == []
        assert result.error is None
        assert result.ttl == 0

    @pytest.mark.asyncio
    async def test_filters_by_type_and_keeps_first_ttl(self, settings):
        # The alias answer comes first; its TTL is reported even though
        # only the address is kept.
        zone = {
            ("www.example.com", "A"): [
                ("www.example.com", 600, "CNAME", ["example.com."]),
                ("example.com", 60, "A", ["93.184.216.34"]),
            ],
        }
        engine = DNSQueryEngine(settings, transport=FakeTransport(zone=zone))

        result = await engine.resolve("www.example.com", RecordType.A)

        assert result.records == ["93.184.216.34"]
        assert result.ttl == 600


class TestRecordFormatting:
    """Tests for record value strings per type."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain,record_type,expected", [
        ("example.com", RecordType.AAAA, ["2606:2800:220:1:248:1893:25c8:1946"]),
        ("example.com", RecordType.TXT, ["v=spf1 -all"]),
        ("example.com", RecordType.NS, ["a.iana-servers.net"]),
        ("example.com", RecordType.SOA, [
            "ns.icann.org noc.dns.icann.org 2024081401 7200 3600 1209600 3600",
        ]),
        ("_sip._tcp.example.com", RecordType.SRV, ["10 60 5060 sip.example.com"]),
        ("www.example.com", RecordType.CNAME, ["example.com"]),
    ])
    async def test_format(self, settings, transport, domain, record_type, expected):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.resolve(domain, record_type)

        assert result.records == expected


class TestReverseAndProbe:
    """Tests for reverse lookups and single-server probes."""

    @pytest.mark.asyncio
    async def test_reverse_lookup(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        result = await engine.reverse_lookup("8.8.8.8")

        _, _, name, rdtype, message = transport.calls[0]
        assert message.question[0].name.to_text() == "8.8.8.8.in-addr.arpa."
        assert rdtype == "PTR"
        assert result.record_type == RecordType.PTR
        assert result.domain == "8.8.8.8.in-addr.arpa"
        assert result.records == ["dns.google"]

    @pytest.mark.asyncio
    async def test_reverse_lookup_invalid_ip(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        with pytest.raises(InvalidAddressError):
            await engine.reverse_lookup("8.8.8.300")

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_probe_returns_latency(self, settings, transport):
        engine = DNSQueryEngine(settings, transport=transport)

        latency = await engine.probe(SECONDARY, "Example.com")

        assert latency >= 0
        assert transport.calls[0][:4] == ("10.0.0.2", 53, "example.com", "A")

    @pytest.mark.asyncio
    async def test_probe_counts_error_status_as_answer(self, settings, zone):
        transport = FakeTransport(zone=zone, servfail={"10.0.0.1"})
        engine = DNSQueryEngine(settings, transport=transport)

        assert await engine.probe(PRIMARY, "example.com") >= 0

    @pytest.mark.asyncio
    async def test_probe_raises_transport_error(self, settings, zone):
        transport = FakeTransport(zone=zone, down={"10.0.0.1"})
        engine = DNSQueryEngine(settings, transport=transport)

        with pytest.raises(dns.exception.Timeout):
            await engine.probe(PRIMARY, "example.com")


