"""Pytest configuration and fixtures."""

import asyncio
from typing import Iterable, Optional

import dns.exception
import dns.message
import dns.rcode
import dns.rdatatype
import dns.rrset
import pytest

from dns_resolver.config import ResolverSettings
from dns_resolver.models import Transport
from dns_resolver.transports import BaseTransport


PRIMARY = "10.0.0.1:53"
SECONDARY = "10.0.0.2:53"


def question(message: dns.message.Message) -> tuple[str, str]:
    """Return the (name, type) of a query, name without trailing dot."""
    q = message.question[0]
    return q.name.to_text(omit_final_dot=True), dns.rdatatype.to_text(q.rdtype)


def make_response(
    query: dns.message.Message,
    answers: Iterable[tuple] = (),
    rcode: int = dns.rcode.NOERROR,
) -> dns.message.Message:
    """Build a response; answers are (owner, ttl, type, [values]) tuples."""
    response = dns.message.make_response(query)
    response.set_rcode(rcode)
    for owner, ttl, rdtype, values in answers:
        response.answer.append(dns.rrset.from_text(owner + ".", ttl, "IN", rdtype, *values))
    return response


class FakeTransport(BaseTransport):
    """
    Scripted transport answering from an in-memory zone.

    Args:
        zone: (name, type) -> list of answer tuples for ``make_response``
        down: Hosts that always time out
        nxdomain: Names answered with NXDOMAIN
        servfail: Hosts answering SERVFAIL to everything
        flaky: Host -> list of booleans consumed per call (False times out)
        delays: Record type -> seconds to wait before answering
        errors: (name, type) -> exception raised for that query
    """

    transport_type = Transport.UDP

    def __init__(
        self,
        zone: Optional[dict] = None,
        down: Iterable[str] = (),
        nxdomain: Iterable[str] = (),
        servfail: Iterable[str] = (),
        flaky: Optional[dict] = None,
        delays: Optional[dict] = None,
        errors: Optional[dict] = None,
    ):
        self.zone = zone or {}
        self.down = set(down)
        self.nxdomain = set(nxdomain)
        self.servfail = set(servfail)
        self.flaky = {host: list(seq) for host, seq in (flaky or {}).items()}
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def exchange(self, message, host, port=53, timeout=5.0):
        name, rdtype = question(message)
        self.calls.append((host, port, name, rdtype, message))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(rdtype, 0))

            if (name, rdtype) in self.errors:
                raise self.errors[(name, rdtype)]
            if host in self.down:
                raise dns.exception.Timeout()
            if host in self.flaky and not self.flaky[host].pop(0):
                raise dns.exception.Timeout()
            if host in self.servfail:
                return make_response(message, rcode=dns.rcode.SERVFAIL)
            if name in self.nxdomain:
                return make_response(message, rcode=dns.rcode.NXDOMAIN)
            return make_response(message, self.zone.get((name, rdtype), []))
        finally:
            self.in_flight -= 1


@pytest.fixture
def settings() -> ResolverSettings:
    """Two-server settings with a short timeout."""
    return ResolverSettings(
        servers=[PRIMARY, SECONDARY],
        timeout=1.0,
        concurrency=4,
    )


@pytest.fixture
def zone() -> dict:
    """Sample zone data."""
    return {
        ("example.com", "A"): [("example.com", 300, "A", ["93.184.216.34"])],
        ("example.com", "AAAA"): [
            ("example.com", 300, "AAAA", ["2606:2800:220:1:248:1893:25c8:1946"]),
        ],
        ("example.com", "MX"): [
            ("example.com", 3600, "MX", ["10 mail.example.com.", "20 backup.example.com."]),
        ],
        ("example.com", "TXT"): [("example.com", 120, "TXT", ['"v=spf1" "-all"'])],
        ("example.com", "NS"): [("example.com", 86400, "NS", ["a.iana-servers.net."])],
        ("example.com", "SOA"): [
            ("example.com", 3600, "SOA", [
                "ns.icann.org. noc.dns.icann.org. 2024081401 7200 3600 1209600 3600",
            ]),
        ],
        ("_sip._tcp.example.com", "SRV"): [
            ("_sip._tcp.example.com", 600, "SRV", ["10 60 5060 sip.example.com."]),
        ],
        ("www.example.com", "CNAME"): [("www.example.com", 60, "CNAME", ["example.com."])],
        ("8.8.8.8.in-addr.arpa", "PTR"): [("8.8.8.8.in-addr.arpa", 3600, "PTR", ["dns.google."])],
        ("example.org", "A"): [("example.org", 300, "A", ["93.184.216.35"])],
        ("example.net", "A"): [("example.net", 300, "A", ["93.184.216.36"])],
    }


@pytest.fixture
def transport(zone) -> FakeTransport:
    return FakeTransport(zone=zone)
