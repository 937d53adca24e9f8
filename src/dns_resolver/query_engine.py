"""
Core DNS query engine.

Resolves one (domain, record type) pair against the configured server
list with ordered failover, and formats the answers as strings.
"""

import asyncio
import ipaddress
import logging
import time
from datetime import datetime
from typing import Optional

import dns.exception
import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import dns.reversename

from .config import ResolverSettings
from .exceptions import InvalidAddressError, InvalidDomainError
from .models import RecordType, ResolutionResult
from .servers import split_server
from .transports import BaseTransport, create_transport


logger = logging.getLogger(__name__)

ALL_SERVERS_FAILED = "all DNS servers failed to respond"

# Failures that move on to the next server
TRANSPORT_ERRORS = (
    dns.exception.DNSException,
    asyncio.TimeoutError,
    OSError,
    EOFError,
)

_RDATATYPES = {
    RecordType.A: dns.rdatatype.A,
    RecordType.AAAA: dns.rdatatype.AAAA,
    RecordType.CNAME: dns.rdatatype.CNAME,
    RecordType.MX: dns.rdatatype.MX,
    RecordType.NS: dns.rdatatype.NS,
    RecordType.TXT: dns.rdatatype.TXT,
    RecordType.SOA: dns.rdatatype.SOA,
    RecordType.PTR: dns.rdatatype.PTR,
    RecordType.SRV: dns.rdatatype.SRV,
}


def normalize_domain(domain: str) -> str:
    """Trim, lowercase and strip one trailing dot (the root stays ``.``)."""
    domain = (domain or "").strip().lower()
    if not domain:
        raise InvalidDomainError("domain cannot be empty")
    if domain.endswith(".") and domain != ".":
        domain = domain[:-1]
    try:
        dns.name.from_text(_fqdn(domain))
    except dns.exception.DNSException as e:
        raise InvalidDomainError(f"invalid domain {domain!r}: {e}") from None
    return domain


def _fqdn(domain: str) -> str:
    return domain if domain == "." else domain + "."


def _name(name) -> str:
    return name.to_text(omit_final_dot=True)


def format_rdata(record_type: RecordType, rdata) -> str:
    """Render one answer record as a display string."""
    if record_type in (RecordType.A, RecordType.AAAA):
        return rdata.address
    if record_type in (RecordType.CNAME, RecordType.NS, RecordType.PTR):
        return _name(rdata.target)
    if record_type == RecordType.MX:
        return f"{rdata.preference} {_name(rdata.exchange)}"
    if record_type == RecordType.TXT:
        return " ".join(s.decode("utf-8", errors="replace") for s in rdata.strings)
    if record_type == RecordType.SOA:
        return (
            f"{_name(rdata.mname)} {_name(rdata.rname)} {rdata.serial} "
            f"{rdata.refresh} {rdata.retry} {rdata.expire} {rdata.minimum}"
        )
    if record_type == RecordType.SRV:
        return f"{rdata.priority} {rdata.weight} {rdata.port} {_name(rdata.target)}"
    return rdata.to_text()


def reverse_name(ip: str) -> str:
    """
    Build the reverse-lookup name for an IP address.

    ``8.8.8.8`` becomes ``8.8.8.8.in-addr.arpa.``; IPv6 addresses use the
    nibble form under ``ip6.arpa.``.

    Raises:
        InvalidAddressError: If ``ip`` is not a valid address
    """
    try:
        address = ipaddress.ip_address((ip or "").strip())
    except ValueError:
        raise InvalidAddressError(f"invalid IP address: {ip}") from None
    return dns.reversename.from_address(str(address)).to_text()


class DNSQueryEngine:
    """
    DNS query engine with ordered server failover.

    Each query goes to the configured servers in order; the first server
    that answers decides the result.
    """

    def __init__(
        self,
        settings: Optional[ResolverSettings] = None,
        transport: Optional[BaseTransport] = None,
    ):
        """
        Initialize the query engine.

        Args:
            settings: Servers, timeout and limits (defaults if None)
            transport: Protocol exchange to use (built from settings if None)
        """
        self.settings = settings or ResolverSettings()
        self.transport = transport or create_transport(self.settings.transport)

    @property
    def servers(self) -> list[str]:
        return self.settings.servers

    def _create_query_message(
        self,
        query_domain: str,
        record_type: RecordType,
    ) -> dns.message.Message:
        """Create a DNS query message (recursion desired is the default)."""
        return dns.message.make_query(query_domain, _RDATATYPES[record_type])

    async def _exchange(
        self,
        message: dns.message.Message,
        server: str,
    ) -> tuple[dns.message.Message, float]:
        """Send a query to one server, returning the response and latency in ms."""
        host, port = split_server(server)
        start = time.perf_counter_ns()
        response = await self.transport.exchange(
            message,
            host,
            port=port,
            timeout=self.settings.timeout,
        )
        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000
        return response, elapsed_ms

    def _extract_answers(
        self,
        response: dns.message.Message,
        record_type: RecordType,
    ) -> tuple[list[str], int]:
        """Extract answer strings of the requested type and the TTL."""
        rdtype = _RDATATYPES[record_type]
        records = []
        ttl = 0

        for rrset in response.answer:
            # TTL comes from the first answer, whatever its type
            if ttl == 0:
                ttl = rrset.ttl
            if rrset.rdtype != rdtype:
                continue
            for rdata in rrset:
                records.append(format_rdata(record_type, rdata))

        return records, ttl

    async def resolve(
        self,
        domain: str,
        record_type: "RecordType | str",
    ) -> ResolutionResult:
        """
        Resolve one record type for a domain.

        Args:
            domain: Domain name to query
            record_type: Type of DNS record to request

        Returns:
            ResolutionResult; protocol failures and exhausted servers are
            reported in its ``error`` field

        Raises:
            InvalidDomainError: If the domain is empty or malformed
            UnsupportedRecordTypeError: If the record type is unknown
        """
        domain = normalize_domain(domain)
        record_type = RecordType.parse(record_type)
        message = self._create_query_message(_fqdn(domain), record_type)

        result = ResolutionResult(
            domain=domain,
            record_type=record_type,
            timestamp=datetime.now(),
        )

        for server in self.servers:
            try:
                response, elapsed_ms = await self._exchange(message, server)
            except TRANSPORT_ERRORS as e:
                logger.debug("%s %s via %s failed: %r", domain, record_type.value, server, e)
                continue

            result.server = server
            result.response_time_ms = elapsed_ms

            rcode = response.rcode()
            if rcode != dns.rcode.NOERROR:
                result.error = dns.rcode.to_text(rcode)
                return result

            result.records, result.ttl = self._extract_answers(response, record_type)
            return result

        logger.info("%s %s: %s", domain, record_type.value, ALL_SERVERS_FAILED)
        result.error = ALL_SERVERS_FAILED
        return result

    async def reverse_lookup(self, ip: str) -> ResolutionResult:
        """Resolve the PTR record for an IPv4 or IPv6 address."""
        return await self.resolve(reverse_name(ip), RecordType.PTR)

    async def probe(
        self,
        server: str,
        domain: str,
        record_type: RecordType = RecordType.A,
    ) -> float:
        """
        Send a single query to one server.

        Returns:
            Response latency in milliseconds, whatever the response code

        Raises:
            Transport errors from the exchange
        """
        message = self._create_query_message(_fqdn(normalize_domain(domain)), record_type)
        _, elapsed_ms = await self._exchange(message, server)
        return elapsed_ms
