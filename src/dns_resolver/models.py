"""
Data models for the DNS resolver.

Defines structured types for record types, transports, resolution
results, bulk results and server performance figures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .exceptions import UnsupportedRecordTypeError


class Transport(str, Enum):
    """DNS transport protocols."""
    UDP = "udp"
    TCP = "tcp"


class RecordType(str, Enum):
    """DNS record types that can be queried."""
    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    NS = "NS"
    TXT = "TXT"
    SOA = "SOA"
    PTR = "PTR"
    SRV = "SRV"

    @classmethod
    def parse(cls, value: "RecordType | str") -> "RecordType":
        """Parse a record type identifier (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedRecordTypeError(
                f"unsupported record type: {value}"
            ) from None

    @property
    def is_address(self) -> bool:
        """Address record types (A and AAAA) can be reached through aliases."""
        return self in (RecordType.A, RecordType.AAAA)


@dataclass
class ResolverProfile:
    """A well-known public DNS resolver."""
    name: str
    ipv4: str
    ipv6: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ResolutionResult:
    """Result of resolving one (domain, record type) pair."""
    domain: str
    record_type: RecordType
    records: list[str] = field(default_factory=list)
    ttl: int = 0
    response_time_ms: float = 0.0
    server: str = ""
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_success(self) -> bool:
        """Check if the query produced an answer without error."""
        return self.error is None

    def to_dict(self) -> dict:
        data = {
            "domain": self.domain,
            "record_type": self.record_type.value,
            "records": list(self.records),
            "ttl": self.ttl,
            "response_time_ms": round(self.response_time_ms, 3),
            "dns_server": self.server,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class BulkResult:
    """All resolution results for one domain of a bulk query."""
    domain: str
    results: list[ResolutionResult] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "domain": self.domain,
            "results": [r.to_dict() for r in self.results],
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ServerPerformance:
    """Latency and reliability figures for one name server."""
    server: str
    avg_latency: float
    min_latency: float
    max_latency: float
    success_rate: float
    total_queries: int
    failures: int

    # Extra summary figures over the successful samples
    median_latency: float = 0.0
    p95_latency: float = 0.0
    stddev_latency: float = 0.0

    @property
    def successful_queries(self) -> int:
        return self.total_queries - self.failures

    def to_dict(self) -> dict:
        return {
            "server": self.server,
            "avg_response_time_ms": round(self.avg_latency, 3),
            "min_response_time_ms": round(self.min_latency, 3),
            "max_response_time_ms": round(self.max_latency, 3),
            "median_response_time_ms": round(self.median_latency, 3),
            "p95_response_time_ms": round(self.p95_latency, 3),
            "stddev_ms": round(self.stddev_latency, 3),
            "success_rate": round(self.success_rate, 2),
            "total_queries": self.total_queries,
            "failures": self.failures,
        }
