"""
Resolver settings and default resolution.

Every front-end (CLI, web service) builds its settings through
:func:`build_settings` so that server and record-type defaults live in
one place.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import RecordType, Transport
from .servers import DEFAULT_SERVERS, normalize_server


DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRIES = 3
DEFAULT_CONCURRENCY = 10

DEFAULT_RECORD_TYPES = [
    RecordType.A,
    RecordType.AAAA,
    RecordType.CNAME,
    RecordType.MX,
    RecordType.NS,
    RecordType.TXT,
]
DEFAULT_BULK_RECORD_TYPES = [RecordType.A, RecordType.AAAA, RecordType.MX]
DEFAULT_TRACE_RECORD_TYPE = RecordType.A

DEFAULT_TEST_DOMAIN = "google.com"
DEFAULT_ITERATIONS = 5


@dataclass
class ResolverSettings:
    """Configuration shared by the query engine and the runner."""
    servers: list[str] = field(default_factory=lambda: [
        normalize_server(s) for s in DEFAULT_SERVERS
    ])
    timeout: float = DEFAULT_TIMEOUT
    # Accepted for compatibility; failover is across servers, never a
    # repeated attempt against the same server.
    retries: int = DEFAULT_RETRIES
    concurrency: int = DEFAULT_CONCURRENCY
    # Per-domain record-type limit; bulk queries run up to
    # concurrency * type_concurrency exchanges at once.
    type_concurrency: Optional[int] = None
    transport: Transport = Transport.UDP

    @property
    def record_type_concurrency(self) -> int:
        return self.type_concurrency or self.concurrency


def split_values(values: Optional[Iterable[str]]) -> list[str]:
    """Flatten repeated and comma-separated option values."""
    items = []
    for value in values or ():
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def build_settings(
    servers: Optional[Iterable[str]] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    concurrency: Optional[int] = None,
    type_concurrency: Optional[int] = None,
    transport: "Transport | str | None" = None,
) -> ResolverSettings:
    """
    Build resolver settings, filling in defaults for anything unset.

    Args:
        servers: Server addresses or profile names (comma-separated allowed)
        timeout: Per-query timeout in seconds
        retries: Retry count (accepted but not used for repeated attempts)
        concurrency: Maximum concurrent tasks per fan-out
        type_concurrency: Maximum concurrent record-type queries per domain
        transport: Transport protocol name

    Returns:
        ResolverSettings with normalized servers

    Raises:
        ValueError: If a value is out of range
    """
    server_list = split_values(servers) or list(DEFAULT_SERVERS)

    timeout = DEFAULT_TIMEOUT if not timeout else float(timeout)
    if timeout < 0:
        raise ValueError("timeout must be positive")

    concurrency = DEFAULT_CONCURRENCY if not concurrency else int(concurrency)
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")
    if type_concurrency is not None and type_concurrency < 1:
        raise ValueError("type concurrency must be at least 1")

    return ResolverSettings(
        servers=[normalize_server(s) for s in server_list],
        timeout=timeout,
        retries=DEFAULT_RETRIES if retries is None else int(retries),
        concurrency=concurrency,
        type_concurrency=type_concurrency,
        transport=Transport(transport) if transport else Transport.UDP,
    )


def parse_record_types(
    values: Optional[Iterable["RecordType | str"]],
    default: list[RecordType],
) -> list[RecordType]:
    """Parse record type identifiers, falling back to ``default`` when empty."""
    items = []
    for value in values or ():
        if isinstance(value, RecordType):
            items.append(value)
        else:
            items.extend(split_values([value]))
    if not items:
        return list(default)
    return [RecordType.parse(item) for item in items]
