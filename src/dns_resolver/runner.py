"""
Resolution runner.

Orchestrates query execution on top of the query engine:
- Multi-type resolution of one domain
- Bulk resolution of many domains
- Alias (CNAME) tracing with cycle detection
- Sequential name server benchmarking
"""

import asyncio
import logging
from typing import Callable, Iterable, Optional

from .config import (
    DEFAULT_BULK_RECORD_TYPES,
    DEFAULT_ITERATIONS,
    DEFAULT_RECORD_TYPES,
    DEFAULT_TEST_DOMAIN,
    ResolverSettings,
    parse_record_types,
)
from .exceptions import InputError, TraceError
from .models import BulkResult, RecordType, ResolutionResult, ServerPerformance
from .query_engine import TRANSPORT_ERRORS, DNSQueryEngine, normalize_domain
from .statistics import LatencyAccumulator, StatisticsEngine
from .transports import BaseTransport


logger = logging.getLogger(__name__)

# Type for progress callback
ProgressCallback = Callable[[str, int, int], None]

MAX_TRACE_DEPTH = 10


class ResolutionRunner:
    """
    Runs resolution workloads against the configured name servers.

    Fan-out calls create their own concurrency gate and return results in
    a deterministic order, independent of task completion order.
    """

    def __init__(
        self,
        settings: Optional[ResolverSettings] = None,
        transport: Optional[BaseTransport] = None,
    ):
        self.settings = settings or ResolverSettings()
        self.engine = DNSQueryEngine(self.settings, transport=transport)

    async def resolve(self, domain: str, record_type: "RecordType | str") -> ResolutionResult:
        return await self.engine.resolve(domain, record_type)

    async def reverse_lookup(self, ip: str) -> ResolutionResult:
        return await self.engine.reverse_lookup(ip)

    async def resolve_all(
        self,
        domain: str,
        record_types: Optional[Iterable["RecordType | str"]] = None,
    ) -> list[ResolutionResult]:
        """
        Resolve several record types for one domain concurrently.

        Args:
            domain: Domain name to query
            record_types: Record types to query (A, AAAA, CNAME, MX, NS, TXT
                if None)

        Returns:
            One ResolutionResult per record type, sorted by record type

        Raises:
            InputError: If the domain or a record type is invalid
        """
        domain = normalize_domain(domain)
        types = parse_record_types(record_types, DEFAULT_RECORD_TYPES)
        semaphore = asyncio.Semaphore(self.settings.record_type_concurrency)

        async def limited_resolve(record_type: RecordType) -> ResolutionResult:
            async with semaphore:
                try:
                    return await self.engine.resolve(domain, record_type)
                except Exception as e:
                    logger.warning("%s %s failed: %s", domain, record_type.value, e)
                    return ResolutionResult(
                        domain=domain,
                        record_type=record_type,
                        error=str(e) or type(e).__name__,
                    )

        results = await asyncio.gather(*[limited_resolve(rt) for rt in types])
        return sorted(results, key=lambda r: r.record_type.value)

    async def bulk_resolve(
        self,
        domains: Iterable[str],
        record_types: Optional[Iterable["RecordType | str"]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> list[BulkResult]:
        """
        Resolve record types for many domains concurrently.

        Args:
            domains: Domain names to query
            record_types: Record types per domain (A, AAAA, MX if None)
            progress_callback: Optional callback for progress updates

        Returns:
            One BulkResult per input domain, sorted by domain

        Raises:
            UnsupportedRecordTypeError: If a record type is invalid
        """
        domains = list(domains)
        types = parse_record_types(record_types, DEFAULT_BULK_RECORD_TYPES)
        semaphore = asyncio.Semaphore(self.settings.concurrency)
        total = len(domains)
        done = 0

        logger.info(
            "Processing %d domains with %d concurrent workers",
            total,
            self.settings.concurrency,
        )

        async def limited_domain(domain: str) -> BulkResult:
            nonlocal done
            async with semaphore:
                try:
                    bulk = BulkResult(
                        domain=domain,
                        results=await self.resolve_all(domain, types),
                    )
                except InputError as e:
                    bulk = BulkResult(domain=domain, error=str(e))
            done += 1
            if progress_callback:
                progress_callback(f"Resolved {domain}", done, total)
            return bulk

        results = await asyncio.gather(*[limited_domain(d) for d in domains])
        return sorted(results, key=lambda b: b.domain)

    async def trace(
        self,
        domain: str,
        record_type: "RecordType | str" = RecordType.A,
    ) -> list[ResolutionResult]:
        """
        Trace the resolution path of a domain, following CNAME aliases.

        Stops when records or an error are found, when no alias is left to
        follow, when a domain repeats, or after MAX_TRACE_DEPTH steps.

        Raises:
            TraceError: If a step could not be resolved; ``steps`` holds
                the path collected so far
        """
        record_type = RecordType.parse(record_type)
        current = normalize_domain(domain)
        visited: set[str] = set()
        steps: list[ResolutionResult] = []

        for _ in range(MAX_TRACE_DEPTH):
            if current in visited:
                logger.info("Alias cycle detected at %s", current)
                break
            visited.add(current)

            try:
                result = await self.engine.resolve(current, record_type)
            except InputError as e:
                raise TraceError(str(e), steps=steps) from e
            steps.append(result)

            if result.records or result.error:
                break

            if not record_type.is_address:
                break

            try:
                alias = await self.engine.resolve(current, RecordType.CNAME)
            except InputError:
                break
            if not alias.records:
                break
            try:
                current = normalize_domain(alias.records[0])
            except InputError:
                logger.info("Unusable alias target %r for %s", alias.records[0], current)
                break

        return steps

    async def benchmark(
        self,
        test_domain: str = DEFAULT_TEST_DOMAIN,
        iterations: int = DEFAULT_ITERATIONS,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> list[ServerPerformance]:
        """
        Measure latency and reliability of each configured server.

        Servers are probed one after another, ``iterations`` A queries
        each. Any response counts as a success; transport failures count
        as failures.

        Returns:
            One ServerPerformance per server, sorted by average latency
        """
        test_domain = test_domain or DEFAULT_TEST_DOMAIN
        if iterations <= 0:
            iterations = DEFAULT_ITERATIONS

        servers = self.settings.servers
        logger.info("Testing %d DNS servers with %d iterations each", len(servers), iterations)

        performances = []
        for index, server in enumerate(servers, 1):
            if progress_callback:
                progress_callback(f"Testing {server}", index, len(servers))

            acc = LatencyAccumulator(server=server)
            for _ in range(iterations):
                try:
                    latency = await self.engine.probe(server, test_domain, RecordType.A)
                except TRANSPORT_ERRORS as e:
                    logger.debug("probe %s failed: %r", server, e)
                    acc.add_failure()
                else:
                    acc.add_success(latency)

            performances.append(acc.to_performance())

        return StatisticsEngine.rank_by_latency(performances)
