"""
FastAPI application for the DNS resolver.

Serves a browser page and JSON endpoints for resolution, bulk queries,
reverse lookups, tracing and server performance tests.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config import (
    DEFAULT_BULK_RECORD_TYPES,
    DEFAULT_CONCURRENCY,
    DEFAULT_ITERATIONS,
    DEFAULT_RECORD_TYPES,
    DEFAULT_TEST_DOMAIN,
    DEFAULT_TIMEOUT,
    DEFAULT_TRACE_RECORD_TYPE,
    build_settings,
)
from ..exceptions import DNSResolverError, TraceError
from ..models import RecordType
from ..runner import ResolutionRunner
from ..servers import DEFAULT_SERVERS, RESOLVERS
from ..transports import BaseTransport, create_transport


logger = logging.getLogger(__name__)

MAX_BULK_DOMAINS = 50


class QueryRequest(BaseModel):
    domain: str
    record_types: list[str] = Field(default_factory=list)
    servers: list[str] = Field(default_factory=list)
    timeout: float = 0
    concurrent: int = 0


class BulkQueryRequest(BaseModel):
    domains: list[str]
    record_types: list[str] = Field(default_factory=list)
    servers: list[str] = Field(default_factory=list)
    timeout: float = 0
    concurrent: int = 0


class ReverseQueryRequest(BaseModel):
    ip: str
    servers: list[str] = Field(default_factory=list)
    timeout: float = 0
    concurrent: int = 0


class TraceRequest(BaseModel):
    domain: str
    record_type: str = DEFAULT_TRACE_RECORD_TYPE.value
    servers: list[str] = Field(default_factory=list)
    timeout: float = 0


class ServerTestRequest(BaseModel):
    test_domain: str = DEFAULT_TEST_DOMAIN
    iterations: int = DEFAULT_ITERATIONS
    servers: list[str] = Field(default_factory=list)
    timeout: float = 0


TransportFactory = Callable[[], Optional[BaseTransport]]


def create_app(transport_factory: Optional[TransportFactory] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        transport_factory: Returns the transport each request should use
            (built from the request settings if None)
    """

    app = FastAPI(
        title="DNS Resolver",
        description="Multi-server DNS resolution, tracing and benchmarking",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Static files directory
    static_dir = Path(__file__).parent / "static"

    @app.get("/", include_in_schema=False)
    async def root():
        """Serve the browser front-end."""
        return FileResponse(static_dir / "index.html")

    def make_runner(servers, timeout, concurrent=0) -> ResolutionRunner:
        try:
            settings = build_settings(
                servers=servers,
                timeout=timeout,
                concurrency=concurrent,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        transport = transport_factory() if transport_factory else None
        return ResolutionRunner(
            settings,
            transport=transport or create_transport(settings.transport),
        )

    @app.post("/api/resolve")
    async def resolve(request: QueryRequest):
        """Resolve several record types for one domain."""
        runner = make_runner(request.servers, request.timeout, request.concurrent)
        try:
            results = await runner.resolve_all(request.domain, request.record_types)
        except DNSResolverError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "domain": request.domain,
            "results": [r.to_dict() for r in results],
            "count": len(results),
        }

    @app.post("/api/bulk")
    async def bulk(request: BulkQueryRequest):
        """Resolve record types for many domains."""
        if len(request.domains) > MAX_BULK_DOMAINS:
            raise HTTPException(
                status_code=400,
                detail=f"Maximum {MAX_BULK_DOMAINS} domains allowed for bulk queries",
            )

        runner = make_runner(request.servers, request.timeout, request.concurrent)
        try:
            results = await runner.bulk_resolve(request.domains, request.record_types)
        except DNSResolverError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "domains": request.domains,
            "results": [b.to_dict() for b in results],
            "count": len(results),
        }

    @app.post("/api/reverse")
    async def reverse(request: ReverseQueryRequest):
        """Reverse lookup of an IP address."""
        runner = make_runner(request.servers, request.timeout, request.concurrent)
        try:
            result = await runner.reverse_lookup(request.ip)
        except DNSResolverError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "ip": request.ip,
            "result": result.to_dict(),
        }

    @app.post("/api/trace")
    async def trace(request: TraceRequest):
        """Trace the resolution path of a domain."""
        runner = make_runner(request.servers, request.timeout)
        try:
            steps = await runner.trace(request.domain, request.record_type)
        except TraceError as e:
            logger.info("trace of %s stopped after %d steps: %s", request.domain, len(e.steps), e)
            raise HTTPException(status_code=400, detail=str(e))
        except DNSResolverError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "domain": request.domain,
            "record_type": request.record_type.upper(),
            "steps": [s.to_dict() for s in steps],
            "count": len(steps),
        }

    @app.post("/api/test")
    async def test(request: ServerTestRequest):
        """Benchmark the configured name servers."""
        runner = make_runner(request.servers, request.timeout)
        try:
            results = await runner.benchmark(request.test_domain, request.iterations)
        except DNSResolverError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return {
            "test_domain": request.test_domain or DEFAULT_TEST_DOMAIN,
            "iterations": request.iterations if request.iterations > 0 else DEFAULT_ITERATIONS,
            "results": [p.to_dict() for p in results],
            "count": len(results),
        }

    @app.get("/api/health")
    async def health():
        """Service health check."""
        return {
            "status": "healthy",
            "service": "dns-resolver",
            "version": __version__,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }

    @app.get("/api/servers")
    async def get_servers():
        """Get list of built-in resolver profiles."""
        return {
            "resolvers": [
                {
                    "id": key,
                    "name": profile.name,
                    "ipv4": profile.ipv4,
                    "ipv6": profile.ipv6,
                    "description": profile.description,
                }
                for key, profile in RESOLVERS.items()
            ],
            "defaults": DEFAULT_SERVERS,
        }

    @app.get("/api/config")
    async def get_config():
        """Get default configuration options."""
        return {
            "record_types": [rt.value for rt in RecordType],
            "defaults": {
                "servers": DEFAULT_SERVERS,
                "timeout": DEFAULT_TIMEOUT,
                "concurrent": DEFAULT_CONCURRENCY,
                "record_types": [rt.value for rt in DEFAULT_RECORD_TYPES],
                "bulk_record_types": [rt.value for rt in DEFAULT_BULK_RECORD_TYPES],
                "test_domain": DEFAULT_TEST_DOMAIN,
                "iterations": DEFAULT_ITERATIONS,
                "max_bulk_domains": MAX_BULK_DOMAINS,
            },
        }

    return app


def run_server(host: str = "127.0.0.1", port: int = 5002):
    """Run the web service."""
    uvicorn.run(create_app(), host=host, port=port, log_level="warning")
