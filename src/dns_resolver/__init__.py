"""
DNS Resolver - multi-server DNS resolution, tracing and benchmarking.

Resolves records through an ordered list of name servers with failover,
in single, multi-type and bulk form, and measures server performance.
"""

__version__ = "1.0.0"

from .models import BulkResult, RecordType, ResolutionResult, ServerPerformance
from .query_engine import DNSQueryEngine
from .runner import ResolutionRunner

__all__ = [
    "__version__",
    "BulkResult",
    "RecordType",
    "ResolutionResult",
    "ServerPerformance",
    "DNSQueryEngine",
    "ResolutionRunner",
]
