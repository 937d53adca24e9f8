"""
Statistical analysis for name server benchmarks.

Calculates per-server statistics from repeated probe latencies:
- Basic stats: min, max, average
- Distribution: median, p95, standard deviation
- Reliability: success rate and failure count
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .models import ServerPerformance


@dataclass
class LatencyAccumulator:
    """Collects probe outcomes for one server."""
    server: str
    samples: list[float] = field(default_factory=list)
    failures: int = 0

    def add_success(self, latency_ms: float) -> None:
        self.samples.append(latency_ms)

    def add_failure(self) -> None:
        self.failures += 1

    @property
    def total(self) -> int:
        return len(self.samples) + self.failures

    @property
    def min_latency(self) -> Optional[float]:
        """Fastest successful probe, or None before any success."""
        return min(self.samples) if self.samples else None

    def to_performance(self) -> ServerPerformance:
        return StatisticsEngine.calculate_server_performance(self)


class StatisticsEngine:
    """Calculates server statistics from benchmark samples."""

    @staticmethod
    def calculate_server_performance(acc: LatencyAccumulator) -> ServerPerformance:
        """
        Calculate aggregated statistics for one server.

        Latency figures cover successful probes only; with no successes
        every latency figure is zero.

        Args:
            acc: Accumulated samples and failures for the server

        Returns:
            ServerPerformance with all metrics calculated
        """
        total = acc.total
        success_rate = (len(acc.samples) / total) * 100 if total else 0.0

        if acc.samples:
            latencies = np.array(acc.samples)
            avg_lat = float(np.mean(latencies))
            max_lat = float(np.max(latencies))
            median_lat = float(np.median(latencies))
            p95_lat = float(np.percentile(latencies, 95))
            stddev_lat = float(np.std(latencies))
        else:
            avg_lat = max_lat = median_lat = p95_lat = stddev_lat = 0.0

        min_lat = acc.min_latency
        return ServerPerformance(
            server=acc.server,
            avg_latency=avg_lat,
            min_latency=min_lat if min_lat is not None else 0.0,
            max_latency=max_lat,
            success_rate=success_rate,
            total_queries=total,
            failures=acc.failures,
            median_latency=median_lat,
            p95_latency=p95_lat,
            stddev_latency=stddev_lat,
        )

    @staticmethod
    def rank_by_latency(performances: list[ServerPerformance]) -> list[ServerPerformance]:
        """Sort ascending by average latency (servers without successes first)."""
        return sorted(performances, key=lambda p: p.avg_latency)

    @staticmethod
    def fastest(performances: list[ServerPerformance]) -> Optional[ServerPerformance]:
        """Server with the best average latency among those that answered."""
        answered = [p for p in performances if p.successful_queries > 0]
        if not answered:
            return None
        return min(answered, key=lambda p: p.avg_latency)
