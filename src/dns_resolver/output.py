"""
Output formatting for resolver results.

Provides multiple output formats:
- Text: Plain, human-readable report blocks
- Table: Rich terminal tables
- JSON: Machine-readable full results
- CSV: Spreadsheet-compatible rows
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional, Sequence

import click
from rich import box
from rich.console import Console
from rich.table import Table

from .models import BulkResult, ResolutionResult, ServerPerformance
from .statistics import StatisticsEngine


FORMATS = ["text", "table", "json", "csv"]

# Result kinds produced by the runner
RESULTS = "results"
BULK = "bulk"
PERFORMANCE = "performance"
TRACE = "trace"

RULE = "=" * 60


def _banner(title: str) -> list[str]:
    return [RULE, title.center(60).rstrip(), RULE, ""]


def _ms(value: float) -> str:
    return f"{value:.2f}ms"


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def format(items: Sequence, indent: int = 2) -> str:
        """Format any list of result models as a JSON array."""
        return json.dumps([item.to_dict() for item in items], indent=indent)


class CSVOutput:
    """CSV output formatter."""

    RESULT_HEADER = [
        "Domain",
        "RecordType",
        "Records",
        "TTL",
        "ResponseTimeMs",
        "Server",
        "Error",
        "Timestamp",
    ]

    PERFORMANCE_HEADER = [
        "Server",
        "AvgResponseMs",
        "MinResponseMs",
        "MaxResponseMs",
        "SuccessRate",
        "TotalQueries",
        "Failures",
    ]

    @staticmethod
    def format_results(results: Sequence[ResolutionResult]) -> str:
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.RESULT_HEADER)

        for result in results:
            writer.writerow(CSVOutput._result_row(result))

        return output.getvalue()

    @staticmethod
    def _result_row(result: ResolutionResult) -> list:
        return [
            result.domain,
            result.record_type.value,
            "; ".join(result.records),
            result.ttl,
            round(result.response_time_ms, 3),
            result.server,
            result.error or "",
            result.timestamp.isoformat(),
        ]

    @staticmethod
    def format_bulk(results: Sequence[BulkResult]) -> str:
        """
        Flatten bulk results into one row per record type.

        A domain that failed as a whole gets a single row carrying its error.
        """
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.RESULT_HEADER)

        for bulk in results:
            if bulk.error:
                writer.writerow([bulk.domain, "", "", "", "", "", bulk.error, ""])
            for result in bulk.results:
                writer.writerow(CSVOutput._result_row(result))

        return output.getvalue()

    @staticmethod
    def format_performance(results: Sequence[ServerPerformance]) -> str:
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.PERFORMANCE_HEADER)

        for perf in results:
            writer.writerow([
                perf.server,
                round(perf.avg_latency, 3),
                round(perf.min_latency, 3),
                round(perf.max_latency, 3),
                f"{perf.success_rate:.2f}",
                perf.total_queries,
                perf.failures,
            ])

        return output.getvalue()


class TextOutput:
    """Plain text report formatter."""

    @staticmethod
    def format_results(results: Sequence[ResolutionResult]) -> str:
        lines = _banner("DNS RESOLUTION RESULTS")

        for result in results:
            lines.append(f"Domain: {result.domain}")
            lines.append(f"Record Type: {result.record_type.value}")
            lines.append(f"DNS Server: {result.server}")
            lines.append(f"Response Time: {_ms(result.response_time_ms)}")
            lines.append(f"TTL: {result.ttl} seconds")

            if result.error:
                lines.append(f"Error: {result.error}")
            elif result.records:
                lines.append("Records:")
                lines.extend(f"  {record}" for record in result.records)
            else:
                lines.append("No records found")

            lines.append(f"Timestamp: {result.timestamp.isoformat(timespec='seconds')}")
            lines.append("")
            lines.append("-" * 60)
            lines.append("")

        return "\n".join(lines) + "\n"

    @staticmethod
    def format_bulk(results: Sequence[BulkResult]) -> str:
        lines = _banner("BULK DNS RESOLUTION RESULTS")

        for bulk in results:
            lines.append(f"Domain: {bulk.domain}")
            if bulk.error:
                lines.append(f"Error: {bulk.error}")
            for result in bulk.results:
                prefix = f"  {result.record_type.value}: "
                if result.error:
                    lines.append(f"{prefix}Error - {result.error}")
                elif result.records:
                    lines.append(
                        f"{prefix}{', '.join(result.records)} "
                        f"(TTL: {result.ttl}s, {_ms(result.response_time_ms)})"
                    )
                else:
                    lines.append(f"{prefix}No records")
            lines.append("")

        return "\n".join(lines) + "\n"

    @staticmethod
    def format_performance(results: Sequence[ServerPerformance]) -> str:
        lines = _banner("DNS SERVER PERFORMANCE TEST")
        lines.append(
            f"{'SERVER':<22} {'AVG_TIME':<12} {'MIN_TIME':<12} "
            f"{'MAX_TIME':<12} {'SUCCESS%':<10} {'QUERIES':<8}"
        )
        lines.append("-" * 80)

        for perf in results:
            lines.append(
                f"{perf.server:<22} {_ms(perf.avg_latency):<12} "
                f"{_ms(perf.min_latency):<12} {_ms(perf.max_latency):<12} "
                f"{perf.success_rate:<10.1f} {perf.total_queries:<8}"
            )

        fastest = StatisticsEngine.fastest(list(results))
        lines.append("")
        if fastest:
            lines.append(f"Fastest: {fastest.server} ({_ms(fastest.avg_latency)} average)")
        else:
            lines.append("No server answered - cannot determine fastest")

        return "\n".join(lines) + "\n"

    @staticmethod
    def format_trace(results: Sequence[ResolutionResult]) -> str:
        lines = _banner("DNS QUERY TRACE RESULTS")

        for i, result in enumerate(results, 1):
            lines.append(f"Step {i}: {result.domain} ({result.record_type.value})")
            lines.append(f"  Server: {result.server}")
            lines.append(f"  Response Time: {_ms(result.response_time_ms)}")
            if result.error:
                lines.append(f"  Error: {result.error}")
            elif result.records:
                lines.append("  Records:")
                lines.extend(f"    {record}" for record in result.records)
            lines.append("")

        return "\n".join(lines) + "\n"


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def _results_table(title: str, results: Sequence[ResolutionResult], steps: bool = False) -> Table:
        table = Table(title=title, box=box.ROUNDED, header_style="bold magenta")

        if steps:
            table.add_column("Step", justify="right")
        table.add_column("Domain", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("TTL", justify="right", style="yellow")
        table.add_column("Records / Error")
        table.add_column("Server", style="dim")
        table.add_column("Time (ms)", justify="right", style="green")

        for i, result in enumerate(results, 1):
            if result.error:
                value = f"[red]{result.error}[/red]"
            elif result.records:
                value = "\n".join(result.records)
            else:
                value = "[dim]no records[/dim]"
            row = [
                result.domain,
                result.record_type.value,
                str(result.ttl),
                value,
                result.server,
                f"{result.response_time_ms:.1f}",
            ]
            if steps:
                row.insert(0, str(i))
            table.add_row(*row)

        return table

    @staticmethod
    def print(kind: str, items: Sequence, console: Optional[Console] = None) -> None:
        """Print results of the given kind as rich tables."""
        console = console or Console()

        if kind == RESULTS:
            console.print(RichConsoleOutput._results_table("DNS Resolution Results", items))
        elif kind == TRACE:
            console.print(RichConsoleOutput._results_table("DNS Query Trace", items, steps=True))
        elif kind == BULK:
            for bulk in items:
                if bulk.error:
                    console.print(f"[bold]{bulk.domain}[/bold]: [red]{bulk.error}[/red]")
                    continue
                console.print(RichConsoleOutput._results_table(bulk.domain, bulk.results))
        elif kind == PERFORMANCE:
            table = Table(
                title="DNS Server Performance",
                box=box.ROUNDED,
                header_style="bold magenta",
            )
            table.add_column("Server", style="cyan")
            table.add_column("Queries", justify="right")
            table.add_column("Success", justify="right")
            table.add_column("Avg (ms)", justify="right", style="green")
            table.add_column("Min (ms)", justify="right")
            table.add_column("Max (ms)", justify="right")
            table.add_column("p95 (ms)", justify="right", style="yellow")

            for perf in items:
                table.add_row(
                    perf.server,
                    str(perf.total_queries),
                    f"{perf.success_rate:.1f}%",
                    f"{perf.avg_latency:.1f}",
                    f"{perf.min_latency:.1f}",
                    f"{perf.max_latency:.1f}",
                    f"{perf.p95_latency:.1f}",
                )
            console.print(table)
        else:
            raise ValueError(f"Unknown result kind: {kind}")


_TEXT = {
    RESULTS: TextOutput.format_results,
    BULK: TextOutput.format_bulk,
    PERFORMANCE: TextOutput.format_performance,
    TRACE: TextOutput.format_trace,
}

_CSV = {
    RESULTS: CSVOutput.format_results,
    BULK: CSVOutput.format_bulk,
    PERFORMANCE: CSVOutput.format_performance,
    TRACE: CSVOutput.format_results,
}


def render(kind: str, items: Sequence, fmt: str) -> str:
    """Render results as text, JSON or CSV."""
    fmt = fmt.lower()
    if fmt == "json":
        return JSONOutput.format(items)
    if fmt == "csv":
        return _CSV[kind](items)
    return _TEXT[kind](items)


def write_output(kind: str, items: Sequence, fmt: str, output: Optional[str] = None) -> None:
    """
    Write results to a file, or to the console when no path is given.

    The ``table`` format prints rich tables on the console and falls back
    to plain text when writing to a file.
    """
    if output:
        path = Path(output)
        with open(path, "w", newline="") as f:
            f.write(render(kind, items, fmt))
        click.echo(f"Results saved to {path}", err=True)
    elif fmt.lower() == "table":
        RichConsoleOutput.print(kind, items)
    else:
        click.echo(render(kind, items, fmt), nl=False)
