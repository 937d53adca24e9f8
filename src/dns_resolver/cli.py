"""
Command-line interface for the DNS resolver.

Provides commands for multi-record resolution, bulk queries, reverse
lookups, alias tracing and name server benchmarking, with text, table,
JSON and CSV output.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich import box

from . import __version__
from .config import (
    DEFAULT_BULK_RECORD_TYPES,
    DEFAULT_CONCURRENCY,
    DEFAULT_ITERATIONS,
    DEFAULT_RECORD_TYPES,
    DEFAULT_RETRIES,
    DEFAULT_TEST_DOMAIN,
    DEFAULT_TIMEOUT,
    DEFAULT_TRACE_RECORD_TYPE,
    ResolverSettings,
    build_settings,
    parse_record_types,
)
from .exceptions import DNSResolverError, TraceError
from .logging_config import init_logging
from .models import RecordType, Transport
from .output import BULK, FORMATS, PERFORMANCE, RESULTS, TRACE, write_output
from .runner import ResolutionRunner
from .servers import DEFAULT_SERVERS, RESOLVERS
from .transports import create_transport


logger = logging.getLogger(__name__)

RECORD_TYPE_HELP = ",".join(rt.value for rt in RecordType)


class CLIContext:
    """Global options shared by all commands."""

    def __init__(self, settings: ResolverSettings, fmt: str, output: Optional[str], verbose: int):
        self.settings = settings
        self.format = fmt
        self.output = output
        self.verbose = verbose

    def runner(self) -> ResolutionRunner:
        return ResolutionRunner(
            self.settings,
            transport=create_transport(self.settings.transport),
        )

    @property
    def show_progress(self) -> bool:
        # Keep machine-readable stdout clean
        return self.output is not None or self.format in ("text", "table")


def fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def run_with_progress(ctx: CLIContext, make_coro):
    """Run a coroutine factory, passing it a rich progress callback if wanted."""
    if not ctx.show_progress:
        return asyncio.run(make_coro(None))

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=Console(stderr=True),
        transient=True,
    )
    task_id = None

    def callback(message: str, current: int, total: int):
        nonlocal task_id
        if task_id is None:
            task_id = progress.add_task(message, total=total)
        progress.update(task_id, description=message, completed=current)

    with progress:
        return asyncio.run(make_coro(callback))


@click.group()
@click.version_option(__version__)
@click.option(
    "--servers", "-s",
    multiple=True,
    envvar="DNS_RESOLVER_SERVERS",
    help="DNS servers to query, repeatable or comma-separated "
         f"(default: {','.join(DEFAULT_SERVERS)}). Profile names such as 'google' are accepted.",
)
@click.option(
    "--timeout", "-t",
    type=float,
    default=DEFAULT_TIMEOUT,
    show_default=True,
    envvar="DNS_RESOLVER_TIMEOUT",
    help="Query timeout in seconds",
)
@click.option(
    "--retries", "-r",
    type=int,
    default=DEFAULT_RETRIES,
    show_default=True,
    envvar="DNS_RESOLVER_RETRIES",
    help="Number of retries per query",
)
@click.option(
    "--concurrent", "-c",
    type=int,
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    envvar="DNS_RESOLVER_CONCURRENT",
    help="Maximum concurrent queries",
)
@click.option(
    "--transport",
    type=click.Choice([t.value for t in Transport]),
    default=Transport.UDP.value,
    show_default=True,
    envvar="DNS_RESOLVER_TRANSPORT",
    help="Transport protocol to use",
)
@click.option(
    "--format", "-f", "fmt",
    type=click.Choice(FORMATS),
    default="text",
    show_default=True,
    help="Output format",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    help="Output file (default: stdout)",
)
@click.option(
    "--verbose", "-v",
    count=True,
    help="Verbose output (-vv for debug)",
)
@click.pass_context
def main(ctx, servers, timeout, retries, concurrent, transport, fmt, output, verbose):
    """
    Advanced DNS Resolver.

    Resolves multiple record types, processes domains in bulk, performs
    reverse lookups, traces alias chains and benchmarks name servers.
    """
    init_logging(verbose)
    try:
        settings = build_settings(
            servers=servers,
            timeout=timeout,
            retries=retries,
            concurrency=concurrent,
            transport=transport,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    ctx.obj = CLIContext(settings, fmt, output, verbose)


@main.command()
@click.argument("domain")
@click.option(
    "--types",
    multiple=True,
    help=f"Record types to query ({RECORD_TYPE_HELP})",
)
@click.pass_obj
def resolve(ctx: CLIContext, domain: str, types: tuple):
    """
    Resolve DNS records for a domain.

    Examples:

    \b
      dns-resolver resolve google.com
      dns-resolver resolve google.com --types A,AAAA,MX
      dns-resolver -f json -o results.json resolve example.com
    """
    try:
        record_types = parse_record_types(types, DEFAULT_RECORD_TYPES)
        results = asyncio.run(ctx.runner().resolve_all(domain, record_types))
    except DNSResolverError as e:
        fail(f"resolving domain: {e}")

    write_output(RESULTS, results, ctx.format, ctx.output)


def read_domains(path: Path) -> list[str]:
    """Read whitespace-separated domains, skipping ``#`` comment lines."""
    domains = []
    for line in path.read_text().splitlines():
        if line.strip().startswith("#"):
            continue
        domains.extend(line.split())
    return domains


@main.command()
@click.argument("domains", nargs=-1)
@click.option(
    "--input", "-i", "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Input file containing domains (one per line)",
)
@click.option(
    "--types",
    multiple=True,
    help="Record types to query (default: A,AAAA,MX)",
)
@click.pass_obj
def bulk(ctx: CLIContext, domains: tuple, input_file: Optional[Path], types: tuple):
    """
    Perform bulk DNS resolution for multiple domains.

    Examples:

    \b
      dns-resolver bulk google.com facebook.com twitter.com
      dns-resolver bulk --input domains.txt --types A,MX
      dns-resolver -f csv -o results.csv bulk --input domains.txt
    """
    domain_list = read_domains(input_file) if input_file else list(domains)
    if not domain_list:
        fail("No domains provided. Use arguments or --input file")

    try:
        record_types = parse_record_types(types, DEFAULT_BULK_RECORD_TYPES)
    except DNSResolverError as e:
        fail(str(e))

    runner = ctx.runner()
    results = run_with_progress(
        ctx,
        lambda callback: runner.bulk_resolve(domain_list, record_types, progress_callback=callback),
    )
    write_output(BULK, results, ctx.format, ctx.output)


@main.command()
@click.argument("ip")
@click.pass_obj
def reverse(ctx: CLIContext, ip: str):
    """
    Perform reverse DNS lookup for an IP address.

    Examples:

    \b
      dns-resolver reverse 8.8.8.8
      dns-resolver reverse 2001:4860:4860::8888
    """
    try:
        result = asyncio.run(ctx.runner().reverse_lookup(ip))
    except DNSResolverError as e:
        fail(f"performing reverse DNS lookup: {e}")

    write_output(RESULTS, [result], ctx.format, ctx.output)


@main.command()
@click.option(
    "--domain", "test_domain",
    default=DEFAULT_TEST_DOMAIN,
    show_default=True,
    help="Domain to use for testing",
)
@click.option(
    "--iterations",
    type=int,
    default=DEFAULT_ITERATIONS,
    show_default=True,
    help="Number of test iterations per server",
)
@click.pass_obj
def test(ctx: CLIContext, test_domain: str, iterations: int):
    """
    Test DNS server performance.

    Examples:

    \b
      dns-resolver test
      dns-resolver test --domain example.com --iterations 10
      dns-resolver -s 8.8.8.8,1.1.1.1 -f json test
    """
    runner = ctx.runner()
    try:
        results = run_with_progress(
            ctx,
            lambda callback: runner.benchmark(test_domain, iterations, progress_callback=callback),
        )
    except DNSResolverError as e:
        fail(f"testing DNS servers: {e}")

    write_output(PERFORMANCE, results, ctx.format, ctx.output)


@main.command()
@click.argument("domain")
@click.option(
    "--type", "record_type",
    default=DEFAULT_TRACE_RECORD_TYPE.value,
    show_default=True,
    help="Record type to trace",
)
@click.pass_obj
def trace(ctx: CLIContext, domain: str, record_type: str):
    """
    Trace the DNS resolution path, following CNAME aliases.

    Examples:

    \b
      dns-resolver trace www.github.com
      dns-resolver trace example.com --type AAAA
    """
    logger.info("Tracing DNS resolution path for %s (%s)", domain, record_type.upper())
    try:
        results = asyncio.run(ctx.runner().trace(domain, record_type))
    except TraceError as e:
        if e.steps:
            write_output(TRACE, e.steps, ctx.format, ctx.output)
        fail(f"tracing DNS query: {e}")
    except DNSResolverError as e:
        fail(f"tracing DNS query: {e}")

    write_output(TRACE, results, ctx.format, ctx.output)


@main.command("servers")
def list_servers():
    """List the built-in public DNS resolver profiles."""
    console = Console()
    table = Table(
        title="Available DNS Resolvers",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Name", style="green")
    table.add_column("IPv4", style="cyan")
    table.add_column("IPv6", style="yellow")
    table.add_column("Description")

    for name, profile in sorted(RESOLVERS.items()):
        table.add_row(name, profile.ipv4, profile.ipv6 or "", profile.description or "")

    console.print(table)
    console.print()
    console.print("[dim]Default servers:[/dim]", ", ".join(DEFAULT_SERVERS))


@main.command()
@click.option(
    "--port", "-p",
    type=int,
    default=5002,
    show_default=True,
    help="Port to run the web service on",
)
@click.option(
    "--host",
    default="127.0.0.1",
    show_default=True,
    help="Host to bind the server to",
)
def serve(port: int, host: str):
    """
    Run the JSON web service.

    Exposes resolve, bulk, reverse, trace and test endpoints under /api.
    """
    from .web import run_server

    click.echo(f"Starting DNS resolver web service on http://{host}:{port}")
    click.echo("Press Ctrl+C to stop the server")

    run_server(host=host, port=port)


if __name__ == "__main__":
    main()
