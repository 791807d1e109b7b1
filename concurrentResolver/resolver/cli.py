"""Command line entry point for the concurrent resolver."""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
import uuid
from typing import Optional, Sequence

import dns.exception
from rich.console import Console
from rich.markup import escape
from rich.traceback import install as install_rich_traceback

from concurrentResolver.logging_config import get_logger, reset_run_id, set_level, set_run_id
from concurrentResolver.resolver.config import ResolverConfig
from concurrentResolver.resolver.lookup import DomainResolver
from concurrentResolver.resolver.models import PipelineStats
from concurrentResolver.resolver.output import ResultCollector
from concurrentResolver.resolver.pipeline import run_pipeline
from concurrentResolver.resolver.sources import iter_lines, open_input

console = Console()
err_console = Console(stderr=True)
logger = get_logger("cli")

DESCRIPTION = """\
Concurrent Resolver Tool

Concurrently resolves domain names to IPv4 addresses. Accepts URLs or bare
domains (one per line) and extracts the domain before resolving it.
"""

EPILOG = """\
Output formats:
  ip         Only unique, successfully resolved IP addresses (default)
  domain-ip  'domain,ip' for resolved domains and 'domain,Could not resolve' for failures

Examples:
  %(prog)s
  %(prog)s -i my_domains.txt -o results.txt -c 200 -f domain-ip
  %(prog)s --config resolver.yaml --timeout 3 --nameserver 1.1.1.1
"""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="concurrent-resolver",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-i", "--input", default=None, help="Input file with URLs or domains, one per line (default: urls.txt)")
    parser.add_argument("-o", "--output", default=None, help="Output file for results (default: resolved_ips.txt)")
    parser.add_argument("-c", "--concurrency", type=int, default=None, help="Number of concurrent workers (default: 100)")
    parser.add_argument("-f", "--format", default=None, help="Output format: 'ip' (default) or 'domain-ip'")
    parser.add_argument("--timeout", type=float, default=None, help="Optional per-lookup deadline in seconds")
    parser.add_argument(
        "--nameserver",
        dest="nameservers",
        action="append",
        default=None,
        help="DNS server to query instead of the system resolvers (repeatable)",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CRESOLVER_CONFIG"),
        help="Path to a YAML config file; command line options take precedence",
    )
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    return parser.parse_args(argv)


async def run_resolver(cfg: ResolverConfig, resolver: DomainResolver, out: Console = console) -> PipelineStats:
    """Open the configured files and run the pipeline over them with `resolver`."""
    try:
        input_fh = open_input(cfg.input)
    except OSError as exc:
        raise OSError(f"Error opening input file {cfg.input}: {exc}") from exc

    with input_fh:
        try:
            output_fh = open(cfg.output, "w", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"Error creating output file {cfg.output}: {exc}") from exc

        with output_fh:
            collector = ResultCollector(cfg.format, output_fh, console=out)
            return await run_pipeline(iter_lines(input_fh), resolver, collector, concurrency=cfg.concurrency)


def main(argv: Optional[Sequence[str]] = None) -> int:
    install_rich_traceback()
    args = parse_args(argv)
    if args.log_level:
        set_level(args.log_level)

    try:
        cfg = ResolverConfig.build(
            args.config,
            {
                "input": args.input,
                "output": args.output,
                "concurrency": args.concurrency,
                "format": args.format,
                "timeout": args.timeout,
                "nameservers": args.nameservers,
            },
        )
    except (ValueError, FileNotFoundError) as exc:
        logger.error(
            f"Invalid configuration: {exc}",
            extra={"outcome": "error", "error_type": type(exc).__name__},
        )
        err_console.print(f"[red]{escape(str(exc))}", highlight=False)
        return 1

    # No file is opened until the resolver is configured
    try:
        resolver = DomainResolver(timeout=cfg.timeout, nameservers=cfg.nameservers)
    except (ValueError, dns.exception.DNSException) as exc:
        logger.error(
            f"Could not configure DNS resolver: {exc}",
            extra={"outcome": "error", "error_type": type(exc).__name__},
        )
        err_console.print(f"[red]Could not configure DNS resolver: {escape(str(exc))}", highlight=False)
        return 1

    token = set_run_id(uuid.uuid4().hex)
    logger.info(
        "Resolver starting",
        extra={
            "state": "starting",
            "path": cfg.input,
            "mode": cfg.format,
            "concurrency": cfg.concurrency,
            "timeout": cfg.timeout,
            "nameservers": cfg.nameservers,
        },
    )
    try:
        stats = asyncio.run(run_resolver(cfg, resolver))
    except OSError as exc:
        logger.error(str(exc), extra={"outcome": "error", "error_type": type(exc).__name__})
        err_console.print(f"[red]{escape(str(exc))}", highlight=False)
        return 1
    except KeyboardInterrupt:
        logger.info("Resolver interrupted", extra={"state": "interrupted"})
        err_console.print("[yellow]Interrupted")
        return 130
    finally:
        reset_run_id(token)

    if stats.read_error:
        err_console.print(f"[red]Error reading input file: {escape(stats.read_error)}", highlight=False)
    err_console.print(
        f"lines={stats.lines_read} resolved={stats.resolved} unresolved={stats.unresolved} "
        f"emitted={stats.emitted} elapsed={stats.elapsed_seconds:.1f}s",
        highlight=False,
    )
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
