"""CLI entry point: lockscan.

Subcommands:
    lockscan scan /path/to/repo            # walk a directory
    lockscan scan go.mod Pipfile.lock      # scan specific manifests
    lockscan scan . --json                 # machine-readable inventory
    lockscan formats                       # list supported manifests
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from lockscan.core.logging import setup_logging
from lockscan.pipeline import ScanReport, scan
from lockscan.registry import create_default_registry


def _print_report(report: ScanReport, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if not report.packages:
        click.echo("No packages found.")
    else:
        click.echo(
            f"Found {len(report.packages)} packages in {len(report.sources)} manifest(s)\n"
        )
        for purl, pkg in report.packages.items():
            click.echo(f"  {purl}")
            for loc in pkg.locations:
                block = loc.block
                click.echo(f"    {block.filename}:{block.line_start}:{block.column_start}")

    if report.failures:
        click.echo(f"\n{len(report.failures)} manifest(s) skipped:", err=True)
        for failure in report.failures:
            click.echo(f"  {failure.path}: {failure.error}", err=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log renderer (default: $LOCKSCAN_LOG_FORMAT or console)",
)
def main(verbose: bool, log_format: str | None) -> None:
    """lockscan: consolidated dependency inventory from lockfiles."""
    setup_logging(level="DEBUG" if verbose else None, fmt=log_format)


@main.command("scan")
@click.argument("targets", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--concurrency", type=int, default=None, help="Parallel extractions")
@click.option("--timeout", type=float, default=None, help="Per-manifest timeout in seconds")
@click.option("--strict", is_flag=True, help="Exit 1 if any manifest was skipped")
def scan_cmd(
    targets: tuple[str, ...],
    as_json: bool,
    concurrency: int | None,
    timeout: float | None,
    strict: bool,
) -> None:
    """Scan directories or manifest files for dependencies."""
    report = asyncio.run(
        scan(
            targets,
            create_default_registry(),
            concurrency=concurrency,
            timeout=timeout,
        )
    )
    _print_report(report, as_json)
    if strict and report.failures:
        sys.exit(1)


@main.command("formats")
def formats() -> None:
    """List the manifest formats lockscan understands."""
    for extractor in create_default_registry().list_all():
        click.echo(extractor.detection_method)


if __name__ == "__main__":
    main()
