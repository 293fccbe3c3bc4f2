"""Scan command - collect security expressions for every route and save the report."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..audit_log import ScanSummary, log_operation
from ..collector import collect
from ..config import ScanConfig
from ..errors import ConfigError
from ..models import ScanResult
from ..readers import ImportMetadataReader, MetadataReader, StaticMetadataReader
from ..report import write_report
from ..routing import RawRoute, load_app, load_route_table, routes_from_app


def _search_paths(config: ScanConfig) -> list[Path]:
    return list(config.source_roots) or [Path.cwd()]


def load_routes(config: ScanConfig) -> list[RawRoute]:
    """Load raw routes from the configured route table or application."""
    if config.routes is not None and config.app:
        raise ConfigError("Pass either a route table or an app, not both")
    if config.routes is not None:
        return load_route_table(config.routes)
    if config.app:
        return routes_from_app(load_app(config.app, _search_paths(config)))
    raise ConfigError("No route source configured: pass --routes FILE or --app MODULE:ATTR")


def build_reader(config: ScanConfig) -> MetadataReader:
    if config.reader == "static":
        return StaticMetadataReader(_search_paths(config))
    if config.reader == "import":
        return ImportMetadataReader(_search_paths(config))
    raise ConfigError(f"Unknown reader: {config.reader}")


def scan(config: ScanConfig) -> ScanResult:
    """Load routes and collect their security expressions, without writing anything."""
    return collect(load_routes(config), build_reader(config))


def run_scan(config: ScanConfig) -> int:
    """
    Scan routes, write the report and print diagnostics.

    Route source and reader errors raise before anything is written. A
    failure to write the report propagates.

    Returns:
        Exit code (always 0 once the report is written)
    """
    console = Console()

    result = scan(config)

    for line in result.diagnostics:
        console.print(line, style="yellow", markup=False, highlight=False, soft_wrap=True)

    output = config.output
    bytes_written = write_report(
        output,
        result.to_dict(),
        config.format,
        inline_depth=config.inline_depth,
        indent=config.indent,
    )

    if config.audit_log:
        log_operation(
            output,
            "scan",
            bytes_written,
            summary=ScanSummary(
                routes_seen=result.routes_seen,
                routes_skipped=result.routes_skipped,
                controllers=len(result.controllers),
                expressions=result.expression_count,
            ),
            metadata={
                "source": str(config.routes) if config.routes is not None else config.app,
                "reader": config.reader,
                "format": config.format,
            },
        )

    console.print(
        f"Security annotations have been saved to {output}",
        style="green",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )
    return 0
