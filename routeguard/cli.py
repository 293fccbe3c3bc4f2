"""CLI entrypoint for routeguard."""

import dataclasses
import sys
from pathlib import Path

import click

from . import __version__
from .config import READERS, resolve_config
from .errors import ConfigError, RouteTableError
from .report import DEFAULT_OUTPUT, FORMATS


@click.group()
@click.version_option(__version__, prog_name="routeguard")
def cli() -> None:
    """routeguard - Audit access-control metadata on route handlers.

    Walks an application's route table, reads the IsGranted/Security
    metadata attached to each handler class and method, and saves the
    findings as YAML.
    """


@cli.command()
@click.option(
    "--routes",
    "-r",
    "routes_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML route table (routes: {name: {controller: 'pkg.Class::method'}})",
)
@click.option(
    "--app",
    "-a",
    "app_spec",
    type=str,
    default=None,
    metavar="MODULE:ATTR",
    help="Application object or factory to read the route table from",
)
@click.option(
    "--reader",
    type=click.Choice(READERS),
    default=None,
    help="How handler metadata is read: import the code, or parse it statically",
)
@click.option(
    "--source-root",
    "source_roots",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    multiple=True,
    help="Directory containing the application's packages (repeatable; defaults to cwd)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Report file to write (default: ./{DEFAULT_OUTPUT})",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(FORMATS),
    default=None,
    help="Report format",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML config file (default: ./routeguard.toml or [tool.routeguard] in ./pyproject.toml)",
)
@click.option(
    "--no-audit-log",
    is_flag=True,
    help="Do not append an entry to .routeguard/audit.log",
)
def scan(
    routes_path: Path | None,
    app_spec: str | None,
    reader: str | None,
    source_roots: tuple[Path, ...],
    output: Path | None,
    output_format: str | None,
    config_path: Path | None,
    no_audit_log: bool,
) -> None:
    """Collect security expressions for every route and save them.

    Examples:

        routeguard scan --routes routes.yml

        routeguard scan --app myproject.wsgi:app --reader static

        routeguard scan --app myproject:create_app -o audit/security.yml
    """
    from .commands.scan_cmd import run_scan

    if routes_path is not None and app_spec:
        raise click.UsageError("Pass either --routes or --app, not both.")

    try:
        config = resolve_config(config_path, Path.cwd())
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc

    overrides: dict = {}
    if routes_path is not None:
        overrides.update(routes=routes_path, app=None)
    if app_spec:
        overrides.update(app=app_spec, routes=None)
    if reader:
        overrides["reader"] = reader
    if source_roots:
        overrides["source_roots"] = tuple(source_roots)
    if output is not None:
        overrides["output"] = output
    if output_format:
        overrides["format"] = output_format
    if no_audit_log:
        overrides["audit_log"] = False
    config = dataclasses.replace(config, **overrides)

    try:
        exit_code = run_scan(config)
    except (ConfigError, RouteTableError) as exc:
        raise click.UsageError(str(exc)) from exc
    sys.exit(exit_code)


@cli.command()
@click.argument(
    "report",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OUTPUT,
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output rows as JSON",
)
def summary(report: Path, output_json: bool) -> None:
    """Show a saved report as a per-controller table."""
    from .commands.summary_cmd import run_summary

    exit_code = run_summary(report, output_json=output_json)
    sys.exit(exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
