"""Summary command - tabulate a saved security annotations report."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..report import load_report


def _format_expression(expr: Any) -> str:
    if not isinstance(expr, dict):
        return str(expr)
    attribute = expr.get("attribute", "?")
    subject = expr.get("subject")
    return f"{attribute}({subject})" if subject is not None else str(attribute)


def summarize(report: dict[str, Any]) -> list[dict[str, Any]]:
    """One row per controller: class-level expressions, method count, route records."""
    rows = []
    for controller, info in report.items():
        # Not a controller mapping (hand-edited report)
        if info is not None and not isinstance(info, dict):
            continue
        info = info or {}
        methods = info.get("methods")
        if not isinstance(methods, dict):
            methods = {}
        class_security = info.get("class_security")
        if not isinstance(class_security, list):
            class_security = []
        rows.append(
            {
                "controller": str(controller),
                "class_security": [_format_expression(e) for e in class_security],
                "methods": len(methods),
                "records": sum(len(records) for records in methods.values() if isinstance(records, list)),
            }
        )
    return rows


def run_summary(report_path: Path, *, output_json: bool = False) -> int:
    """Show a saved report as a table (or JSON rows)."""
    err = Console(stderr=True)

    if not report_path.exists():
        err.print(f"Report not found: {report_path}", style="bold red")
        return 1

    try:
        report = load_report(report_path)
    except ValueError as exc:
        err.print(f"Cannot read report: {exc}", style="bold red")
        return 1

    rows = summarize(report)

    if output_json:
        print(json.dumps(rows, indent=2))
        return 0

    console = Console()
    table = Table(title=f"Security Annotations: {report_path.name}")
    table.add_column("Controller", style="cyan")
    table.add_column("Class security")
    table.add_column("Methods", justify="right")
    table.add_column("Records", justify="right")

    for row in rows:
        table.add_row(
            escape(row["controller"]),
            escape(", ".join(row["class_security"])) or "-",
            str(row["methods"]),
            str(row["records"]),
        )

    console.print(table)
    console.print(f"\nControllers: {len(rows)} total")

    last = read_audit_log(report_path, last_n=1)
    if last:
        console.print()
        console.print(format_audit_entry(last[0]), style="dim", markup=False, highlight=False)
    return 0
