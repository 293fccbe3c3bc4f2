"""
Annotation collector.

Walks routes in registry order, reads class-level and method-level security
metadata for each handler and aggregates the normalized expressions per
controller class.
"""

from __future__ import annotations

from typing import Iterable

from .errors import MetadataNotFound
from .expressions import extract_security_expressions
from .models import MethodSecurityRecord, ScanResult, SecurityExpression
from .readers import MetadataReader
from .routing import RawRoute, route_entry


def collect(routes: Iterable[RawRoute], reader: MetadataReader) -> ScanResult:
    """
    Collect security expressions for every routed handler.

    Args:
        routes: ``(route_name, "Class::method" | None)`` pairs in route order
        reader: Metadata reader used to look up class and method metadata

    Returns:
        ScanResult with the per-class findings and one diagnostic per route
        whose class or method could not be resolved
    """
    result = ScanResult()
    # Classes whose class-level metadata has already been read in this run
    processed: set[str] = set()

    for route_name, identifier in routes:
        result.routes_seen += 1
        entry = route_entry(route_name, identifier)
        if entry is None:
            continue
        controller_class, method = entry.controller_class, entry.controller_method

        try:
            if controller_class not in processed:
                class_security = extract_security_expressions(reader.class_metadata(controller_class))
                processed.add(controller_class)
                if class_security:
                    result.controller(controller_class).class_security = class_security

            method_security = extract_security_expressions(
                reader.method_metadata(controller_class, method)
            )
        except MetadataNotFound as exc:
            result.routes_skipped += 1
            result.diagnostics.append(f"Skipping route {entry.route_name}: {exc}")
            continue

        for expression in method_security:
            if not isinstance(expression, SecurityExpression):
                continue
            records = result.controller(controller_class).methods.setdefault(method, [])
            records.append(MethodSecurityRecord(route=entry.route_name, method_security=expression))

    return result
