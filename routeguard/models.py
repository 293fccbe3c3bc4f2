"""Data models for routes and collected security expressions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RouteEntry:
    """A route whose handler identifier resolved to a class and method."""

    route_name: str
    controller_class: str
    controller_method: str


@dataclass(frozen=True)
class SecurityExpression:
    """A single access-control check: the attribute and an optional subject."""

    attribute: str
    subject: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"attribute": self.attribute, "subject": self.subject}


@dataclass(frozen=True)
class MethodSecurityRecord:
    """One expression found on a handler method, tagged with the route that reached it."""

    route: str
    method_security: SecurityExpression

    def to_dict(self) -> dict[str, Any]:
        return {"route": self.route, "method_security": self.method_security.to_dict()}


@dataclass
class ControllerSecurityInfo:
    """Class-level and method-level expressions for one controller class."""

    class_security: list[SecurityExpression] = field(default_factory=list)
    methods: dict[str, list[MethodSecurityRecord]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting sections with nothing in them."""
        data: dict[str, Any] = {}
        if self.class_security:
            data["class_security"] = [expr.to_dict() for expr in self.class_security]
        if self.methods:
            data["methods"] = {
                name: [record.to_dict() for record in records]
                for name, records in self.methods.items()
            }
        return data


@dataclass
class ScanResult:
    """Everything one collector run produced."""

    controllers: dict[str, ControllerSecurityInfo] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)
    routes_seen: int = 0
    routes_skipped: int = 0

    def controller(self, name: str) -> ControllerSecurityInfo:
        """Get or create the entry for a controller class."""
        info = self.controllers.get(name)
        if info is None:
            info = ControllerSecurityInfo()
            self.controllers[name] = info
        return info

    def to_dict(self) -> dict[str, Any]:
        return {name: info.to_dict() for name, info in self.controllers.items()}

    @property
    def expression_count(self) -> int:
        return sum(
            len(info.class_security) + sum(len(records) for records in info.methods.values())
            for info in self.controllers.values()
        )
