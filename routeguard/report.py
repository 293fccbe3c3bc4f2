"""
Report rendering and loading.

YAML output is block style down to ``inline_depth`` levels of nesting and
flow style below that, so each method record fits on one line::

    app.controllers.PostController:
      class_security:
      - attribute: ROLE_USER
        subject: null
      methods:
        edit:
        - {route: post_edit, method_security: {attribute: EDIT, subject: post}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

DEFAULT_OUTPUT = "security_annotations.yml"
DEFAULT_INLINE_DEPTH = 4
DEFAULT_INDENT = 2

FORMATS = ("yaml", "json")


def _apply_flow_style(node: yaml.Node, level: int) -> None:
    """Mark collections at or below `level` (and empty ones) as flow style."""
    if isinstance(node, yaml.MappingNode):
        children = [value for _, value in node.value]
    elif isinstance(node, yaml.SequenceNode):
        children = list(node.value)
    else:
        return
    node.flow_style = level <= 0 or not node.value
    for child in children:
        _apply_flow_style(child, level - 1)


class ReportDumper(yaml.SafeDumper):
    """SafeDumper that switches to flow style past a fixed nesting depth."""

    inline_depth = DEFAULT_INLINE_DEPTH

    def ignore_aliases(self, data: Any) -> bool:
        return True

    def represent(self, data: Any) -> None:
        node = self.represent_data(data)
        _apply_flow_style(node, self.inline_depth)
        self.serialize(node)
        self.represented_objects = {}
        self.object_keeper = []
        self.alias_key = None


def render_yaml(
    data: dict[str, Any],
    *,
    inline_depth: int = DEFAULT_INLINE_DEPTH,
    indent: int = DEFAULT_INDENT,
) -> str:
    """Render the report mapping as YAML."""
    dumper = type("ReportDumper", (ReportDumper,), {"inline_depth": inline_depth})
    return yaml.dump(
        data,
        Dumper=dumper,
        indent=indent,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=4096,
    )


def render_json(data: dict[str, Any], *, indent: int = DEFAULT_INDENT) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def render(data: dict[str, Any], output_format: str = "yaml", **options: int) -> str:
    if output_format == "json":
        return render_json(data, indent=options.get("indent", DEFAULT_INDENT))
    if output_format == "yaml":
        return render_yaml(data, **options)
    raise ValueError(f"Unknown output format: {output_format}")


def write_report(path: Path, data: dict[str, Any], output_format: str = "yaml", **options: int) -> int:
    """Write (overwrite) the report file. Returns the number of bytes written."""
    text = render(data, output_format, **options)
    payload = text.encode("utf-8")
    path.write_bytes(payload)
    return len(payload)


def load_report(path: Path) -> dict[str, Any]:
    """Load a previously written report (YAML or JSON)."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        data = json.loads(text)
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"{path} is not valid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a report mapping")
    return data
