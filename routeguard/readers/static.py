"""
Metadata reader that never imports application code.

Controller paths are mapped onto source files under one or more source
roots, parsed with ``ast`` and searched for ``@IsGranted(...)`` and
``@Security(...)`` decorators plus docstring annotations. Only literal
decorator arguments are understood.

Limitations: methods inherited from a base class are not followed, and
decorators must be spelled ``IsGranted``/``Security`` (any dotted prefix).
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Union

from ..errors import MetadataNotFound
from ..metadata import METADATA_ATTR, SecurityMetadata, iter_docstring_metadata, metadata_from_call

Scope = Union[ast.Module, ast.ClassDef]
FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def _from_calls(nodes: Iterable[ast.expr]) -> list[SecurityMetadata]:
    items = []
    for node in nodes:
        item = metadata_from_call(node)
        if item is not None:
            items.append(item)
    return items


def _module_level_metadata(tree: ast.Module) -> list[SecurityMetadata]:
    """Read ``__security_metadata__ = [...]`` assignments at module level."""
    items: list[SecurityMetadata] = []
    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        if not any(isinstance(t, ast.Name) and t.id == METADATA_ATTR for t in node.targets):
            continue
        if isinstance(node.value, (ast.List, ast.Tuple)):
            items = _from_calls(node.value.elts)
    return items


def _read_scope(node: Scope) -> list[SecurityMetadata]:
    docstring = ast.get_docstring(node, clean=False)
    if isinstance(node, ast.Module):
        return [*iter_docstring_metadata(docstring), *_module_level_metadata(node)]
    return [*iter_docstring_metadata(docstring), *_from_calls(node.decorator_list)]


def _read_function(node: FunctionNode) -> list[SecurityMetadata]:
    docstring = ast.get_docstring(node, clean=False)
    return [*iter_docstring_metadata(docstring), *_from_calls(node.decorator_list)]


class StaticMetadataReader:
    """Read handler metadata from source files under `source_roots`."""

    def __init__(self, source_roots: Iterable[Path]):
        self.source_roots = [Path(p) for p in source_roots]
        self._trees: dict[Path, ast.Module] = {}

    def _module_file(self, parts: list[str]) -> Path | None:
        for root in self.source_roots:
            base = root.joinpath(*parts)
            for candidate in (base.with_suffix(".py"), base / "__init__.py"):
                if candidate.is_file():
                    return candidate
        return None

    def _parse(self, path: Path) -> ast.Module:
        tree = self._trees.get(path)
        if tree is None:
            try:
                # Bytes, so a PEP 263 coding cookie is honoured
                tree = ast.parse(path.read_bytes(), filename=str(path))
            except SyntaxError as exc:
                raise MetadataNotFound(f"Cannot parse {path}: {exc.msg} (line {exc.lineno})") from exc
            except (UnicodeDecodeError, ValueError) as exc:
                raise MetadataNotFound(f"Cannot parse {path}: {exc}") from exc
            except OSError as exc:
                raise MetadataNotFound(f"Cannot read {path}: {exc}") from exc
            self._trees[path] = tree
        return tree

    def _resolve(self, controller_class: str) -> Scope:
        missing = f'Class "{controller_class}" does not exist'
        parts = controller_class.split(".")
        for cut in range(len(parts), 0, -1):
            path = self._module_file(parts[:cut])
            if path is None:
                continue
            scope: Scope = self._parse(path)
            for name in parts[cut:]:
                found = _find_class(scope, name)
                if found is None:
                    raise MetadataNotFound(missing)
                scope = found
            return scope
        raise MetadataNotFound(missing)

    def class_metadata(self, controller_class: str) -> list[SecurityMetadata]:
        return _read_scope(self._resolve(controller_class))

    def method_metadata(self, controller_class: str, method: str) -> list[SecurityMetadata]:
        func = _find_function(self._resolve(controller_class), method)
        if func is None:
            raise MetadataNotFound(f"Method {controller_class}::{method}() does not exist")
        return _read_function(func)


def _find_class(scope: Scope, name: str) -> ast.ClassDef | None:
    found = None
    for node in scope.body:
        if isinstance(node, ast.ClassDef) and node.name == name:
            found = node
    return found


def _find_function(scope: Scope, name: str) -> FunctionNode | None:
    # The last definition wins, as it does at runtime
    found = None
    for node in scope.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name:
            found = node
    return found
