"""
Access-control metadata attached to route handlers.

Two shapes are recognized:

- ``Security(expression)``: legacy form carrying a free-form boolean
  expression such as ``"is_granted('ROLE_ADMIN') or is_granted('EDIT', post)"``.
- ``IsGranted(attribute, subject=None)``: structured form naming the
  attribute and, optionally, the subject expression.

Both work as class and method decorators. They can also be written as
annotation lines inside a docstring::

    class PostController:
        '''
        @IsGranted("ROLE_USER")
        '''

Decorators record themselves on ``__security_metadata__`` in source order
(top-down), so the first decorator listed is the first one read back.
"""

from __future__ import annotations

import ast
import inspect
import re
from dataclasses import dataclass
from typing import Any, Iterator, Union

METADATA_ATTR = "__security_metadata__"

# "@Security(...)" / "@IsGranted(...)" at the start of a docstring line,
# optionally behind a "*" docblock gutter
DOCSTRING_ANNOTATION = re.compile(r"^\s*\*?\s*@((?:[A-Za-z_][\w.]*\.)?(?:Security|IsGranted)\(.*\))\s*$")


class _Decorator:
    def __call__(self, target: Any) -> Any:
        if inspect.isclass(target):
            # Read from __dict__ so a subclass never appends to its parent's list
            existing = list(target.__dict__.get(METADATA_ATTR, ()))
        else:
            existing = list(getattr(target, METADATA_ATTR, ()))
        existing.insert(0, self)
        setattr(target, METADATA_ATTR, existing)
        return target


@dataclass(frozen=True)
class Security(_Decorator):
    """Legacy security annotation holding an expression string."""

    expression: str


@dataclass(frozen=True)
class IsGranted(_Decorator):
    """Structured security attribute: a role/permission name and optional subject."""

    attribute: str
    subject: str | None = None


SecurityMetadata = Union[Security, IsGranted]


def attached_metadata(target: Any) -> list[SecurityMetadata]:
    """Return decorator metadata recorded directly on a class, function or module."""
    if inspect.isclass(target):
        items = target.__dict__.get(METADATA_ATTR, ())
    else:
        items = getattr(target, METADATA_ATTR, ())
    return [item for item in items if isinstance(item, (Security, IsGranted))]


def _literal(node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, RecursionError):
        return None


def _call_name(func: ast.expr) -> str | None:
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def metadata_from_call(node: ast.expr) -> SecurityMetadata | None:
    """Build metadata from a ``Security(...)``/``IsGranted(...)`` call node.

    Arguments must be literals; anything else yields None.
    """
    if not isinstance(node, ast.Call):
        return None
    name = _call_name(node.func)
    if name not in ("Security", "IsGranted"):
        return None

    args = [_literal(arg) for arg in node.args]
    kwargs = {kw.arg: _literal(kw.value) for kw in node.keywords if kw.arg}

    if name == "Security":
        expression = args[0] if args else kwargs.get("expression")
        if not isinstance(expression, str):
            return None
        return Security(expression)

    attribute = args[0] if args else kwargs.get("attribute")
    subject = args[1] if len(args) > 1 else kwargs.get("subject")
    if not isinstance(attribute, str):
        return None
    if subject is not None and not isinstance(subject, str):
        return None
    return IsGranted(attribute, subject)


def iter_docstring_metadata(docstring: str | None) -> Iterator[SecurityMetadata]:
    """Yield metadata written as annotation lines inside a docstring."""
    if not docstring:
        return
    for line in docstring.splitlines():
        match = DOCSTRING_ANNOTATION.match(line)
        if not match:
            continue
        try:
            tree = ast.parse(match.group(1), mode="eval")
        except SyntaxError:
            continue
        item = metadata_from_call(tree.body)
        if item is not None:
            yield item
