"""Normalize security metadata into SecurityExpression records."""

from __future__ import annotations

import re
from typing import Iterable

from .metadata import IsGranted, Security
from .models import SecurityExpression

# Start of an is_granted('NAME' ...) call; arguments after the name are scanned by hand
IS_GRANTED_CALL = re.compile(r"is_granted\('([^']+)'")
ARGUMENT_SEPARATOR = re.compile(r",\s*")

# Subject without nesting, used when the parentheses never balance
FLAT_SUBJECT = re.compile(r",\s*([^')]+)\)")


def _closing_paren(expression: str, start: int) -> int | None:
    """Index of the ``)`` that closes the call whose arguments resume at `start`."""
    depth = 0
    quote = None
    for i in range(start, len(expression)):
        ch = expression[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                return i
            depth -= 1
    return None


def extract_is_granted_params(expression: str) -> list[SecurityExpression]:
    """Parse every ``is_granted(...)`` call in a legacy expression, left to right.

    The subject is the second argument verbatim, nested calls included
    (``subject.getPost()``, ``a.b(c.d())``).
    """
    params: list[SecurityExpression] = []
    pos = 0
    while True:
        match = IS_GRANTED_CALL.search(expression, pos)
        if match is None:
            return params
        attribute = match.group(1)
        rest = match.end()
        pos = rest

        if expression.startswith(")", rest):
            params.append(SecurityExpression(attribute=attribute))
            pos = rest + 1
            continue

        separator = ARGUMENT_SEPARATOR.match(expression, rest)
        if separator is None:
            continue
        end = _closing_paren(expression, separator.end())
        if end is not None and end > separator.end():
            params.append(SecurityExpression(attribute, expression[separator.end():end]))
            pos = end + 1
            continue

        flat = FLAT_SUBJECT.match(expression, rest)
        if flat is not None:
            params.append(SecurityExpression(attribute, flat.group(1)))
            pos = flat.end()


def extract_security_expressions(items: Iterable[object]) -> list[SecurityExpression]:
    """Flatten a metadata sequence into expressions, keeping source order.

    Legacy expressions expand in place to as many records as they hold
    ``is_granted`` calls. Objects of any other type contribute nothing.
    """
    expressions: list[SecurityExpression] = []
    for item in items:
        if isinstance(item, IsGranted):
            expressions.append(SecurityExpression(attribute=item.attribute, subject=item.subject))
        elif isinstance(item, Security):
            expressions.extend(extract_is_granted_params(item.expression))
    return expressions
