"""
Import helpers shared by the route registries and the reflection reader.
"""

from __future__ import annotations

import importlib
import sys
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from typing import Iterable, Iterator


@contextmanager
def prepended_sys_path(paths: Iterable[Path]) -> Iterator[None]:
    """Temporarily put `paths` at the front of sys.path."""
    added = [str(p) for p in paths if str(p) not in sys.path]
    sys.path[:0] = added
    try:
        yield
    finally:
        for entry in added:
            if entry in sys.path:
                sys.path.remove(entry)


def import_longest_prefix(dotted: str) -> tuple[ModuleType, list[str]]:
    """
    Import the longest importable module prefix of a dotted path.

    Returns the module and the remaining name parts, so
    ``"app.views.PostController"`` gives ``(app.views, ["PostController"])``.

    Raises:
        ModuleNotFoundError: if not even the first segment can be imported
    """
    parts = dotted.split(".")
    for cut in range(len(parts), 0, -1):
        module_name = ".".join(parts[:cut])
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            # Only swallow "this prefix does not exist", not a missing
            # import raised from inside an existing module
            if exc.name is not None and not (
                module_name == exc.name or module_name.startswith(exc.name + ".")
            ):
                raise
            continue
        return module, parts[cut:]
    raise ModuleNotFoundError(f"No module named '{parts[0]}'", name=parts[0])
