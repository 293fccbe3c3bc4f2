"""Metadata reader that imports controllers and inspects the live objects."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Iterable

from ..errors import MetadataNotFound
from ..metadata import SecurityMetadata, attached_metadata, iter_docstring_metadata
from ..util import import_longest_prefix, prepended_sys_path


def _read(target: Any) -> list[SecurityMetadata]:
    # Docstring annotations come first, then decorators in source order
    return [*iter_docstring_metadata(getattr(target, "__doc__", None)), *attached_metadata(target)]


class ImportMetadataReader:
    """Resolve controllers with importlib and read the metadata attached to them.

    A controller path is a dotted name of either a class
    (``app.controllers.PostController``) or a module (``app.views``, for
    function views). ``search_paths`` are put on sys.path while importing.
    """

    def __init__(self, search_paths: Iterable[Path] = ()):
        self.search_paths = [Path(p) for p in search_paths]

    def _resolve(self, controller_class: str) -> Any:
        missing = f'Class "{controller_class}" does not exist'
        with prepended_sys_path(self.search_paths):
            try:
                obj, rest = import_longest_prefix(controller_class)
            except ModuleNotFoundError as exc:
                if exc.name and (controller_class == exc.name or controller_class.startswith(exc.name + ".")):
                    raise MetadataNotFound(missing) from exc
                raise MetadataNotFound(f'Class "{controller_class}" could not be loaded: {exc}') from exc
            except Exception as exc:
                # Syntax errors, failing imports or errors raised by the module body
                raise MetadataNotFound(f'Class "{controller_class}" could not be loaded: {exc}') from exc

        for part in rest:
            try:
                obj = getattr(obj, part)
            except AttributeError:
                raise MetadataNotFound(missing) from None

        if not (inspect.isclass(obj) or inspect.ismodule(obj)):
            raise MetadataNotFound(missing)
        return obj

    def class_metadata(self, controller_class: str) -> list[SecurityMetadata]:
        return _read(self._resolve(controller_class))

    def method_metadata(self, controller_class: str, method: str) -> list[SecurityMetadata]:
        target = self._resolve(controller_class)
        func = getattr(target, method, None)
        if func is None or not callable(func) or inspect.isclass(func):
            raise MetadataNotFound(f"Method {controller_class}::{method}() does not exist")
        return _read(func)
