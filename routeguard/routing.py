"""
Route registries.

A registry is anything that yields ``(route_name, handler_identifier)``
pairs in route order, where the identifier is ``"Class::method"`` or None
when the route has no handler. Two sources are supported:

- a YAML route table (``load_route_table``)
- an application object (``routes_from_app``): Werkzeug/Flask style
  ``url_map`` + ``view_functions``, or Starlette/FastAPI style ``routes``.
  Both are duck-typed; no framework is imported here.
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml

from .errors import RouteTableError
from .models import RouteEntry
from .util import import_longest_prefix, prepended_sys_path

HANDLER_SEPARATOR = "::"

RawRoute = tuple[str, str | None]

# HTTP verbs that never map to their own handler method
IGNORED_METHODS = {"HEAD", "OPTIONS"}

# Entry points for class-based views that handle every verb themselves
DISPATCH_METHODS = ("dispatch_request", "dispatch")

# Attribute names tried when --app names only a module
DEFAULT_APP_NAMES = ("app", "application", "create_app", "make_app")


def split_handler(identifier: str | None) -> tuple[str, str] | None:
    """Split ``"Class::method"`` on the first separator.

    Returns None when there is nothing to inspect: no identifier, no
    separator, or an empty class or method part.
    """
    if not identifier or HANDLER_SEPARATOR not in identifier:
        return None
    controller_class, method = identifier.split(HANDLER_SEPARATOR, 1)
    if not controller_class or not method:
        return None
    return controller_class, method


def route_entry(name: str, identifier: str | None) -> RouteEntry | None:
    """Build the RouteEntry for a raw route, or None when it has no usable handler."""
    handler = split_handler(identifier)
    if handler is None:
        return None
    return RouteEntry(route_name=name, controller_class=handler[0], controller_method=handler[1])


# -----------------------------------------------------------------------------
# YAML route table
# -----------------------------------------------------------------------------


def _entry_identifier(name: str, entry: Any) -> str | None:
    if entry is None:
        return None
    if isinstance(entry, str):
        return entry or None
    if not isinstance(entry, dict):
        raise RouteTableError(f"Route '{name}' must be a mapping, a string or null")

    controller = entry.get("controller")
    if controller is None:
        defaults = entry.get("defaults") or {}
        if not isinstance(defaults, dict):
            raise RouteTableError(f"Route '{name}' has non-mapping defaults")
        controller = defaults.get("_controller")
    if controller is None:
        return None
    if not isinstance(controller, str):
        raise RouteTableError(f"Route '{name}' has a non-string controller")
    return controller or None


def parse_route_table(data: Any) -> list[RawRoute]:
    """Turn a loaded route table document into raw routes, in document order.

    Expected shape::

        routes:
          home:
            controller: "app.controllers.HomeController::index"
          legacy:
            defaults:
              _controller: "app.controllers.LegacyController::show"
          redirect: ~
    """
    if not isinstance(data, dict) or "routes" not in data:
        raise RouteTableError("Route table must be a mapping with a top-level 'routes' key")
    routes = data["routes"] or {}
    if not isinstance(routes, dict):
        raise RouteTableError("'routes' must map route names to route entries")
    return [(str(name), _entry_identifier(str(name), entry)) for name, entry in routes.items()]


def load_route_table(path: Path) -> list[RawRoute]:
    """Load a YAML route table file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RouteTableError(f"Cannot read route table {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RouteTableError(f"Route table {path} is not valid YAML: {exc}") from exc
    return parse_route_table(data)


# -----------------------------------------------------------------------------
# Application objects
# -----------------------------------------------------------------------------


def _class_path(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def handler_identifiers(view: Any, methods: Iterable[str] | None = None) -> list[str | None]:
    """Derive handler identifiers for a view callable.

    - class-based views (``view.view_class`` or the class itself) give one
      identifier per handled HTTP verb, falling back to the dispatch method
    - functions defined in a class give ``module.Class::method``
    - plain functions give ``module::function``
    """
    if view is None:
        return [None]

    view_class = getattr(view, "view_class", None)
    if view_class is None and inspect.isclass(view):
        view_class = view

    if view_class is not None:
        verbs = sorted({m.lower() for m in methods or () if m.upper() not in IGNORED_METHODS})
        handled = [verb for verb in verbs if callable(getattr(view_class, verb, None))]
        if not handled:
            handled = [name for name in DISPATCH_METHODS if callable(getattr(view_class, name, None))][:1]
        if not handled:
            return [None]
        return [f"{_class_path(view_class)}{HANDLER_SEPARATOR}{verb}" for verb in handled]

    func = getattr(view, "__func__", view)
    module = getattr(func, "__module__", None)
    qualname = getattr(func, "__qualname__", None)
    if not module or not qualname:
        return [None]

    owner, _, name = qualname.rpartition(".")
    if owner:
        return [f"{module}.{owner}{HANDLER_SEPARATOR}{name}"]
    return [f"{module}{HANDLER_SEPARATOR}{name}"]


def _werkzeug_routes(app: Any) -> Iterator[RawRoute]:
    for rule in app.url_map.iter_rules():
        if rule.endpoint == "static":
            continue
        view = app.view_functions.get(rule.endpoint)
        for identifier in handler_identifiers(view, getattr(rule, "methods", None)):
            yield rule.endpoint, identifier


def _starlette_routes(routes: Iterable[Any]) -> Iterator[RawRoute]:
    for route in routes:
        endpoint = getattr(route, "endpoint", None)
        if endpoint is None and hasattr(route, "routes"):
            # Mount / Router: walk the nested table
            yield from _starlette_routes(route.routes)
            continue
        name = getattr(route, "name", None) or getattr(route, "path", "")
        for identifier in handler_identifiers(endpoint, getattr(route, "methods", None)):
            yield name, identifier


def routes_from_app(app: Any) -> list[RawRoute]:
    """Enumerate the routes of an application object."""
    if hasattr(app, "url_map") and hasattr(app, "view_functions"):
        return list(_werkzeug_routes(app))
    if hasattr(app, "routes"):
        return list(_starlette_routes(app.routes))
    raise RouteTableError(
        f"{type(app).__name__} exposes neither 'url_map'/'view_functions' nor 'routes'"
    )


def _is_app(obj: Any) -> bool:
    return (hasattr(obj, "url_map") and hasattr(obj, "view_functions")) or hasattr(obj, "routes")


def load_app(spec: str, search_paths: Iterable[Path] = ()) -> Any:
    """Import an application from ``"package.module:attribute"``.

    Without an attribute, the usual names (``app``, ``create_app``, ...) are
    tried. A callable that is not itself an app is treated as a factory.
    """
    module_name, _, attr = spec.partition(":")
    if not module_name:
        raise RouteTableError(f"Invalid app spec '{spec}', expected 'module:attribute'")

    with prepended_sys_path(search_paths):
        try:
            module, rest = import_longest_prefix(module_name)
        except ModuleNotFoundError as exc:
            raise RouteTableError(f"Cannot import app module '{module_name}': {exc}") from exc
        if rest:
            raise RouteTableError(f"Cannot import app module '{module_name}'")

        if attr:
            names = [attr]
        else:
            names = [name for name in DEFAULT_APP_NAMES if hasattr(module, name)]
            if not names:
                raise RouteTableError(f"No application found in module '{module_name}'")

        obj: Any = module
        for part in names[0].split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as exc:
                raise RouteTableError(f"Module '{module_name}' has no attribute '{names[0]}'") from exc

        if not _is_app(obj) and callable(obj):
            obj = obj()

    if not _is_app(obj):
        raise RouteTableError(f"'{spec}' is not an application with a route table")
    return obj
