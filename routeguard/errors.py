"""Exceptions raised while loading routes, configuration and handler metadata."""

from __future__ import annotations


class RouteguardError(Exception):
    """Base class for routeguard errors."""


class MetadataNotFound(RouteguardError, LookupError):
    """The controller class or handler method could not be resolved.

    This is the only failure the collector recovers from: the route is
    skipped and the message is kept as a diagnostic.
    """


class RouteTableError(RouteguardError, ValueError):
    """A route table file or application object has an unusable shape."""


class ConfigError(RouteguardError, ValueError):
    """Invalid configuration value."""
