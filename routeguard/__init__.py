"""routeguard - audit access-control metadata attached to route handlers."""

__version__ = "0.1.0"
