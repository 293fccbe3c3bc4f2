"""Command implementations behind the routeguard CLI."""
