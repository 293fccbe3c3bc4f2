from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .report import DEFAULT_INDENT, DEFAULT_INLINE_DEPTH, DEFAULT_OUTPUT, FORMATS

CONFIG_FILENAME = "routeguard.toml"
READERS = ("import", "static")


@dataclass(frozen=True)
class ScanConfig:
    routes: Path | None = None
    app: str | None = None
    reader: str = "import"
    source_roots: tuple[Path, ...] = field(default_factory=tuple)
    output: Path = Path(DEFAULT_OUTPUT)
    format: str = "yaml"
    inline_depth: int = DEFAULT_INLINE_DEPTH
    indent: int = DEFAULT_INDENT
    audit_log: bool = True
    source: Path | None = None  # config file the values came from


def _opt_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{key}' must be a non-empty string")
    return value.strip()


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive integer")
    return value


def _choice(data: dict[str, Any], key: str, choices: tuple[str, ...], default: str) -> str:
    value = data.get(key, default)
    if value not in choices:
        raise ConfigError(f"'{key}' must be one of: {', '.join(choices)}")
    return value


def parse_config(data: dict[str, Any], base_dir: Path, source: Path | None = None) -> ScanConfig:
    """
    Build a ScanConfig from a parsed TOML table.

    Relative paths are resolved against `base_dir` (the config file's folder).
    """

    def _path(value: str) -> Path:
        p = Path(value)
        return p if p.is_absolute() else base_dir / p

    routes = _opt_str(data, "routes")
    output = _opt_str(data, "output")

    roots_raw = data.get("source_roots", [])
    if isinstance(roots_raw, str):
        roots_raw = [roots_raw]
    if not isinstance(roots_raw, list) or not all(isinstance(r, str) for r in roots_raw):
        raise ConfigError("'source_roots' must be a list of paths")

    audit_log = data.get("audit_log", True)
    if not isinstance(audit_log, bool):
        raise ConfigError("'audit_log' must be true or false")

    return ScanConfig(
        routes=_path(routes) if routes else None,
        app=_opt_str(data, "app"),
        reader=_choice(data, "reader", READERS, "import"),
        source_roots=tuple(_path(r) for r in roots_raw),
        output=_path(output) if output else Path(DEFAULT_OUTPUT),
        format=_choice(data, "format", FORMATS, "yaml"),
        inline_depth=_positive_int(data, "inline_depth", DEFAULT_INLINE_DEPTH),
        indent=_positive_int(data, "indent", DEFAULT_INDENT),
        audit_log=audit_log,
        source=source,
    )


def load_config(path: Path) -> ScanConfig:
    """Load configuration from a TOML file.

    ``pyproject.toml`` is read from its ``[tool.routeguard]`` table; any
    other file is read from the top level.
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if path.name == "pyproject.toml":
        data = data.get("tool", {}).get("routeguard", {})
        if not isinstance(data, dict):
            raise ConfigError(f"[tool.routeguard] in {path} must be a table")

    return parse_config(data, path.parent, source=path)


def find_config(start: Path) -> Path | None:
    """Locate ``routeguard.toml``, or a pyproject.toml with a [tool.routeguard] table."""
    candidate = start / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    pyproject = start / "pyproject.toml"
    if pyproject.is_file():
        import tomllib

        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError:
            return None
        if "routeguard" in data.get("tool", {}):
            return pyproject
    return None


def resolve_config(explicit: Path | None, cwd: Path) -> ScanConfig:
    """Explicit config file, else one found in `cwd`, else defaults."""
    if explicit is not None:
        return load_config(explicit)
    found = find_config(cwd)
    if found is not None:
        return load_config(found)
    return ScanConfig()
