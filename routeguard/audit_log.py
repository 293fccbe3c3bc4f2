"""
Audit log of report writes.

Each scan that writes a report appends one JSON Lines entry to
``.routeguard/audit.log`` next to the report, recording what was written
and from how many routes.
"""

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_DIR = ".routeguard"
AUDIT_FILE = "audit.log"


@dataclass
class ScanSummary:
    """Counts describing one scan."""
    routes_seen: int = 0
    routes_skipped: int = 0
    controllers: int = 0
    expressions: int = 0


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    operation: str
    output: str
    bytes_written: int
    summary: ScanSummary
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "output": self.output,
            "bytes_written": self.bytes_written,
            "summary": asdict(self.summary),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            output=data["output"],
            bytes_written=data.get("bytes_written", 0),
            summary=ScanSummary(**data.get("summary", {})),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(output_path: Path) -> Path:
    """Get the audit log path for a report written to `output_path`."""
    return output_path.resolve().parent / AUDIT_DIR / AUDIT_FILE


def log_operation(
    output_path: Path,
    operation: str,
    bytes_written: int,
    summary: ScanSummary | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append an entry to the audit log.

    Args:
        output_path: Report file that was written
        operation: Name of the operation (e.g., "scan")
        bytes_written: Size of the written report
        summary: Route and expression counts for the scan
        metadata: Additional context (route source, reader, format)

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        output=str(output_path),
        bytes_written=bytes_written,
        summary=summary or ScanSummary(),
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(output_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Append as JSON Lines format (one JSON object per line)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(output_path: Path, last_n: int | None = None) -> list[AuditEntry]:
    """Read entries for a report, oldest first (only the last N if `last_n` is given)."""
    log_path = get_audit_log_path(output_path)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = AuditEntry.from_dict(json.loads(line))
            except (json.JSONDecodeError, KeyError):
                continue  # Skip malformed lines
            # The log is shared by every report in the folder
            if Path(entry.output).name == output_path.name:
                entries.append(entry)

    if last_n is not None:
        return entries[-last_n:]
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    s = entry.summary
    lines = [
        f"[{entry.timestamp}] {entry.operation} -> {entry.output} ({entry.bytes_written} bytes)",
        f"  Routes: {s.routes_seen} seen, {s.routes_skipped} skipped",
        f"  Found: {s.expressions} expressions on {s.controllers} controllers",
    ]
    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)
