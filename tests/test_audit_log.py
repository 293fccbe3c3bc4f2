from pathlib import Path

from routeguard.audit_log import (
    ScanSummary,
    format_audit_entry,
    get_audit_log_path,
    log_operation,
    read_audit_log,
)


def test_log_and_read_back(tmp_path: Path) -> None:
    report = tmp_path / "security_annotations.yml"

    log_operation(report, "scan", 120, summary=ScanSummary(routes_seen=3, controllers=1, expressions=2))
    log_operation(report, "scan", 150, metadata={"reader": "static"})
    log_operation(tmp_path / "other.yml", "scan", 10)

    entries = read_audit_log(report)
    assert [e.bytes_written for e in entries] == [120, 150]
    assert entries[0].summary.routes_seen == 3
    assert read_audit_log(report, last_n=1)[0].metadata == {"reader": "static"}
    assert get_audit_log_path(report) == tmp_path / ".routeguard" / "audit.log"


def test_malformed_lines_are_skipped(tmp_path: Path) -> None:
    report = tmp_path / "security_annotations.yml"
    log_operation(report, "scan", 1)
    with get_audit_log_path(report).open("a", encoding="utf-8") as f:
        f.write("not json\n\n{\"timestamp\": \"x\"}\n")

    assert len(read_audit_log(report)) == 1


def test_missing_log(tmp_path: Path) -> None:
    assert read_audit_log(tmp_path / "security_annotations.yml") == []


def test_format_entry(tmp_path: Path) -> None:
    entry = log_operation(
        tmp_path / "security_annotations.yml",
        "scan",
        42,
        summary=ScanSummary(routes_seen=5, routes_skipped=1, controllers=2, expressions=4),
        metadata={"reader": "import"},
    )

    text = format_audit_entry(entry)

    assert "scan ->" in text
    assert "(42 bytes)" in text
    assert "Routes: 5 seen, 1 skipped" in text
    assert "Found: 4 expressions on 2 controllers" in text
    assert "reader: import" in text
