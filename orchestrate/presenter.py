"""
Presentation helpers for acquisition output.

Keeps scripts/acquire.py focused on orchestration while this module renders
summaries and appends the execution log.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
import json

from acquire.aggregate import AcquisitionSummary


STATUS_MARKS = {
    "ok": "✓",
    "empty": "✗",
    "aborted": "-",
    "crashed": "!",
}


def format_summary(summary: AcquisitionSummary, show_failures: bool = True) -> list[str]:
    """Render one component summary as printable lines."""
    stats = summary.stats or {}
    mark = STATUS_MARKS.get(summary.status, "?")
    label = summary.component or "<blank>"
    if summary.component_type:
        label = f"{label} ({summary.component_type})"

    lines = [f"{mark} {label}: {summary.status}"]
    if summary.status in ("aborted", "crashed"):
        lines.append(f"    error: {summary.error}")
        return lines

    lines.append(
        f"    {stats.get('successes', 0)}/{stats.get('count', 0)} succeeded "
        f"({stats.get('success_rate', 0.0):.0%}), "
        f"{stats.get('total_bytes', 0) // 1024}KB, "
        f"avg {stats.get('avg_duration_ms', 0.0):.0f}ms, "
        f"attempts {summary.attempts}"
    )
    for s in summary.successes:
        suffix = " (cached on disk)" if s.get("skipped_existing") else ""
        lines.append(f"    + [{s.get('kind')}] {s['url']}{suffix}")
    if show_failures:
        for f in summary.failures:
            lines.append(f"    - {f['reason']}: {f['url']}")
    return lines


def summarize_run(summaries: list[AcquisitionSummary]) -> dict:
    """Roll per-component summaries into run-level counts."""
    statuses = Counter(s.status for s in summaries)
    attempted = sum(s.stats.get("count", 0) for s in summaries)
    succeeded = sum(s.stats.get("successes", 0) for s in summaries)
    return {
        "components": len(summaries),
        "statuses": dict(statuses),
        "candidates_attempted": attempted,
        "candidates_succeeded": succeeded,
        "total_bytes": sum(s.stats.get("total_bytes", 0) for s in summaries),
        "success_rate": round(succeeded / attempted, 3) if attempted else 0,
    }


def build_run_log_entry(
    summaries: list[AcquisitionSummary],
    started: datetime,
    finished: datetime | None = None,
    command: str = "",
    config: dict | None = None,
) -> dict:
    finished = finished or datetime.now(timezone.utc)
    return {
        "timestamp": finished.isoformat(),
        "duration_sec": round((finished - started).total_seconds(), 1),
        "command": command,
        "config": config or {},
        "results": summarize_run(summaries),
        "components": [
            {
                "component": s.component,
                "type": s.component_type,
                "status": s.status,
                "successes": s.stats.get("successes", 0),
                "count": s.stats.get("count", 0),
                "attempts": s.attempts,
                "error": s.error,
            }
            for s in summaries
        ],
    }


def append_run_log(log_file: Path, entry: dict) -> Path:
    """Append one JSON line to the execution log, creating parents."""
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=str) + "\n")
    return log_file


__all__ = [
    "format_summary",
    "summarize_run",
    "build_run_log_entry",
    "append_run_log",
]
