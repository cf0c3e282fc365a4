"""
Result aggregation: per-candidate outcomes → one AcquisitionSummary.

Status values:
    ok        at least one candidate succeeded
    empty     candidates were attempted (or none survived) and nothing succeeded
    aborted   candidate generation produced nothing
    crashed   an exception escaped orchestration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from .content import display_url
from .schema import FetchOutcome


SummaryStatus = Literal['ok', 'empty', 'aborted', 'crashed']


@dataclass
class AcquisitionSummary:
    component: Optional[str]
    component_type: Optional[str] = None
    status: SummaryStatus = 'empty'
    successes: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)
    stats: dict = field(default_factory=dict)
    attempts: int = 0
    error: Optional[str] = None
    outcomes: list[FetchOutcome] = field(default_factory=list, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == 'ok'

    def to_dict(self) -> dict:
        """JSON-safe view (outcomes are summarized, not embedded)."""
        return {
            "component": self.component,
            "component_type": self.component_type,
            "status": self.status,
            "successes": self.successes,
            "failures": self.failures,
            "stats": self.stats,
            "attempts": self.attempts,
            "error": self.error,
        }


def _success_entry(outcome: FetchOutcome, width: int) -> dict:
    entry = {
        "url": display_url(outcome.candidate.source_url, width),
        "strategy": outcome.candidate.strategy_tag,
        "kind": outcome.content_kind,
        "bytes": outcome.bytes,
        "path": str(outcome.path) if outcome.path else None,
    }
    if outcome.skipped_existing:
        entry["skipped_existing"] = True
    if outcome.record is not None:
        entry["parsed"] = outcome.record.parsed
    return entry


def _failure_entry(outcome: FetchOutcome, width: int) -> dict:
    return {
        "url": display_url(outcome.candidate.source_url, width),
        "strategy": outcome.candidate.strategy_tag,
        "status": outcome.status,
        "reason": outcome.error or outcome.status,
    }


def compute_stats(outcomes: Sequence[FetchOutcome]) -> dict:
    attempted = len(outcomes)
    wins = [o for o in outcomes if o.ok]
    return {
        "count": attempted,
        "successes": len(wins),
        "failures": attempted - len(wins),
        "total_bytes": sum(o.bytes for o in wins),
        "success_rate": len(wins) / attempted if attempted else 0.0,
        "avg_duration_ms": round(sum(o.duration_ms for o in wins) / len(wins), 1) if wins else 0.0,
    }


def aggregate(
    outcomes: Sequence[FetchOutcome],
    component_id: str | None = None,
    component_type: str | None = None,
    attempts: int = 1,
    display_width: int = 60,
) -> AcquisitionSummary:
    """
    Summarize outcomes for one component.

    Successes and failures keep the original candidate order. timed_out
    outcomes count as failures.
    """
    outcomes = list(outcomes)
    return AcquisitionSummary(
        component=component_id,
        component_type=component_type,
        status='ok' if any(o.ok for o in outcomes) else 'empty',
        successes=[_success_entry(o, display_width) for o in outcomes if o.ok],
        failures=[_failure_entry(o, display_width) for o in outcomes if not o.ok],
        stats=compute_stats(outcomes),
        attempts=attempts,
        outcomes=outcomes,
    )


def aborted_summary(component_id: str | None, component_type: str | None, reason: str) -> AcquisitionSummary:
    return AcquisitionSummary(
        component=component_id,
        component_type=component_type,
        status='aborted',
        stats=compute_stats([]),
        error=reason,
    )


def crashed_summary(
    component_id: str | None,
    component_type: str | None,
    exc: BaseException,
    attempts: int = 0,
) -> AcquisitionSummary:
    return AcquisitionSummary(
        component=component_id,
        component_type=component_type,
        status='crashed',
        stats=compute_stats([]),
        attempts=attempts,
        error=f"{type(exc).__name__}: {exc}",
    )


__all__ = [
    "AcquisitionSummary",
    "SummaryStatus",
    "aggregate",
    "compute_stats",
    "aborted_summary",
    "crashed_summary",
]
