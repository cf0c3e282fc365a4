"""
Component-level retry policy.

Responsibilities:
- Retry budget (max retries after the first attempt)
- Linear backoff timing
- Deciding whether an attempt's outcomes warrant another pass

This module is purely decisional: it never sleeps or fetches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .config import AcquireConfig
from .schema import FetchOutcome


DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY_SECONDS = 1.0


@dataclass
class RetryPlan:
    """Effective retry plan for one component."""
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


def build_retry_plan(config: AcquireConfig | None = None, max_retries: int | None = None) -> RetryPlan:
    """Plan from config, with an explicit max_retries taking precedence."""
    plan = RetryPlan()
    if config is not None:
        plan.max_retries = config.max_retries
        plan.base_delay = config.retry_base_delay
    if max_retries is not None:
        plan.max_retries = max_retries
    plan.max_retries = max(0, plan.max_retries)
    return plan


def compute_backoff_delay(attempt_number: int, plan: RetryPlan) -> float:
    """
    Delay before retry number `attempt_number` (1-based).

    Linear: base * attempt_number, i.e. 1s, 2s, 3s with the default base.
    """
    return max(0.0, plan.base_delay * attempt_number)


def all_failed(outcomes: Sequence[FetchOutcome]) -> bool:
    """True when nothing succeeded (an empty attempt counts as failed)."""
    return not any(o.ok for o in outcomes)


def should_retry(
    outcomes: Sequence[FetchOutcome] | None,
    attempt_index: int,
    plan: RetryPlan,
    raised: bool = False,
) -> bool:
    """
    Decide whether to run the whole candidate pass again.

    Args:
        outcomes: outcomes of the attempt just finished (None if it raised)
        attempt_index: 0-based index of that attempt
        plan: retry plan
        raised: the attempt ended in an exception

    Returns:
        True if another attempt should follow
    """
    if attempt_index + 1 >= plan.max_attempts:
        return False
    if raised or outcomes is None:
        return True
    return all_failed(outcomes)


__all__ = [
    "RetryPlan",
    "build_retry_plan",
    "compute_backoff_delay",
    "all_failed",
    "should_retry",
]
