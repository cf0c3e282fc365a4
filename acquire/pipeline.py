"""
Per-component orchestration and multi-component batches.

    idle → generating → deduplicating → fetching(k of N) → aggregating → done
                      ↘ aborted (no candidates)

Anything escaping the state machine is logged with its traceback and turned
into a `crashed` summary; acquire_component never raises.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable, Optional, Sequence

from .aggregate import AcquisitionSummary, aborted_summary, aggregate, crashed_summary
from .candidates import dedupe, generate_candidates, strategy_counts
from .context import AcquireContext
from .errors import CandidateGenerationEmpty
from .fetcher import fetch_with_retries


logger = logging.getLogger(__name__)

ComponentRef = tuple[str, Optional[str]]


def acquire_component(
    ctx: AcquireContext,
    component_id: str,
    component_type: str | None = None,
) -> AcquisitionSummary:
    """
    Run the full acquisition for one component.

    Args:
        ctx: run context
        component_id: part number as given by the caller
        component_type: optional type hint (IC, MOSFET, LED, Sensor, Regulator)

    Returns:
        AcquisitionSummary with status ok / empty / aborted / crashed
    """
    state = 'generating'
    try:
        candidates = generate_candidates(component_id, component_type)
        if not candidates:
            raise CandidateGenerationEmpty(component_id)

        state = 'deduplicating'
        unique = dedupe(candidates)
        logger.info(
            "Acquiring %s (%s): %d candidates, %d unique %s",
            component_id, component_type or "untyped", len(candidates), len(unique),
            strategy_counts(unique),
        )

        state = 'fetching'
        ctx.store.ensure()
        outcomes, attempts = fetch_with_retries(ctx, component_id, unique)

        state = 'aggregating'
        summary = aggregate(
            outcomes,
            component_id=component_id,
            component_type=component_type,
            attempts=attempts,
            display_width=ctx.config.display_url_chars,
        )
    except CandidateGenerationEmpty as exc:
        logger.warning("Aborted %r: %s", component_id, exc.message)
        return aborted_summary(component_id, component_type, exc.message)
    except Exception as exc:
        logger.error("Acquisition of %r crashed while %s", component_id, state, exc_info=True)
        return crashed_summary(component_id, component_type, exc)

    logger.info(
        "Done %s: %s, %d/%d succeeded",
        component_id, summary.status, summary.stats["successes"], summary.stats["count"],
    )
    return summary


def _normalize_component(item) -> ComponentRef:
    if isinstance(item, str):
        return item, None
    if isinstance(item, dict):
        component_id = item.get("component") or item.get("id") or item.get("name") or ""
        return str(component_id), item.get("type")
    component_id, *rest = item
    return str(component_id), (rest[0] if rest else None)


def acquire_batch(
    ctx: AcquireContext,
    components: Iterable,
    on_result: Callable[[AcquisitionSummary], None] | None = None,
) -> list[AcquisitionSummary]:
    """
    Acquire many components, at most config.max_parallel_downloads at a time.

    Components run in fixed-size batches; each batch is awaited in full
    before the next starts, so one failure never cancels its siblings.

    Args:
        ctx: run context shared by every worker
        components: ids, (id, type) pairs, or {"component"/"id", "type"} dicts
        on_result: called once per finished component (e.g. progress bar)

    Returns:
        Summaries in input order
    """
    parts: Sequence[ComponentRef] = [_normalize_component(c) for c in components]
    width = max(1, ctx.config.max_parallel_downloads)
    results: list[AcquisitionSummary | None] = [None] * len(parts)

    for start in range(0, len(parts), width):
        batch = list(enumerate(parts[start:start + width], start=start))
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {
                executor.submit(acquire_component, ctx, cid, ctype): (i, cid, ctype)
                for i, (cid, ctype) in batch
            }
            wait(futures)
            for future, (i, cid, ctype) in futures.items():
                exc = future.exception()
                if exc is not None:
                    logger.error("Worker for %r failed", cid, exc_info=exc)
                    results[i] = crashed_summary(cid, ctype, exc)
                else:
                    results[i] = future.result()
                if on_result is not None:
                    on_result(results[i])

    return results


__all__ = [
    "acquire_component",
    "acquire_batch",
]
