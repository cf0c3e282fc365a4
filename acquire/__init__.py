"""
Datasheet acquisition pipeline.

Primary interface:
    from acquire import acquire_datasheets

    summary = acquire_datasheets("LM358", "IC")

    # Returns AcquisitionSummary with:
    # - component, component_type, status (ok / empty / aborted / crashed)
    # - successes, failures (display url + reason)
    # - stats: count, successes, failures, total_bytes, success_rate, avg_duration_ms
    # - attempts, error

Documents land in config.content_dir as <id>_<index>.pdf; specification
records extracted from markup pages land in <id>_specs.json.
"""

from __future__ import annotations

from .aggregate import AcquisitionSummary, aggregate
from .candidates import dedupe, generate_candidates, infer_manufacturer, infer_manufacturers
from .config import AcquireConfig
from .context import AcquireContext
from .extractor import ExtractionAdapter, parse_response
from .fetcher import fetch_candidate, fetch_top_n
from .pipeline import acquire_batch, acquire_component
from .schema import Candidate, FetchOutcome, SpecificationRecord
from .store import ContentStore


__all__ = [
    'acquire_datasheets',
    'acquire_batch',
    'acquire_component',
    'AcquireConfig',
    'AcquireContext',
    'AcquisitionSummary',
    'Candidate',
    'ContentStore',
    'ExtractionAdapter',
    'FetchOutcome',
    'SpecificationRecord',
    'aggregate',
    'dedupe',
    'fetch_candidate',
    'fetch_top_n',
    'generate_candidates',
    'infer_manufacturer',
    'infer_manufacturers',
    'parse_response',
]


def acquire_datasheets(
    component_id: str,
    component_type: str | None = None,
    config: AcquireConfig | None = None,
    ctx: AcquireContext | None = None,
) -> AcquisitionSummary:
    """
    Locate, download and summarize datasheets for one component.

    This is the primary interface for the acquire module. It:
    1. Generates ranked candidate URLs (five strategies)
    2. Deduplicates them, keeping the highest-priority occurrence
    3. Fetches the top N in order, retrying the pass if all fail
    4. Saves documents and extracts specs from markup pages
    5. Returns an aggregated summary

    Args:
        component_id: part number, e.g. "LM358"
        component_type: optional type hint (IC, MOSFET, LED, Sensor, Regulator)
        config: acquisition configuration (ignored when ctx is given)
        ctx: prebuilt context, to share a session and memo cache across calls

    Returns:
        AcquisitionSummary; never raises
    """
    if ctx is None:
        ctx = AcquireContext.create(config)
    return acquire_component(ctx, component_id, component_type)
