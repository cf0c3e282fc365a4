"""
Fetch layer: one HTTP GET per candidate, classified and persisted.

    document  streamed to <id>_<index>.<ext> through a temp file
    markup    buffered, sanitized and handed to the extraction adapter
    other     recorded as a failure

Redirects are followed by hand so the hop count can be capped. Every
candidate-level error ends up on its FetchOutcome; only unexpected errors
escape fetch_candidate, and fetch_top_n treats those as a failed attempt.
"""

from __future__ import annotations

import logging
import random
import re
import time
from typing import Sequence
from urllib.parse import urljoin

import requests

from .candidates import dedupe
from .config import AcquireConfig, DEFAULT_HEADERS, REDIRECT_CODES, USER_AGENTS
from .content import classify, display_url, document_extension
from .context import AcquireContext
from .errors import (
    AcquireError,
    DocumentTooLarge,
    FetchConnectionError,
    FetchError,
    FetchTimeout,
    FetchUnsupportedContentType,
    TooManyRedirects,
)
from .retry_policy import all_failed, build_retry_plan, compute_backoff_delay, should_retry
from .schema import Candidate, ContentKind, FetchOutcome


logger = logging.getLogger(__name__)

CHARSET_RE = re.compile(r'charset=["\']?([\w.:-]+)', re.I)


def get_user_agent(config: AcquireConfig) -> str:
    """Get user agent string (fixed or rotated)."""
    if config.user_agent:
        return config.user_agent
    if config.rotate_user_agent:
        return random.choice(USER_AGENTS)
    return USER_AGENTS[0]


def build_headers(config: AcquireConfig) -> dict:
    headers = DEFAULT_HEADERS.copy()
    headers['User-Agent'] = get_user_agent(config)
    return headers


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _is_timeout(exc: BaseException) -> bool:
    # Read timeouts during iter_content surface as requests.ConnectionError.
    return isinstance(exc, requests.Timeout) or 'timed out' in str(exc).lower()


def _translate_request_error(exc: requests.RequestException, timeout: float) -> FetchError:
    if _is_timeout(exc):
        return FetchTimeout(f"timeout after {timeout:g}s", {"error": str(exc)})
    return FetchConnectionError(f"request_error: {type(exc).__name__}", {"error": str(exc)})


def open_response(ctx: AcquireContext, url: str) -> tuple[requests.Response, str, int]:
    """
    GET `url`, following at most config.max_redirects redirects.

    Returns:
        (open streamed response, final url, redirects followed)

    Raises:
        TooManyRedirects: the redirect chain exceeded the cap
        FetchTimeout / FetchConnectionError: transport failure
    """
    config = ctx.config
    headers = build_headers(config)
    current = url

    for hops in range(config.max_redirects + 1):
        try:
            resp = ctx.session.get(
                current,
                headers=headers,
                timeout=config.timeout,
                allow_redirects=False,
                stream=True,
            )
        except requests.RequestException as exc:
            raise _translate_request_error(exc, config.timeout) from exc

        location = resp.headers.get('Location')
        if resp.status_code in REDIRECT_CODES and location:
            resp.close()
            current = urljoin(current, location)
            logger.debug("Redirect %d: %s", hops + 1, current)
            continue
        return resp, current, hops

    raise TooManyRedirects(url, config.max_redirects)


def _read_markup(resp: requests.Response, content_type: str, config: AcquireConfig) -> str:
    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=config.chunk_size):
        if not chunk:
            continue
        buf.extend(chunk)
        if len(buf) > config.max_markup_bytes:
            raise DocumentTooLarge(config.max_markup_bytes)

    match = CHARSET_RE.search(content_type or '')
    encoding = match.group(1) if match else 'utf-8'
    try:
        return bytes(buf).decode(encoding, errors='replace')
    except LookupError:
        return bytes(buf).decode('utf-8', errors='replace')


def _skipped_outcome(
    ctx: AcquireContext,
    component_id: str,
    candidate: Candidate,
    index: int,
    start: float,
) -> FetchOutcome | None:
    """Outcome for a slot already satisfied on disk, or None."""
    existing = ctx.store.existing_document(component_id, index)
    if existing is not None:
        return FetchOutcome(
            candidate=candidate,
            index=index,
            status='success',
            content_kind='document',
            bytes=existing.stat().st_size,
            duration_ms=_elapsed_ms(start),
            skipped_existing=True,
            path=existing,
        )

    for record in ctx.store.load_specs(component_id):
        if record.source_url == candidate.source_url:
            return FetchOutcome(
                candidate=candidate,
                index=index,
                status='success',
                content_kind='markup',
                duration_ms=_elapsed_ms(start),
                skipped_existing=True,
                path=ctx.store.specs_path(component_id),
                record=record,
            )
    return None


def fetch_candidate(
    ctx: AcquireContext,
    component_id: str,
    candidate: Candidate,
    index: int,
) -> FetchOutcome:
    """
    Fetch one candidate and persist whatever it yields.

    Args:
        ctx: run context
        component_id: requested component id (used for filenames and records)
        candidate: location to fetch
        index: position in the deduplicated candidate list

    Returns:
        FetchOutcome; candidate-level errors are recorded, not raised
    """
    start = time.monotonic()
    skipped = _skipped_outcome(ctx, component_id, candidate, index, start)
    if skipped is not None:
        logger.info("Already have %s #%d, skipping %s", component_id, index, display_url(candidate.source_url))
        return skipped

    config = ctx.config
    kind: ContentKind | None = None
    final_url = None
    redirects = 0

    try:
        resp, final_url, redirects = open_response(ctx, candidate.source_url)
        try:
            if not 200 <= resp.status_code < 300:
                raise FetchError(f"http_{resp.status_code}", {"url": final_url})

            content_type = resp.headers.get('Content-Type', '')
            kind = classify(content_type)

            if kind == 'document':
                path = ctx.store.document_path(component_id, index, document_extension(content_type))
                try:
                    size = ctx.store.write_document(
                        path,
                        resp.iter_content(chunk_size=config.chunk_size),
                        max_bytes=config.max_document_bytes,
                    )
                except OverflowError as exc:
                    raise DocumentTooLarge(config.max_document_bytes) from exc
                except requests.RequestException as exc:
                    raise _translate_request_error(exc, config.timeout) from exc
                logger.info("Saved %s (%d bytes)", path.name, size)
                return FetchOutcome(
                    candidate=candidate,
                    index=index,
                    status='success',
                    content_kind=kind,
                    bytes=size,
                    duration_ms=_elapsed_ms(start),
                    final_url=final_url,
                    redirects=redirects,
                    path=path,
                )

            if kind == 'markup':
                try:
                    markup = _read_markup(resp, content_type, config)
                except requests.RequestException as exc:
                    raise _translate_request_error(exc, config.timeout) from exc
                extraction = ctx.extractor.extract_result(markup, component_id, candidate.source_url)
                path = ctx.store.save_record(extraction.record)
                return FetchOutcome(
                    candidate=candidate,
                    index=index,
                    status='success',
                    content_kind=kind,
                    bytes=len(markup.encode('utf-8')),
                    duration_ms=_elapsed_ms(start),
                    final_url=final_url,
                    redirects=redirects,
                    path=path,
                    record=extraction.record,
                )

            raise FetchUnsupportedContentType(content_type)
        finally:
            resp.close()

    except FetchTimeout as exc:
        status, reason = 'timed_out', exc.message
    except AcquireError as exc:
        status, reason = 'failed', exc.message
    except OSError as exc:
        status, reason = 'failed', f"write_error: {exc}"

    logger.info(
        "Candidate %d for %s %s: %s (%s)",
        index, component_id, status, reason, display_url(candidate.source_url),
    )
    return FetchOutcome(
        candidate=candidate,
        index=index,
        status=status,
        content_kind=kind,
        duration_ms=_elapsed_ms(start),
        error=reason,
        final_url=final_url,
        redirects=redirects,
    )


def _attempt(ctx: AcquireContext, component_id: str, candidates: Sequence[Candidate]) -> list[FetchOutcome]:
    # Sequential and exhaustive: a success does not stop the pass.
    return [fetch_candidate(ctx, component_id, c, i) for i, c in enumerate(candidates)]


def fetch_with_retries(
    ctx: AcquireContext,
    component_id: str,
    candidates: Sequence[Candidate],
    n: int | None = None,
    timeout: float | None = None,
    max_retries: int | None = None,
) -> tuple[list[FetchOutcome], int]:
    """
    Like fetch_top_n, but also returns the number of attempts made.

    Raises:
        Exception: the last unexpected error, if every attempt raised
    """
    ctx = ctx.with_overrides(timeout=timeout)
    limit = ctx.config.max_downloads if n is None else n
    selected = dedupe(candidates)[:max(0, limit)]
    plan = build_retry_plan(ctx.config, max_retries)

    attempt = 0
    while True:
        outcomes: list[FetchOutcome] | None = None
        error: Exception | None = None
        try:
            outcomes = _attempt(ctx, component_id, selected)
        except Exception as exc:
            error = exc
            logger.warning("Attempt %d for %s raised: %s", attempt + 1, component_id, exc)

        if not should_retry(outcomes, attempt, plan, raised=error is not None):
            break
        attempt += 1
        delay = compute_backoff_delay(attempt, plan)
        logger.warning(
            "All candidates failed for %s, retry %d/%d in %.1fs",
            component_id, attempt, plan.max_retries, delay,
        )
        ctx.sleep(delay)

    if outcomes is None:
        raise error
    if selected and all_failed(outcomes):
        logger.warning("Giving up on %s after %d attempt(s)", component_id, attempt + 1)
    return outcomes, attempt + 1


def fetch_top_n(
    ctx: AcquireContext,
    component_id: str,
    candidates: Sequence[Candidate],
    n: int | None = None,
    timeout: float | None = None,
    max_retries: int | None = None,
) -> list[FetchOutcome]:
    """
    Attempt the first `n` deduplicated candidates, in order.

    The whole pass is retried (linear backoff) only when every candidate
    failed or the pass raised.

    Args:
        ctx: run context
        component_id: requested component id
        candidates: ranked candidates
        n: how many to attempt (config.max_downloads if None)
        timeout: per-request timeout override
        max_retries: retry budget override

    Returns:
        One outcome per attempted candidate, in candidate order
    """
    outcomes, _ = fetch_with_retries(ctx, component_id, candidates, n, timeout, max_retries)
    return outcomes


__all__ = [
    "get_user_agent",
    "build_headers",
    "open_response",
    "fetch_candidate",
    "fetch_with_retries",
    "fetch_top_n",
]
