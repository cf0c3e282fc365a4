#!/usr/bin/env python3
"""
Datasheet acquisition driver.

Usage:
    python scripts/acquire.py LM358 IC
    python scripts/acquire.py --components parts.yaml --jobs 3 --progress
    python scripts/acquire.py ESP32 --config runs/fast.yaml --json

Each component gets ranked candidate URLs, the top N are fetched, PDFs are
saved and HTML pages are run through the extraction service. A line per run
is appended to <content_dir>/logs/executions.jsonl.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from tqdm import tqdm

# Add parent dir to path for acquire module
sys.path.insert(0, str(Path(__file__).parent.parent))

from acquire import AcquireContext, acquire_batch
from acquire.store import ContentStore
from orchestrate.config import (
    build_acquire_config,
    execution_log_path,
    load_components_file,
    load_run_config,
)
from orchestrate.presenter import append_run_log, build_run_log_entry, format_summary


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find and download component datasheets")
    parser.add_argument("component", nargs="?", help="Component id, e.g. LM358")
    parser.add_argument("type", nargs="?", help="Component type hint (IC, MOSFET, LED, Sensor, Regulator)")
    parser.add_argument("--components", help="Path to JSON/YAML component list")
    parser.add_argument("--config", help="Path to JSON/YAML run config")
    parser.add_argument("--max-downloads", type=int, help="Candidates attempted per component (default: 10)")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds (default: 30)")
    parser.add_argument("--jobs", "-j", type=int, help="Components acquired in parallel (default: 3)")
    parser.add_argument("--retries", type=int, help="Retries when every candidate fails (default: 2)")
    parser.add_argument("--content-dir", help="Where documents and spec files are written")
    parser.add_argument("--ollama-url", help="Extraction service base URL (default: $OLLAMA_URL)")
    parser.add_argument("--model", help="Extraction model name")
    parser.add_argument("--cleanup-days", type=float, metavar="DAYS",
                        help="Delete stored files older than DAYS before running")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Warnings only, no per-candidate lines")
    parser.add_argument("--json", action="store_true", help="Print summaries as JSON")
    args = parser.parse_args(argv)

    if not args.component and not args.components:
        parser.error("give a COMPONENT or --components FILE")
    return args


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # urllib3 connection chatter drowns out per-candidate lines at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    cfg = load_run_config(args.config) if args.config else {}
    config = build_acquire_config(cfg, {
        "max_downloads": args.max_downloads,
        "timeout": args.timeout,
        "max_parallel_downloads": args.jobs,
        "max_retries": args.retries,
        "content_dir": args.content_dir,
        "ollama_url": args.ollama_url,
        "model": args.model,
    })

    if args.components:
        components = load_components_file(args.components)
    else:
        components = [(args.component, args.type)]

    if args.cleanup_days is not None:
        removed = ContentStore(config.content_dir).cleanup_old_files(args.cleanup_days)
        if not args.quiet:
            print(f"Removed {removed} files older than {args.cleanup_days:g} days")

    ctx = AcquireContext.create(config)
    started = datetime.now(timezone.utc)

    if not args.quiet and not args.json:
        print(f"Acquiring {len(components)} component(s) "
              f"(top {config.max_downloads}, jobs={config.max_parallel_downloads})...")

    if args.progress:
        with tqdm(total=len(components), desc="Components", unit="part") as pbar:
            def on_result(summary):
                pbar.set_postfix_str(f"{summary.component}: {summary.status}")
                pbar.update(1)
            summaries = acquire_batch(ctx, components, on_result=on_result)
    else:
        summaries = acquire_batch(ctx, components)

    if args.json:
        print(json.dumps([s.to_dict() for s in summaries], indent=2))
    else:
        for summary in summaries:
            print("\n".join(format_summary(summary, show_failures=not args.quiet)))

        ok = sum(1 for s in summaries if s.ok)
        print(f"\n{'='*60}")
        print(f"Completed: {ok}/{len(summaries)} components with at least one datasheet")

    try:
        entry = build_run_log_entry(
            summaries,
            started,
            command=" ".join(sys.argv),
            config={
                "max_downloads": config.max_downloads,
                "timeout": config.timeout,
                "max_retries": config.max_retries,
                "jobs": config.max_parallel_downloads,
                "content_dir": str(config.content_dir),
                "model": config.model,
            },
        )
        log_file = append_run_log(execution_log_path(config.content_dir), entry)
        if not args.quiet and not args.json:
            print(f"Execution logged to: {log_file}")
    except OSError as exc:
        print(f"Warning: Could not write execution log: {exc}", file=sys.stderr)

    return 1 if any(s.status == "crashed" for s in summaries) else 0


if __name__ == "__main__":
    sys.exit(main())
