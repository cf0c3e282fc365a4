"""
Orchestration helpers for acquisition scripts.

Run-config loading and summary presentation, kept out of scripts/acquire.py.
"""

from .config import (
    load_run_config,
    build_acquire_config,
    load_components_file,
    execution_log_path,
    CONFIG_ALIASES,
    PROJECT_ROOT,
    DEFAULT_CONTENT_DIR,
)
from .presenter import (
    format_summary,
    summarize_run,
    build_run_log_entry,
    append_run_log,
)

__all__ = [
    "load_run_config",
    "build_acquire_config",
    "load_components_file",
    "execution_log_path",
    "CONFIG_ALIASES",
    "PROJECT_ROOT",
    "DEFAULT_CONTENT_DIR",
    "format_summary",
    "summarize_run",
    "build_run_log_entry",
    "append_run_log",
]
