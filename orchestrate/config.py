"""
Run-configuration loading for acquisition scripts.

Run configs and component lists are JSON or YAML. Keys map onto
AcquireConfig fields; CLI overrides win over the file.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import yaml

from acquire.config import AcquireConfig, DEFAULT_CONTENT_DIR, PROJECT_ROOT


LOGS_SUBDIR = "logs"
EXECUTION_LOG_NAME = "executions.jsonl"

# Run-config spellings that differ from AcquireConfig field names
CONFIG_ALIASES = {
    "downloads": "max_downloads",
    "max_download": "max_downloads",
    "retries": "max_retries",
    "jobs": "max_parallel_downloads",
    "parallel": "max_parallel_downloads",
    "output_dir": "content_dir",
    "download_dir": "content_dir",
    "ollama": "ollama_url",
    "ollama_model": "model",
}

PATH_FIELDS = {"content_dir"}


def _read_structured(p: Path):
    """Parse a JSON or YAML file by suffix. Empty files yield None."""
    content = p.read_text(encoding="utf-8").strip()
    if not content:
        return None
    if p.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(content)
    return json.loads(content)


def load_run_config(path: str) -> dict:
    """Load a run configuration from JSON or YAML."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Run config not found: {path}")

    result = _read_structured(p)
    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ValueError(f"Run config must be a mapping: {path}")
    return result


def build_acquire_config(cfg: dict | None = None, overrides: dict | None = None) -> AcquireConfig:
    """
    Build an AcquireConfig from a run config plus overrides.

    Unknown keys are ignored. Override values of None mean "not given" and
    leave the run-config (or default) value in place.
    """
    known = {f.name for f in dataclasses.fields(AcquireConfig)}
    values: dict = {}

    for source in (cfg or {}, overrides or {}):
        for key, value in source.items():
            name = CONFIG_ALIASES.get(key, key)
            if name not in known or value is None:
                continue
            if name in PATH_FIELDS:
                value = Path(value).expanduser()
            values[name] = value

    return AcquireConfig(**values)


def load_components_file(path: str) -> list:
    """
    Load a component list from JSON or YAML.

    Accepts a bare list or a mapping with a "components" list. Items are
    part-number strings or {"component": ..., "type": ...} mappings.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Components file not found: {path}")
    data = _read_structured(p)
    if isinstance(data, dict) and "components" in data:
        data = data["components"]
    if not isinstance(data, list):
        raise ValueError("Components file must be a list or contain 'components' list")
    return data


def execution_log_path(content_dir: Path | str) -> Path:
    return Path(content_dir) / LOGS_SUBDIR / EXECUTION_LOG_NAME


__all__ = [
    "PROJECT_ROOT",
    "DEFAULT_CONTENT_DIR",
    "CONFIG_ALIASES",
    "load_run_config",
    "build_acquire_config",
    "load_components_file",
    "execution_log_path",
]
