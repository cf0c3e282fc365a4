"""
Explicit run context passed into pipeline functions.

Built once per process (or per test) instead of module-level singletons:
config, HTTP session, content store and extraction adapter (with its memo
cache) all live here.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from typing import Callable

import requests

from .config import AcquireConfig
from .extractor import ExtractionAdapter, TextGenerator
from .ollama import OllamaClient
from .store import ContentStore


@dataclass
class AcquireContext:
    config: AcquireConfig
    session: requests.Session
    store: ContentStore
    extractor: ExtractionAdapter
    sleep: Callable[[float], None] = field(default=time.sleep)

    @classmethod
    def create(
        cls,
        config: AcquireConfig | None = None,
        session: requests.Session | None = None,
        generator: TextGenerator | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> AcquireContext:
        """
        Build a context from config.

        Args:
            config: run configuration (defaults if None)
            session: HTTP session for candidate fetches (new Session if None)
            generator: text generator for extraction (OllamaClient if None)
            sleep: backoff sleeper (time.sleep if None)
        """
        if config is None:
            config = AcquireConfig()
        if session is None:
            session = requests.Session()
        if generator is None:
            generator = OllamaClient.from_config(config)
        return cls(
            config=config,
            session=session,
            store=ContentStore(config.content_dir),
            extractor=ExtractionAdapter.from_config(config, generator),
            sleep=sleep or time.sleep,
        )

    def with_overrides(self, **changes) -> AcquireContext:
        """Copy with some config fields replaced; store, session and cache are shared."""
        changes = {k: v for k, v in changes.items() if v is not None}
        if not changes:
            return self
        return dataclasses.replace(self, config=dataclasses.replace(self.config, **changes))
