"""
Shared fixtures: fake HTTP transport, fake extraction service, test context.

No test touches the network. Sessions are MagicMocks whose get() routes by
URL; responses are MagicMocks exposing status_code, headers, iter_content
and close like a streamed requests.Response.
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
import requests

from acquire.config import AcquireConfig
from acquire.context import AcquireContext


def make_response(status=200, content_type="text/html; charset=utf-8", body=b"", headers=None):
    if isinstance(body, str):
        body = body.encode("utf-8")
    resp = MagicMock()
    resp.status_code = status
    resp.headers = {}
    if content_type:
        resp.headers["Content-Type"] = content_type
    resp.headers.update(headers or {})

    def iter_content(chunk_size=1024, decode_unicode=False):
        return iter([body[i:i + chunk_size] for i in range(0, len(body), chunk_size)])

    resp.iter_content.side_effect = iter_content
    return resp


class FakeGenerator:
    """Stands in for OllamaClient; returns a canned reply and counts calls."""

    def __init__(self, reply=None, error=None):
        self.reply = reply if reply is not None else json.dumps({
            "component": "LM358",
            "manufacturer": "Texas Instruments",
            "voltage": {"min": "3V", "max": "32V"},
            "package": "SOIC-8",
        })
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def make_session(routes, default=None):
    """
    Session whose get() answers from `routes` (url -> response | exception).

    Unrouted URLs answer with `default`, or raise requests.ConnectionError.
    """
    session = MagicMock(spec=requests.Session)

    def get(url, **kwargs):
        target = routes.get(url, default)
        if target is None:
            raise requests.ConnectionError(f"no route for {url}")
        if isinstance(target, BaseException):
            raise target
        if callable(target) and not isinstance(target, MagicMock):
            return target()
        return target

    session.get.side_effect = get
    return session


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def test_config(tmp_path):
    return AcquireConfig(
        content_dir=tmp_path / "datasheets",
        retry_base_delay=0,
        max_retries=0,
        rotate_user_agent=False,
    )


@pytest.fixture
def build_ctx(test_config, fake_generator):
    """Factory: build_ctx(routes, default=None, **config_overrides) -> AcquireContext."""

    def _build(routes=None, default=None, generator=None, **overrides):
        ctx = AcquireContext.create(
            test_config,
            session=make_session(routes or {}, default),
            generator=generator or fake_generator,
            sleep=lambda _: None,
        )
        return ctx.with_overrides(**overrides)

    return _build


@pytest.fixture
def http_response():
    """Factory for fake streamed responses (see make_response)."""
    return make_response


@pytest.fixture
def http_session():
    """Factory for URL-routed fake sessions (see make_session)."""
    return make_session


@pytest.fixture
def generator_factory():
    """FakeGenerator class, for tests needing a custom reply or error."""
    return FakeGenerator
