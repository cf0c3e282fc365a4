"""
Client for the extraction service (Ollama /api/generate).

Non-2xx responses, transport errors and malformed bodies all raise
ExtractionServiceUnavailable. There is no retry at this layer.
"""

from __future__ import annotations

import logging

import requests

from .config import AcquireConfig
from .errors import ExtractionServiceUnavailable


logger = logging.getLogger(__name__)


class OllamaClient:
    """Minimal synchronous client for a local or remote Ollama server."""

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.1,
        num_predict: int = 2000,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.temperature = temperature
        self.num_predict = num_predict
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: AcquireConfig, session: requests.Session | None = None) -> OllamaClient:
        return cls(
            base_url=config.ollama_url,
            model=config.model,
            temperature=config.temperature,
            num_predict=config.num_predict,
            timeout=config.extraction_timeout,
            session=session,
        )

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/api/generate"

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.num_predict,
            },
        }

    def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the generated text.

        Raises:
            ExtractionServiceUnavailable: transport error, non-2xx status, or a
                body without a string `response` field
        """
        try:
            resp = self.session.post(self.generate_url, json=self.build_payload(prompt), timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExtractionServiceUnavailable(
                f"extraction service unreachable: {type(exc).__name__}",
                {"url": self.generate_url, "error": str(exc)},
            ) from exc

        if not 200 <= resp.status_code < 300:
            raise ExtractionServiceUnavailable(
                f"extraction service error: http_{resp.status_code}",
                {"url": self.generate_url, "status_code": resp.status_code},
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise ExtractionServiceUnavailable(
                "extraction service returned non-JSON body",
                {"url": self.generate_url},
            ) from exc

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ExtractionServiceUnavailable(
                "extraction service response missing 'response' field",
                {"url": self.generate_url},
            )

        logger.debug("Extraction service returned %d chars", len(text))
        return text
