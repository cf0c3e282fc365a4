"""
Configuration and thresholds for the acquisition pipeline.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONTENT_DIR = PROJECT_ROOT / "datasheets"

# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
]

# Default request headers (documents first, markup second)
DEFAULT_HEADERS = {
    'Accept': 'application/pdf,text/html,application/xhtml+xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
}

# Status codes that carry a Location header worth following
REDIRECT_CODES = (301, 302, 303, 307, 308)

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "llama3.1:8b"


@dataclass
class AcquireConfig:
    """Configuration for acquisition runs."""

    # Candidate scheduling
    max_downloads: int = 10  # top-N candidates attempted per component
    timeout: float = 30.0  # per request, seconds
    max_redirects: int = 5
    max_retries: int = 2  # component-level retries when every candidate fails
    retry_base_delay: float = 1.0  # linear backoff: base * attempt number
    max_parallel_downloads: int = 3  # components in flight per batch

    # Content store
    content_dir: Path = field(default_factory=lambda: DEFAULT_CONTENT_DIR)
    max_document_bytes: int = 50 * 1024 * 1024
    max_markup_bytes: int = 5 * 1024 * 1024
    chunk_size: int = 64 * 1024

    # Extraction service
    ollama_url: str = field(default_factory=lambda: os.getenv("OLLAMA_URL", DEFAULT_OLLAMA_URL))
    model: str = DEFAULT_OLLAMA_MODEL
    temperature: float = 0.1
    num_predict: int = 2000
    extraction_timeout: float = 120.0
    max_prompt_chars: int = 10_000  # sanitized text sent to the model

    # Memoization
    cache_key_chars: int = 500  # text prefix hashed into the cache key
    cache_capacity: int = 100

    # Presentation
    display_url_chars: int = 60

    # User agent
    user_agent: str | None = None  # if None, rotates from USER_AGENTS
    rotate_user_agent: bool = True
