"""
Exceptions raised inside the acquisition pipeline.

Candidate-level errors are caught by the fetcher and recorded on the
FetchOutcome; nothing here is expected to reach the caller of
acquire_datasheets().
"""

from typing import Any, Optional


class AcquireError(Exception):
    """Base exception for acquisition errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class CandidateGenerationEmpty(AcquireError):
    """No candidate locations could be generated for the component."""

    def __init__(self, component_id: str) -> None:
        super().__init__(
            f"no candidates generated for '{component_id}'",
            {"component": component_id},
        )


# =============================================================================
# Fetch errors
# =============================================================================


class FetchError(AcquireError):
    """Raised when a candidate could not be fetched."""
    pass


class FetchTimeout(FetchError):
    pass


class FetchConnectionError(FetchError):
    pass


class FetchUnsupportedContentType(FetchError):

    def __init__(self, content_type: str) -> None:
        super().__init__(
            f"unsupported content type: {content_type or 'unknown'}",
            {"content_type": content_type},
        )


class TooManyRedirects(FetchError):

    def __init__(self, url: str, max_redirects: int) -> None:
        super().__init__(
            f"too many redirects (>{max_redirects})",
            {"url": url, "max_redirects": max_redirects},
        )


class DocumentTooLarge(FetchError):

    def __init__(self, limit: int) -> None:
        super().__init__(f"too_large: body exceeds {limit} bytes", {"limit": limit})


# =============================================================================
# Extraction errors
# =============================================================================


class ExtractionServiceUnavailable(AcquireError):
    """The text-generation backend could not be reached or answered non-2xx."""
    pass


class ExtractionParseFailure(AcquireError):
    """Service output had no usable structure.

    Never raised to callers: the adapter degrades to an unparsed record.
    Kept so the parse step can signal internally and tests can name it.
    """
    pass
