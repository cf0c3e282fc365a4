"""
Content classification and markup sanitizing.
"""

from __future__ import annotations

import re
from typing import Literal

from bs4 import BeautifulSoup, Comment


# Elements dropped wholesale before text extraction
STRIP_TAGS = ['script', 'style', 'noscript', 'template']

# Media types persisted as documents, with the extension they are saved under
DOCUMENT_TYPES = {
    'application/pdf': 'pdf',
    'application/x-pdf': 'pdf',
    'application/acrobat': 'pdf',
}

MARKUP_MARKERS = ('html', 'xhtml')


def media_type(content_type: str | None) -> str:
    """Return the bare, lowercased media type of a Content-Type header."""
    if not content_type:
        return ''
    return content_type.split(';', 1)[0].strip().lower()


def classify(content_type: str | None) -> Literal['document', 'markup', 'unsupported']:
    """Classify a response by its declared Content-Type."""
    mtype = media_type(content_type)
    if not mtype:
        return 'unsupported'
    if mtype in DOCUMENT_TYPES or 'pdf' in mtype:
        return 'document'
    if any(marker in mtype for marker in MARKUP_MARKERS):
        return 'markup'
    return 'unsupported'


def document_extension(content_type: str | None) -> str:
    return DOCUMENT_TYPES.get(media_type(content_type), 'pdf')


def sanitize_component_id(name: str) -> str:
    """Filesystem-safe, lowercased component id."""
    return re.sub(r'[^a-zA-Z0-9_-]', '_', name.strip()).lower()


def _clean_text(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def sanitize_markup(html: str) -> str:
    """
    Reduce an HTML page to plain text for the extraction prompt.

    Drops script/style blocks and comments, removes every remaining tag,
    decodes entities and collapses whitespace. Adjacent cells and blocks
    stay separated by a space.
    """
    if not html:
        return ''

    soup = BeautifulSoup(html, 'lxml')

    for tag in soup.find_all(STRIP_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    return _clean_text(soup.get_text(separator=' '))


def truncate_text(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]


def display_url(url: str, width: int = 60) -> str:
    """Shorten a URL for summaries and logs."""
    if len(url) <= width:
        return url
    return url[: max(width - 3, 0)] + '...'


__all__ = [
    "STRIP_TAGS",
    "DOCUMENT_TYPES",
    "media_type",
    "classify",
    "document_extension",
    "sanitize_component_id",
    "sanitize_markup",
    "truncate_text",
    "display_url",
]
