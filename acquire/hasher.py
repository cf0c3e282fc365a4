"""
Hashing utilities for cache keys and content identity.
"""

import hashlib


def hash_content(text: str, length: int = 16) -> str:
    """
    Hash text content for identity/stability tracking.

    Args:
        text: The text to hash
        length: Length of returned hash (default 16 chars)

    Returns:
        Truncated SHA-256 hex digest
    """
    return hashlib.sha256(text.encode('utf-8', errors='replace')).hexdigest()[:length]


def hash_prefix(text: str, prefix_chars: int = 500, salt: str = '', length: int = 32) -> str:
    """
    Hash the first `prefix_chars` characters of text.

    Used as the memoization key for extraction: two pages with the same
    leading text (and the same salt, usually the component id) share a key.

    Returns:
        Fixed-length truncated SHA-256 hex digest
    """
    return hash_content(f"{salt}\n{text[:prefix_chars]}", length=length)

