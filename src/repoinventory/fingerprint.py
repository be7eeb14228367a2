"""Content digests and token estimates."""

import hashlib
import math

from repoinventory.constants import CHARS_PER_TOKEN, MIN_TOKEN_ESTIMATE


def content_digest(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes.

    The digest depends on the bytes only, never on path or metadata, so two
    files with identical content always share it.

    Examples:
        >>> content_digest(b"hello")[:12]
        '2cf24dba5fb0'
    """
    return hashlib.sha256(data).hexdigest()


def fingerprint(data: bytes) -> tuple[str, int]:
    """Return ``(digest, size)`` for raw bytes."""
    return content_digest(data), len(data)


def estimate_tokens(text: str) -> int:
    """Cheap length-based token estimate.

    Uses fewer characters per token than typical tokenizers so the estimate
    leans high and downstream budgets stay conservative. Never returns less
    than MIN_TOKEN_ESTIMATE.

    Args:
        text: Text whose encoded size should be estimated

    Returns:
        Estimated token count
    """
    return max(MIN_TOKEN_ESTIMATE, math.ceil(len(text) / CHARS_PER_TOKEN))
