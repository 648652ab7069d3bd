"""
Content hashing for layout assets and exported artifacts.

Image bytes are referenced by digest in serialized layouts, and every
exported PDF is reported with its digest so callers can compare
artifacts without re-reading them.

Design Decisions:
- SHA-256 on raw bytes
- Prefix 'sha256:' keeps the algorithm visible in stored values
"""

import hashlib


def compute_content_hash(content: bytes) -> str:
    """
    Compute SHA-256 hash of raw content.

    Args:
        content: Raw bytes (image, PDF, serialized layout)

    Returns:
        Hex-encoded SHA-256 hash prefixed with 'sha256:'

    Raises:
        ValueError: If content is empty
    """
    if not content:
        raise ValueError("Cannot hash empty content")

    return f"sha256:{hashlib.sha256(content).hexdigest()}"
