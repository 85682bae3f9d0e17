# src/cache/fingerprint.py - v3
"""Content fingerprinting for change detection.

Fingerprints are SHA-256 digests of the raw source bytes; modification
times are never consulted.
"""

from __future__ import annotations

import hashlib
import posixpath


def compute_fingerprint(raw_bytes: bytes) -> str:
    """Return the lowercase hex SHA-256 of raw file bytes."""
    return hashlib.sha256(raw_bytes).hexdigest()


def fingerprint_key(rel: str, name: str, ext: str) -> str:
    """Build the map key for a source file.

    The key uses the source base name and original extension, so it stays
    the same when a backend changes the output extension.

    Args:
        rel: Directory relative to the source root ("." for the root).
        name: Base name without extension.
        ext: Original extension including the leading dot.
    """
    rel_posix = rel.replace("\\", "/")
    return posixpath.normpath(posixpath.join(rel_posix, name + ext))
