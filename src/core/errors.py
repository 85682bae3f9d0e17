# src/core/errors.py - v1
"""Error kinds raised by the optimizer core.

Run-level errors (source/target resolution) always abort a run. Per-file
errors go through ErrorPolicy and only abort in strict mode.
"""

from __future__ import annotations

from pathlib import Path


class ImageMinifyError(Exception):
    """Base class for all optimizer errors."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        if cause is not None:
            self.__cause__ = cause


# --- Run-level ---


class SourceNotFoundError(ImageMinifyError):
    """Resolved source path does not exist."""


class EmptySourceError(ImageMinifyError):
    """Source directory contains no supported files."""


class InvalidTargetError(ImageMinifyError):
    """Target exists but is not a directory, or could not be created."""


# --- Setup ---


class BackendUnavailableError(ImageMinifyError):
    """An optimizer backend could not be loaded."""


class BackendOptionsError(ImageMinifyError):
    """Backend options document could not be read."""


# --- Per-file ---


class ReadFailureError(ImageMinifyError):
    """Source file could not be read."""


class TransformFailureError(ImageMinifyError):
    """An optimizer backend failed on a file."""


class DirectoryCreateError(ImageMinifyError):
    """Target directory could not be created."""


class WriteFailureError(ImageMinifyError):
    """Optimized output could not be written."""


# --- Fingerprint map ---


class FingerprintMapReadError(ImageMinifyError):
    """Persisted fingerprint map is unreadable or malformed."""


class FingerprintMapWriteError(ImageMinifyError):
    """Fingerprint map could not be written back."""
