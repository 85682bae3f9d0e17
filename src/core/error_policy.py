# src/core/error_policy.py - v1
"""Strict/lenient error policy shared by all pipeline components."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ErrorPolicy:
    """Decide whether an error aborts the run or is only logged.

    Args:
        strict: Raise every reported error.
        verbose: Include tracebacks when logging non-fatal errors.
    """

    def __init__(self, strict: bool = True, verbose: bool = False) -> None:
        self.strict = strict
        self.verbose = verbose

    def report(self, exc: Exception, always: bool = False) -> None:
        """Raise in strict mode (or when always is set), log otherwise."""
        if always or self.strict:
            raise exc
        logger.error(
            "%s", _describe(exc), exc_info=exc if self.verbose else None,
        )

    def notice(self, exc: Exception) -> None:
        """Non-fatal channel: log a warning regardless of mode."""
        logger.warning(
            "%s", _describe(exc), exc_info=exc if self.verbose else None,
        )


def _describe(exc: BaseException) -> str:
    """Render an exception with its chained cause on one line."""
    message = str(exc) or type(exc).__name__
    cause = exc.__cause__
    if cause is not None:
        message = f"{message} ({type(cause).__name__}: {cause})"
    return message
