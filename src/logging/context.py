# src/logging/context.py - v2
"""Contextual logging support: attach run_id, source_file, stage to records.

Each file pipeline runs in its own asyncio task, and tasks copy the
context at creation, so concurrent files keep separate values.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_source_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source_file", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    source_file: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        source_file=_source_file.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per run)."""
    _run_id.set(run_id)


def set_file_context(source_file: str, stage: str | None = None) -> None:
    """Set file-level context (called per file pipeline)."""
    _source_file.set(source_file)
    _stage.set(stage)


def set_stage(stage: str | None) -> None:
    """Update the current pipeline stage."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _source_file.set(None)
    _stage.set(None)
