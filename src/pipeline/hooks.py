# src/pipeline/hooks.py - v1
"""Per-file hooks: write decision and completion notification.

Hooks may be plain or async methods; the orchestrator awaits results that
are awaitable.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from imgminify.core.models import FileJob
    from imgminify.pipeline.stats import StatsSnapshot


class RunHooks:
    """Default hooks: always write, ignore completion.

    Subclass to veto writes (dry runs, interactive review) or to report
    per-file progress.
    """

    def decide(self, job: FileJob, stats: StatsSnapshot) -> Any:
        """Return False to skip writing this file's output."""
        return True

    def on_complete(self, job: FileJob, stats: StatsSnapshot) -> Any:
        """Called once per file after its pipeline finished."""
        return None


class DryRunHooks(RunHooks):
    """Process everything, write nothing."""

    def decide(self, job: FileJob, stats: StatsSnapshot) -> bool:
        return False


async def call_hook(result: Any) -> Any:
    """Await a hook result if it is awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result
