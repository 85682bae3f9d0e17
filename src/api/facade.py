# src/api/facade.py - v2
"""Public API facade: single entry point for optimizing an image tree.

Usage:
    from imgminify.api.facade import minify
    stats = await minify("assets/src", "assets/dist")
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from imgminify.config.settings import Settings
from imgminify.pipeline.orchestrator import PipelineOrchestrator

if TYPE_CHECKING:
    from imgminify.core.models import ExecutionMode, RunStats
    from imgminify.pipeline.hooks import RunHooks
    from imgminify.transform.base_backend import BaseBackend


async def minify(
    source: str | Path,
    target: str | Path,
    settings: Settings | None = None,
    hooks: RunHooks | None = None,
    mode: ExecutionMode | str | None = None,
    backends: list[BaseBackend] | None = None,
) -> RunStats:
    """Optimize source images into target and return run statistics.

    Args:
        source: Source file or directory.
        target: Target directory, created when missing.
        settings: Global settings. Loaded from .env if None.
        hooks: Write-decision/completion hooks. None = always write.
        mode: "sequential" or "concurrent"; defaults to settings.
        backends: Preloaded backends; None = load from settings.

    Returns:
        RunStats for the run.
    """
    orchestrator = PipelineOrchestrator(
        settings=settings or Settings(), hooks=hooks, backends=backends,
    )
    return await orchestrator.run(source, target, mode=mode)


def minify_sync(
    source: str | Path,
    target: str | Path,
    settings: Settings | None = None,
    hooks: RunHooks | None = None,
    mode: ExecutionMode | str | None = None,
    backends: list[BaseBackend] | None = None,
) -> RunStats:
    """Blocking wrapper around minify() for non-async callers."""
    return asyncio.run(
        minify(source, target, settings=settings, hooks=hooks, mode=mode, backends=backends)
    )
