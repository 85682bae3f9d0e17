# src/pipeline/stats.py - v1
"""Run statistics: shared counters and the final RunStats.

Counters are shared by concurrently running file pipelines; every
mutation holds the aggregator's lock.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from imgminify.core.models import (
    DirectoryRecord,
    ExecutionMode,
    FileJob,
    RunStats,
    SizeTotals,
    SourceSet,
    TargetSet,
)

if TYPE_CHECKING:
    from pathlib import Path


def round_percent(value: float, precision: int = 2) -> float:
    """Round half up to precision decimal places."""
    factor = 10**precision
    return math.floor(value * factor + 0.5) / factor


def compute_percent(source: int, target: int, precision: int = 2) -> float:
    """Size reduction in percent: 100 - target / source * 100.

    Returns 0.0 when either size is zero.
    """
    if not source or not target:
        return 0.0
    return round_percent(100 - target / source * 100, precision)


class StatsSnapshot(BaseModel):
    """Read-only view of the run so far, handed to hooks."""

    model_config = ConfigDict(frozen=True)

    sources: int
    processed: int
    written: int
    skipped: int
    errors: int
    size: SizeTotals


class StatsAggregator:
    """Accumulate counts and byte totals across file pipelines.

    Args:
        sources: Number of discovered source files.
        precision: Decimal places for percentages.
        directories: Shared directory registry (filled by the materializer).
    """

    def __init__(
        self,
        sources: int = 0,
        precision: int = 2,
        directories: DirectoryRecord | None = None,
    ) -> None:
        self.sources = sources
        self.precision = precision
        self.directories = directories if directories is not None else DirectoryRecord()
        self.processed = 0
        self.written = 0
        self.skipped = 0
        self.errors = 0
        self.size_source = 0
        self.size_target = 0
        self._jobs: list[FileJob] = []
        self._lock = asyncio.Lock()

    async def add_skipped(self) -> None:
        async with self._lock:
            self.skipped += 1

    async def add_processed(self, raw_size: int, output_size: int) -> None:
        async with self._lock:
            self.processed += 1
            self.size_source += raw_size
            self.size_target += output_size

    async def add_written(self) -> None:
        async with self._lock:
            self.written += 1

    async def add_job(self, job: FileJob) -> None:
        """Fold a finished job in; jobs with errors count once."""
        async with self._lock:
            self._jobs.append(job)
            if job.errors:
                self.errors += 1

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            sources=self.sources,
            processed=self.processed,
            written=self.written,
            skipped=self.skipped,
            errors=self.errors,
            size=SizeTotals(
                source=self.size_source,
                target=self.size_target,
                percent=compute_percent(
                    self.size_source, self.size_target, self.precision
                ),
            ),
        )

    def finalize(
        self,
        source: SourceSet,
        target: TargetSet,
        mode: ExecutionMode,
        elapsed_ms: float,
        map_path: Path | None = None,
        backends: list[str] | None = None,
    ) -> RunStats:
        """Build the immutable RunStats for the caller."""
        snap = self.snapshot()
        return RunStats(
            source=source,
            target=target,
            mode=mode,
            map_path=map_path,
            backends=list(backends or []),
            sources=snap.sources,
            processed=snap.processed,
            written=snap.written,
            skipped=snap.skipped,
            errors=snap.errors,
            size=snap.size,
            directories=self.directories.model_copy(deep=True),
            jobs=list(self._jobs),
            elapsed_ms=round(elapsed_ms, 2),
        )
