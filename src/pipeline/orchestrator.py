# src/pipeline/orchestrator.py - v3
"""Pipeline orchestrator: resolve, fingerprint, optimize, write.

Per-file stages:
    read -> fingerprint -> skip decision -> transform -> retype
         -> write decision -> directory -> write -> completion

Any stage after creation may end in ERRORED. In strict mode the first
error aborts the run; in lenient mode it is recorded on the job and the
run continues.

Execution modes:
  - sequential: files in source order, one at a time
  - concurrent: one task per file, all started at once
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles

from imgminify.cache.fingerprint import compute_fingerprint
from imgminify.cache.fingerprint_cache import FingerprintCache
from imgminify.config.backend_options import resolve_backend_options
from imgminify.config.settings import Settings
from imgminify.core.error_policy import ErrorPolicy
from imgminify.core.errors import (
    ImageMinifyError,
    ReadFailureError,
    TransformFailureError,
    WriteFailureError,
)
from imgminify.core.models import (
    DirectoryRecord,
    ExecutionMode,
    FileJob,
    JobState,
    RunStats,
    SourceSet,
    TargetSet,
)
from imgminify.logging.context import set_file_context, set_run_context, set_stage
from imgminify.paths.resolver import resolve_source, resolve_target
from imgminify.pipeline.hooks import RunHooks, call_hook
from imgminify.pipeline.job import build_job, retarget
from imgminify.pipeline.stats import StatsAggregator, round_percent
from imgminify.storage.directories import DirectoryMaterializer
from imgminify.transform.dispatcher import TransformDispatcher
from imgminify.transform.registry import BackendRegistry

if TYPE_CHECKING:
    from imgminify.cache.base_map_store import BaseMapStore
    from imgminify.transform.base_backend import BaseBackend
    from imgminify.transform.type_detector import TypeDetector

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


@dataclass
class _Run:
    """Components shared by every file pipeline of one run."""

    source: SourceSet
    target: TargetSet
    dispatcher: TransformDispatcher
    cache: FingerprintCache
    materializer: DirectoryMaterializer
    stats: StatsAggregator
    hooks: RunHooks


class PipelineOrchestrator:
    """Drive the per-file pipeline over a source set.

    Args:
        settings: Application settings. Loaded from .env if None.
        hooks: Default write-decision/completion hooks.
        backends: Preloaded backends. When None, backends are loaded from
            settings (and the backend options document) on each run.
        detector: Content type detector override.
        map_store: Fingerprint map storage override.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        hooks: RunHooks | None = None,
        backends: list[BaseBackend] | None = None,
        detector: TypeDetector | None = None,
        map_store: BaseMapStore | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.policy = ErrorPolicy(
            strict=self.settings.strict, verbose=self.settings.verbose,
        )
        self._hooks = hooks
        self._backends = backends
        self._detector = detector
        self._map_store = map_store

    async def run(
        self,
        source: str | Path,
        target: str | Path,
        mode: ExecutionMode | str | None = None,
        hooks: RunHooks | None = None,
    ) -> RunStats:
        """Optimize every source file into the target tree.

        Args:
            source: Source file or directory.
            target: Target directory (created when missing).
            mode: Execution mode; defaults to settings.execution_mode.
            hooks: Hooks for this run; defaults to the constructor hooks.

        Returns:
            Frozen RunStats.

        Raises:
            SourceNotFoundError, EmptySourceError, InvalidTargetError:
                Always.
            ImageMinifyError: Any per-file or setup error, in strict mode.
        """
        settings = self.settings
        mode = ExecutionMode(mode or settings.execution_mode)
        start = time.perf_counter()

        run_id = uuid.uuid4().hex[:12]
        set_run_context(run_id)

        source_set = await resolve_source(source)
        target_set = await resolve_target(target)

        backends = self._load_backends(source_set.root_dir)
        dispatcher = TransformDispatcher(backends, detector=self._detector)

        cache = FingerprintCache(
            self.policy,
            enabled=settings.fingerprint_enabled,
            squash=settings.fingerprint_squash,
            map_name=settings.fingerprint_map_name,
            commit_mode=settings.fingerprint_commit,
            store=self._map_store,
        )
        map_path = await cache.load(source_set.root_dir)

        directories = DirectoryRecord()
        run = _Run(
            source=source_set,
            target=target_set,
            dispatcher=dispatcher,
            cache=cache,
            materializer=DirectoryMaterializer(self.policy, directories),
            stats=StatsAggregator(
                sources=len(source_set.files),
                precision=settings.percent_precision,
                directories=directories,
            ),
            hooks=hooks or self._hooks or RunHooks(),
        )

        logger.info(
            "Run %s: %d file(s), mode=%s, strict=%s, fingerprint=%s",
            run_id, len(source_set.files), mode.value,
            self.policy.strict, cache.enabled,
        )

        if mode is ExecutionMode.CONCURRENT:
            await self._run_concurrent(run)
        else:
            for file in source_set.files:
                await self._process_file(file, run)

        set_stage(None)
        await cache.persist()

        result = run.stats.finalize(
            source=source_set,
            target=target_set,
            mode=mode,
            elapsed_ms=_elapsed_ms(start),
            map_path=map_path,
            backends=[b.name for b in dispatcher.backends],
        )
        logger.info(
            "Run %s complete: %d sources, %d processed, %d written, "
            "%d skipped, %d errors, %.2f%% saved, %.0fms",
            run_id, result.sources, result.processed, result.written,
            result.skipped, result.errors, result.size.percent, result.elapsed_ms,
        )
        return result

    def _load_backends(self, source_root: Path) -> list[BaseBackend]:
        """Resolve backend options and load the configured backends."""
        if self._backends is not None:
            return list(self._backends)

        settings = self.settings
        options, _ = resolve_backend_options(
            source_root,
            self.policy,
            file_name=settings.backend_options_name,
            explicit=settings.backend_options_path,
            disabled=settings.backend_options_disabled,
            defaults=settings.backend_options,
        )
        registry = BackendRegistry(self.policy, options)
        return registry.load_all(settings.backends_list)

    async def _run_concurrent(self, run: _Run) -> None:
        """Start one task per file and wait for all of them."""
        tasks = [
            asyncio.create_task(self._process_file(file, run))
            for file in run.source.files
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _process_file(self, file: Path, run: _Run) -> FileJob:
        """Run one file through every stage and fold it into the stats."""
        job = build_job(file, run.source, run.target)
        set_file_context(str(file))
        start = time.perf_counter()

        await self._execute(job, run)

        if not job.written:
            await run.cache.discard(job.key)
        job.output_bytes = None
        job.timings.total = _elapsed_ms(start)
        if job.state is not JobState.ERRORED:
            job.state = JobState.DONE

        await run.stats.add_job(job)
        set_stage("complete")
        await call_hook(run.hooks.on_complete(job, run.stats.snapshot()))
        return job

    async def _execute(self, job: FileJob, run: _Run) -> None:
        # --- Read ---
        set_stage("read")
        start = time.perf_counter()
        try:
            async with aiofiles.open(job.source.path, "rb") as f:
                raw = await f.read()
        except OSError as exc:
            self._fail(
                job,
                ReadFailureError(
                    f"Failed to read: {job.source.path}", job.source.path, cause=exc,
                ),
            )
            return
        job.timings.read = _elapsed_ms(start)
        job.raw_size = len(raw)
        job.state = JobState.READ

        # --- Fingerprint + skip decision ---
        if run.cache.enabled:
            job.content_hash = compute_fingerprint(raw)
            job.state = JobState.FINGERPRINTED

        if not await run.cache.should_process(job.key, job.content_hash):
            job.skipped = True
            job.state = JobState.SKIPPED
            await run.stats.add_skipped()
            logger.debug("Unchanged, skipping %s", job.key)
            return

        # --- Transform ---
        set_stage("transform")
        start = time.perf_counter()
        try:
            output = await run.dispatcher.transform(raw, job.source.path)
        except TransformFailureError as exc:
            self._fail(job, exc)
            return
        job.timings.process = _elapsed_ms(start)
        job.output_bytes = output
        job.output_size = len(output)
        if job.raw_size:
            job.percent = round_percent(
                100 - job.output_size / job.raw_size * 100,
                self.settings.percent_precision,
            )
        job.state = JobState.TRANSFORMED
        await run.stats.add_processed(job.raw_size, job.output_size)

        # --- Retype ---
        job.source_type = run.dispatcher.detect_type(raw, job.source.ext)
        job.output_type = run.dispatcher.detect_type(output, job.source.ext)
        if job.output_type.mime != job.source_type.mime:
            retarget(job, job.output_type.ext)
            logger.debug(
                "Type changed %s -> %s, writing %s",
                job.source_type.mime, job.output_type.mime, job.target.path,
            )
        job.state = JobState.RETYPED

        # --- Write decision ---
        set_stage("write")
        if not await call_hook(run.hooks.decide(job, run.stats.snapshot())):
            logger.debug("Write vetoed for %s", job.target.path)
            return

        # --- Directory ---
        if job.rel != ".":
            target_dir = job.target_dir
            # A directory that failed once is not retried for later files
            available = not run.materializer.is_failed(
                target_dir
            ) and await run.materializer.ensure(target_dir)
            if not available:
                job.errors.append(f"Target directory unavailable: {target_dir}")
                job.state = JobState.ERRORED
                return
        job.state = JobState.DIRECTORY_READY

        # --- Write ---
        start = time.perf_counter()
        try:
            async with aiofiles.open(job.target.path, "wb") as f:
                await f.write(job.output_bytes)
        except OSError as exc:
            self._fail(
                job,
                WriteFailureError(
                    f"Failed to write: {job.target.path}", job.target.path, cause=exc,
                ),
            )
            return
        job.timings.write = _elapsed_ms(start)
        # Drop the buffer right away to bound peak memory
        job.output_bytes = None
        job.written = True
        job.state = JobState.WRITTEN
        await run.stats.add_written()
        await run.cache.commit(job.key)

    def _fail(self, job: FileJob, exc: ImageMinifyError) -> None:
        """Record a per-file error, then apply the error policy."""
        job.errors.append(str(exc))
        job.state = JobState.ERRORED
        job.output_bytes = None
        self.policy.report(exc)
