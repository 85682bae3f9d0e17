# src/core/models.py - v1
"""Domain models: SourceSet, TargetSet, FileJob, RunStats.

FileJob is the only mutable record; it is created per file by
pipeline/job.py and folded into RunStats at the end of a run.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from imgminify.cache.fingerprint import fingerprint_key


class ExecutionMode(str, Enum):
    """How the per-file pipelines of a run are scheduled."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class SourceSet(BaseModel):
    """Files selected for a run, with the root they are relative to."""

    model_config = ConfigDict(frozen=True)

    root_dir: Path
    files: list[Path]
    original_input: str
    resolved: Path

    @field_validator("files")
    @classmethod
    def validate_files(cls, v: list[Path]) -> list[Path]:
        if not v:
            raise ValueError("files must not be empty")
        return v


class TargetSet(BaseModel):
    """Resolved output directory."""

    model_config = ConfigDict(frozen=True)

    resolved_dir: Path
    preexisting: bool
    was_created: bool
    original_input: str = ""


class TypeInfo(BaseModel):
    """Detected content type: extension without dot and mime type."""

    model_config = ConfigDict(frozen=True)

    ext: str
    mime: str


# === Per-file ===


class JobState(str, Enum):
    """Stages of a single file's pipeline."""

    CREATED = "created"
    READ = "read"
    FINGERPRINTED = "fingerprinted"
    SKIPPED = "skipped"
    TRANSFORMED = "transformed"
    RETYPED = "retyped"
    DIRECTORY_READY = "directory_ready"
    WRITTEN = "written"
    DONE = "done"
    ERRORED = "errored"


class PathData(BaseModel):
    """A file path split into directory, base name and extension."""

    dir: Path
    name: str
    ext: str
    path: Path


class FileTimings(BaseModel):
    """Stage durations in milliseconds."""

    read: float = 0.0
    process: float = 0.0
    write: float = 0.0
    total: float = 0.0


class FileJob(BaseModel):
    """Transient record of one file moving through the pipeline."""

    source: PathData
    target: PathData
    source_root: Path
    target_root: Path
    rel: str = "."
    content_hash: str | None = None
    raw_size: int = 0
    output_size: int = 0
    source_type: TypeInfo | None = None
    output_type: TypeInfo | None = None
    percent: float = 0.0
    timings: FileTimings = Field(default_factory=FileTimings)
    state: JobState = JobState.CREATED
    skipped: bool = False
    written: bool = False
    errors: list[str] = Field(default_factory=list)
    output_bytes: bytes | None = Field(default=None, exclude=True, repr=False)

    @property
    def key(self) -> str:
        """Fingerprint key, derived from the source name only."""
        return fingerprint_key(self.rel, self.source.name, self.source.ext)

    @property
    def target_dir(self) -> Path:
        return self.target_root / self.rel if self.rel != "." else self.target_root

    @property
    def failed(self) -> bool:
        return self.state is JobState.ERRORED


# === Run ===


class SizeTotals(BaseModel):
    """Byte totals over all transformed files."""

    source: int = 0
    target: int = 0
    percent: float = 0.0


class DirectoryRecord(BaseModel):
    """Target directories created or failed during a run."""

    created: set[Path] = Field(default_factory=set)
    failed: set[Path] = Field(default_factory=set)


class RunStats(BaseModel):
    """Aggregate result of a run, returned to the caller."""

    model_config = ConfigDict(frozen=True)

    source: SourceSet
    target: TargetSet
    mode: ExecutionMode = ExecutionMode.SEQUENTIAL
    map_path: Path | None = None
    backends: list[str] = Field(default_factory=list)
    sources: int = 0
    processed: int = 0
    written: int = 0
    skipped: int = 0
    errors: int = 0
    size: SizeTotals = Field(default_factory=SizeTotals)
    directories: DirectoryRecord = Field(default_factory=DirectoryRecord)
    jobs: list[FileJob] = Field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def partial(self) -> bool:
        """True when some discovered files were neither skipped nor written."""
        return self.written + self.skipped < self.sources
