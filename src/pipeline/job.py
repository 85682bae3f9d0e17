# src/pipeline/job.py - v1
"""FileJob construction and target path helpers."""

from __future__ import annotations

import os
from pathlib import Path

from imgminify.core.models import FileJob, PathData, SourceSet, TargetSet


def split_path(file: Path, ext: str | None = None) -> PathData:
    """Split a path into dir/name/ext, optionally replacing the extension.

    Args:
        file: File path.
        ext: New extension including the leading dot, or None to keep it.
    """
    file = Path(file)
    path = file.parent / f"{file.stem}{ext}" if ext else file
    return PathData(
        dir=file.parent, name=file.stem, ext=ext or file.suffix, path=path,
    )


def build_job(file: Path, source: SourceSet, target: TargetSet) -> FileJob:
    """Create the per-file record mirroring file into the target tree."""
    relative = Path(os.path.relpath(file, source.root_dir))
    target_path = target.resolved_dir / relative
    rel = relative.parent.as_posix()
    return FileJob(
        source=split_path(file),
        target=split_path(target_path),
        source_root=source.root_dir,
        target_root=target.resolved_dir,
        rel=rel,
    )


def retarget(job: FileJob, ext: str) -> None:
    """Point the job's target at a new extension in the same directory."""
    ext = ext if ext.startswith(".") else f".{ext}"
    job.target = split_path(job.target.path, ext)
