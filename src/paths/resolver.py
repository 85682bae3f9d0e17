# src/paths/resolver.py - v3
"""Source and target resolution.

Turns user-supplied source/target strings into a validated SourceSet and
TargetSet. Reads no file contents; the only side effect is creating a
missing target directory.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import aiofiles.os

from imgminify.core.errors import (
    EmptySourceError,
    InvalidTargetError,
    SourceNotFoundError,
)
from imgminify.core.models import SourceSet, TargetSet

logger = logging.getLogger(__name__)

# Applied only when the source is a directory
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    {".gif", ".jpg", ".jpeg", ".png", ".svg", ".webp"}
)


def scan_directory(root: Path) -> list[Path]:
    """Recursively list supported image files under root, sorted."""
    return [
        path
        for path in sorted(root.rglob("*"))
        if path.suffix.lower() in SUPPORTED_EXTENSIONS and path.is_file()
    ]


async def resolve_source(source: str | Path) -> SourceSet:
    """Resolve the source argument into a SourceSet.

    Raises:
        SourceNotFoundError: Resolved path does not exist.
        EmptySourceError: Directory holds no supported files.
    """
    original = str(source)
    resolved = Path(source).expanduser().resolve()

    if not await aiofiles.os.path.exists(resolved):
        raise SourceNotFoundError(f"Source not found: {resolved}", resolved)

    if await aiofiles.os.path.isdir(resolved):
        # rglob blocks on directory IO; keep the event loop free
        files = await asyncio.to_thread(scan_directory, resolved)
        if not files:
            raise EmptySourceError(f"Source is empty: {resolved}", resolved)
        root = resolved
    else:
        files = [resolved]
        root = resolved.parent

    logger.info("Resolved source %s: %d file(s)", resolved, len(files))
    return SourceSet(
        root_dir=root, files=files, original_input=original, resolved=resolved,
    )


async def resolve_target(target: str | Path) -> TargetSet:
    """Resolve the target argument, creating the directory when absent.

    Raises:
        InvalidTargetError: Target exists but is not a directory, or could
            not be created.
    """
    original = str(target)
    resolved = Path(target).expanduser().resolve()

    if await aiofiles.os.path.exists(resolved):
        if not await aiofiles.os.path.isdir(resolved):
            raise InvalidTargetError(
                f"Target must be a directory: {resolved}", resolved,
            )
        return TargetSet(
            resolved_dir=resolved, preexisting=True, was_created=False,
            original_input=original,
        )

    try:
        await aiofiles.os.makedirs(resolved, exist_ok=True)
    except OSError as exc:
        raise InvalidTargetError(
            f"Failed to create target directory: {resolved}", resolved,
        ) from exc

    logger.info("Created target directory %s", resolved)
    return TargetSet(
        resolved_dir=resolved, preexisting=False, was_created=True,
        original_input=original,
    )
