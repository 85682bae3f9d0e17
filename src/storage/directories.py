# src/storage/directories.py - v2
"""Target directory materialization with success and failure memoization.

A directory that could not be created is recorded once and never retried,
so a failing subtree costs one creation attempt regardless of how many
files map into it.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles.os

from imgminify.core.errors import DirectoryCreateError
from imgminify.core.models import DirectoryRecord

if TYPE_CHECKING:
    from imgminify.core.error_policy import ErrorPolicy

logger = logging.getLogger(__name__)


class DirectoryMaterializer:
    """Ensure target directories exist, memoizing outcomes per path.

    Args:
        policy: Error policy for creation failures.
        record: Shared created/failed registry (owned by the run stats).
    """

    def __init__(
        self, policy: ErrorPolicy, record: DirectoryRecord | None = None,
    ) -> None:
        self._policy = policy
        self.record = record if record is not None else DirectoryRecord()
        self._locks: dict[Path, asyncio.Lock] = {}
        # Directories found already present; not reported as created
        self._present: set[Path] = set()

    def is_failed(self, dir_path: Path) -> bool:
        """True if creating dir_path already failed in this run."""
        return Path(dir_path) in self.record.failed

    async def ensure(self, dir_path: Path) -> bool:
        """Make sure dir_path exists.

        Returns:
            True if the directory is available, False if creation failed
            (now or earlier in the run).

        Raises:
            DirectoryCreateError: On failure, in strict mode.
        """
        dir_path = Path(dir_path)
        if dir_path in self.record.created or dir_path in self._present:
            return True

        # setdefault runs without a suspension point, so one lock per path
        lock = self._locks.setdefault(dir_path, asyncio.Lock())
        async with lock:
            if dir_path in self.record.created or dir_path in self._present:
                return True
            if dir_path in self.record.failed:
                return False

            if await aiofiles.os.path.isdir(dir_path):
                self._present.add(dir_path)
                return True

            try:
                await aiofiles.os.makedirs(dir_path, exist_ok=True)
            except OSError as exc:
                self.record.failed.add(dir_path)
                logger.debug("Directory creation failed: %s", dir_path)
                self._policy.report(
                    DirectoryCreateError(
                        f"Failed to create directory: {dir_path}",
                        dir_path,
                        cause=exc,
                    )
                )
                return False

            self.record.created.add(dir_path)
            logger.debug("Created directory %s", dir_path)
            return True
