# src/cache/fingerprint_cache.py - v2
"""Fingerprint cache: load, skip decision, write-back.

The in-memory map is shared by every file pipeline of a run. All
mutation goes through one asyncio.Lock.

Commit modes:
  - optimistic (default): a key is upserted when the skip decision says
    "process", before the output is written. A later write failure does
    not roll the entry back, so that file is treated as handled on the
    next run.
  - on_write: the upsert is staged and only applied by commit() after a
    successful write; discard() drops it otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from imgminify.cache.json_map_store import JsonMapStore
from imgminify.core.errors import FingerprintMapReadError, FingerprintMapWriteError

if TYPE_CHECKING:
    from imgminify.cache.base_map_store import BaseMapStore
    from imgminify.core.error_policy import ErrorPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAP_NAME = ".imgminify.map"

CommitMode = Literal["optimistic", "on_write"]


class FingerprintCache:
    """Relative source key -> content hash map with skip decisions.

    Args:
        policy: Error policy used for write-back failures and read notices.
        enabled: Fingerprinting on/off. When off, every file is processed
            and the map is neither read nor written.
        squash: Ignore any persisted map and start fresh.
        map_name: File name of the map document under the source root.
        commit_mode: "optimistic" or "on_write" (see module docstring).
        store: Map document storage backend.
    """

    def __init__(
        self,
        policy: ErrorPolicy,
        enabled: bool = True,
        squash: bool = False,
        map_name: str = DEFAULT_MAP_NAME,
        commit_mode: CommitMode = "optimistic",
        store: BaseMapStore | None = None,
    ) -> None:
        self._policy = policy
        self.enabled = enabled
        self.squash = squash
        self.map_name = map_name
        self.commit_mode = commit_mode
        self._store = store or JsonMapStore()
        self._map: dict[str, str] = {}
        self._staged: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self.map_path: Path | None = None

    @property
    def entries(self) -> dict[str, str]:
        """Copy of the current in-memory map."""
        return dict(self._map)

    async def load(self, source_root: Path) -> Path | None:
        """Resolve the map path and read the persisted map.

        Returns:
            Map path, or None when fingerprinting is disabled.
        """
        self._map = {}
        self._staged = {}
        if not self.enabled:
            self.map_path = None
            return None

        self.map_path = Path(source_root) / self.map_name
        if self.squash:
            logger.info("Squashing fingerprint map at %s", self.map_path)
            return self.map_path

        if not await self._store.exists(self.map_path):
            logger.debug("No fingerprint map at %s", self.map_path)
            return self.map_path

        try:
            self._map = await self._store.read(self.map_path)
        except (OSError, ValueError) as exc:
            self._policy.notice(
                FingerprintMapReadError(
                    f"Failed to read fingerprint map at: {self.map_path}",
                    self.map_path,
                    cause=exc,
                )
            )
            self._map = {}
            return self.map_path

        logger.info(
            "Loaded fingerprint map with %d entries from %s",
            len(self._map), self.map_path,
        )
        return self.map_path

    async def should_process(self, key: str, new_hash: str | None) -> bool:
        """Decide whether a file needs processing.

        Returns False only when fingerprinting is enabled and the stored
        hash for key equals new_hash. Otherwise returns True and records
        key -> new_hash (immediately, or staged in on_write mode).
        """
        if not self.enabled or new_hash is None:
            return True

        async with self._lock:
            if self._map.get(key) == new_hash:
                return False
            if self.commit_mode == "optimistic":
                self._map[key] = new_hash
            else:
                self._staged[key] = new_hash
            return True

    async def commit(self, key: str) -> None:
        """Apply a staged entry after its output was written."""
        async with self._lock:
            staged = self._staged.pop(key, None)
            if staged is not None:
                self._map[key] = staged

    async def discard(self, key: str) -> None:
        """Drop a staged entry whose output was not written."""
        async with self._lock:
            self._staged.pop(key, None)

    async def persist(self) -> None:
        """Write the in-memory map back to the resolved map path."""
        if not self.enabled or self.map_path is None:
            return
        async with self._lock:
            snapshot = dict(self._map)
        try:
            await self._store.write(self.map_path, snapshot)
        except (OSError, TypeError, ValueError) as exc:
            self._policy.report(
                FingerprintMapWriteError(
                    f"Failed to write fingerprint map: {self.map_path}",
                    self.map_path,
                    cause=exc,
                )
            )
            return
        logger.info(
            "Saved fingerprint map with %d entries to %s",
            len(snapshot), self.map_path,
        )
