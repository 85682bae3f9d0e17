# src/cache/base_map_store.py - v1
"""Abstract storage for the persisted fingerprint map document."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseMapStore(ABC):
    """Unified interface for fingerprint map persistence."""

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        """Check whether a map document exists at path."""

    @abstractmethod
    async def read(self, path: Path) -> dict[str, str]:
        """Read and validate the map document.

        Raises:
            OSError: If the document cannot be read.
            ValueError: If the document is not a flat str -> str object.
        """

    @abstractmethod
    async def write(self, path: Path, data: dict[str, str]) -> None:
        """Serialize the map document to path."""
