# src/transform/base_backend.py - v1
"""Standard interface for optimizer backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseBackend(ABC):
    """A pluggable byte-level optimizer.

    The orchestrator only calls transform(). Backends that do not handle
    the given content return it unchanged, so a list of backends can be
    chained over every file.
    """

    def __init__(self, **options: Any) -> None:
        self.options = options

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique backend identifier (e.g., 'png', 'svg')."""

    @abstractmethod
    def accepts(self, data: bytes) -> bool:
        """Return True if this backend handles the given content."""

    @abstractmethod
    def optimize(self, data: bytes) -> bytes:
        """Return optimized bytes for accepted content."""

    def transform(self, data: bytes) -> bytes:
        """Optimize accepted content, pass anything else through."""
        if not self.accepts(data):
            return data
        return self.optimize(data)
