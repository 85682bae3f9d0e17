# src/transform/dispatcher.py - v2
"""Call boundary to the optimizer backends and the type detector.

Backend errors are wrapped in TransformFailureError and not interpreted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from imgminify.core.errors import TransformFailureError
from imgminify.core.models import TypeInfo
from imgminify.transform.type_detector import (
    TypeDetectionError,
    TypeDetector,
    guess_from_extension,
)

if TYPE_CHECKING:
    from pathlib import Path

    from imgminify.transform.base_backend import BaseBackend

logger = logging.getLogger(__name__)

SVG_TYPE = TypeInfo(ext="svg", mime="image/svg+xml")


class TransformDispatcher:
    """Run the active backend chain and detect output types.

    Args:
        backends: Active backends, applied in order. May be empty.
        detector: Content type detector.
    """

    def __init__(
        self,
        backends: list[BaseBackend] | None = None,
        detector: TypeDetector | None = None,
    ) -> None:
        self.backends = list(backends or [])
        self._detector = detector or TypeDetector()

    async def transform(self, raw: bytes, path: Path | None = None) -> bytes:
        """Apply every backend to raw bytes, each output feeding the next.

        Raises:
            TransformFailureError: Any backend raised.
        """
        data = raw
        for backend in self.backends:
            try:
                # Backends are CPU-bound; keep the event loop free
                data = await asyncio.to_thread(backend.transform, data)
            except Exception as exc:
                raise TransformFailureError(
                    f"Optimize failed for: {path or '<bytes>'} ({backend.name})",
                    path,
                    cause=exc,
                ) from exc
        return data

    def detect_type(self, data: bytes, fallback_ext: str) -> TypeInfo:
        """Detect content type, falling back to the original extension.

        XML containers and files that were SVG to begin with are normalized
        to image/svg+xml.
        """
        fallback_ext = fallback_ext.lstrip(".").lower()
        try:
            detected = self._detector.sniff(data)
        except TypeDetectionError:
            detected = guess_from_extension(fallback_ext)
            logger.debug("Type sniff failed, guessed %s", detected.mime)

        if detected.ext == "xml" or fallback_ext == "svg":
            return SVG_TYPE
        return detected
