# src/transform/type_detector.py - v1
"""Best-effort content type sniffing from magic bytes."""

from __future__ import annotations

from imgminify.core.models import TypeInfo

# (offset, signature, ext, mime)
_SIGNATURES: list[tuple[int, bytes, str, str]] = [
    (0, b"\x89PNG\r\n\x1a\n", "png", "image/png"),
    (0, b"\xff\xd8\xff", "jpg", "image/jpeg"),
    (0, b"GIF87a", "gif", "image/gif"),
    (0, b"GIF89a", "gif", "image/gif"),
    (0, b"BM", "bmp", "image/bmp"),
    (0, b"II*\x00", "tif", "image/tiff"),
    (0, b"MM\x00*", "tif", "image/tiff"),
]

_XML_PREFIXES = (b"<?xml", b"<svg", b"<!--", b"<!DOCTYPE svg")

_MIME_OVERRIDES = {"jpg": "image/jpeg", "jpeg": "image/jpeg", "svg": "image/svg+xml"}


class TypeDetectionError(ValueError):
    """Raised when content type cannot be determined."""


class TypeDetector:
    """Detect image type from leading bytes."""

    def sniff(self, data: bytes) -> TypeInfo:
        """Return the detected type.

        Raises:
            TypeDetectionError: Content matches no known signature.
        """
        for offset, signature, ext, mime in _SIGNATURES:
            if data[offset : offset + len(signature)] == signature:
                return TypeInfo(ext=ext, mime=mime)

        if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
            return TypeInfo(ext="webp", mime="image/webp")

        head = data[:256].lstrip(b"\xef\xbb\xbf \t\r\n")
        if head.startswith(_XML_PREFIXES):
            # Generic XML container; callers decide whether it is SVG
            return TypeInfo(ext="xml", mime="application/xml")

        raise TypeDetectionError("Unknown content type")


def guess_from_extension(ext: str) -> TypeInfo:
    """Fallback type from a file extension (with or without leading dot)."""
    ext = ext.lstrip(".").lower()
    return TypeInfo(ext=ext, mime=_MIME_OVERRIDES.get(ext, f"image/{ext}"))
