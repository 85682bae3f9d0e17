# src/transform/backends/pillow_backends.py - v3
"""Raster backends wrapping Pillow encoders.

Each backend re-encodes only the format it handles and keeps the original
bytes when the re-encoded result is not smaller. WebpConvertBackend is the
exception: it always converts PNG/JPEG input to WebP.
"""

from __future__ import annotations

from abc import abstractmethod
from io import BytesIO
from typing import Any

from PIL import Image

from imgminify.transform.base_backend import BaseBackend

_PNG = b"\x89PNG\r\n\x1a\n"
_JPEG = b"\xff\xd8\xff"


def _is_webp(data: bytes) -> bool:
    return data[:4] == b"RIFF" and data[8:12] == b"WEBP"


class PillowBackend(BaseBackend):
    """Shared open/encode/compare flow for Pillow-based backends."""

    keep_smaller = True

    def optimize(self, data: bytes) -> bytes:
        out = BytesIO()
        with Image.open(BytesIO(data)) as img:
            self.encode(img, out)
        result = out.getvalue()
        if self.keep_smaller and len(result) >= len(data):
            return data
        return result

    @abstractmethod
    def encode(self, img: Image.Image, out: BytesIO) -> None:
        """Write img in this backend's format to out."""


class GifBackend(PillowBackend):
    """Re-save GIFs with palette optimization, animation preserved."""

    name = "gif"

    def accepts(self, data: bytes) -> bool:
        return data[:6] in (b"GIF87a", b"GIF89a")

    def encode(self, img: Image.Image, out: BytesIO) -> None:
        img.save(
            out,
            format="GIF",
            optimize=self.options.get("optimize", True),
            save_all=getattr(img, "is_animated", False),
        )


class JpegBackend(PillowBackend):
    """Re-encode JPEGs with a quality cap and progressive scans."""

    name = "jpeg"

    def accepts(self, data: bytes) -> bool:
        return data[:3] == _JPEG

    def encode(self, img: Image.Image, out: BytesIO) -> None:
        if img.mode not in ("RGB", "L", "CMYK"):
            img = img.convert("RGB")
        img.save(
            out,
            format="JPEG",
            quality=int(self.options.get("quality", 80)),
            progressive=self.options.get("progressive", True),
            optimize=True,
        )


class PngBackend(PillowBackend):
    """Re-save PNGs with zlib optimization and optional palette quantization.

    Options:
        colors: Quantize to at most this many colors (lossy).
        compress_level: zlib level 0-9 (default 9).
    """

    name = "png"

    def accepts(self, data: bytes) -> bool:
        return data[:8] == _PNG

    def encode(self, img: Image.Image, out: BytesIO) -> None:
        colors = self.options.get("colors")
        if colors:
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            method = (
                Image.Quantize.FASTOCTREE
                if img.mode == "RGBA"
                else Image.Quantize.MEDIANCUT
            )
            img = img.quantize(colors=int(colors), method=method)
        img.save(
            out,
            format="PNG",
            optimize=True,
            compress_level=int(self.options.get("compress_level", 9)),
        )


class WebpBackend(PillowBackend):
    """Re-encode WebP input."""

    name = "webp"

    def accepts(self, data: bytes) -> bool:
        return _is_webp(data)

    def encode(self, img: Image.Image, out: BytesIO) -> None:
        img.save(out, format="WEBP", **_webp_params(self.options, img))


class WebpConvertBackend(PillowBackend):
    """Convert PNG and JPEG input to WebP (changes the output type)."""

    name = "webp-convert"
    keep_smaller = False

    def accepts(self, data: bytes) -> bool:
        return data[:8] == _PNG or data[:3] == _JPEG

    def encode(self, img: Image.Image, out: BytesIO) -> None:
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if "A" in img.getbands() or img.mode == "P" else "RGB")
        img.save(out, format="WEBP", **_webp_params(self.options, img))


def _webp_params(options: dict[str, Any], img: Image.Image) -> dict[str, Any]:
    params: dict[str, Any] = {
        "quality": int(options.get("quality", 80)),
        "method": int(options.get("method", 6)),
        "lossless": bool(options.get("lossless", False)),
    }
    if getattr(img, "is_animated", False):
        params["save_all"] = True
    return params
