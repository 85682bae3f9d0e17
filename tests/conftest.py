# tests/conftest.py - v2
"""Shared test fixtures for unit and integration tests.

Provides fake backends, real image bytes (via Pillow), source trees and
settings that ignore any local .env file.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from imgminify.config.settings import Settings
from imgminify.transform.base_backend import BaseBackend

WEBP_HEADER = b"RIFF\x00\x00\x00\x00WEBP"


# === Fake backends ===


class HalvingBackend(BaseBackend):
    """Keeps the first half of any input."""

    name = "halving"

    def accepts(self, data: bytes) -> bool:
        return True

    def optimize(self, data: bytes) -> bytes:
        return data[: max(1, len(data) // 2)]


class FailingBackend(BaseBackend):
    """Raises on inputs containing the FAIL marker, passes others."""

    name = "failing"

    def accepts(self, data: bytes) -> bool:
        return b"FAIL" in data

    def optimize(self, data: bytes) -> bytes:
        raise RuntimeError("codec exploded")


class ToWebpBackend(BaseBackend):
    """Wraps any input in a WebP container header (changes the type)."""

    name = "to-webp"

    def accepts(self, data: bytes) -> bool:
        return not data.startswith(b"RIFF")

    def optimize(self, data: bytes) -> bytes:
        return WEBP_HEADER + data[:8]


@pytest.fixture
def halving_backend() -> HalvingBackend:
    return HalvingBackend()


@pytest.fixture
def failing_backend() -> FailingBackend:
    return FailingBackend()


@pytest.fixture
def to_webp_backend() -> ToWebpBackend:
    return ToWebpBackend()


# === Image bytes ===


def _encode(fmt: str, size: tuple[int, int] = (64, 64), mode: str = "RGB") -> bytes:
    img = Image.new(mode, size)
    # Gradient so encoders have something to work with
    for x in range(size[0]):
        for y in range(size[1]):
            value = (x * 4 % 256, y * 4 % 256, (x + y) * 2 % 256)
            img.putpixel((x, y), value if mode == "RGB" else value + (255,))
    out = BytesIO()
    save_args = {"quality": 100} if fmt == "JPEG" else {}
    img.save(out, format=fmt, **save_args)
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _encode("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _encode("JPEG")


@pytest.fixture
def gif_bytes() -> bytes:
    return _encode("GIF")


@pytest.fixture
def webp_bytes() -> bytes:
    return _encode("WEBP")


@pytest.fixture
def svg_bytes() -> bytes:
    return (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b"<!-- generator: test -->\n"
        b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">\n'
        b"    <metadata>created by hand</metadata>\n"
        b'    <rect x="0" y="0" width="10" height="10" fill="red"/>\n'
        b"</svg>\n"
    )


# === Trees and settings ===


@pytest.fixture
def settings() -> Settings:
    """Lenient settings, no .env, no options document lookup."""
    return Settings(
        _env_file=None,
        strict=False,
        backend_options_disabled=True,
    )


@pytest.fixture
def strict_settings() -> Settings:
    return Settings(_env_file=None, strict=True, backend_options_disabled=True)


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Source dir: 3 images (1000, 2000, 4000 bytes), one .txt, one nested."""
    src = tmp_path / "src"
    (src / "icons").mkdir(parents=True)
    (src / "a.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"a" * 992)
    (src / "b.jpg").write_bytes(b"\xff\xd8\xff" + b"b" * 1997)
    (src / "icons" / "c.gif").write_bytes(b"GIF89a" + b"c" * 3994)
    (src / "notes.txt").write_bytes(b"not an image")
    return src


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "dist"
