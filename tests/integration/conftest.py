# tests/integration/conftest.py - v8
"""Shared fixtures for integration tests.

Integration tests run the real Pillow and SVG backends over a tree of
small generated images. No external services are required.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from imgminify.config.settings import Settings


@pytest.fixture
def image_tree(
    tmp_path: Path,
    png_bytes: bytes,
    jpeg_bytes: bytes,
    gif_bytes: bytes,
    webp_bytes: bytes,
    svg_bytes: bytes,
) -> Path:
    """Source dir with one real file per supported type, two levels deep."""
    src = tmp_path / "assets"
    (src / "img" / "icons").mkdir(parents=True)
    (src / "logo.png").write_bytes(png_bytes)
    (src / "img" / "photo.jpg").write_bytes(jpeg_bytes)
    (src / "img" / "anim.gif").write_bytes(gif_bytes)
    (src / "img" / "hero.webp").write_bytes(webp_bytes)
    (src / "img" / "icons" / "star.svg").write_bytes(svg_bytes)
    (src / "README.md").write_text("not an image")
    return src


@pytest.fixture
def real_settings() -> Settings:
    """Strict settings with the default backend chain."""
    return Settings(_env_file=None, strict=True, backend_options_disabled=True)
