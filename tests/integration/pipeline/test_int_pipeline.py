# tests/integration/pipeline/test_int_pipeline.py - v1
"""Integration tests for the full pipeline with the real backends.

Covers: api/facade.py, pipeline/orchestrator.py, transform/registry.py,
        transform/backends/*, cache/fingerprint_cache.py,
        config/backend_options.py, storage/directories.py
"""

from __future__ import annotations

import json

import pytest
from PIL import Image

from imgminify.api.facade import minify
from imgminify.config.backends import WEBP_BACKENDS
from imgminify.config.settings import Settings

KEYS = [
    "img/anim.gif",
    "img/hero.webp",
    "img/icons/star.svg",
    "img/photo.jpg",
    "logo.png",
]


class TestDefaultBackends:
    @pytest.mark.asyncio
    async def test_optimizes_tree(self, image_tree, tmp_path, real_settings):
        target = tmp_path / "dist"
        stats = await minify(image_tree, target, settings=real_settings)

        assert stats.sources == 5
        assert stats.written == 5
        assert stats.errors == 0
        assert stats.backends == ["gif", "jpeg", "png", "svg", "webp"]
        assert sorted(j.key for j in stats.jobs) == KEYS
        assert stats.size.target <= stats.size.source
        assert not (target / "README.md").exists()
        assert stats.directories.created == {
            (target / "img").resolve(),
            (target / "img" / "icons").resolve(),
        }

    @pytest.mark.asyncio
    async def test_outputs_decode(self, image_tree, tmp_path, real_settings):
        target = tmp_path / "dist"
        await minify(image_tree, target, settings=real_settings)

        for name, fmt in [
            ("logo.png", "PNG"),
            ("img/photo.jpg", "JPEG"),
            ("img/anim.gif", "GIF"),
            ("img/hero.webp", "WEBP"),
        ]:
            with Image.open(target / name) as img:
                assert img.format == fmt
                assert img.size == (64, 64)

    @pytest.mark.asyncio
    async def test_never_grows(self, image_tree, tmp_path, real_settings):
        target = tmp_path / "dist"
        await minify(image_tree, target, settings=real_settings)
        for key in KEYS:
            assert (target / key).stat().st_size <= (image_tree / key).stat().st_size

    @pytest.mark.asyncio
    async def test_jpeg_and_svg_shrink(self, image_tree, tmp_path, real_settings):
        target = tmp_path / "dist"
        await minify(image_tree, target, settings=real_settings)

        assert (target / "img/photo.jpg").stat().st_size < (
            image_tree / "img/photo.jpg"
        ).stat().st_size
        svg = (target / "img/icons/star.svg").read_text()
        assert svg.startswith("<svg")
        assert "<metadata>" not in svg
        assert "<!--" not in svg

    @pytest.mark.asyncio
    async def test_incremental(self, image_tree, tmp_path, real_settings):
        target = tmp_path / "dist"
        await minify(image_tree, target, settings=real_settings)
        second = await minify(image_tree, target, settings=real_settings)

        assert second.skipped == 5
        assert second.written == 0
        saved = json.loads((image_tree / ".imgminify.map").read_text())
        assert sorted(saved) == KEYS

    @pytest.mark.asyncio
    async def test_concurrent(self, image_tree, tmp_path, real_settings):
        stats = await minify(
            image_tree, tmp_path / "dist", settings=real_settings, mode="concurrent",
        )
        assert stats.written == 5
        assert stats.directories.failed == set()
        for key in KEYS:
            assert (tmp_path / "dist" / key).exists()


class TestWebpConversion:
    @pytest.mark.asyncio
    async def test_png_and_jpeg_become_webp(self, image_tree, tmp_path, real_settings):
        settings = real_settings.model_copy(
            update={"backends": ",".join(WEBP_BACKENDS)},
        )
        target = tmp_path / "dist"
        stats = await minify(image_tree, target, settings=settings)

        assert (target / "logo.webp").exists()
        assert not (target / "logo.png").exists()
        assert (target / "img" / "photo.webp").exists()
        assert (target / "img" / "anim.gif").exists()
        with Image.open(target / "logo.webp") as img:
            assert img.format == "WEBP"

        # Keys stay on the source names
        saved = json.loads((image_tree / ".imgminify.map").read_text())
        assert "logo.png" in saved
        job = next(j for j in stats.jobs if j.key == "logo.png")
        assert job.output_type.mime == "image/webp"


class TestBackendOptions:
    @pytest.mark.asyncio
    async def test_options_document(self, image_tree, tmp_path):
        (image_tree / ".imgminify.json").write_text(
            json.dumps({"jpeg": {"quality": 10}})
        )
        low = Settings(_env_file=None, backends="jpeg")
        high = Settings(_env_file=None, backends="jpeg", backend_options_disabled=True)

        await minify(image_tree, tmp_path / "low", settings=low)
        await minify(
            image_tree, tmp_path / "high", settings=high.model_copy(
                update={"fingerprint_enabled": False},
            ),
        )
        low_size = (tmp_path / "low" / "img" / "photo.jpg").stat().st_size
        high_size = (tmp_path / "high" / "img" / "photo.jpg").stat().st_size
        assert low_size < high_size
