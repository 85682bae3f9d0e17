# tests/unit/cache/test_json_map_store.py - v1
"""Tests for cache/json_map_store.py."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from imgminify.cache.json_map_store import JsonMapStore


class TestJsonMapStore:
    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path: Path):
        store = JsonMapStore()
        path = tmp_path / ".map"
        await store.write(path, {"a.png": "ff00"})
        assert json.loads(path.read_text()) == {"a.png": "ff00"}
        assert await store.read(path) == {"a.png": "ff00"}

    @pytest.mark.asyncio
    async def test_exists(self, tmp_path: Path):
        store = JsonMapStore()
        assert await store.exists(tmp_path / ".map") is False
        (tmp_path / ".map").write_text("{}")
        assert await store.exists(tmp_path / ".map") is True

    @pytest.mark.asyncio
    async def test_empty_file_is_empty_map(self, tmp_path: Path):
        (tmp_path / ".map").write_text("   ")
        assert await JsonMapStore().read(tmp_path / ".map") == {}

    @pytest.mark.asyncio
    async def test_malformed_json_raises_value_error(self, tmp_path: Path):
        (tmp_path / ".map").write_text("{not json")
        with pytest.raises(ValueError):
            await JsonMapStore().read(tmp_path / ".map")

    @pytest.mark.asyncio
    async def test_non_object_raises(self, tmp_path: Path):
        (tmp_path / ".map").write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            await JsonMapStore().read(tmp_path / ".map")

    @pytest.mark.asyncio
    async def test_non_string_values_raise(self, tmp_path: Path):
        (tmp_path / ".map").write_text('{"a.png": 12}')
        with pytest.raises(ValueError):
            await JsonMapStore().read(tmp_path / ".map")
