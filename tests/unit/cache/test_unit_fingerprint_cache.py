# tests/unit/cache/test_fingerprint_cache.py - v1
"""Tests for cache/fingerprint_cache.py: load, skip decision, persist."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from imgminify.cache.fingerprint_cache import FingerprintCache
from imgminify.core.error_policy import ErrorPolicy
from imgminify.core.errors import FingerprintMapWriteError


def _cache(**kwargs) -> FingerprintCache:
    return FingerprintCache(ErrorPolicy(strict=kwargs.pop("strict", True)), **kwargs)


# ---------------------------------------------------------------------------
# Tests: load()
# ---------------------------------------------------------------------------

class TestLoad:
    @pytest.mark.asyncio
    async def test_reads_existing_map(self, tmp_path: Path):
        (tmp_path / ".imgminify.map").write_text(json.dumps({"a.png": "h1"}))
        cache = _cache()
        path = await cache.load(tmp_path)
        assert path == tmp_path / ".imgminify.map"
        assert cache.entries == {"a.png": "h1"}

    @pytest.mark.asyncio
    async def test_custom_map_name(self, tmp_path: Path):
        (tmp_path / "hashes.json").write_text(json.dumps({"a.png": "h1"}))
        cache = _cache(map_name="hashes.json")
        await cache.load(tmp_path)
        assert cache.entries == {"a.png": "h1"}

    @pytest.mark.asyncio
    async def test_missing_map_is_empty(self, tmp_path: Path):
        cache = _cache()
        path = await cache.load(tmp_path)
        assert path is not None
        assert cache.entries == {}

    @pytest.mark.asyncio
    async def test_disabled_returns_none(self, tmp_path: Path):
        (tmp_path / ".imgminify.map").write_text(json.dumps({"a.png": "h1"}))
        cache = _cache(enabled=False)
        assert await cache.load(tmp_path) is None
        assert cache.entries == {}

    @pytest.mark.asyncio
    async def test_squash_ignores_existing(self, tmp_path: Path):
        (tmp_path / ".imgminify.map").write_text(json.dumps({"a.png": "h1"}))
        cache = _cache(squash=True)
        path = await cache.load(tmp_path)
        assert path == tmp_path / ".imgminify.map"
        assert cache.entries == {}

    @pytest.mark.asyncio
    async def test_malformed_map_degrades_even_in_strict(self, tmp_path: Path, caplog):
        (tmp_path / ".imgminify.map").write_text("{broken")
        cache = _cache(strict=True)
        await cache.load(tmp_path)
        assert cache.entries == {}
        assert "Failed to read fingerprint map" in caplog.text


# ---------------------------------------------------------------------------
# Tests: should_process()
# ---------------------------------------------------------------------------

class TestShouldProcess:
    @pytest.mark.asyncio
    async def test_same_hash_skips_without_update(self, tmp_path: Path):
        (tmp_path / ".imgminify.map").write_text(json.dumps({"a.png": "h1"}))
        cache = _cache()
        await cache.load(tmp_path)
        assert await cache.should_process("a.png", "h1") is False
        assert cache.entries == {"a.png": "h1"}

    @pytest.mark.asyncio
    async def test_changed_hash_processes_and_upserts(self, tmp_path: Path):
        (tmp_path / ".imgminify.map").write_text(json.dumps({"a.png": "old"}))
        cache = _cache()
        await cache.load(tmp_path)
        assert await cache.should_process("a.png", "new") is True
        assert cache.entries["a.png"] == "new"

    @pytest.mark.asyncio
    async def test_missing_entry_processes_and_upserts(self, tmp_path: Path):
        cache = _cache()
        await cache.load(tmp_path)
        assert await cache.should_process("b.png", "h2") is True
        assert cache.entries == {"b.png": "h2"}

    @pytest.mark.asyncio
    async def test_disabled_always_processes(self, tmp_path: Path):
        cache = _cache(enabled=False)
        await cache.load(tmp_path)
        assert await cache.should_process("a.png", "h1") is True
        assert await cache.should_process("a.png", "h1") is True

    @pytest.mark.asyncio
    async def test_on_write_stages_until_commit(self, tmp_path: Path):
        cache = _cache(commit_mode="on_write")
        await cache.load(tmp_path)
        assert await cache.should_process("a.png", "h1") is True
        assert cache.entries == {}
        await cache.commit("a.png")
        assert cache.entries == {"a.png": "h1"}

    @pytest.mark.asyncio
    async def test_on_write_discard_drops_staged(self, tmp_path: Path):
        cache = _cache(commit_mode="on_write")
        await cache.load(tmp_path)
        await cache.should_process("a.png", "h1")
        await cache.discard("a.png")
        await cache.commit("a.png")
        assert cache.entries == {}

    @pytest.mark.asyncio
    async def test_concurrent_upserts_keep_all_keys(self, tmp_path: Path):
        cache = _cache()
        await cache.load(tmp_path)
        results = await asyncio.gather(
            *(cache.should_process(f"f{i}.png", f"h{i}") for i in range(200))
        )
        assert all(results)
        assert len(cache.entries) == 200


# ---------------------------------------------------------------------------
# Tests: persist()
# ---------------------------------------------------------------------------

class TestPersist:
    @pytest.mark.asyncio
    async def test_writes_map(self, tmp_path: Path):
        cache = _cache()
        await cache.load(tmp_path)
        await cache.should_process("a.png", "h1")
        await cache.persist()
        data = json.loads((tmp_path / ".imgminify.map").read_text())
        assert data == {"a.png": "h1"}

    @pytest.mark.asyncio
    async def test_disabled_writes_nothing(self, tmp_path: Path):
        cache = _cache(enabled=False)
        await cache.load(tmp_path)
        await cache.persist()
        assert not (tmp_path / ".imgminify.map").exists()

    @pytest.mark.asyncio
    async def test_write_failure_strict_raises(self, tmp_path: Path):
        store = AsyncMock()
        store.exists.return_value = False
        store.write.side_effect = OSError("disk full")
        cache = _cache(store=store)
        await cache.load(tmp_path)
        with pytest.raises(FingerprintMapWriteError):
            await cache.persist()

    @pytest.mark.asyncio
    async def test_write_failure_lenient_logs(self, tmp_path: Path, caplog):
        store = AsyncMock()
        store.exists.return_value = False
        store.write.side_effect = OSError("disk full")
        cache = _cache(store=store, strict=False)
        await cache.load(tmp_path)
        await cache.persist()
        assert "Failed to write fingerprint map" in caplog.text
