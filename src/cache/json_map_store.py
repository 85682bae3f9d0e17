# src/cache/json_map_store.py - v2
"""JSON file store for the fingerprint map (default backend)."""

from __future__ import annotations

import json
from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter

from imgminify.cache.base_map_store import BaseMapStore

_MAP_ADAPTER: TypeAdapter[dict[str, str]] = TypeAdapter(dict[str, str])


class JsonMapStore(BaseMapStore):
    """Map document stored as a single flat JSON object."""

    async def exists(self, path: Path) -> bool:
        return await aiofiles.os.path.isfile(path)

    async def read(self, path: Path) -> dict[str, str]:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            text = await f.read()
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(
                f"Fingerprint map must be a JSON object, got {type(data).__name__}"
            )
        # Raises pydantic.ValidationError (a ValueError) on non-string values
        return _MAP_ADAPTER.validate_python(data, strict=True)

    async def write(self, path: Path, data: dict[str, str]) -> None:
        payload = json.dumps(data, sort_keys=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(payload)
