# tests/unit/pipeline/test_hooks.py - v1
"""Tests for pipeline/hooks.py."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from imgminify.pipeline.hooks import DryRunHooks, RunHooks, call_hook


class TestHooks:
    def test_defaults(self):
        hooks = RunHooks()
        assert hooks.decide(MagicMock(), MagicMock()) is True
        assert hooks.on_complete(MagicMock(), MagicMock()) is None

    def test_dry_run_vetoes(self):
        assert DryRunHooks().decide(MagicMock(), MagicMock()) is False


class TestCallHook:
    @pytest.mark.asyncio
    async def test_plain_value(self):
        assert await call_hook(True) is True

    @pytest.mark.asyncio
    async def test_awaitable(self):
        async def decide():
            return False

        assert await call_hook(decide()) is False
