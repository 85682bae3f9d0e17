# src/transform/registry.py - v2
"""Backend registry: dynamic loading of optimizer backends.

Backends are looked up by name in BACKEND_REGISTRY (or given as a dotted
class path) and instantiated with their options. A backend that cannot be
loaded is reported as BackendUnavailableError and left out of the active
set.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from imgminify.config.backends import BACKEND_REGISTRY
from imgminify.core.errors import BackendUnavailableError
from imgminify.transform.base_backend import BaseBackend

if TYPE_CHECKING:
    from imgminify.core.error_policy import ErrorPolicy

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Ordered set of loaded, configured backends.

    Args:
        policy: Error policy for load failures.
        options: Backend name -> constructor options.
    """

    def __init__(
        self,
        policy: ErrorPolicy,
        options: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._policy = policy
        self._options = options or {}
        self._backends: dict[str, BaseBackend] = {}

    @property
    def backends(self) -> list[BaseBackend]:
        """Loaded backends in load order."""
        return list(self._backends.values())

    @property
    def names(self) -> list[str]:
        return list(self._backends.keys())

    def load_all(self, names: list[str]) -> list[BaseBackend]:
        """Load every named backend, skipping those that fail."""
        for name in names:
            self.load(name)
        logger.info("Loaded %d backend(s): %s", len(self._backends), ", ".join(self.names))
        return self.backends

    def load(self, name: str) -> BaseBackend | None:
        """Load one backend by registry name or dotted class path."""
        if name in self._backends:
            self._policy.report(
                BackendUnavailableError(f"Backend already defined: {name}")
            )
            return None

        class_path = BACKEND_REGISTRY.get(name, name)
        options = self._options.get(name, {})
        try:
            backend = _import_backend(class_path, options)
        except BackendUnavailableError as exc:
            self._policy.report(exc)
            return None

        self._backends[name] = backend
        logger.debug("Loaded backend %s (%s)", name, class_path)
        return backend

    def register(self, name: str, backend: BaseBackend) -> None:
        """Manually register a backend instance."""
        if name in self._backends:
            logger.warning("Overwriting existing backend: %s", name)
        self._backends[name] = backend


def _import_backend(class_path: str, options: dict[str, Any]) -> BaseBackend:
    """Import and instantiate a backend from a dotted class path."""
    parts = class_path.rsplit(".", 1)
    if len(parts) != 2:
        raise BackendUnavailableError(f"Backend not installed: {class_path}")
    module_path, class_name = parts

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise BackendUnavailableError(
            f"Backend not installed: {class_path}", cause=exc,
        ) from exc

    cls = getattr(module, class_name, None)
    if not isinstance(cls, type) or not issubclass(cls, BaseBackend):
        raise BackendUnavailableError(f"{class_path} is not a BaseBackend subclass")

    try:
        return cls(**options)
    except (TypeError, ValueError) as exc:
        raise BackendUnavailableError(
            f"Backend failed to initialize: {class_path}", cause=exc,
        ) from exc
