# src/config/backend_options.py - v2
"""Backend options document discovery.

The options document is a JSON object mapping backend names to their
constructor options, e.g. {"jpeg": {"quality": 70}, "png": {"colors": 128}}.
It is looked up in order: explicit path, current working directory,
source root. The first existing, parseable, non-empty document wins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from imgminify.core.errors import BackendOptionsError

if TYPE_CHECKING:
    from imgminify.core.error_policy import ErrorPolicy

logger = logging.getLogger(__name__)

_OPTIONS_ADAPTER: TypeAdapter[dict[str, dict[str, Any]]] = TypeAdapter(
    dict[str, dict[str, Any]]
)


def candidate_paths(
    source_root: Path,
    file_name: str,
    explicit: Path | None = None,
    cwd: Path | None = None,
) -> list[Path]:
    """Ordered, de-duplicated list of locations to check."""
    candidates: list[Path] = []
    if explicit is not None:
        explicit = Path(explicit).expanduser()
        candidates.append(explicit / file_name if explicit.is_dir() else explicit)
    candidates.append((cwd or Path.cwd()) / file_name)
    candidates.append(Path(source_root) / file_name)

    unique: list[Path] = []
    for path in candidates:
        resolved = path.resolve()
        if resolved not in unique:
            unique.append(resolved)
    return unique


def read_options_document(path: Path) -> dict[str, dict[str, Any]]:
    """Read and validate one options document.

    Raises:
        BackendOptionsError: Unreadable or not a name -> options object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return _OPTIONS_ADAPTER.validate_python(data)
    except (OSError, ValueError, ValidationError) as exc:
        raise BackendOptionsError(
            f"Failed to read backend options at: {path}", path, cause=exc,
        ) from exc


def resolve_backend_options(
    source_root: Path,
    policy: ErrorPolicy,
    file_name: str = ".imgminify.json",
    explicit: Path | None = None,
    disabled: bool = False,
    defaults: dict[str, dict[str, Any]] | None = None,
) -> tuple[dict[str, dict[str, Any]], Path | None]:
    """Resolve backend options, merged over defaults.

    Returns:
        (options, path of the document used or None).
    """
    merged: dict[str, dict[str, Any]] = {
        name: dict(opts) for name, opts in (defaults or {}).items()
    }
    if disabled:
        logger.debug("Backend options document disabled")
        return merged, None

    paths = candidate_paths(source_root, file_name, explicit)
    explicit_path = paths[0] if explicit is not None else None
    for path in paths:
        if not path.is_file():
            if path == explicit_path:
                policy.report(
                    BackendOptionsError(f"Backend options not found: {path}", path)
                )
            continue
        try:
            document = read_options_document(path)
        except BackendOptionsError as exc:
            # Only a document the caller named can abort the run
            if path == explicit_path:
                policy.report(exc)
            else:
                policy.notice(exc)
            continue
        if not document:
            continue

        for name, opts in document.items():
            merged.setdefault(name, {}).update(opts)
        logger.info("Using backend options from %s", path)
        return merged, path

    return merged, None
