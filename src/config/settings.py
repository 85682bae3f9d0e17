# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Every field can be set through an IMGMINIFY_* environment variable
(e.g. IMGMINIFY_STRICT=false) or passed as an override.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from imgminify.config.backends import BACKEND_REGISTRY, DEFAULT_BACKENDS


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMGMINIFY_",
        extra="ignore",
    )

    # === Error policy ===
    strict: bool = True
    verbose: bool = False

    # === Fingerprint map ===
    fingerprint_enabled: bool = True
    fingerprint_squash: bool = False
    fingerprint_map_name: str = ".imgminify.map"
    fingerprint_commit: Literal["optimistic", "on_write"] = "optimistic"

    # === Backends ===
    backends: str = ",".join(DEFAULT_BACKENDS)
    backend_options: dict[str, dict[str, Any]] = {}
    backend_options_path: Path | None = None
    backend_options_disabled: bool = False
    backend_options_name: str = ".imgminify.json"

    # === Execution ===
    execution_mode: Literal["sequential", "concurrent"] = "sequential"
    percent_precision: int = 2

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("percent_precision")
    @classmethod
    def validate_percent_precision(cls, v: int) -> int:
        if v < 0:
            raise ValueError("percent_precision must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.backend_options_disabled and self.backend_options_path is not None:
            errors.append(
                "BACKEND_OPTIONS_PATH is set but BACKEND_OPTIONS_DISABLED is true"
            )

        unknown = [
            name for name in self.backends_list
            if name not in BACKEND_REGISTRY and "." not in name
        ]
        if unknown:
            errors.append(f"Unknown backends: {', '.join(unknown)}")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def backends_list(self) -> list[str]:
        """Parse comma-separated backend names (dotted class paths allowed)."""
        return [b.strip() for b in self.backends.split(",") if b.strip()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
