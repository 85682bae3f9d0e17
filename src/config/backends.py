# src/config/backends.py - v1
"""Declarative backend registry configuration."""

from __future__ import annotations

# Backend name -> fully qualified class path, imported by transform/registry.py.
BACKEND_REGISTRY: dict[str, str] = {
    "gif": "imgminify.transform.backends.pillow_backends.GifBackend",
    "jpeg": "imgminify.transform.backends.pillow_backends.JpegBackend",
    "png": "imgminify.transform.backends.pillow_backends.PngBackend",
    "svg": "imgminify.transform.backends.svg_backend.SvgBackend",
    "webp": "imgminify.transform.backends.pillow_backends.WebpBackend",
    "webp-convert": "imgminify.transform.backends.pillow_backends.WebpConvertBackend",
}

DEFAULT_BACKENDS: list[str] = ["gif", "jpeg", "png", "svg", "webp"]

# Used by the CLI --use-webp flag: raster input is converted to WebP.
WEBP_BACKENDS: list[str] = ["gif", "svg", "webp-convert"]
