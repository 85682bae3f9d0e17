"""imgminify - incremental image optimizer with content-fingerprint caching."""

from imgminify.version import __version__

__all__ = ["__version__"]
