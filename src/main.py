# src/main.py - v3
"""CLI entry point.

Usage:
    imgminify [source] target [options]

With a single positional argument it is the target and the current
directory is the source.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from imgminify.pipeline.hooks import RunHooks
from imgminify.version import __version__

if TYPE_CHECKING:
    from imgminify.config.settings import Settings
    from imgminify.core.models import FileJob, RunStats
    from imgminify.pipeline.stats import StatsSnapshot

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    from imgminify.config.settings import ConfigurationError
    from imgminify.core.errors import ImageMinifyError

    parser = _build_parser()
    args = parser.parse_args(argv)

    source, target = _split_positionals(args.paths)
    if target is None:
        parser.print_help()
        return 1

    try:
        settings = _settings_from_args(args)
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings)

    if settings.strict and settings.verbose:
        logger.warning("Running in strict mode!")

    try:
        stats = asyncio.run(_run(source, target, settings, show_stats=args.stats))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ImageMinifyError as exc:
        logger.error("Something went wrong: %s", exc, exc_info=settings.verbose)
        return 1

    _print_summary(stats, verbose=settings.verbose)
    return 0


def cli() -> None:
    """Console script wrapper."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="imgminify",
        description=f"imgminify v{__version__}, incremental image optimizer",
    )
    parser.add_argument(
        "paths", nargs="*", metavar="PATH",
        help="[source] target (source defaults to the current directory)",
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-i", "--verbose", action="store_true",
        help="Per-file output, debug logging and full tracebacks",
    )
    parser.add_argument(
        "-s", "--stats", action="store_true",
        help="Show per-file details (type, size, time)",
    )
    parser.add_argument(
        "-x", "--use-webp", action="store_true",
        help="Convert PNG and JPEG images to WebP",
    )
    parser.add_argument(
        "-p", "--plugins", default="",
        help="Comma-separated backends to use (default: from settings)",
    )
    parser.add_argument(
        "-n", "--no-map", action="store_true",
        help="Disable the fingerprint map, process every file",
    )
    parser.add_argument(
        "-f", "--squash-map", action="store_true",
        help="Ignore and replace the existing fingerprint map",
    )
    options = parser.add_mutually_exclusive_group()
    options.add_argument(
        "-o", "--options", type=Path, default=None,
        help="Backend options file or directory",
    )
    options.add_argument(
        "--no-options", action="store_true",
        help="Do not load a backend options file",
    )
    parser.add_argument(
        "-l", "--parallel", action="store_true",
        help="Process all files concurrently",
    )
    parser.add_argument(
        "-u", "--loose", action="store_true",
        help="Report per-file errors and continue instead of aborting",
    )
    parser.add_argument(
        "--log-format", choices=["text", "json"], default=None,
        help="Log output format (default: text)",
    )
    return parser


def _split_positionals(paths: list[str]) -> tuple[str, str | None]:
    """Return (source, target); a single path is the target."""
    if not paths:
        return ".", None
    if len(paths) == 1:
        return ".", paths[0]
    return paths[0], paths[1]


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Build Settings, letting CLI flags override .env values."""
    from imgminify.config.backends import WEBP_BACKENDS
    from imgminify.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.loose:
        overrides["strict"] = False
    if args.verbose:
        overrides["verbose"] = True
        overrides["log_level"] = "DEBUG"
    if args.no_map:
        overrides["fingerprint_enabled"] = False
    if args.squash_map:
        overrides["fingerprint_squash"] = True
    if args.use_webp:
        overrides["backends"] = ",".join(WEBP_BACKENDS)
    if args.plugins:
        overrides["backends"] = args.plugins
    if args.options is not None:
        overrides["backend_options_path"] = args.options
    if args.no_options:
        overrides["backend_options_disabled"] = True
    if args.parallel:
        overrides["execution_mode"] = "concurrent"
    if args.log_format:
        overrides["log_format"] = args.log_format
    return load_settings(**overrides)


async def _run(
    source: str, target: str, settings: Settings, show_stats: bool = False,
) -> RunStats:
    from imgminify.api.facade import minify

    hooks = _ReportHooks(verbose=settings.verbose, show_stats=show_stats)
    logger.info("Reading from: %s", Path(source).resolve())
    return await minify(source, target, settings=settings, hooks=hooks)


def _format_job(job: FileJob, show_stats: bool) -> str:
    """One report line for a finished file."""
    if job.skipped:
        return f"  unchanged  {job.key}"
    if job.errors:
        return f"  failed     {job.key}: {job.errors[-1]}"

    parts = [f"{job.percent:7.2f}%"]
    if show_stats:
        from_type = job.source_type.mime if job.source_type else job.source.ext
        to_type = job.output_type.mime if job.output_type else job.target.ext
        if from_type != to_type:
            parts.append(f"{from_type:>13} -> {to_type:<13}")
        else:
            parts.append(f"{to_type:>13}")
        parts.append(f"{_format_dimensions(job.source.path):>9}")
        parts.append(f"{_format_bytes(job.output_size):>10}")
        parts.append(f"{job.timings.process:8.1f}ms")
    rel_target = job.target.path.relative_to(job.target_root).as_posix()
    parts.append(rel_target if job.written else f"{rel_target} (not written)")
    return "  " + " ".join(parts)


def _format_dimensions(path: Path) -> str:
    """Width x height read from the image header, "?" when unreadable."""
    from PIL import Image

    try:
        with Image.open(path) as img:
            width, height = img.size
    except OSError:
        return "?"
    return f"{width}x{height}"


def _format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KiB", "MiB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


class _ReportHooks(RunHooks):
    """Completion hook printing one line per file when requested."""

    def __init__(self, verbose: bool, show_stats: bool) -> None:
        self.verbose = verbose
        self.show_stats = show_stats

    def on_complete(self, job: FileJob, stats: StatsSnapshot) -> None:
        if self.verbose or self.show_stats:
            print(_format_job(job, self.show_stats))


def _print_summary(stats: RunStats, verbose: bool = False) -> None:
    """Print a human-readable summary of RunStats."""
    if not stats.written:
        if stats.map_path is not None and stats.skipped:
            print("imgminify did not find any changes according to map")
            if verbose:
                print("Use -f or --squash-map to ignore the existing map")
        else:
            print("imgminify did not write any files!")
    print("\nOptimization complete:")
    print(f"  Sources:    {stats.sources}")
    print(f"  Processed:  {stats.processed}")
    print(f"  Written:    {stats.written}")
    print(f"  Skipped:    {stats.skipped}")
    if stats.errors:
        print(f"  Errors:     {stats.errors}")
    if stats.directories.failed:
        print(f"  Dir errors: {len(stats.directories.failed)}")
    print(
        f"  Size:       {_format_bytes(stats.size.source)} -> "
        f"{_format_bytes(stats.size.target)} ({stats.size.percent:.2f}% saved)"
    )
    print(f"  Duration:   {stats.elapsed_ms / 1000:.2f}s")


def _setup_logging(settings: Settings) -> None:
    """Configure logging for CLI usage."""
    from imgminify.logging.logger import setup_logging

    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
