"""Command-line interface for building and browsing documentation snapshots."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "djangodocs"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"

LOGGER = logging.getLogger(__name__)


def _load_config() -> None:
    """Load .env settings before any DJANGODOCS_* variable is read.

    Search order:
    1. .env in the current working directory
    2. ~/.config/djangodocs/.env

    When neither exists, the packaged .env.example is copied to
    ~/.config/djangodocs/.env and loaded from there.
    """
    local_env = Path.cwd() / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
        return

    if CONFIG_ENV_FILE.is_file():
        load_dotenv(CONFIG_ENV_FILE)
        return

    example_file = Path(__file__).parent.parent / ".env.example"
    if not example_file.is_file():
        return

    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(example_file, CONFIG_ENV_FILE)
    except OSError as exc:
        LOGGER.warning(
            "Could not create %s from .env.example (%s); using built-in defaults",
            CONFIG_ENV_FILE,
            exc,
        )
        return

    LOGGER.info(
        "Created %s from .env.example; DJANGODOCS_CACHE_DIR, "
        "DJANGODOCS_SITEMAP_URL and DJANGODOCS_HTTP_TIMEOUT are read from it",
        CONFIG_ENV_FILE,
    )
    load_dotenv(CONFIG_ENV_FILE)


_load_config()

from .cache import FileStore, SnapshotCache
from .config import DEFAULT_VERSION, DJANGO_VERSIONS, cache_dir
from .output import (
    document_to_dict,
    format_document_list,
    format_refresh_outcome,
    format_status_line,
    render_document,
)
from .refresh import refresh_versions_async
from .sections import filter_by_section, patterns_for


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def build_cache() -> SnapshotCache:
    """Snapshot cache backed by the configured cache directory."""
    return SnapshotCache(FileStore(cache_dir()))


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="djangodocs",
        description="Build and browse a local snapshot of the Django documentation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Refresh every version whose snapshot is older than 7 days
  djangodocs refresh

  # Force a rebuild of one version
  djangodocs refresh --version 5.2 --force

  # Show what is cached
  djangodocs status

  # List the reference pages of a version
  djangodocs list --version 5.2 --section ref

  # Print one page with its navigation links
  djangodocs show https://docs.djangoproject.com/en/5.2/topics/auth/
""",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    refresh = commands.add_parser("refresh", help="Crawl and cache documentation")
    refresh.add_argument(
        "--version",
        dest="versions",
        action="append",
        choices=DJANGO_VERSIONS,
        default=None,
        help="Version to refresh (repeatable, default: all versions)",
    )
    refresh.add_argument(
        "--force",
        action="store_true",
        help="Rebuild even when the cached snapshot is fresh",
    )

    commands.add_parser("status", help="Show cached snapshots and their age")

    listing = commands.add_parser("list", help="List cached documents")
    listing.add_argument(
        "--version",
        choices=DJANGO_VERSIONS,
        default=DEFAULT_VERSION,
        help=f"Documentation version (default: {DEFAULT_VERSION})",
    )
    listing.add_argument(
        "--section",
        choices=list(patterns_for(DEFAULT_VERSION)._fields),
        default=None,
        help="Only list documents of one section rule",
    )
    listing.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON",
    )

    show = commands.add_parser("show", help="Print one cached document")
    show.add_argument("url", help="Document URL")
    show.add_argument(
        "--version",
        choices=DJANGO_VERSIONS,
        default=DEFAULT_VERSION,
        help=f"Documentation version (default: {DEFAULT_VERSION})",
    )

    return parser.parse_args(argv)


async def _run_refresh(args: argparse.Namespace, cache: SnapshotCache) -> int:
    outcomes = await refresh_versions_async(
        cache, args.versions, force=args.force
    )
    for outcome in outcomes:
        print(format_refresh_outcome(outcome))
    return 0 if all(outcome.ok for outcome in outcomes) else 1


def _run_status(cache: SnapshotCache) -> int:
    for version in DJANGO_VERSIONS:
        snapshot = cache.load(version)
        print(
            format_status_line(
                version,
                len(snapshot.records) if snapshot is not None else None,
                snapshot.refreshed_at if snapshot is not None else None,
                cache.snapshot_is_stale(snapshot),
            )
        )
    return 0


def _run_list(args: argparse.Namespace, cache: SnapshotCache) -> int:
    documents = cache.read(args.version)
    if documents is None:
        logging.error(
            "No snapshot for version %s; run 'djangodocs refresh --version %s'",
            args.version,
            args.version,
        )
        return 1

    if args.section:
        keep = set(filter_by_section([d.url for d in documents], args.section, args.version))
        documents = [doc for doc in documents if doc.url in keep]

    if args.json_output:
        print(json.dumps([document_to_dict(d) for d in documents], indent=2, ensure_ascii=False))
    else:
        print(format_document_list(documents))
    return 0


def _run_show(args: argparse.Namespace, cache: SnapshotCache) -> int:
    documents = cache.read(args.version)
    if documents is None:
        logging.error("No snapshot for version %s", args.version)
        return 1

    match = next((doc for doc in documents if doc.url == args.url), None)
    if match is None:
        logging.error("%s is not in the %s snapshot", args.url, args.version)
        return 1

    print(render_document(match))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the djangodocs command."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    cache = build_cache()

    try:
        if args.command == "refresh":
            return asyncio.run(_run_refresh(args, cache))
        if args.command == "status":
            return _run_status(cache)
        if args.command == "list":
            return _run_list(args, cache)
        return _run_show(args, cache)
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
