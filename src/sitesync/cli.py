"""Command-line entry point: synchronise the local registry with its update sites."""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from sitesync.config import Settings
from sitesync.errors import SiteSyncError
from sitesync.logging_config import setup_logging
from sitesync.state import open_state
from sitesync.sync import load_local_cache, save_local_cache, sync_all

log = structlog.get_logger()


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitesync",
        description="Merge update-site indexes into the local file registry.",
    )
    parser.add_argument(
        "--source",
        action="append",
        dest="sources",
        metavar="NAME",
        help="update site to synchronise (repeatable; default: all known sites)",
    )
    parser.add_argument(
        "--force", action="store_true", help="ignore cached index documents"
    )
    parser.add_argument(
        "--no-save", action="store_true", help="do not write the local cache back"
    )
    return parser.parse_args(argv)


async def _run(settings: Settings, args: argparse.Namespace) -> int:
    async with open_state(settings) as state:
        await load_local_cache(state)
        report = await sync_all(state, args.sources, force=args.force)
        if not args.no_save:
            await save_local_cache(state)

    for warning in report.all_warnings():
        print(f"Warning: {warning}", file=sys.stderr)
    for name, error in report.errors.items():
        print(f"Error: {name}: {error.message}", file=sys.stderr)
    return 0 if report.ok else 1


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = Settings()
    setup_logging(settings.logging)
    try:
        return asyncio.run(_run(settings, args))
    except SiteSyncError as exc:
        log.error("sync_failed", **exc.to_dict()["error"])
        return 1
