#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reclaimr.app import (
    exclude_media,
    include_media,
    list_exclusions,
    preview_leaving_soon,
    recent_jobs,
    serve,
    sync_once,
)
from reclaimr.common.logging import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from reclaimr.domain.model import JobRecord

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile the media library and apply retention rules"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the YAML configuration (defaults to RECLAIMR_CONFIG or the data dir)",
    )
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the data dir)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run one full reconciliation")
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Never delete, whatever the configuration says",
    )

    subparsers.add_parser("run", help="Run the scheduler until interrupted")
    subparsers.add_parser("status", help="Show the most recent reconciliation jobs")
    subparsers.add_parser("leaving-soon", help="List items scheduled for deletion soon")

    exclusions = subparsers.add_parser("exclusions", help="Manage deletion exclusions")
    exclusions_sub = exclusions.add_subparsers(dest="exclusions_command", required=True)
    exclusions_sub.add_parser("list", help="List excluded items")
    add = exclusions_sub.add_parser("add", help="Exclude an item from deletion")
    add.add_argument("media_id", type=str, help="Internal media id, e.g. radarr-12")
    add.add_argument("--reason", type=str, default="", help="Why the item is kept")
    remove = exclusions_sub.add_parser("remove", help="Remove an exclusion")
    remove.add_argument("media_id", type=str, help="Internal media id, e.g. radarr-12")

    return parser.parse_args(list(argv))


def _validate_args(args: argparse.Namespace) -> None:
    if args.config is not None and not args.config.is_file():
        raise ValueError(f"Configuration file not found: {args.config}")
    media_id = getattr(args, "media_id", None)
    if media_id is not None and not media_id.strip():
        raise ValueError("Media id must not be empty")


def _format_job(job: JobRecord | None) -> str:
    if job is None:
        return "never"
    line = f"{job.started_at.isoformat()} {job.status} ({job.duration_ms} ms)"
    if job.error:
        line += f" error: {job.error}"
    return line


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate_args(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    paths = {"config_path": parsed_args.config, "database_uri": parsed_args.database_uri}

    try:
        if parsed_args.command == "sync":
            result = sync_once(dry_run=parsed_args.dry_run, **paths)
            if result.error:
                log.warning(f"Reconciliation finished with errors: {result.error}")
            for candidate in result.summary.get("would_delete", []):
                print(f"would delete {candidate['id']}: {candidate['title']}")
        elif parsed_args.command == "run":
            serve(**paths)
        elif parsed_args.command == "status":
            last_full, last_incremental, jobs = recent_jobs(**paths)
            print(f"last full sync:        {_format_job(last_full)}")
            print(f"last incremental sync: {_format_job(last_incremental)}")
            for job in jobs:
                print(f"  {job.id} {job.kind:<16} {_format_job(job)}")
        elif parsed_args.command == "leaving-soon":
            for item in preview_leaving_soon(**paths):
                print(f"{item.id}\t{item.days_until_due}d\t{item.title}")
        elif parsed_args.command == "exclusions":
            if parsed_args.exclusions_command == "list":
                for record in list_exclusions(**paths):
                    print(
                        f"{record.external_id}\t{record.title}\t"
                        f"{record.excluded_at.isoformat()}\t{record.reason}"
                    )
            elif parsed_args.exclusions_command == "add":
                record = exclude_media(parsed_args.media_id, reason=parsed_args.reason, **paths)
                log.info(f"Excluded {record.external_id} ({record.title})")
            else:
                include_media(parsed_args.media_id, **paths)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
