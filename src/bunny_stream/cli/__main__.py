"""CLI entry point for bunny_stream.

Usage:
    python -m bunny_stream.cli collections list
    python -m bunny_stream.cli collections create --user-id 42
    python -m bunny_stream.cli videos upload clip.mp4 --title "My clip"
    python -m bunny_stream.cli videos status 0b7c3f5e-...
    python -m bunny_stream.cli library create "Course videos"
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bunny-stream",
        description="Bunny.net Stream command-line tools",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: BUNNY_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--use-db",
        action="store_true",
        help="Record user collections in the database (BUNNY_DATABASE_URL)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # collections
    collections_parser = subparsers.add_parser("collections", help="Manage collections")
    collections_sub = collections_parser.add_subparsers(dest="action")
    collections_sub.add_parser("list", help="List collections in the library")
    create_parser = collections_sub.add_parser(
        "create", help="Get or create the collection for a user"
    )
    create_parser.add_argument("--user-id", required=True, help="Owning user ID")
    delete_parser = collections_sub.add_parser("delete", help="Delete a collection")
    delete_parser.add_argument("collection_id", help="Collection GUID")
    delete_parser.add_argument("--user-id", help="Forget the user's association too")

    # videos
    videos_parser = subparsers.add_parser("videos", help="Manage videos")
    videos_sub = videos_parser.add_subparsers(dest="action")
    upload_parser = videos_sub.add_parser("upload", help="Upload a video file")
    upload_parser.add_argument("file", help="Path to the video file")
    upload_parser.add_argument(
        "--title",
        help="Video title or an existing video GUID (default: file name)",
    )
    upload_parser.add_argument("--collection-id", help="Target collection GUID")
    status_parser = videos_sub.add_parser("status", help="Show encoding status")
    status_parser.add_argument("guid", help="Video GUID")
    playback_parser = videos_sub.add_parser("playback", help="Show the playback URL")
    playback_parser.add_argument("guid", help="Video GUID")

    # library
    library_parser = subparsers.add_parser("library", help="Manage video libraries")
    library_sub = library_parser.add_subparsers(dest="action")
    library_create = library_sub.add_parser("create", help="Create a video library")
    library_create.add_argument("name", help="Library name")

    # storage
    storage_parser = subparsers.add_parser("storage", help="Manage storage zones")
    storage_sub = storage_parser.add_subparsers(dest="action")
    zone_create = storage_sub.add_parser("create", help="Create a storage zone")
    zone_create.add_argument("--prefix", default="wp-offloader", help="Zone name prefix")
    zone_create.add_argument("--region", default="DE", help="Main storage region")
    zone_create.add_argument(
        "--replicate",
        nargs="*",
        default=[],
        help="Replication region codes",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None or getattr(args, "action", None) is None:
        parser.print_help()
        return 0

    from bunny_stream.config import get_settings

    settings = get_settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from bunny_stream.cli.commands import run_command

    return run_command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
