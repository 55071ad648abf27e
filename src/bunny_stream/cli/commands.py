"""CLI command implementations.

Each command builds a client from settings and credentials, runs one
handler operation and prints the result as JSON. Failures are printed to
stderr and turn into a non-zero exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bunny_stream.api import (
    BunnyApiClient,
    CollectionHandler,
    StorageHandler,
    VideoHandler,
)
from bunny_stream.api.request import REDACTED
from bunny_stream.config import SecretsManagerError, get_credentials
from bunny_stream.services.db import CollectionRepository, DatabaseError, DatabaseService

if TYPE_CHECKING:
    from bunny_stream.api import ApiResult
    from bunny_stream.config import BunnySettings
    from bunny_stream.stores import UserCollectionStore

logger = logging.getLogger(__name__)

# Fields never echoed to the terminal
_HIDDEN_FIELDS = frozenset({"raw"})
_SECRET_FIELDS = frozenset({"password"})


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        data = {}
        for key, item in asdict(value).items():
            if key in _HIDDEN_FIELDS:
                continue
            data[key] = REDACTED if key in _SECRET_FIELDS else _to_jsonable(item)
        return data
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def print_result(result: ApiResult[Any]) -> int:
    """Print a result and return the matching exit code."""
    if result.is_successful:
        print(json.dumps(_to_jsonable(result.value), indent=2, default=str))
        return 0
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


async def dispatch(
    args: argparse.Namespace,
    client: BunnyApiClient,
    *,
    user_collections: UserCollectionStore | None = None,
    collection_prefix: str = "wpbs",
    collection_lock_ttl: float = 10.0,
) -> int:
    """Run the handler operation selected by ``args``."""
    if args.command == "collections":
        handler = CollectionHandler(
            client,
            user_collections=user_collections,
            prefix=collection_prefix,
            lock_ttl=collection_lock_ttl,
        )
        if args.action == "list":
            return print_result(await handler.list_collections())
        if args.action == "create":
            return print_result(await handler.get_or_create_user_collection(args.user_id))
        if args.action == "delete":
            return print_result(
                await handler.delete_collection(args.collection_id, args.user_id)
            )

    elif args.command == "videos":
        videos = VideoHandler(client)
        if args.action == "upload":
            title = args.title or _default_title(args.file)
            return print_result(
                await videos.upload_video(args.file, title, collection_id=args.collection_id)
            )
        if args.action == "status":
            return print_result(await videos.get_video_status(args.guid))
        if args.action == "playback":
            return print_result(await videos.get_playback_url(args.guid))

    elif args.command == "library":
        if args.action == "create":
            return print_result(await VideoHandler(client).create_library(args.name))

    elif args.command == "storage":
        if args.action == "create":
            return print_result(
                await StorageHandler(client).create_storage_zone(
                    name_prefix=args.prefix,
                    region=args.region,
                    replication_regions=args.replicate,
                )
            )

    print(f"Unknown command: {args.command} {args.action}", file=sys.stderr)
    return 2


def _default_title(file_path: str) -> str:
    return Path(file_path).stem


async def _run(args: argparse.Namespace, settings: BunnySettings) -> int:
    credentials = settings.credentials() or get_credentials(settings.secret_id)
    async with BunnyApiClient.from_settings(settings, credentials) as client:
        if not getattr(args, "use_db", False):
            return await dispatch(
                args,
                client,
                collection_prefix=settings.collection_prefix,
                collection_lock_ttl=settings.collection_lock_ttl,
            )

        async with DatabaseService(settings.database_url) as db:
            repo = CollectionRepository(db, library_id=credentials.library_id)
            await repo.ensure_table()
            return await dispatch(
                args,
                client,
                user_collections=repo,
                collection_prefix=settings.collection_prefix,
                collection_lock_ttl=settings.collection_lock_ttl,
            )


def run_command(args: argparse.Namespace, settings: BunnySettings) -> int:
    """Synchronous entry point used by ``main``."""
    try:
        return asyncio.run(_run(args, settings))
    except SecretsManagerError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except DatabaseError as e:
        print(f"Database error: {e}", file=sys.stderr)
        return 1
