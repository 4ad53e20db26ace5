"""CLI commands for importing games into a user's library."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable, Awaitable, List, Optional

import structlog

logger = structlog.get_logger(__name__)


def read_names(names: List[str], file_path: Optional[Path]) -> List[str]:
    """
    Collect names from arguments and an optional file (one name per line).

    Blank lines are kept; the importer skips them.
    """
    collected = list(names)
    if file_path is not None:
        collected.extend(file_path.read_text(encoding="utf-8").splitlines())
    return collected


async def _run_with_service(
    config_path: Optional[Path],
    max_concurrent: Optional[int],
    action: Callable[[Any], Awaitable[Any]],
) -> Any:
    import playshelf
    from playshelf.api.igdb_client import IGDBClient
    from playshelf.api.twitch_auth import TwitchTokenManager
    from playshelf.core.credentials import StaticCredentialStore
    from playshelf.core.db.repository import SQLiteCatalogRepository
    from playshelf.services.import_service import ImportService

    config = playshelf.configure(config_path=config_path)
    cache = playshelf.get_catalog_cache()
    token_manager = TwitchTokenManager(
        cache=cache,
        credential_store=StaticCredentialStore.from_config(config),
        auth_url=config.igdb.auth_url,
        http_config=config.http,
    )

    repository = await SQLiteCatalogRepository.from_config(config)
    try:
        async with IGDBClient.from_config(
            config, cache, token_manager, rate_limiter=playshelf.get_rate_limiter()
        ) as client:
            service = ImportService(
                repository,
                client,
                max_concurrent=max_concurrent or config.importer.max_concurrent,
            )
            return await action(service)
    finally:
        await repository.close()
        await playshelf.reset()


async def bulk_import(
    names: List[str],
    user_id: str,
    platform_id: Optional[str] = None,
    config_path: Optional[Path] = None,
    max_concurrent: Optional[int] = None,
) -> dict:
    """
    Reconcile names for a user and return the result as a JSON-ready dict.

    Returns:
        {"imported": [...], "needs_review": [...]}
    """
    result = await _run_with_service(
        config_path,
        max_concurrent,
        lambda service: service.bulk_import(names, user_id, platform_id),
    )
    return result.model_dump(mode="json")


async def import_single(
    provider_id: int,
    user_id: str,
    platform_id: Optional[str] = None,
    config_path: Optional[Path] = None,
) -> dict:
    """Import one IGDB game id and return the outcome as a JSON-ready dict."""
    imported = await _run_with_service(
        config_path,
        None,
        lambda service: service.import_single(provider_id, user_id, platform_id),
    )
    return imported.model_dump(mode="json")


async def add_platform(
    platform_id: str,
    name: Optional[str] = None,
    provider_platform_id: Optional[int] = None,
    user_id: str = "default",
    config_path: Optional[Path] = None,
) -> dict:
    """
    Register a local platform and return the stored row.

    With only an IGDB platform id, the name is looked up on IGDB.
    """
    return await _run_with_service(
        config_path,
        None,
        lambda service: service.register_platform(
            platform_id, name, provider_platform_id, user_id
        ),
    )


async def list_platforms(config_path: Optional[Path] = None) -> List[dict]:
    """List registered local platforms."""
    return await _run_with_service(config_path, None, lambda service: service.list_platforms())


def main() -> None:
    """Main entry point for the import CLI."""
    parser = argparse.ArgumentParser(
        prog="playshelf-import",
        description="Import games into a playshelf library",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to config.yaml")
    parser.add_argument("--user", "-u", default="default", help="User id (default: default)")
    parser.add_argument("--platform", "-p", help="Local platform id to attach games to")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    bulk_parser = subparsers.add_parser(
        "bulk",
        help="Reconcile a list of game names",
        description="Match free-text names against IGDB and import the clear matches",
    )
    bulk_parser.add_argument("names", nargs="*", help="Game names")
    bulk_parser.add_argument("--file", "-f", type=Path, help="File with one name per line")
    bulk_parser.add_argument(
        "--concurrency",
        type=int,
        help="Names processed at once (default: importer.max_concurrent)",
    )

    single_parser = subparsers.add_parser(
        "single",
        help="Import one IGDB game id",
        description="Import a game a user picked from the review list",
    )
    single_parser.add_argument("provider_id", type=int, help="IGDB game id")

    platform_parser = subparsers.add_parser(
        "platform",
        help="Manage local platforms",
        description="Register the platforms imported games are attached to",
    )
    platform_subparsers = platform_parser.add_subparsers(dest="platform_command")
    platform_add_parser = platform_subparsers.add_parser("add", help="Register a platform")
    platform_add_parser.add_argument("platform_id", help="Local platform id (e.g. pc)")
    platform_add_parser.add_argument("name", nargs="?", help="Platform name")
    platform_add_parser.add_argument(
        "--igdb-id",
        type=int,
        help="IGDB platform id (the name is looked up when omitted)",
    )
    platform_subparsers.add_parser("list", help="List registered platforms")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    if args.command == "platform" and args.platform_command is None:
        platform_parser.print_help()
        sys.exit(1)

    from playshelf.services.base import ServiceError

    try:
        if args.command == "bulk":
            names = read_names(args.names, args.file)
            output = asyncio.run(
                bulk_import(names, args.user, args.platform, args.config, args.concurrency)
            )
        elif args.command == "platform":
            if args.platform_command == "add":
                output = asyncio.run(
                    add_platform(
                        args.platform_id, args.name, args.igdb_id, args.user, args.config
                    )
                )
            else:
                output = asyncio.run(list_platforms(args.config))
        else:
            output = asyncio.run(
                import_single(args.provider_id, args.user, args.platform, args.config)
            )
    except ServiceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
