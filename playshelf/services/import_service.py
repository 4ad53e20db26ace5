"""Import service: the entry point for reconciling game names into a library.

This service wraps the BulkImporter workflow and adds input validation,
result partitioning and callback reporting. It handles:
- Bulk imports of free-text names
- Single imports of a provider id a user picked from a review list
- Registering the local platforms imported games are attached to

Example:
    >>> service = ImportService(repository, igdb_client)
    >>> result = await service.bulk_import(["Hades", "Celeste"], user_id="alice", platform_id="pc")
    >>> [entry.search_term for entry in result.needs_review]
"""

from typing import Any, Dict, List, Optional

import structlog

from ..api.igdb_client import IGDBClient
from ..common.logging_config import bind_context, unbind_context
from ..core.db.repository import CatalogRepository
from ..parsers.models import (
    BulkImportResult,
    Imported,
    ImportRequest,
    MatchKind,
)
from ..workflows.bulk_importer import BulkImporter
from .base import BaseService, NotFoundError, ServiceCallback, ServiceError, ValidationError

logger = structlog.get_logger(__name__)


class ImportService(BaseService):
    """
    Service for game import operations.

    Provides:
    - Bulk reconciliation with progress reporting
    - Per-item failure reporting (failed names become review entries)
    - Single import of a chosen provider id
    - Platform registration (optionally named from IGDB)
    """

    def __init__(
        self,
        repository: CatalogRepository,
        igdb_client: IGDBClient,
        callback: Optional[ServiceCallback] = None,
        max_concurrent: int = 1,
    ):
        """
        Initialize the import service.

        Args:
            repository: Local catalog repository
            igdb_client: IGDB client (shared rate limiter and cache)
            callback: Optional callback for progress/failure hooks
            max_concurrent: Names reconciled at once (default: 1)
        """
        super().__init__(repository, callback)
        self.igdb_client = igdb_client
        self.max_concurrent = max_concurrent

    async def bulk_import(
        self,
        names: Any,
        user_id: str,
        platform_id: Optional[str] = None,
    ) -> BulkImportResult:
        """
        Reconcile a batch of game names for a user.

        Each name is either imported (exact local match, exact or best IGDB
        match) or returned for review with its candidates. A failing name
        is returned for review with its error; the rest of the batch runs.

        Args:
            names: List of free-text game names
            user_id: User whose library receives the games
            platform_id: Local platform to attach imported games to

        Returns:
            BulkImportResult with imported and needs_review lists

        Raises:
            ValidationError: If names is not a non-empty list
        """
        if not isinstance(names, list) or not names:
            raise ValidationError("names must be a non-empty list", field="names")

        request = ImportRequest(
            raw_names=[str(name) for name in names],
            user_id=user_id,
            target_platform_id=platform_id,
        )

        bind_context(import_user_id=user_id)
        try:
            importer = BulkImporter(
                igdb_client=self.igdb_client,
                repository=self.repository,
                max_concurrent=self.max_concurrent,
                progress_callback=self._on_item_processed,
            )
            outcomes = await importer.reconcile(request)
            result = BulkImportResult.from_outcomes(outcomes)

            for entry in result.needs_review:
                if entry.error:
                    await self._report_failure(
                        ServiceError(entry.error),
                        {"search_term": entry.search_term, "user_id": user_id},
                    )

            self.logger.info(
                "bulk_import_complete",
                user_id=user_id,
                platform_id=platform_id,
                imported=len(result.imported),
                needs_review=len(result.needs_review),
                failed=sum(1 for entry in result.needs_review if entry.error),
            )
            await self._report_complete(result)
            return result
        finally:
            unbind_context("import_user_id")

    async def import_single(
        self,
        provider_id: int,
        user_id: str,
        platform_id: Optional[str] = None,
    ) -> Imported:
        """
        Import one game by IGDB id, typically picked from a review list.

        Args:
            provider_id: IGDB game id
            user_id: User whose library receives the game
            platform_id: Local platform to attach the game to

        Returns:
            Imported outcome with match kind "selected"

        Raises:
            NotFoundError: If IGDB has no game with that id
        """
        importer = BulkImporter(igdb_client=self.igdb_client, repository=self.repository)

        record = await self.repository.find_by_provider_id(provider_id)
        if record is not None:
            item = record.to_catalog_item()
        else:
            item = await self.igdb_client.get_details(provider_id, user_id)
            if item is None:
                raise NotFoundError("Game not found", "game", provider_id)

        imported = await importer.import_item(item, MatchKind.SELECTED, user_id, platform_id)
        self.logger.info(
            "single_import_complete",
            user_id=user_id,
            provider_id=provider_id,
            game_id=imported.game_id,
        )
        return imported

    async def register_platform(
        self,
        platform_id: str,
        name: Optional[str] = None,
        provider_platform_id: Optional[int] = None,
        user_id: str = "default",
    ) -> Dict[str, Any]:
        """
        Register a local platform that imported games can be attached to.

        When no name is given it is taken from IGDB, which requires a
        provider platform id. Registering an existing id leaves it unchanged.

        Args:
            platform_id: Local platform id (e.g. "pc", "switch")
            name: Platform name
            provider_platform_id: IGDB platform id
            user_id: Account used for the IGDB lookup

        Returns:
            The stored platform row

        Raises:
            ValidationError: If platform_id is blank, or neither name nor
                provider_platform_id is given
            NotFoundError: If IGDB has no platform with that id
            ValidationError: If the name belongs to another platform id
        """
        platform_id = (platform_id or "").strip()
        if not platform_id:
            raise ValidationError("platform_id must not be empty", field="platform_id")

        display_name = None
        if not name:
            if provider_platform_id is None:
                raise ValidationError(
                    "name or provider_platform_id is required", field="name"
                )
            record = await self.igdb_client.get_platform(provider_platform_id, user_id)
            if record is None:
                raise NotFoundError("Platform not found", "platform", provider_platform_id)
            name = record.name
            display_name = record.abbreviation

        await self.repository.create_platform(
            platform_id, name, display_name=display_name, provider_platform_id=provider_platform_id
        )
        platform = await self.repository.get_platform(platform_id)
        if platform is None:
            # Platform names are unique; another id already holds this one
            raise ValidationError(f"Platform name already registered: {name}", field="name")
        self.logger.info(
            "platform_registered",
            platform_id=platform_id,
            name=platform["name"],
            provider_platform_id=platform["provider_platform_id"],
        )
        return platform

    async def list_platforms(self) -> List[Dict[str, Any]]:
        """List registered local platforms."""
        return await self.repository.list_platforms()

    async def _on_item_processed(self, current: int, total: int, name: str) -> None:
        await self._report_progress(current, total, f"Processed {name}")
