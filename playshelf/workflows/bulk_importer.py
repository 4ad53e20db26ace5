"""Bulk import workflow that reconciles free-text game names against the catalog."""

import asyncio
import inspect
import time
from typing import Any, Callable, List, Optional, Tuple

import structlog

from ..api.igdb_client import IGDBClient
from ..common.concurrency_limiter import ConcurrencyLimiter
from ..common.string_utils import name_contains, names_equal
from ..core.db.repository import CatalogRepository
from ..parsers.models import (
    CatalogItem,
    ImportOutcome,
    ImportRequest,
    Imported,
    LocalCatalogRecord,
    MatchKind,
    NeedsReview,
)

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int, str], Any]


def pick_match(
    term: str, candidates: List[CatalogItem]
) -> Tuple[Optional[CatalogItem], Optional[MatchKind]]:
    """
    Choose the candidate a name should be imported as.

    A candidate whose name equals the term (ignoring case) wins outright.
    Failing that, the first candidate is taken when it is the only one or
    when its name contains the term. Anything else is left for review.

    Returns:
        (candidate, match kind), or (None, None) when no candidate qualifies

    Example:
        >>> pick_match("witcher 3", [CatalogItem(provider_id=1, name="The Witcher 3")])
        (CatalogItem(provider_id=1, ...), <MatchKind.BEST: 'best'>)
    """
    for candidate in candidates:
        if names_equal(candidate.name, term):
            return candidate, MatchKind.EXACT

    if candidates:
        first = candidates[0]
        if len(candidates) == 1 or name_contains(first.name, term):
            return first, MatchKind.BEST

    return None, None


class BulkImporter:
    """
    Reconcile a list of game names into a user's library.

    For each name this workflow:
    1. Skips it if blank after trimming
    2. Looks for a local game with the same name (no provider call on a hit)
    3. Otherwise searches IGDB and picks an exact or best match
    4. Stores the match locally (once per provider id) with its genres
    5. Attaches the game to the user's library and backlog on the target platform

    Names that cannot be matched, or whose processing fails, come back as
    NeedsReview entries; one failing name never stops the batch.

    Names are processed one after another unless ``max_concurrent`` is
    greater than 1. Either way every IGDB call goes through the client's
    shared rate limiter, and outcomes are returned in input order.

    Example:
        >>> importer = BulkImporter(igdb_client, repository)
        >>> outcomes = await importer.reconcile(
        ...     ImportRequest(raw_names=["Hades", "Celeste"], user_id="alice", target_platform_id="pc")
        ... )
    """

    def __init__(
        self,
        igdb_client: IGDBClient,
        repository: CatalogRepository,
        max_concurrent: int = 1,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the bulk importer.

        Args:
            igdb_client: IGDB client used for search and details
            repository: Local catalog repository
            max_concurrent: Names reconciled at once (default: 1, sequential)
            progress_callback: Optional callback called with
                (processed_count, total_count, current_name) after each name.
                May be a plain function or a coroutine function.
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.igdb_client = igdb_client
        self.repository = repository
        self.max_concurrent = max_concurrent
        self.progress_callback = progress_callback
        self.logger = logger.bind(component="bulk_importer")

    async def reconcile(self, request: ImportRequest) -> List[ImportOutcome]:
        """
        Reconcile every name in the request.

        Args:
            request: Names, user and optional target platform

        Returns:
            One outcome per non-blank name, in input order
        """
        start_time = time.time()
        names = [raw.strip() for raw in request.raw_names]
        names = [name for name in names if name]
        total = len(names)

        self.logger.info(
            "bulk_import_start",
            user_id=request.user_id,
            total=total,
            skipped_blank=len(request.raw_names) - total,
            max_concurrent=self.max_concurrent,
        )

        processed = 0

        async def run(name: str) -> ImportOutcome:
            nonlocal processed
            outcome = await self._reconcile_name(name, request)
            processed += 1
            await self._report_progress(processed, total, name)
            return outcome

        if self.max_concurrent == 1:
            outcomes = [await run(name) for name in names]
        else:
            limiter = ConcurrencyLimiter(self.max_concurrent)

            async def run_limited(name: str) -> ImportOutcome:
                async with limiter:
                    return await run(name)

            outcomes = list(await asyncio.gather(*(run_limited(name) for name in names)))

        imported = sum(1 for outcome in outcomes if isinstance(outcome, Imported))
        self.logger.info(
            "bulk_import_reconciled",
            user_id=request.user_id,
            imported=imported,
            needs_review=len(outcomes) - imported,
            duration_seconds=round(time.time() - start_time, 2),
        )
        return outcomes

    async def import_item(
        self,
        item: CatalogItem,
        match_kind: MatchKind,
        user_id: str,
        platform_id: Optional[str] = None,
    ) -> Imported:
        """
        Store a matched catalog item and attach it to the user's library.

        The local catalog is checked by provider id first, so an item is
        written at most once. A new item is stored from its full details
        (the given item is used if IGDB no longer returns details).

        The game row, its genre links and the library entry are written in
        one transaction: if any step fails nothing is kept, and re-running
        the import starts from scratch.

        Args:
            item: Matched catalog item (search candidate or details)
            match_kind: How the item was matched
            user_id: User whose library receives the game
            platform_id: Local platform to attach to (skipped when None)

        Returns:
            Imported outcome carrying the local game id
        """
        record = await self.repository.find_by_provider_id(item.provider_id)
        if record is None:
            details = await self.igdb_client.get_details(item.provider_id, user_id)
            item = details or item

        async with self.repository.transaction():
            if record is None:
                record = await self.repository.create_from_catalog_item(item)
                for genre in item.genres:
                    genre_record = await self.repository.find_or_create_genre(
                        genre.provider_genre_id, genre.name
                    )
                    await self.repository.link_genre(record.id, genre_record.id)
            await self._attach(record, user_id, platform_id)

        return Imported(item=item, match_kind=match_kind, game_id=record.id)

    async def _reconcile_name(self, name: str, request: ImportRequest) -> ImportOutcome:
        try:
            local = await self.repository.find_by_name(name)
            if local is not None:
                self.logger.debug("import_local_hit", name=name, game_id=local.id)
                async with self.repository.transaction():
                    await self._attach(local, request.user_id, request.target_platform_id)
                return Imported(
                    item=local.to_catalog_item(),
                    match_kind=MatchKind.EXACT,
                    game_id=local.id,
                )

            candidates = await self.igdb_client.search(name, request.user_id)
            match, match_kind = pick_match(name, candidates)
            if match is None:
                self.logger.info(
                    "import_needs_review",
                    name=name,
                    candidates=len(candidates),
                )
                return NeedsReview(search_term=name, candidates=candidates)

            outcome = await self.import_item(
                match, match_kind, request.user_id, request.target_platform_id
            )
            self.logger.info(
                "import_item_matched",
                name=name,
                provider_id=match.provider_id,
                match_kind=match_kind.value,
            )
            return outcome

        except Exception as e:
            self.logger.warning(
                "import_item_failed",
                name=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return NeedsReview(search_term=name, candidates=[], error=str(e))

    async def _attach(
        self, record: LocalCatalogRecord, user_id: str, platform_id: Optional[str]
    ) -> None:
        if platform_id is None:
            return
        await self.repository.attach_to_user_library(user_id, record.id, platform_id)
        await self.repository.create_default_progress(user_id, record.id, platform_id)

    async def _report_progress(self, current: int, total: int, name: str) -> None:
        if self.progress_callback is None:
            return
        result = self.progress_callback(current, total, name)
        if inspect.isawaitable(result):
            await result
