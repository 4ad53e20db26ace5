"""IGDB API v4 client for game, platform and franchise metadata."""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from .base_client import RateLimitedAPIClient
from .exceptions import ProviderAuthError, ProviderError
from .twitch_auth import TwitchTokenManager
from ..cache.gateway import CatalogCache
from ..common.config import Config
from ..common.rate_limiter import IntervalRateLimiter
from ..parsers.igdb_models import MAIN_GAME_CATEGORY
from ..parsers.igdb_parser import IGDBParser
from ..parsers.models import (
    CatalogItem,
    FranchiseRecord,
    PlatformRecord,
    ProviderCredentials,
    TokenRecord,
)

logger = structlog.get_logger(__name__)

SEARCH_FIELDS = (
    "name, slug, cover.image_id, platforms.id, platforms.name, platforms.abbreviation, "
    "genres.id, genres.name, franchises.id, franchises.name, websites.category, websites.url"
)
DETAIL_FIELDS = (
    "name, slug, summary, storyline, first_release_date, aggregated_rating, total_rating, "
    "cover.image_id, platforms.id, platforms.name, platforms.abbreviation, "
    "genres.id, genres.name, themes.id, themes.name, game_modes.id, game_modes.name, "
    "franchises.id, franchises.name, websites.category, websites.url"
)
PLATFORM_FIELDS = "name, abbreviation, slug, platform_family.id, platform_family.name"
FRANCHISE_FIELDS = "name, slug, games"


def _quote(value: str) -> str:
    """Quote a string for an Apicalypse query."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class IGDBClient(RateLimitedAPIClient):
    """
    Client for the IGDB API v4.

    IGDB queries are ``POST`` requests whose body is an Apicalypse query
    string. Every request carries the Twitch ``Client-ID`` and a bearer
    token for the calling account, and is paced by the shared rate limiter
    (IGDB allows 4 requests per second).

    Search, game details and single-platform lookups are cache-aside: the
    catalog cache is checked first and filled after a provider hit.

    When IGDB rejects a token (HTTP 401) the cached token is dropped and the
    whole call is retried once with a fresh one. Any other failure is raised
    to the caller as ProviderError.

    Example:
        >>> async with IGDBClient.from_config(config, cache, token_manager) as client:
        ...     results = await client.search("Half-Life 2", account_id="alice")
        ...     details = await client.get_details(results[0].provider_id, "alice")
    """

    DEFAULT_BASE_URL = "https://api.igdb.com/v4"
    DEFAULT_SEARCH_LIMIT = 10
    AUTH_ATTEMPTS = 2

    def __init__(
        self,
        *args: Any,
        cache: CatalogCache,
        token_manager: TwitchTokenManager,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        cover_size: str = "cover_big",
        **kwargs: Any,
    ):
        """
        Initialize the IGDB client.

        Args:
            *args: Positional arguments for RateLimitedAPIClient
            cache: Catalog cache for cache-aside lookups
            token_manager: Source of bearer tokens
            search_limit: Default number of search candidates
            cover_size: IGDB image size used for cover URLs
            **kwargs: Keyword arguments for RateLimitedAPIClient
        """
        kwargs.setdefault("default_headers", {"Accept": "application/json"})
        super().__init__(*args, **kwargs)
        self.cache = cache
        self.token_manager = token_manager
        self.search_limit = search_limit
        self.cover_size = cover_size

    @classmethod
    def from_config(
        cls,
        config: Config,
        cache: CatalogCache,
        token_manager: TwitchTokenManager,
        rate_limiter: Optional[IntervalRateLimiter] = None,
    ) -> "IGDBClient":
        """
        Create an IGDB client from the application config.

        Args:
            config: Application configuration
            cache: Shared catalog cache
            token_manager: Shared token manager
            rate_limiter: Shared rate limiter (a new one is built from
                ``igdb.rate_limit`` when omitted)

        Returns:
            Configured IGDBClient instance
        """
        igdb_config = config.igdb
        if rate_limiter is None:
            rate_limiter = IntervalRateLimiter.from_config(igdb_config.rate_limit)

        return cls(
            http_config=config.http,
            base_url=igdb_config.base_url or cls.DEFAULT_BASE_URL,
            rate_limiter=rate_limiter,
            cache=cache,
            token_manager=token_manager,
            search_limit=igdb_config.search_limit,
            cover_size=igdb_config.cover_size,
        )

    # ==================== Games ====================

    async def search(
        self, query: str, account_id: str, limit: Optional[int] = None
    ) -> List[CatalogItem]:
        """
        Search main games by name.

        Non-empty results are cached under the normalized query; an empty
        result is not cached so a later retry can pick up new catalog entries.
        Only searches at the default limit read or fill the cache, since the
        cache key does not carry the limit.

        Args:
            query: Search text
            account_id: Account whose credentials are used
            limit: Maximum number of candidates (defaults to search_limit)

        Returns:
            Candidates in IGDB relevance order

        Raises:
            ProviderError: If the IGDB call fails
        """
        limit = limit or self.search_limit
        use_cache = limit == self.search_limit
        if use_cache:
            cached = await self.cache.get_cached_search(query)
            if cached is not None:
                logger.debug("igdb_search_cache_hit", query=query, count=len(cached))
                return cached

        body = (
            f"search {_quote(query)}; fields {SEARCH_FIELDS}; "
            f"where category = {MAIN_GAME_CATEGORY}; limit {limit};"
        )
        data = await self._query("/games", body, account_id)
        items = [
            IGDBParser.to_catalog_item(game, self.cover_size)
            for game in self._parse(IGDBParser.parse_games, data, "/games")
        ]

        logger.info("igdb_search", query=query, limit=limit, count=len(items))
        if items and use_cache:
            await self.cache.cache_search(query, items)
        return items

    async def get_details(self, provider_id: int, account_id: str) -> Optional[CatalogItem]:
        """
        Get full details for one game.

        Args:
            provider_id: IGDB game id
            account_id: Account whose credentials are used

        Returns:
            CatalogItem, or None if IGDB has no game with that id
        """
        cached = await self.cache.get_cached_item(provider_id)
        if cached is not None:
            logger.debug("igdb_details_cache_hit", provider_id=provider_id)
            return cached

        body = f"fields {DETAIL_FIELDS}; where id = {int(provider_id)};"
        data = await self._query("/games", body, account_id)
        games = self._parse(IGDBParser.parse_games, data, "/games")
        if not games:
            logger.info("igdb_game_not_found", provider_id=provider_id)
            return None

        item = IGDBParser.to_catalog_item(games[0], self.cover_size)
        await self.cache.cache_item(provider_id, item)
        return item

    # ==================== Platforms ====================

    async def get_platform(self, platform_id: int, account_id: str) -> Optional[PlatformRecord]:
        """
        Get one platform by IGDB id (cached).

        Returns:
            PlatformRecord, or None if IGDB has no platform with that id
        """
        cached = await self.cache.get_cached_aux(platform_id)
        if cached is not None:
            return cached

        body = f"fields {PLATFORM_FIELDS}; where id = {int(platform_id)};"
        data = await self._query("/platforms", body, account_id)
        platforms = self._parse(IGDBParser.parse_platforms, data, "/platforms")
        if not platforms:
            return None

        record = IGDBParser.to_platform_record(platforms[0])
        await self.cache.cache_aux(platform_id, record)
        return record

    async def get_platforms(
        self, platform_ids: List[int], account_id: str
    ) -> List[PlatformRecord]:
        """
        Get several platforms in one request (not cached).

        Returns:
            PlatformRecords for the ids IGDB knows; [] for an empty id list
        """
        if not platform_ids:
            return []

        id_list = ",".join(str(int(pid)) for pid in platform_ids)
        body = f"fields {PLATFORM_FIELDS}; where id = ({id_list}); limit {len(platform_ids)};"
        data = await self._query("/platforms", body, account_id)
        return [
            IGDBParser.to_platform_record(platform)
            for platform in self._parse(IGDBParser.parse_platforms, data, "/platforms")
        ]

    # ==================== Franchises ====================

    async def get_franchise(self, franchise_id: int, account_id: str) -> Optional[FranchiseRecord]:
        """Get one franchise by IGDB id, or None if unknown."""
        body = f"fields {FRANCHISE_FIELDS}; where id = {int(franchise_id)};"
        data = await self._query("/franchises", body, account_id)
        franchises = self._parse(IGDBParser.parse_franchises, data, "/franchises")
        if not franchises:
            return None
        return IGDBParser.to_franchise_record(franchises[0])

    # ==================== Auth ====================

    async def authenticate(self, credentials: ProviderCredentials) -> TokenRecord:
        """Request a new bearer token for the given client credentials."""
        return await self.token_manager.authenticate(credentials)

    # ==================== Transport ====================

    def _log_auth_retry(self, retry_state: RetryCallState) -> None:
        self.logger.warning(
            "igdb_auth_retry",
            attempt=retry_state.attempt_number,
        )

    async def _query(self, endpoint: str, body: str, account_id: str) -> List[Dict[str, Any]]:
        """
        Run an Apicalypse query, retrying once with a fresh token after a 401.

        Raises:
            ProviderAuthError: If IGDB rejects the fresh token as well
            ProviderError: For any other failed call
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.AUTH_ATTEMPTS),
            retry=retry_if_exception_type(ProviderAuthError),
            before_sleep=self._log_auth_retry,
            reraise=True,
        ):
            with attempt:
                return await self._query_once(endpoint, body, account_id)

    async def _query_once(
        self, endpoint: str, body: str, account_id: str
    ) -> List[Dict[str, Any]]:
        token = await self.token_manager.get_token(account_id)
        headers = {
            "Client-ID": token.client_id,
            "Authorization": f"Bearer {token.token}",
            "Content-Type": "text/plain",
        }

        try:
            response = await self.post(endpoint, content=body, headers=headers)
        except httpx.RequestError as e:
            self.logger.warning("igdb_request_failed", endpoint=endpoint, error=str(e))
            raise ProviderError(f"IGDB request failed: {e}", endpoint=endpoint) from e

        if response.status_code == 401:
            self.logger.warning("igdb_token_rejected", endpoint=endpoint, account_id=account_id)
            await self.token_manager.invalidate(account_id)
            raise ProviderAuthError("IGDB authentication expired", endpoint=endpoint)

        if not response.is_success:
            self.logger.error(
                "igdb_api_error",
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise ProviderError(
                f"IGDB API error: {response.status_code}",
                status_code=response.status_code,
                endpoint=endpoint,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("IGDB returned invalid JSON", endpoint=endpoint) from e
        if not isinstance(data, list):
            raise ProviderError("IGDB returned an unexpected payload", endpoint=endpoint)
        return data

    @staticmethod
    def _parse(parser: Any, data: List[Dict[str, Any]], endpoint: str) -> List[Any]:
        try:
            return parser(data)
        except ValidationError as e:
            raise ProviderError(
                f"IGDB returned an unexpected payload: {e.error_count()} errors",
                endpoint=endpoint,
            ) from e
