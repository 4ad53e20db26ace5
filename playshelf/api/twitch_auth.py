"""Twitch OAuth client-credentials tokens for IGDB, cached per account."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import structlog
from pydantic import ValidationError

from .exceptions import (
    CredentialsNotFoundError,
    InvalidCredentialsError,
    ProviderAuthenticationError,
)
from ..cache.gateway import CatalogCache
from ..common.config import HTTPConfig
from ..common.single_flight import SingleFlight
from ..core.credentials import DEFAULT_ACCOUNT, CredentialStore, to_provider_credentials
from ..parsers.igdb_models import TwitchTokenResponse
from ..parsers.igdb_parser import IGDBParser
from ..parsers.models import ProviderCredentials, TokenRecord

logger = structlog.get_logger(__name__)


class TwitchTokenManager:
    """
    Obtains, caches and invalidates IGDB bearer tokens per account.

    Tokens live only in the catalog cache, with the expiry-aware TTL the
    cache applies. On a cache miss one token request is made per account
    even when many coroutines need a token at once: latecomers join the
    pending request through a SingleFlight keyed by account id. A failed
    request is not remembered, so the next caller tries again.

    Example:
        >>> manager = TwitchTokenManager(cache, StaticCredentialStore.from_config(config))
        >>> record = await manager.get_token("alice")
        >>> headers = {"Client-ID": record.client_id, "Authorization": f"Bearer {record.token}"}
    """

    DEFAULT_AUTH_URL = "https://id.twitch.tv/oauth2/token"

    def __init__(
        self,
        cache: CatalogCache,
        credential_store: CredentialStore,
        auth_url: str = DEFAULT_AUTH_URL,
        http_config: Optional[HTTPConfig] = None,
    ):
        """
        Initialize token manager.

        Args:
            cache: Catalog cache that stores tokens
            credential_store: Source of per-account client credentials
            auth_url: Twitch OAuth token endpoint
            http_config: HTTP settings for the token request (timeout, SSL)
        """
        self.cache = cache
        self.credential_store = credential_store
        self.auth_url = auth_url
        self.http_config = http_config or HTTPConfig()
        self._flights = SingleFlight()

    async def load_credentials(self, account_id: str) -> ProviderCredentials:
        """
        Load and check an account's client credentials.

        Raises:
            CredentialsNotFoundError: If the account has no stored credentials
            InvalidCredentialsError: If client_id or client_secret is missing
        """
        values = await self.credential_store.get_credentials(account_id)
        if values is None:
            raise CredentialsNotFoundError(
                "IGDB credentials not configured", account_id=account_id
            )
        credentials = to_provider_credentials(values)
        if credentials is None:
            raise InvalidCredentialsError(
                "Invalid IGDB credentials: client_id and client_secret are required",
                account_id=account_id,
            )
        return credentials

    async def get_token(self, account_id: str) -> TokenRecord:
        """
        Get a usable bearer token for an account.

        Returns the cached token when there is one. Otherwise requests a new
        token (shared with any concurrent callers for the same account) and
        caches it.

        Args:
            account_id: Account whose credentials are used

        Returns:
            TokenRecord with the bearer token and client id

        Raises:
            CredentialsNotFoundError: If the account has no stored credentials
            InvalidCredentialsError: If the stored credentials are incomplete
            ProviderAuthenticationError: If the token endpoint refuses
        """
        credentials = await self.load_credentials(account_id)

        cached = await self.cache.get_cached_token(account_id)
        if cached:
            logger.debug("token_cache_hit", account_id=account_id)
            return TokenRecord(
                account_id=account_id,
                token=cached,
                client_id=credentials.client_id,
            )

        return await self._flights.do(
            account_id, lambda: self._fetch_and_cache(account_id, credentials)
        )

    async def authenticate(
        self, credentials: ProviderCredentials, account_id: str = DEFAULT_ACCOUNT
    ) -> TokenRecord:
        """
        Request a new token from the Twitch token endpoint.

        Does not touch the cache.

        Args:
            credentials: Client credentials
            account_id: Account the token is issued for

        Returns:
            TokenRecord including the provider expiry time

        Raises:
            ProviderAuthenticationError: If the token endpoint refuses or fails
        """
        response = await self._request_token(credentials)
        return self._to_record(account_id, credentials, response)

    async def invalidate(self, account_id: str) -> None:
        """Forget the cached token so the next get_token() fetches a new one."""
        await self.cache.invalidate_token(account_id)
        logger.info("token_invalidated", account_id=account_id)

    async def _fetch_and_cache(
        self, account_id: str, credentials: ProviderCredentials
    ) -> TokenRecord:
        response = await self._request_token(credentials)
        await self.cache.cache_token(account_id, response.access_token, response.expires_in)
        logger.info(
            "token_fetched",
            account_id=account_id,
            expires_in=response.expires_in,
        )
        return self._to_record(account_id, credentials, response)

    async def _request_token(self, credentials: ProviderCredentials) -> TwitchTokenResponse:
        logger.debug("token_requesting", auth_url=self.auth_url)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(float(self.http_config.timeout)),
                verify=self.http_config.verify_ssl,
            ) as client:
                response = await client.post(
                    self.auth_url,
                    params={
                        "client_id": credentials.client_id,
                        "client_secret": credentials.client_secret,
                        "grant_type": "client_credentials",
                    },
                )
        except httpx.RequestError as e:
            raise ProviderAuthenticationError(
                f"Twitch token request failed: {e}", endpoint=self.auth_url
            ) from e

        if not response.is_success:
            logger.warning("token_request_rejected", status_code=response.status_code)
            raise ProviderAuthenticationError(
                f"Twitch authentication failed: {response.status_code}",
                status_code=response.status_code,
                endpoint=self.auth_url,
            )

        try:
            return IGDBParser.parse_token_response(response.json())
        except (ValueError, ValidationError) as e:
            raise ProviderAuthenticationError(
                f"Invalid token response: {e}", endpoint=self.auth_url
            ) from e

    @staticmethod
    def _to_record(
        account_id: str,
        credentials: ProviderCredentials,
        response: TwitchTokenResponse,
    ) -> TokenRecord:
        return TokenRecord(
            account_id=account_id,
            token=response.access_token,
            client_id=credentials.client_id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=response.expires_in),
        )
