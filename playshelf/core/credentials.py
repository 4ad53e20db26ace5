"""Sources of per-account provider client credentials.

Storage and decryption of secrets belong to the host application. The
token manager only needs something that satisfies CredentialStore.
"""

import os
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import structlog

from ..common.config import Config
from ..parsers.models import ProviderCredentials

logger = structlog.get_logger(__name__)

DEFAULT_ACCOUNT = "default"


@runtime_checkable
class CredentialStore(Protocol):
    """Supplies decrypted provider credentials for an account."""

    async def get_credentials(self, account_id: str) -> Optional[Dict[str, Any]]:
        """
        Return the stored credential mapping for an account.

        Returns:
            Mapping with ``client_id`` and ``client_secret``, or None if the
            account has no credentials stored
        """
        ...


class StaticCredentialStore:
    """
    Dict-backed credential store.

    Accounts without their own entry fall back to the ``default`` entry,
    which lets a single-user deployment configure one pair of credentials.

    Example:
        >>> store = StaticCredentialStore({"alice": {"client_id": "x", "client_secret": "y"}})
        >>> await store.get_credentials("alice")
    """

    def __init__(self, credentials: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._credentials: Dict[str, Dict[str, Any]] = {
            account: dict(values) for account, values in (credentials or {}).items()
        }

    async def get_credentials(self, account_id: str) -> Optional[Dict[str, Any]]:
        values = self._credentials.get(account_id)
        if values is None:
            values = self._credentials.get(DEFAULT_ACCOUNT)
        return dict(values) if values is not None else None

    def set_credentials(self, account_id: str, client_id: str, client_secret: str) -> None:
        """Store credentials for an account, replacing any existing ones."""
        self._credentials[account_id] = {
            "client_id": client_id,
            "client_secret": client_secret,
        }

    @classmethod
    def from_config(cls, config: Config) -> "StaticCredentialStore":
        """
        Build a store holding the configured IGDB credentials as ``default``.

        IGDB_CLIENT_ID and IGDB_CLIENT_SECRET environment variables take
        precedence over ``apis.igdb.auth`` in the config.
        """
        auth = config.get_api_auth("igdb")
        client_id = os.environ.get("IGDB_CLIENT_ID") or auth.get("client_id")
        client_secret = os.environ.get("IGDB_CLIENT_SECRET") or auth.get("client_secret")

        store = cls()
        if client_id or client_secret:
            store._credentials[DEFAULT_ACCOUNT] = {
                "client_id": client_id,
                "client_secret": client_secret,
            }
        else:
            logger.warning("igdb_credentials_not_configured")
        return store


def to_provider_credentials(values: Mapping[str, Any]) -> Optional[ProviderCredentials]:
    """
    Convert a raw credential mapping to ProviderCredentials.

    Returns:
        ProviderCredentials, or None if client_id or client_secret is missing
    """
    client_id = values.get("client_id")
    client_secret = values.get("client_secret")
    if not client_id or not client_secret:
        return None
    return ProviderCredentials(client_id=str(client_id), client_secret=str(client_secret))
