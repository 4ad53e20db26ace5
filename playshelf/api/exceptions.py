"""Exceptions raised by catalog provider clients."""

from typing import Optional


class ProviderError(Exception):
    """Raised when a provider call fails (non-2xx status or transport error)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class ProviderAuthError(ProviderError):
    """Raised when the provider rejects the bearer token (HTTP 401)."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message, status_code=401, endpoint=endpoint)


class ProviderAuthenticationError(ProviderError):
    """Raised when the OAuth token endpoint does not issue a token."""

    pass


class CredentialsNotFoundError(Exception):
    """Raised when an account has no stored provider credentials."""

    def __init__(self, message: str, account_id: Optional[str] = None):
        super().__init__(message)
        self.account_id = account_id


class InvalidCredentialsError(Exception):
    """Raised when stored credentials are incomplete or unreadable."""

    def __init__(self, message: str, account_id: Optional[str] = None):
        super().__init__(message)
        self.account_id = account_id
