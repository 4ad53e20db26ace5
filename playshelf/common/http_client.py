"""Async HTTP client with connection pooling using httpx."""

from typing import Any, Dict, Optional

import httpx
import structlog

from .config import HTTPConfig

logger = structlog.get_logger(__name__)


class AsyncHTTPClient:
    """
    Async HTTP client with connection pooling.

    Provides a context manager interface around a pooled ``httpx.AsyncClient``
    configured from HTTPConfig. Requests are sent once: failed calls are
    reported to the caller, never retried here.

    Example:
        >>> async with AsyncHTTPClient(HTTPConfig(), base_url="https://api.igdb.com/v4") as client:
        ...     response = await client.post("/games", content="fields name; limit 1;")
    """

    def __init__(
        self,
        config: HTTPConfig,
        base_url: str = "",
    ):
        """
        Initialize the async HTTP client.

        Args:
            config: HTTPConfig object with client settings
            base_url: Base URL for all requests (optional)
        """
        self.config = config
        self.base_url = base_url
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logger.bind(component="http_client")

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(float(self.config.timeout)),
            limits=limits,
            verify=self.config.verify_ssl,
        )
        self.logger.info(
            "http_client_initialized",
            base_url=self.base_url,
            timeout=self.config.timeout,
            max_connections=self.config.max_connections,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self.logger.info("http_client_closed")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request on the pooled client.

        Raises:
            RuntimeError: If used outside the async context manager
            httpx.RequestError: On transport failures
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")
        return await self._client.request(method, url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        self.logger.debug("http_request", method="GET", url=str(url))
        return await self._send("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Any] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make a POST request.

        Args:
            url: Request URL
            json: JSON data to send in request body
            data: Form data to send in request body
            **kwargs: Additional arguments (content, headers, params, etc.)

        Returns:
            httpx.Response object
        """
        self.logger.debug("http_request", method="POST", url=str(url))
        return await self._send("POST", url, json=json, data=data, **kwargs)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request with the specified method."""
        self.logger.debug("http_request", method=method.upper(), url=str(url))
        return await self._send(method.upper(), url, **kwargs)
