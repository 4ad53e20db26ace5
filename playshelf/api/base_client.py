"""Base API client with request pacing and default headers."""

from typing import Any, Dict, Optional

import httpx
import structlog

from ..common.http_client import AsyncHTTPClient
from ..common.rate_limiter import IntervalRateLimiter
from ..common.config import HTTPConfig

logger = structlog.get_logger(__name__)


class RateLimitedAPIClient(AsyncHTTPClient):
    """
    HTTP client whose requests are paced by a shared rate limiter.

    Every request is submitted to the limiter's FIFO schedule, so all
    clients sharing one limiter instance share one request ceiling no
    matter how many coroutines call them at once.
    """

    def __init__(
        self,
        http_config: HTTPConfig,
        base_url: str = "",
        rate_limiter: Optional[IntervalRateLimiter] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the rate-limited API client.

        Args:
            http_config: HTTP configuration (timeout, pool limits)
            base_url: Base URL for all requests
            rate_limiter: Optional shared rate limiter instance
            default_headers: Optional headers added to every request
        """
        super().__init__(http_config, base_url)
        self.rate_limiter = rate_limiter
        self.default_headers = default_headers or {}

        self.logger.info(
            "rate_limited_api_client_initialized",
            base_url=base_url,
            has_rate_limiter=rate_limiter is not None,
        )

    async def _apply_limiter_and_headers(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """
        Merge default headers and send the request through the rate limiter.

        Per-call headers win over the default headers.
        """
        if self.default_headers:
            headers = {**self.default_headers, **(kwargs.get("headers") or {})}
            kwargs["headers"] = headers

        if self.rate_limiter:
            return await self.rate_limiter.schedule(
                lambda: self._send(method, url, **kwargs)
            )
        return await self._send(method, url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Make a paced GET request."""
        self.logger.debug("api_request", method="GET", url=str(url))
        return await self._apply_limiter_and_headers("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Any] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make a paced POST request.

        Args:
            url: Request URL
            json: JSON data to send in request body
            data: Form data to send in request body
            **kwargs: Additional arguments (content, headers, etc.)

        Returns:
            httpx.Response object
        """
        self.logger.debug("api_request", method="POST", url=str(url))
        return await self._apply_limiter_and_headers("POST", url, json=json, data=data, **kwargs)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Make a paced HTTP request with the specified method."""
        self.logger.debug("api_request", method=method.upper(), url=str(url))
        return await self._apply_limiter_and_headers(method.upper(), url, **kwargs)
