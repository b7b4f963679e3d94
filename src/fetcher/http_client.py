"""Authenticated request client for the commerce REST API.

Credential signing is handled outside this package: the client only attaches
an already-issued bearer token to every request.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx


@dataclass
class ApiResponse:
    """Structured upstream response."""
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class AuthenticatedClient(Protocol):
    """Request capability consumed by the pipeline."""

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """
        Perform an authenticated GET.

        Raises:
            httpx.HTTPError: On transport failure (connect, timeout, protocol)
        """
        ...


class CommerceHTTPClient:
    """
    Async HTTP client wrapper around httpx.AsyncClient.

    Provides:
    - Base URL resolution for relative endpoint paths
    - Bearer Authorization header on every request
    - Configurable connect and read timeouts
    - Connection pooling via httpx
    - Context manager for proper lifecycle management
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        connect_timeout: float = 3.0,
        read_timeout: float = 8.0,
        write_timeout: float = 5.0,
        pool_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Commerce REST base URL (e.g. https://shop.example.com/rest/V1)
            access_token: Bearer token for the Authorization header
            connect_timeout: Connection timeout in seconds
            read_timeout: Read timeout in seconds
            write_timeout: Write timeout in seconds
            pool_timeout: Pool timeout in seconds
            transport: Optional transport override (tests, ASGI apps)
        """
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.pool_timeout = pool_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Enter async context manager."""
        timeout = httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout
        )
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse:
        """
        Perform GET request against a path relative to the base URL.

        Args:
            path: Endpoint path, e.g. /products
            params: Query parameters

        Returns:
            ApiResponse with the status code and decoded JSON body
            (None when the body is empty or not JSON)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        url = self.base_url + path
        response = await self._client.get(url, params=params)
        try:
            body = response.json()
        except ValueError:
            body = None
        return ApiResponse(status=response.status_code, body=body)
