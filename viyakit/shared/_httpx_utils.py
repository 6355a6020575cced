# viyakit/shared/_httpx_utils.py
"""Utilities for creating standardized httpx AsyncClient instances."""

from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncGenerator, Protocol

import httpx

__all__ = ["create_viyakit_http_client"]


class ViyaKitHttpClientFactory(Protocol):
    def __call__(
        self,
        headers: dict[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AsyncContextManager[httpx.AsyncClient]: ...


@asynccontextmanager
async def create_viyakit_http_client(
    headers: dict[str, str] | None = None,
    timeout: httpx.Timeout | None = None,
    verify: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Provide a standardized httpx AsyncClient as an async context manager.

    Defaults used throughout viyakit:
    - follow_redirects=True (the logon pages redirect between endpoints)
    - a cookie jar shared by the login handshake and the REST calls
    - Default timeout of 30 seconds if not specified

    Args:
        headers: Optional headers to include with all requests.
        timeout: Request timeout as an httpx.Timeout object.
            Defaults to 30 seconds if not specified.
        verify: Whether to verify TLS certificates.
        transport: Optional transport override (tests pass httpx.MockTransport).

    Yields:
        A configured httpx.AsyncClient instance.

    Examples:
        async with create_viyakit_http_client() as client:
            response = await client.get("https://viya.example.com/SASLogon/login")

        # Self-signed development server
        timeout = httpx.Timeout(60.0, read=300.0)
        async with create_viyakit_http_client(timeout=timeout, verify=False) as client:
            response = await client.get("/compute/contexts")
    """
    kwargs: dict[str, Any] = {
        "follow_redirects": True,
        "verify": verify,
    }

    if timeout is None:
        kwargs["timeout"] = httpx.Timeout(30.0)
    else:
        kwargs["timeout"] = timeout

    if headers is not None:
        kwargs["headers"] = headers

    if transport is not None:
        kwargs["transport"] = transport

    client = httpx.AsyncClient(**kwargs)
    try:
        yield client
    finally:
        await client.aclose()
