# viyakit/client/request_client.py
"""httpx-backed transport for the context REST surface and the logon pages."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from viyakit.shared.exceptions import TransportError
from viyakit.types import HttpResponse, PageResponse

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class RequestClient:
    """Issues HTTP requests and maps the outcome to `HttpResponse` / `TransportError`.

    The underlying `httpx.AsyncClient` is owned by the caller; its cookie jar
    carries the logon session between the login handshake and the REST calls.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    async def get(self, url: str, access_token: str | None = None) -> HttpResponse:
        return await self._send("GET", url, access_token=access_token)

    async def post(self, url: str, body: Any, access_token: str | None = None) -> HttpResponse:
        return await self._send("POST", url, body=body, access_token=access_token)

    async def put(
        self,
        url: str,
        body: Any,
        access_token: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        return await self._send("PUT", url, body=body, access_token=access_token, headers=headers)

    async def delete(self, url: str, access_token: str | None = None) -> HttpResponse:
        return await self._send("DELETE", url, access_token=access_token)

    # -------- browser-style helpers (login handshake) ----------

    async def fetch_page(self, url: str) -> PageResponse:
        """GET a page as text. Raises only when no response was received."""
        response = await self._request("GET", url)
        return PageResponse(url=str(response.url), status=response.status_code, text=response.text)

    async def submit_form(self, url: str, data: dict[str, str]) -> PageResponse:
        """POST url-encoded form data and return the response page.

        HTTP error statuses are returned, not raised: the logon server reports
        rejected credentials in the page body.
        """
        response = await self._request(
            "POST",
            url,
            data=data,
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )
        return PageResponse(url=str(response.url), status=response.status_code, text=response.text)

    # -------- internals ----------

    def _build_headers(
        self,
        access_token: str | None,
        extra: dict[str, str] | None,
        has_body: bool,
    ) -> dict[str, str]:
        headers: dict[str, str] = {}
        if has_body:
            headers["Content-Type"] = "application/json"
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if extra:
            headers.update(extra)
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,
        access_token: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        request_headers = self._build_headers(access_token, headers, has_body=body is not None)
        response = await self._request(method, url, json=body, headers=request_headers)

        if response.is_error:
            raise TransportError(
                f"{method} {url} failed with status {response.status_code}: {_error_detail(response)}",
                status=response.status_code,
                data=_parse_body(response),
            )

        return HttpResponse(
            result=_parse_body(response),
            etag=response.headers.get("etag"),
            status=response.status_code,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def _error_detail(response: httpx.Response) -> str:
    body = _parse_body(response)
    if isinstance(body, dict):
        # Viya REST errors carry {"errorCode", "message", "details": [...]}
        message = body.get("message")
        if message:
            return str(message)
    if isinstance(body, str) and body:
        return body[:200]
    return response.reason_phrase
