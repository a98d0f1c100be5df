"""HTTP client for the sync API."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx

from twotab_todo.exceptions import NotConfigured, RemoteTransportFailure
from twotab_todo.models import RemoteConfig
from twotab_todo.utils.logger import get_logger

logger = get_logger(__name__)

TokenProvider = Callable[[], str | None]


class APIClient:
    """Thin async wrapper over ``httpx.AsyncClient`` with bearer auth and retries."""

    def __init__(
        self,
        config: RemoteConfig,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.base_url = config.endpoint or ""
        self.timeout = config.timeout
        self._token_provider = token_provider
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self, skip_auth: bool = False) -> dict[str, str]:
        """Get HTTP headers with authentication."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if not skip_auth and self._token_provider is not None:
            token = self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if not self.base_url:
            raise NotConfigured()
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        retry: int | None = None,
        skip_auth: bool = False,
    ) -> httpx.Response:
        """Make an HTTP request to the API.

        Server errors and connection problems are retried with exponential
        backoff; client errors (4xx) are not.

        Raises:
            RemoteTransportFailure: When the request ultimately fails
        """
        if retry is None:
            retry = self.config.retry

        client = await self._get_client()
        url = path if path.startswith("/") else f"/{path}"

        last_exception: Exception | None = None
        for attempt in range(retry + 1):
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    json=json,
                    params=params,
                    headers=self._get_headers(skip_auth=skip_auth),
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                if 400 <= e.response.status_code < 500:
                    raise RemoteTransportFailure(_error_message(e.response)) from e
                last_exception = e
            except httpx.RequestError as e:
                last_exception = e

            if attempt < retry:
                logger.debug("%s %s failed (attempt %d), retrying", method, url, attempt + 1)
                await asyncio.sleep(2**attempt)

        raise RemoteTransportFailure(f"{method} {url} failed: {last_exception}") from last_exception

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any = None, skip_auth: bool = False) -> httpx.Response:
        return await self.request("POST", path, json=json, skip_auth=skip_auth)

    async def put(self, path: str, *, json: Any = None) -> httpx.Response:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> httpx.Response:
        return await self.request("DELETE", path)


def _error_message(response: httpx.Response) -> str:
    """Prefer the server's ``detail``/``message`` text over the bare status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return f"Request failed with status {response.status_code}"
