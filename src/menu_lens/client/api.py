"""HTTP client for protected endpoints that keeps the session token current."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

from menu_lens.client.session_manager import SessionManager

logger = logging.getLogger(__name__)

SESSION_TOKEN_HEADER = "x-session-token"


class SessionUnavailableError(RuntimeError):
    """Raised when no session token could be obtained for a request."""


class ProtectedClient:
    """Attaches ``x-session-token`` to requests and recovers from one ``401``.

    On a ``401`` the session is refreshed and the request is replayed exactly
    once; a second ``401`` is returned to the caller as-is.
    """

    def __init__(
        self,
        manager: SessionManager,
        base_url: str = "",
        *,
        origin: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._manager = manager
        self._origin = origin
        self._client = client or httpx.AsyncClient(base_url=base_url)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self._manager.ensure_valid_session()
        if token is None:
            raise SessionUnavailableError(self._manager.last_error or "No session available")

        response = await self._send(method, url, token, **kwargs)
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        logger.info("Session rejected by %s %s, refreshing", method, url)
        token = await self._manager.refresh_session()
        if token is None:
            raise SessionUnavailableError(self._manager.last_error or "No session available")
        return await self._send(method, url, token, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def _send(self, method: str, url: str, token: str, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers[SESSION_TOKEN_HEADER] = token
        if self._origin:
            headers.setdefault("Origin", self._origin)
        return await self._client.request(method, url, headers=headers, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ProtectedClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
