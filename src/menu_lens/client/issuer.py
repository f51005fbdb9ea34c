"""HTTP transport for requesting new session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

SESSIONS_PATH = "/api/v1/sessions"
DEFAULT_TIMEOUT_SECONDS = 10.0


class SessionIssueError(RuntimeError):
    """Raised when a new session could not be obtained."""


@dataclass(frozen=True)
class IssuedCredentials:
    """Fields returned by the session endpoint."""

    session_id: str
    token: str
    expires_in: int  # seconds


class SessionIssuer(Protocol):
    async def issue(self) -> IssuedCredentials: ...


class HttpSessionIssuer:
    """Calls ``POST /api/v1/sessions`` on behalf of a browser origin."""

    def __init__(
        self,
        base_url: str,
        origin: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._origin = origin
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def issue(self) -> IssuedCredentials:
        """Request a session.

        Raises:
            SessionIssueError: On transport failure, a non-2xx status, or a
                response body without the expected fields.
        """
        try:
            response = await self._client.post(SESSIONS_PATH, headers={"Origin": self._origin})
        except httpx.HTTPError as err:
            raise SessionIssueError(f"Session request failed: {err}") from err

        if response.is_error:
            raise SessionIssueError(_error_message(response))

        try:
            data = response.json()
        except ValueError as err:
            raise SessionIssueError("Invalid session response") from err
        return _parse_credentials(data)

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"Session request failed with status {response.status_code}"


def _parse_credentials(data: Any) -> IssuedCredentials:
    if not isinstance(data, dict) or not data.get("success"):
        raise SessionIssueError("Invalid session response")
    session_id = data.get("sessionId")
    token = data.get("token")
    expires_in = data.get("expiresIn")
    if not isinstance(session_id, str) or not isinstance(token, str) or not session_id or not token:
        raise SessionIssueError("Invalid session response")
    if not isinstance(expires_in, int) or isinstance(expires_in, bool):
        raise SessionIssueError("Invalid session response")
    return IssuedCredentials(session_id=session_id, token=token, expires_in=expires_in)
