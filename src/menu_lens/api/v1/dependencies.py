"""Shared API dependencies for session authentication and rate limiting."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from menu_lens.core.errors import (
    AUTH_REQUIRED_MESSAGE,
    NOT_AUTHORIZED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SERVER_CONFIG_MESSAGE,
    InvalidSessionToken,
    ServerMisconfigured,
)
from menu_lens.db.session import get_db
from menu_lens.services.history import HistoryService, get_history_service
from menu_lens.services.rate_limit import SlidingWindowRateLimiter, api_policy, get_rate_limiter
from menu_lens.services.tokens import (
    SessionPayload,
    TokenIssuer,
    TokenVerifier,
    get_token_issuer,
    get_token_verifier,
)

logger = logging.getLogger(__name__)

SESSION_TOKEN_HEADER = "x-session-token"

# Type alias for database session dependency
DbDep = Annotated[Session, Depends(get_db)]


def get_token_issuer_dep() -> TokenIssuer:
    return get_token_issuer()


def get_token_verifier_dep() -> TokenVerifier:
    return get_token_verifier()


def get_rate_limiter_dep() -> SlidingWindowRateLimiter:
    return get_rate_limiter()


def get_history_service_dep(db: DbDep) -> HistoryService:
    return get_history_service(db)


TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer_dep)]
TokenVerifierDep = Annotated[TokenVerifier, Depends(get_token_verifier_dep)]
RateLimiterDep = Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter_dep)]
HistoryServiceDep = Annotated[HistoryService, Depends(get_history_service_dep)]


def get_client_ip(request: Request) -> str:
    """Return the originating client IP, honouring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


ClientIpDep = Annotated[str, Depends(get_client_ip)]


def get_current_session(
    request: Request,
    verifier: TokenVerifierDep,
    session_token: Annotated[str | None, Header(alias=SESSION_TOKEN_HEADER)] = None,
) -> SessionPayload:
    """Verify the ``x-session-token`` header against the request origin.

    Raises:
        HTTPException: 401 when the token is missing or invalid, 500 when the
            signing secret is not configured.
    """
    if not session_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REQUIRED_MESSAGE,
        )
    try:
        return verifier.require(session_token, request.headers.get("origin"))
    except InvalidSessionToken as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=err.public_message,
        ) from err
    except ServerMisconfigured as err:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SERVER_CONFIG_MESSAGE,
        ) from err


CurrentSessionDep = Annotated[SessionPayload, Depends(get_current_session)]


def rate_limited_session(namespace: str) -> Callable[..., SessionPayload]:
    """Build a dependency that verifies the session, then applies the
    per-endpoint API rate limit under ``namespace``.
    """

    def _dependency(
        session: CurrentSessionDep,
        client_ip: ClientIpDep,
        limiter: RateLimiterDep,
    ) -> SessionPayload:
        if not api_policy(namespace, limiter).check(client_ip):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=RATE_LIMITED_MESSAGE,
            )
        return session

    return _dependency


def resolve_owner(session: SessionPayload, claimed_session_id: str | None) -> str:
    """Return the session id a write should be attributed to.

    An explicitly supplied id must match the token's ``sid``.

    Raises:
        HTTPException: 403 when the claimed id belongs to another session.
    """
    if claimed_session_id is not None and claimed_session_id != session.sid:
        logger.warning("Session id in body does not match token sid")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED_MESSAGE)
    return session.sid
