"""Session issuance endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from menu_lens.api.v1.dependencies import ClientIpDep, TokenIssuerDep
from menu_lens.core.errors import SessionError
from menu_lens.schemas.session import ErrorResponse, SessionResponse

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    "",
    summary="Create a signed, origin-bound session token",
    response_model=SessionResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Origin not allowed"},
        429: {"model": ErrorResponse, "description": "Too many session requests"},
        500: {"model": ErrorResponse, "description": "Server configuration error"},
    },
)
async def create_session(
    request: Request,
    client_ip: ClientIpDep,
    issuer: TokenIssuerDep,
) -> SessionResponse:
    """Mint a new session for the calling origin.

    The token is bound to the request's ``Origin`` header and expires after
    the configured lifetime.
    """
    try:
        issued = issuer.issue(request.headers.get("origin"), client_ip)
    except SessionError as err:
        raise HTTPException(status_code=err.status_code, detail=err.public_message) from err

    return SessionResponse(
        session_id=issued.session_id,
        token=issued.token,
        expires_in=issued.expires_in_seconds,
    )
