"""Schemas for session issuance."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SessionResponse(BaseModel):
    """Body returned by a successful session issuance."""

    success: bool = True
    session_id: str = Field(..., alias="sessionId")
    token: str
    expires_in: int = Field(..., alias="expiresIn", description="Token lifetime in seconds")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Uniform error body."""

    error: str
