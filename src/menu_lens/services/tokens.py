"""Session token issuance and verification.

A session token binds an opaque session identifier to the origin that
requested it for a fixed lifetime. Tokens are stateless: the server keeps no
record of issued tokens, so validity depends only on the signature and the
embedded ``exp`` and ``origin`` claims.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import asdict, dataclass
from typing import Any

from menu_lens.core.errors import (
    OriginNotAllowed,
    RateLimited,
    ServerMisconfigured,
    VerificationFailure,
    error_for_failure,
)
from menu_lens.core.logger import mask_ip
from menu_lens.core.origins import OriginPolicy
from menu_lens.core.security import b64url_decode, sign_token, split_token, verify_mac
from menu_lens.core.settings import DAY_MS, Settings, settings
from menu_lens.services.rate_limit import RateLimitPolicy, session_issue_policy
from menu_lens.utils.time import Clock, now_ms

logger = logging.getLogger(__name__)

_PAYLOAD_FIELDS: dict[str, type] = {"sid": str, "origin": str, "iat": int, "exp": int}


@dataclass(frozen=True)
class TokenConfig:
    """Explicit signing configuration passed to the issuer and verifier."""

    signing_secret: str | None
    origin_policy: OriginPolicy
    token_ttl_ms: int = DAY_MS

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            signing_secret=settings.session_signing_secret,
            origin_policy=OriginPolicy.from_lists(
                settings.allowed_origins,
                settings.allowed_origin_patterns,
                settings.default_origin,
            ),
            token_ttl_ms=settings.session_token_ttl_ms,
        )

    def require_secret(self) -> str:
        """Return the signing secret or fail loudly when it is absent."""
        if not self.signing_secret:
            logger.error("SESSION_SIGNING_SECRET not configured")
            raise ServerMisconfigured("SESSION_SIGNING_SECRET not configured")
        return self.signing_secret


@dataclass(frozen=True)
class SessionPayload:
    """Claims carried inside a session token."""

    sid: str
    origin: str
    iat: int
    exp: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_bytes(cls, raw: bytes) -> SessionPayload:
        """Parse payload bytes, raising ValueError on any structural problem."""
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            raise ValueError(f"Payload is not JSON: {err}") from err
        if not isinstance(data, dict):
            raise ValueError("Payload must be a JSON object")
        for name, expected in _PAYLOAD_FIELDS.items():
            value = data.get(name)
            # bool is an int subclass; reject it for timestamps.
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ValueError(f"Payload field {name!r} missing or invalid")
        return cls(sid=data["sid"], origin=data["origin"], iat=data["iat"], exp=data["exp"])


@dataclass(frozen=True)
class IssuedSession:
    """Result of a successful issuance."""

    session_id: str
    token: str
    expires_in_seconds: int
    payload: SessionPayload


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying a presented token."""

    valid: bool
    payload: SessionPayload | None = None
    reason: VerificationFailure | None = None

    @classmethod
    def ok(cls, payload: SessionPayload) -> VerificationResult:
        return cls(valid=True, payload=payload)

    @classmethod
    def fail(cls, reason: VerificationFailure) -> VerificationResult:
        return cls(valid=False, reason=reason)


def generate_session_id(clock: Clock = now_ms) -> str:
    """Return a time-prefixed identifier that is unique per issuance."""
    return f"{clock()}-{secrets.token_hex(4)}"


class TokenIssuer:
    """Mints signed, time-boxed, origin-bound session tokens."""

    def __init__(
        self,
        config: TokenConfig,
        rate_policy: RateLimitPolicy,
        clock: Clock | None = None,
    ) -> None:
        self._config = config
        self._rate_policy = rate_policy
        self._clock = clock or now_ms

    @property
    def config(self) -> TokenConfig:
        return self._config

    def issue(self, request_origin: str | None, client_ip: str) -> IssuedSession:
        """Issue a token for ``request_origin`` on behalf of ``client_ip``.

        Raises:
            ServerMisconfigured: If the signing secret is absent.
            OriginNotAllowed: If the origin fails the allow-list.
            RateLimited: If the IP exhausted its issuance window.
        """
        secret = self._config.require_secret()

        if not request_origin or not self._config.origin_policy.is_allowed(request_origin):
            logger.warning("Rejected session request from origin %r", request_origin)
            raise OriginNotAllowed(f"Origin not allowed: {request_origin!r}")

        if not self._rate_policy.check(client_ip):
            raise RateLimited(f"Issuance limit reached for {mask_ip(client_ip)}")

        now = self._clock()
        payload = SessionPayload(
            sid=generate_session_id(self._clock),
            origin=request_origin,
            iat=now,
            exp=now + self._config.token_ttl_ms,
        )
        token = sign_token(secret, payload.to_dict())

        logger.info("Session created for IP: %s", mask_ip(client_ip))
        return IssuedSession(
            session_id=payload.sid,
            token=token,
            expires_in_seconds=self._config.token_ttl_ms // 1000,
            payload=payload,
        )


class TokenVerifier:
    """Validates tokens minted by :class:`TokenIssuer` with the same secret."""

    def __init__(self, config: TokenConfig, clock: Clock | None = None) -> None:
        self._config = config
        self._clock = clock or now_ms

    def verify(self, token: str, request_origin: str | None = None) -> VerificationResult:
        """Check structure, expiry, origin binding and signature, in that order.

        Never raises for a bad token; only a missing secret is fatal.
        """
        secret = self._config.require_secret()

        try:
            payload_bytes, signature_b64 = split_token(token)
            payload = SessionPayload.from_bytes(payload_bytes)
        except ValueError as err:
            logger.debug("Malformed session token: %s", err)
            return VerificationResult.fail(VerificationFailure.MALFORMED)

        if self._clock() > payload.exp:
            return VerificationResult.fail(VerificationFailure.EXPIRED)

        if request_origin and payload.origin != request_origin:
            return VerificationResult.fail(VerificationFailure.ORIGIN_MISMATCH)

        try:
            signature = b64url_decode(signature_b64)
        except ValueError:
            return VerificationResult.fail(VerificationFailure.BAD_SIGNATURE)
        if not verify_mac(secret, payload_bytes, signature):
            return VerificationResult.fail(VerificationFailure.BAD_SIGNATURE)

        return VerificationResult.ok(payload)

    def require(self, token: str, request_origin: str | None = None) -> SessionPayload:
        """Return the verified payload or raise the matching token error."""
        result = self.verify(token, request_origin)
        if result.payload is None:
            reason = result.reason or VerificationFailure.MALFORMED
            logger.warning("Invalid session token: %s", reason.value)
            raise error_for_failure(reason)
        return result.payload


def get_token_config() -> TokenConfig:
    """Return signing configuration built from application settings."""
    return TokenConfig.from_settings(settings)


def get_token_issuer() -> TokenIssuer:
    """Return an issuer guarded by the shared issuance rate limit."""
    return TokenIssuer(get_token_config(), session_issue_policy())


def get_token_verifier() -> TokenVerifier:
    """Return a verifier sharing the issuer's signing secret."""
    return TokenVerifier(get_token_config())
