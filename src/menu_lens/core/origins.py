"""Origin allow-list and CORS header derivation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type, x-session-token"
CORS_ALLOW_METHODS = "GET, POST, OPTIONS"


@dataclass(frozen=True)
class OriginPolicy:
    """Exact origins plus regex patterns (e.g. wildcard preview subdomains)."""

    exact: frozenset[str]
    patterns: tuple[re.Pattern[str], ...] = field(default_factory=tuple)
    default_origin: str = ""

    @classmethod
    def from_lists(
        cls,
        exact: Iterable[str],
        patterns: Iterable[str] = (),
        default_origin: str | None = None,
    ) -> OriginPolicy:
        exact_set = frozenset(exact)
        compiled = tuple(re.compile(pattern) for pattern in patterns)
        fallback = default_origin or next(iter(sorted(exact_set)), "")
        return cls(exact=exact_set, patterns=compiled, default_origin=fallback)

    def is_allowed(self, origin: str | None) -> bool:
        """Return True if ``origin`` is on the allow-list."""
        if not origin:
            return False
        if origin in self.exact:
            return True
        return any(pattern.fullmatch(origin) for pattern in self.patterns)

    def cors_headers(self, origin: str | None) -> dict[str, str]:
        """Return CORS headers echoing ``origin`` only when it is allowed."""
        allow_origin = origin if origin and self.is_allowed(origin) else self.default_origin
        return {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Vary": "Origin",
        }
