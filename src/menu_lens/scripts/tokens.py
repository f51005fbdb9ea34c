# src/menu_lens/scripts/tokens.py
"""Mint or inspect session tokens with the configured signing secret.

Usage:
    python -m menu_lens.scripts.tokens issue --origin http://localhost:5173
    python -m menu_lens.scripts.tokens inspect <token> [--origin ORIGIN]
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence

from menu_lens.core.errors import SessionError
from menu_lens.core.security import split_token
from menu_lens.services.rate_limit import MemoryWindowStore, SlidingWindowRateLimiter, session_issue_policy
from menu_lens.services.tokens import TokenConfig, TokenIssuer, TokenVerifier, get_token_config

CLI_CLIENT_IP = "cli"


def issue_token(config: TokenConfig, origin: str) -> dict[str, object]:
    """Issue a token for ``origin`` outside of the shared issuance limit."""
    limiter = SlidingWindowRateLimiter(MemoryWindowStore())
    issued = TokenIssuer(config, session_issue_policy(limiter)).issue(origin, CLI_CLIENT_IP)
    return {
        "sessionId": issued.session_id,
        "token": issued.token,
        "expiresIn": issued.expires_in_seconds,
        "expiresAt": issued.payload.exp,
    }


def inspect_token(config: TokenConfig, token: str, origin: str | None) -> dict[str, object]:
    """Verify ``token`` and report its claims alongside the verdict."""
    result = TokenVerifier(config).verify(token, origin)
    report: dict[str, object] = {
        "valid": result.valid,
        "reason": result.reason.value if result.reason else None,
    }
    if result.payload is not None:
        report["payload"] = result.payload.to_dict()
    else:
        try:
            payload_bytes, _ = split_token(token)
            report["payload"] = json.loads(payload_bytes)
        except ValueError:
            report["payload"] = None
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Menu Lens session token utility")
    subparsers = parser.add_subparsers(dest="command", required=True)

    issue = subparsers.add_parser("issue", help="Mint a token for an allowed origin")
    issue.add_argument("--origin", required=True, help="Origin the token is bound to")

    inspect = subparsers.add_parser("inspect", help="Verify a token and print its claims")
    inspect.add_argument("token")
    inspect.add_argument("--origin", default=None, help="Origin to check the binding against")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_token_config()

    try:
        if args.command == "issue":
            output = issue_token(config, args.origin)
        else:
            output = inspect_token(config, args.token, args.origin)
    except SessionError as err:
        print(f"[tokens] {err}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    if args.command == "inspect" and not output["valid"]:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
