"""Tab-scoped persistence for the client's current session record."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "app_session_data"


@dataclass(frozen=True)
class ClientSessionRecord:
    """The client's copy of an issued session."""

    session_id: str
    token: str
    expires_at: int  # ms since epoch

    def is_fresh(self, now: int, buffer_ms: int) -> bool:
        """Return True while the token outlives ``now`` by more than ``buffer_ms``."""
        return self.expires_at > now + buffer_ms

    def to_json(self) -> str:
        return json.dumps(
            {"sessionId": self.session_id, "token": self.token, "expiresAt": self.expires_at},
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, raw: str) -> ClientSessionRecord:
        """Decode a stored record.

        Raises:
            ValueError: If ``raw`` is not a well-formed record.
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as err:
            raise ValueError(f"Stored session is not JSON: {err}") from err
        if not isinstance(data, dict):
            raise ValueError("Stored session must be a JSON object")

        session_id = data.get("sessionId")
        token = data.get("token")
        expires_at = data.get("expiresAt")
        if not isinstance(session_id, str) or not isinstance(token, str):
            raise ValueError("Stored session is missing sessionId or token")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            raise ValueError("Stored session has an invalid expiresAt")
        return cls(session_id=session_id, token=token, expires_at=expires_at)


class SessionStorage(Protocol):
    """Key/value storage with browser ``sessionStorage`` semantics."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemorySessionStorage:
    """In-process storage that lives as long as one client ("tab")."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SessionRecordStore:
    """Reads and writes the single session record under a fixed key."""

    def __init__(self, storage: SessionStorage | None = None, key: str = SESSION_STORAGE_KEY) -> None:
        self._storage = storage if storage is not None else MemorySessionStorage()
        self._key = key

    def load(self) -> ClientSessionRecord | None:
        """Return the stored record, discarding it if it cannot be decoded."""
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None
        try:
            return ClientSessionRecord.from_json(raw)
        except ValueError as err:
            logger.warning("Discarding unreadable stored session: %s", err)
            self.clear()
            return None

    def save(self, record: ClientSessionRecord) -> None:
        self._storage.set_item(self._key, record.to_json())

    def clear(self) -> None:
        self._storage.remove_item(self._key)
