"""Client-side owner of the current session token.

The manager keeps at most one session record, judges its freshness against a
safety buffer, and mints a replacement through a :class:`SessionIssuer` when
needed. Concurrent callers that find no fresh token share one in-flight
issuance instead of each requesting their own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from menu_lens.client.issuer import SessionIssueError, SessionIssuer
from menu_lens.client.storage import ClientSessionRecord, SessionRecordStore, SessionStorage
from menu_lens.utils.time import Clock, now_ms

logger = logging.getLogger(__name__)

EXPIRY_BUFFER_MS = 5 * 60 * 1000

ErrorCallback = Callable[[str], None]


class SessionManager:
    """Single source of truth for the client's session token."""

    def __init__(
        self,
        issuer: SessionIssuer,
        storage: SessionStorage | None = None,
        *,
        clock: Clock | None = None,
        buffer_ms: int = EXPIRY_BUFFER_MS,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._issuer = issuer
        self._store = SessionRecordStore(storage)
        self._clock = clock or now_ms
        self._buffer_ms = buffer_ms
        self._on_error = on_error
        self._record: ClientSessionRecord | None = None
        self._inflight: asyncio.Task[ClientSessionRecord | None] | None = None
        self._inflight_may_adopt = False
        self._last_issued: ClientSessionRecord | None = None
        self.last_error: str | None = None

    @property
    def token(self) -> str | None:
        return self._record.token if self._record else None

    @property
    def session_id(self) -> str | None:
        return self._record.session_id if self._record else None

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def is_fresh(self) -> bool:
        """Return True if the held record outlives the expiry buffer."""
        return self._record is not None and self._record.is_fresh(self._clock(), self._buffer_ms)

    async def ensure_valid_session(self) -> str | None:
        """Return a usable token, issuing a new session if the current one is stale.

        Returns ``None`` when issuance fails; the failure is available through
        :attr:`last_error`.
        """
        if self.is_fresh():
            return self.token
        if not self.is_loading:
            logger.info("Session expired or missing, creating new session")
        self._discard()
        record = await self._join(reuse_stored=False)
        return record.token if record else None

    async def initialize_session(self) -> str | None:
        """Adopt a still-fresh stored record, or issue a new one."""
        if self.is_fresh():
            return self.token
        record = await self._join(reuse_stored=True)
        return record.token if record else None

    async def refresh_session(self) -> str | None:
        """Discard the current record unconditionally and obtain a new one.

        Never returns the discarded token: an in-flight initialization that
        could still adopt the stored record is followed by a fresh issuance.
        """
        self._discard()
        record = await self._join(reuse_stored=False)
        return record.token if record else None

    def clear(self) -> None:
        """Forget the current session without issuing a new one."""
        self._discard()

    def _discard(self) -> None:
        self._store.clear()
        self._record = None

    async def _join(self, *, reuse_stored: bool) -> ClientSessionRecord | None:
        current = self._inflight
        if current is None or current.done():
            current = self._start(reuse_stored)
        elif not reuse_stored and self._inflight_may_adopt:
            current = self._start(reuse_stored=False, after=current)
        return await asyncio.shield(current)

    def _start(
        self,
        reuse_stored: bool,
        after: asyncio.Task[ClientSessionRecord | None] | None = None,
    ) -> asyncio.Task[ClientSessionRecord | None]:
        task = asyncio.get_running_loop().create_task(self._initialize(reuse_stored, after))
        task.add_done_callback(self._release)
        self._inflight = task
        self._inflight_may_adopt = reuse_stored
        return task

    def _release(self, task: asyncio.Task[ClientSessionRecord | None]) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _initialize(
        self,
        reuse_stored: bool,
        after: asyncio.Task[ClientSessionRecord | None] | None = None,
    ) -> ClientSessionRecord | None:
        if after is not None:
            # A record issued by the preceding task postdates the discard.
            await asyncio.wait({after})
            if not after.cancelled() and after.exception() is None:
                previous = after.result()
                if previous is not None and previous is self._last_issued:
                    return previous

        self.last_error = None
        if reuse_stored:
            stored = self._load_fresh_stored()
            if stored is not None:
                self._record = stored
                return stored

        if asyncio.current_task() is self._inflight:
            self._inflight_may_adopt = False
        try:
            credentials = await self._issuer.issue()
        except SessionIssueError as err:
            self._fail(str(err) or "Failed to initialize session")
            return None
        except Exception as err:
            logger.exception("Session issuer raised unexpectedly")
            self._fail(str(err) or type(err).__name__)
            return None

        record = ClientSessionRecord(
            session_id=credentials.session_id,
            token=credentials.token,
            expires_at=self._clock() + credentials.expires_in * 1000,
        )
        self._store.save(record)
        self._record = record
        self._last_issued = record
        return record

    def _load_fresh_stored(self) -> ClientSessionRecord | None:
        record = self._store.load()
        if record is None:
            return None
        if record.is_fresh(self._clock(), self._buffer_ms):
            return record
        self._store.clear()
        return None

    def _fail(self, message: str) -> None:
        logger.error("Session initialization error: %s", message)
        self._record = None
        self.last_error = message
        if self._on_error is not None:
            self._on_error(message)
