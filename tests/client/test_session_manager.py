"""Tests for the client-side session manager."""

from __future__ import annotations

import asyncio
import json

import pytest

from menu_lens.client.issuer import IssuedCredentials, SessionIssueError
from menu_lens.client.session_manager import EXPIRY_BUFFER_MS, SessionManager
from menu_lens.client.storage import SESSION_STORAGE_KEY, MemorySessionStorage

TTL_SECONDS = 24 * 60 * 60


class FakeIssuer:
    """Issues numbered sessions and can be made to fail or block."""

    def __init__(self) -> None:
        self.calls = 0
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def issue(self) -> IssuedCredentials:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return IssuedCredentials(
            session_id=f"sid-{self.calls}",
            token=f"token-{self.calls}",
            expires_in=TTL_SECONDS,
        )


@pytest.fixture()
def fake_issuer() -> FakeIssuer:
    return FakeIssuer()


@pytest.fixture()
def storage() -> MemorySessionStorage:
    return MemorySessionStorage()


@pytest.fixture()
def manager(fake_issuer, storage, clock) -> SessionManager:
    return SessionManager(fake_issuer, storage, clock=clock)


@pytest.mark.asyncio
async def test_issues_once_then_serves_cached_token(manager, fake_issuer, storage, clock) -> None:
    assert await manager.ensure_valid_session() == "token-1"
    assert await manager.ensure_valid_session() == "token-1"

    assert fake_issuer.calls == 1
    assert manager.session_id == "sid-1"
    stored = json.loads(storage.get_item(SESSION_STORAGE_KEY))
    assert stored == {"sessionId": "sid-1", "token": "token-1", "expiresAt": clock.now + TTL_SECONDS * 1000}


@pytest.mark.asyncio
async def test_reissues_once_inside_expiry_buffer(manager, fake_issuer, clock) -> None:
    await manager.ensure_valid_session()

    clock.advance(TTL_SECONDS * 1000 - EXPIRY_BUFFER_MS - 1)
    assert await manager.ensure_valid_session() == "token-1"

    clock.advance(1)
    assert await manager.ensure_valid_session() == "token-2"
    assert fake_issuer.calls == 2


@pytest.mark.asyncio
async def test_failure_returns_none_and_reports_error(fake_issuer, storage, clock) -> None:
    errors: list[str] = []
    manager = SessionManager(fake_issuer, storage, clock=clock, on_error=errors.append)
    fake_issuer.error = SessionIssueError("Too many requests. Please wait and try again.")

    assert await manager.ensure_valid_session() is None

    assert manager.token is None
    assert manager.last_error == "Too many requests. Please wait and try again."
    assert errors == ["Too many requests. Please wait and try again."]
    assert storage.get_item(SESSION_STORAGE_KEY) is None

    fake_issuer.error = None
    assert await manager.ensure_valid_session() == "token-2"
    assert manager.last_error is None


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_issuance(manager, fake_issuer) -> None:
    fake_issuer.gate = asyncio.Event()

    pending = [asyncio.create_task(manager.ensure_valid_session()) for _ in range(5)]
    pending.append(asyncio.create_task(manager.refresh_session()))
    await asyncio.sleep(0)
    assert manager.is_loading
    fake_issuer.gate.set()

    results = await asyncio.gather(*pending)

    assert results == ["token-1"] * 6
    assert fake_issuer.calls == 1
    assert not manager.is_loading


@pytest.mark.asyncio
async def test_initialize_adopts_fresh_stored_record(fake_issuer, storage, clock) -> None:
    storage.set_item(
        SESSION_STORAGE_KEY,
        json.dumps({"sessionId": "stored", "token": "stored-token", "expiresAt": clock.now + 60 * 60 * 1000}),
    )
    manager = SessionManager(fake_issuer, storage, clock=clock)

    assert await manager.initialize_session() == "stored-token"
    assert manager.session_id == "stored"
    assert fake_issuer.calls == 0


@pytest.mark.asyncio
async def test_initialize_discards_stale_stored_record(fake_issuer, storage, clock) -> None:
    storage.set_item(
        SESSION_STORAGE_KEY,
        json.dumps({"sessionId": "stored", "token": "stored-token", "expiresAt": clock.now + EXPIRY_BUFFER_MS}),
    )
    manager = SessionManager(fake_issuer, storage, clock=clock)

    assert await manager.initialize_session() == "token-1"
    assert json.loads(storage.get_item(SESSION_STORAGE_KEY))["token"] == "token-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[]", '{"sessionId": "x"}', '{"sessionId": "x", "token": "t", "expiresAt": "soon"}'])
async def test_initialize_clears_corrupt_stored_record(fake_issuer, storage, clock, raw) -> None:
    storage.set_item(SESSION_STORAGE_KEY, raw)
    manager = SessionManager(fake_issuer, storage, clock=clock)

    assert await manager.initialize_session() == "token-1"
    assert fake_issuer.calls == 1


@pytest.mark.asyncio
async def test_refresh_always_issues_new_session(manager, fake_issuer) -> None:
    assert await manager.ensure_valid_session() == "token-1"

    assert await manager.refresh_session() == "token-2"
    assert manager.token == "token-2"
    assert fake_issuer.calls == 2


@pytest.mark.asyncio
async def test_clear_forgets_session(manager, storage) -> None:
    await manager.ensure_valid_session()

    manager.clear()

    assert manager.token is None
    assert storage.get_item(SESSION_STORAGE_KEY) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("head_start", [0, 1, 2, 3])
async def test_refresh_during_initialize_never_returns_discarded_token(
    fake_issuer, storage, clock, head_start
) -> None:
    storage.set_item(
        SESSION_STORAGE_KEY,
        json.dumps({"sessionId": "old", "token": "rejected", "expiresAt": clock.now + 60 * 60 * 1000}),
    )
    manager = SessionManager(fake_issuer, storage, clock=clock)

    initializing = asyncio.create_task(manager.initialize_session())
    for _ in range(head_start):
        await asyncio.sleep(0)

    refreshed = await manager.refresh_session()
    await initializing

    assert refreshed == "token-1"
    assert manager.token == "token-1"
    assert fake_issuer.calls == 1
    assert json.loads(storage.get_item(SESSION_STORAGE_KEY))["token"] == "token-1"


@pytest.mark.asyncio
async def test_unexpected_issuer_error_is_reported_once(fake_issuer, storage, clock) -> None:
    errors: list[str] = []
    manager = SessionManager(fake_issuer, storage, clock=clock, on_error=errors.append)
    fake_issuer.error = RuntimeError("socket closed")

    results = await asyncio.gather(*(manager.ensure_valid_session() for _ in range(3)))

    assert results == [None, None, None]
    assert manager.last_error == "socket closed"
    assert errors == ["socket closed"]
    assert fake_issuer.calls == 1
