# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

TEST_SECRET = "test-signing-secret-0123456789abcdef"

os.environ["SESSION_SIGNING_SECRET"] = TEST_SECRET
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

from menu_lens.api.v1.dependencies import (  # noqa: E402
    get_rate_limiter_dep,
    get_token_issuer_dep,
    get_token_verifier_dep,
)
from menu_lens.core.origins import OriginPolicy  # noqa: E402
from menu_lens.db.session import Base  # noqa: E402
from menu_lens.db.session import get_db as app_get_session  # noqa: E402
from menu_lens.main import app as fastapi_app  # noqa: E402
from menu_lens.services.rate_limit import SlidingWindowRateLimiter, session_issue_policy  # noqa: E402
from menu_lens.services.tokens import TokenConfig, TokenIssuer, TokenVerifier  # noqa: E402

TEST_DB_URL = "sqlite://"
ALLOWED_ORIGIN = "http://localhost:5173"
OTHER_ALLOWED_ORIGIN = "http://localhost:8080"
DEFAULT_ORIGIN = "https://handwrite-to-taste.lovable.app"
START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def token_config() -> TokenConfig:
    return TokenConfig(
        signing_secret=TEST_SECRET,
        origin_policy=OriginPolicy.from_lists(
            [ALLOWED_ORIGIN, OTHER_ALLOWED_ORIGIN],
            [r"^https://[\w-]+\.lovable\.app$"],
            DEFAULT_ORIGIN,
        ),
    )


@pytest.fixture()
def limiter(clock: FakeClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(clock=clock)


@pytest.fixture()
def issuer(
    token_config: TokenConfig, limiter: SlidingWindowRateLimiter, clock: FakeClock
) -> TokenIssuer:
    return TokenIssuer(token_config, session_issue_policy(limiter), clock=clock)


@pytest.fixture()
def verifier(token_config: TokenConfig, clock: FakeClock) -> TokenVerifier:
    return TokenVerifier(token_config, clock=clock)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    issuer: TokenIssuer,
    verifier: TokenVerifier,
    limiter: SlidingWindowRateLimiter,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_token_issuer_dep] = lambda: issuer
    app.dependency_overrides[get_token_verifier_dep] = lambda: verifier
    app.dependency_overrides[get_rate_limiter_dep] = lambda: limiter
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def session_token(issuer: TokenIssuer) -> str:
    """A valid token bound to ``ALLOWED_ORIGIN``."""
    return issuer.issue(ALLOWED_ORIGIN, "198.51.100.7").token


@pytest.fixture()
def auth_headers(session_token: str) -> dict[str, str]:
    return {"x-session-token": session_token, "Origin": ALLOWED_ORIGIN}
