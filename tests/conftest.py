# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_COMMIT_SEED", "true")

from fairseed.api.v1.dependencies import create_operator_token, create_player_token
from fairseed.db.session import Base
from fairseed.db.session import get_db as app_get_session
from fairseed.main import app as fastapi_app
from fairseed.services import FairnessService, SeedRegistry

TEST_DB_URL = "sqlite://"
TEST_CLIENT_SEED = "player-xyz"


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


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def session_factory(engine: Engine, db_session: Session) -> sessionmaker[Session]:
    """Sessions on the test engine; tables are cleared with ``db_session``."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def registry() -> SeedRegistry:
    """A registry with no committed server seed and no store."""
    return SeedRegistry()


@pytest.fixture()
def fairness_service(app: FastAPI) -> Iterator[FairnessService]:
    """Install a fresh service with one committed seed on the application."""
    service = FairnessService(SeedRegistry())
    service.ensure_active_seed()
    previous = getattr(app.state, "fairness_service", None)
    app.state.fairness_service = service
    try:
        yield service
    finally:
        app.state.fairness_service = previous


@pytest.fixture()
def client(app: FastAPI, fairness_service: FairnessService) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def operator_headers() -> dict[str, str]:
    token = create_operator_token("test-operator")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def new_player_headers(fairness_service: FairnessService) -> Callable[..., dict[str, str]]:
    """Open a session on the installed service and return headers carrying its token."""

    def _open(client_seed: str | None = None) -> dict[str, str]:
        session_id, _ = fairness_service.open_session(client_seed)
        return {"Authorization": f"Bearer {create_player_token(session_id)}"}

    return _open


@pytest.fixture()
def player_headers(new_player_headers: Callable[..., dict[str, str]]) -> dict[str, str]:
    return new_player_headers(TEST_CLIENT_SEED)
