"""
Shared pytest fixtures for the Mini Drive test suite.

Every test gets its own SQLite file under ``tmp_path`` and explicitly built
``Settings``; nothing reads the developer's environment or ``.env``.
"""

import os

# app.main builds a module-level app on import; keep it off the working directory
os.environ.setdefault("MINIDRIVE_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.models.database import build_engine, build_session_factory, init_db
from app.services.accounts import AccountStore
from app.services.repository import FileRepository
from app.services.sessions import SessionAuthenticator
from app.services.transfers import TransferOrchestrator

MAX_FILE_SIZE = 16


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite:///{(tmp_path / 'minidrive.db').as_posix()}",
        secret_key="test-secret-key-with-enough-length-for-hs256",
        session_ttl_minutes=5,
        max_file_size=MAX_FILE_SIZE,
        upload_chunk_size=4,
        public_base_url="http://drive.test",
        log_level="DEBUG",
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def accounts(db) -> AccountStore:
    return AccountStore(db)


@pytest.fixture
def repository(db) -> FileRepository:
    return FileRepository(db)


@pytest.fixture
def authenticator(settings) -> SessionAuthenticator:
    return SessionAuthenticator(settings)


@pytest.fixture
def transfers(settings, repository, accounts) -> TransferOrchestrator:
    return TransferOrchestrator(settings, repository, accounts)


@pytest.fixture
def alice(accounts):
    return accounts.register("alice", "alice@x.com", "secret123")


@pytest.fixture
def bob(accounts):
    return accounts.register("bob", "bob@x.com", "hunter22")


# =============================================================================
# HTTP fixtures
# =============================================================================

@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def register_and_login(client, username: str, email: str, password: str = "secret123") -> dict:
    """Register an account over HTTP and return bearer auth headers for it."""
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/auth/login", json={"identifier": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def alice_headers(client):
    return register_and_login(client, "alice", "alice@x.com")


@pytest.fixture
def bob_headers(client):
    return register_and_login(client, "bob", "bob@x.com")
