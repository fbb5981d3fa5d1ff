# tests/conftest.py

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

PASSWORD = "secret1"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Backend settings on a throwaway SQLite file; cheap bcrypt rounds keep tests fast."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tasks.db'}",
        jwt_secret="test-secret",
        environment="test",
        bcrypt_rounds=4,
    )


@pytest.fixture()
def client(settings: Settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def db(client: TestClient):
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def signup(client: TestClient, email: str, password: str = PASSWORD) -> str:
    res = client.post("/auth/signup", json={"email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()["data"]["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice(client: TestClient) -> dict:
    return bearer(signup(client, "alice@example.com"))


@pytest.fixture()
def bob(client: TestClient) -> dict:
    return bearer(signup(client, "bob@example.com"))
