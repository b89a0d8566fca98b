from __future__ import annotations

from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from nulltasker.core.config import Settings
from nulltasker.core.security import get_password_hash
from nulltasker.db.init_db import create_bootstrap_admin
from nulltasker.main import create_app

API = "/api/v1"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin1234"
ALICE = {"displayName": "alice", "email": "alice@example.com", "password": "Passw0rd!"}
BOB = {"displayName": "bob", "email": "bob@example.com", "password": "Secr3tPass"}


@pytest.fixture(params=["sqlite", "json"])
def backend(request) -> str:
    return request.param


@pytest.fixture
def app_settings(tmp_path, backend) -> Settings:
    return Settings(
        _env_file=None,
        ENV="test",
        LOG_LEVEL="WARNING",
        SECRET_KEY="test-secret-key",
        STORAGE_BACKEND=backend,
        DATA_DIR=str(tmp_path / "data"),
        BACKUP_DIR=str(tmp_path / "backups"),
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
def client(app_settings) -> Iterator[TestClient]:
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def storage(client):
    return client.app.state.storage


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, user: Dict[str, str]) -> dict:
    response = client.post(f"{API}/register", json=user)
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, email: str, password: str, remember_me: bool = False) -> dict:
    response = client.post(
        f"{API}/login",
        json={"email": email, "password": password, "rememberMe": remember_me},
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def admin_headers(client, storage) -> Dict[str, str]:
    create_bootstrap_admin(storage, ADMIN_EMAIL, get_password_hash(ADMIN_PASSWORD))
    return auth_headers(login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["accessToken"])


@pytest.fixture
def alice(client) -> dict:
    return register(client, ALICE)


@pytest.fixture
def alice_headers(client, alice) -> Dict[str, str]:
    return auth_headers(login(client, ALICE["email"], ALICE["password"])["accessToken"])


@pytest.fixture
def bob(client) -> dict:
    return register(client, BOB)


@pytest.fixture
def bob_headers(client, bob) -> Dict[str, str]:
    return auth_headers(login(client, BOB["email"], BOB["password"])["accessToken"])
