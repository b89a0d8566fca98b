from __future__ import annotations

import time
from datetime import timedelta

import pytest
from jose import jwt

from nulltasker.core.config import Settings, resolve_secret_key
from nulltasker.core.constants import validate_password_rules
from nulltasker.core.errors import InvalidTokenError
from nulltasker.core.security import (
    TokenService,
    configure_password_hashing,
    get_password_hash,
    verify_password,
)
from nulltasker.main import create_app
from nulltasker.models import User, UserRole


def _user() -> User:
    return User(
        id="user_1",
        display_name="alice",
        email="alice@example.com",
        password="x",
        role=UserRole.PROJECT_ADMIN,
        projects=["default", "project_2"],
    )


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key="unit-test-secret")


def test_access_token_carries_identity_claims(tokens: TokenService) -> None:
    claims = tokens.verify(tokens.issue_access_token(_user()))

    assert claims["id"] == "user_1"
    assert claims["displayName"] == "alice"
    assert claims["email"] == "alice@example.com"
    assert claims["role"] == "project_admin"
    assert claims["projects"] == ["default", "project_2"]
    assert claims["exp"] - claims["iat"] == 3600
    assert "type" not in claims


def test_refresh_token_only_carries_id_and_marker(tokens: TokenService) -> None:
    claims = tokens.verify_refresh(tokens.issue_refresh_token("user_1"))

    assert set(claims) == {"id", "type", "iat", "exp"}
    assert claims["type"] == "refresh"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_remember_me_extends_refresh_lifetime(tokens: TokenService) -> None:
    claims = tokens.verify(tokens.issue_refresh_token("user_1", remember_me=True))
    assert claims["exp"] - claims["iat"] == 30 * 24 * 3600


def test_expired_token_fails_verification(tokens: TokenService) -> None:
    token = tokens.issue_access_token(_user(), expires_delta=timedelta(seconds=-5))
    with pytest.raises(InvalidTokenError):
        tokens.verify(token)


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not-a-jwt",
        TokenService(secret_key="another-secret").issue_access_token(_user()),
        jwt.encode({"displayName": "no id", "exp": int(time.time()) + 60}, "unit-test-secret"),
    ],
)
def test_bad_tokens_fail_uniformly(tokens: TokenService, token: str) -> None:
    with pytest.raises(InvalidTokenError) as excinfo:
        tokens.verify(token)
    assert excinfo.value.code == "INVALID_TOKEN"
    assert excinfo.value.http_status == 401


def test_access_token_is_not_a_refresh_token(tokens: TokenService) -> None:
    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh(tokens.issue_access_token(_user()))


def test_token_service_from_settings() -> None:
    config = Settings(_env_file=None, ACCESS_TOKEN_EXPIRE_MINUTES=5, REFRESH_TOKEN_EXPIRE_DAYS=2)
    service = TokenService.from_settings(config, "secret")

    claims = service.verify(service.issue_access_token(_user()))
    assert claims["exp"] - claims["iat"] == 300
    refresh = service.verify(service.issue_refresh_token("user_1"))
    assert refresh["exp"] - refresh["iat"] == 2 * 24 * 3600


def test_password_hash_roundtrip() -> None:
    hashed = get_password_hash("Passw0rd!")

    assert hashed != "Passw0rd!"
    assert hashed.startswith("$2")
    assert verify_password("Passw0rd!", hashed)
    assert not verify_password("passw0rd!", hashed)


def test_app_config_sets_bcrypt_cost(tmp_path) -> None:
    config = Settings(_env_file=None, SECRET_KEY="s", DATA_DIR=str(tmp_path), BCRYPT_ROUNDS=5)
    create_app(config)
    assert get_password_hash("Passw0rd!").startswith("$2b$05$")

    configure_password_hashing(Settings(_env_file=None, BCRYPT_ROUNDS=4))
    hashed = get_password_hash("Passw0rd!")
    assert hashed.startswith("$2b$04$")
    assert verify_password("Passw0rd!", hashed)


@pytest.mark.parametrize("stored", [None, "", "plaintext-not-a-hash"])
def test_verify_password_rejects_missing_or_corrupt_hash(stored) -> None:
    assert verify_password("Passw0rd!", stored) is False


@pytest.mark.parametrize("password", ["Passw0rd!", "Abcdefg1", "a_B-c1@$!%*?&"])
def test_password_rules_accept(password: str) -> None:
    assert validate_password_rules(password) == password


@pytest.mark.parametrize(
    "password",
    ["Short1", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere", "Spaces are 1 Bad", "A1" + "a" * 127],
)
def test_password_rules_reject(password: str) -> None:
    with pytest.raises(ValueError):
        validate_password_rules(password)


def test_secret_key_required_in_production() -> None:
    with pytest.raises(RuntimeError):
        resolve_secret_key(Settings(_env_file=None, ENV="production", SECRET_KEY=None))


def test_secret_key_generated_in_development() -> None:
    config = Settings(_env_file=None, ENV="development", SECRET_KEY=None)

    first = resolve_secret_key(config)
    second = resolve_secret_key(config)
    assert len(first) == 128
    assert first != second


def test_configured_secret_key_is_used() -> None:
    assert resolve_secret_key(Settings(_env_file=None, SECRET_KEY="fixed")) == "fixed"
