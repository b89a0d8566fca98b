"""
Security Module

Password hashing (passlib/bcrypt) and signed access/refresh token handling
(python-jose). Tokens are stateless: there is no server-side revocation list.
"""
import logging
import time
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from nulltasker.core.config import Settings, settings
from nulltasker.core.errors import InvalidTokenError
from nulltasker.models.user import User

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"

# Password hashing context; create_app re-applies the cost factor of its config
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    """Hash password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against hash."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Invalid/corrupted hash should not crash login flow.
        logger.exception("Password verification failed due to invalid hash format")
        return False


def dummy_verify() -> None:
    """Spend the same time as a real verification (unknown-user logins)."""
    pwd_context.dummy_verify()


def configure_password_hashing(config: Settings) -> None:
    """Apply the cost factor of an explicitly built Settings to the shared context."""
    pwd_context.update(bcrypt__rounds=config.BCRYPT_ROUNDS)


class TokenService:
    """
    Issues and verifies signed tokens with a single process-wide secret.

    Access tokens embed the identity/authorization claims of a user; refresh
    tokens embed only the user id and a ``type: "refresh"`` marker.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(hours=1),
        refresh_token_ttl: timedelta = timedelta(days=7),
        remember_me_ttl: timedelta = timedelta(days=30),
    ):
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.remember_me_ttl = remember_me_ttl

    @classmethod
    def from_settings(cls, config: Settings, secret_key: str) -> "TokenService":
        return cls(
            secret_key=secret_key,
            algorithm=config.ALGORITHM,
            access_token_ttl=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_ttl=timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS),
            remember_me_ttl=timedelta(days=config.REMEMBER_ME_REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def _encode(self, claims: Dict[str, Any], expires_delta: timedelta) -> str:
        to_encode = dict(claims)
        now = int(time.time())
        to_encode.update({"iat": now, "exp": now + int(expires_delta.total_seconds())})
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def issue_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create an access token carrying the user's current identity and role."""
        claims = {
            "id": user.id,
            "displayName": user.display_name,
            "email": user.email,
            "role": user.role.value if hasattr(user.role, "value") else user.role,
            "projects": list(user.projects),
        }
        return self._encode(claims, expires_delta or self.access_token_ttl)

    def issue_refresh_token(self, user_id: str, remember_me: bool = False,
                            expires_delta: Optional[timedelta] = None) -> str:
        """Create a refresh token; "remember me" extends its lifetime."""
        if expires_delta is None:
            expires_delta = self.remember_me_ttl if remember_me else self.refresh_token_ttl
        return self._encode({"id": user_id, "type": REFRESH_TOKEN_TYPE}, expires_delta)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a token.

        Signature and expiry are both checked. Every failure raises the same
        InvalidTokenError so callers cannot tell the causes apart.
        """
        if not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidTokenError()
        if not isinstance(payload, dict) or "id" not in payload:
            raise InvalidTokenError()
        return payload

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        """Verify a token and require the refresh marker."""
        payload = self.verify(token)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise InvalidTokenError("Invalid refresh token")
        return payload
