"""
Storefront Backend — Password Hashing & Session Tokens
========================================================

What:  The two opaque primitives AuthService is built on, plus the explicit
       configuration struct it is constructed with.

Contracts:
    PasswordHasher.hash(password) -> str
        One-way salted bcrypt hash at the configured cost (10 by default).
    PasswordHasher.verify(password, hashed) -> bool
        False for a mismatch or a malformed hash; never raises.
    TokenSigner.sign(claims) -> str
        HS256 JWT carrying the claims plus `iat` and `exp`.
    TokenSigner.verify(token) -> dict
        Decoded claims; raises UnauthorizedError if the signature is invalid
        or the token has expired.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.config import Settings
from app.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthConfig:
    """
    Everything AuthService needs to know about its environment.

    Built once from Settings at startup and handed to the service, so tests
    can construct a service with any secret/expiry without touching env vars.
    """

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_expires_minutes: int = 60 * 24
    bcrypt_rounds: int = 10
    default_shop_id: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            token_expires_minutes=settings.jwt_expires_minutes,
            bcrypt_rounds=settings.bcrypt_rounds,
            default_shop_id=settings.default_shop_id,
        )


class PasswordHasher:
    """bcrypt wrapper. Hashes are stored as UTF-8 strings."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed hash (e.g. legacy row); treat as a failed login
            logger.warning("Stored password hash could not be parsed")
            return False


class TokenSigner:
    """Signs and verifies session tokens with python-jose."""

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60 * 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def sign(self, claims: Dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        payload["iat"] = now
        payload["exp"] = now + timedelta(minutes=self.expires_minutes)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise UnauthorizedError(message="Session token has expired")
        except JWTError:
            raise UnauthorizedError(message="Invalid session token")
