"""Security helpers for password hashing, reset tokens, and session tokens."""
from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from storefront.models.enums import Role


_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        return _password_context.hash(password)

    @staticmethod
    def verify(password: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        try:
            return _password_context.verify(password, hashed)
        except (ValueError, TypeError):
            return False

    @staticmethod
    def dummy_verify() -> bool:
        """Spend the time of one verification when there is no hash to check."""

        _password_context.dummy_verify()
        return False


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(slots=True, frozen=True)
class IssuedResetToken:
    token: str
    token_hash: str
    expires_at: datetime


class ResetTokenManager:
    """Issue and redeem single-use password reset tokens.

    Only the SHA-256 digest of a token is meant to be stored; the plaintext is
    handed to the user once, inside the reset link.
    """

    def __init__(self, ttl_minutes: int = 10) -> None:
        self.ttl = timedelta(minutes=ttl_minutes)

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def issue(self, now: datetime | None = None) -> IssuedResetToken:
        token = secrets.token_hex(20)
        now = now or datetime.now(timezone.utc)
        return IssuedResetToken(token=token, token_hash=self.hash_token(token), expires_at=now + self.ttl)

    def redeem(
        self,
        presented: str,
        stored_hash: str | None,
        stored_expiry: datetime | None,
        now: datetime | None = None,
    ) -> bool:
        if not stored_hash or stored_expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        if not hmac.compare_digest(self.hash_token(presented), stored_hash):
            return False
        return _as_utc(now) < _as_utc(stored_expiry)


class InvalidToken(ValueError):
    """Raised when a session token cannot be trusted."""


@dataclass(slots=True, frozen=True)
class TokenClaims:
    user_id: str
    role: Role


class SessionTokenIssuer:
    """Mint and verify signed, time-bounded bearer tokens (JWT)."""

    def __init__(self, secret_key: str, expire_minutes: int, algorithm: str = "HS256") -> None:
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str, role: Role | str, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": Role(role).value,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken("Invalid token") from exc

        try:
            role = Role(payload.get("role"))
        except ValueError as exc:
            raise InvalidToken("Invalid token role") from exc
        return TokenClaims(user_id=payload["sub"], role=role)
