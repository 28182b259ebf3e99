from __future__ import annotations

import logging
import secrets
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from videohub.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

TokenKind = Literal["access", "refresh"]

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__rounds=get_settings().password_hash_rounds,
)


def hash_password(password: str) -> str:
    logger.debug("Hashing password")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check ``plain_password`` against a stored hash.

    A mismatch returns ``False``; a hash passlib cannot identify raises ``ValueError``.
    """
    is_valid = pwd_context.verify(plain_password, hashed_password)
    logger.debug("Password verification result=%s", is_valid)
    return is_valid


class TokenError(Exception):
    pass


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


@dataclass(frozen=True)
class TokenConfig:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(
            access_secret=settings.access_token_secret,
            refresh_secret=settings.refresh_token_secret,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            algorithm=settings.jwt_algorithm,
        )

    def secret_for(self, kind: TokenKind) -> str:
        return self.access_secret if kind == "access" else self.refresh_secret

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return self.access_ttl if kind == "access" else self.refresh_ttl


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenIssuer:
    """Signs access and refresh JWTs carrying a user's identity claims."""

    def __init__(self, config: TokenConfig, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self.config = config
        self._clock = clock

    def issue_access_token(self, claims: Mapping[str, object]) -> str:
        return self._issue(claims, "access")

    def issue_refresh_token(self, claims: Mapping[str, object]) -> str:
        return self._issue(claims, "refresh")

    def _issue(self, claims: Mapping[str, object], kind: TokenKind) -> str:
        now = self._clock()
        expire = now + self.config.ttl_for(kind)
        payload = {
            **claims,
            "type": kind,
            "jti": secrets.token_hex(16),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        logger.debug("Creating %s token subject=%s expires_at=%s", kind, claims.get("sub"), expire.isoformat())
        return jwt.encode(payload, self.config.secret_for(kind), algorithm=self.config.algorithm)


class TokenVerifier:
    def __init__(self, config: TokenConfig) -> None:
        self.config = config

    def verify(self, token: str, kind: TokenKind) -> dict[str, object]:
        try:
            payload = jwt.decode(token, self.config.secret_for(kind), algorithms=[self.config.algorithm])
        except ExpiredSignatureError as exc:
            logger.info("Rejected expired %s token", kind)
            raise TokenExpired(f"{kind} token has expired") from exc
        except JWTError as exc:
            logger.warning("%s token decode failed", kind.capitalize())
            raise TokenInvalid(f"{kind} token is invalid") from exc

        if payload.get("type") != kind:
            logger.warning("Token type mismatch expected=%s got=%s", kind, payload.get("type"))
            raise TokenInvalid("Invalid token type")
        if not isinstance(payload.get("sub"), str) or not payload["sub"]:
            logger.warning("Token subject is missing")
            raise TokenInvalid("Token payload is invalid")

        logger.debug("%s token verified subject=%s", kind.capitalize(), payload["sub"])
        return payload
