from __future__ import annotations

from fastapi import Response

from videohub.core.security import TokenConfig
from videohub.core.settings import get_settings
from videohub.schemas.auth import TokenPair

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def set_token_cookies(response: Response, tokens: TokenPair, config: TokenConfig) -> None:
    settings = get_settings()
    for name, value, ttl in (
        (ACCESS_TOKEN_COOKIE, tokens.access_token, config.access_ttl),
        (REFRESH_TOKEN_COOKIE, tokens.refresh_token, config.refresh_ttl),
    ):
        response.set_cookie(
            name,
            value,
            max_age=int(ttl.total_seconds()),
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )


def clear_token_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.cookie_secure, samesite=settings.cookie_samesite)
