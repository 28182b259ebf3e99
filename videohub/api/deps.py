from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from videohub.api.cookies import ACCESS_TOKEN_COOKIE
from videohub.core.errors import AuthError
from videohub.core.security import TokenConfig, TokenError, TokenExpired, TokenIssuer, TokenVerifier
from videohub.core.settings import get_settings
from videohub.db.session import get_db
from videohub.models import User
from videohub.schemas.users import UserPublic
from videohub.services.media_service import MediaUploader, build_media_uploader

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().api_v1_prefix}/users/login", auto_error=False)


@lru_cache
def get_token_config() -> TokenConfig:
    return TokenConfig.from_settings(get_settings())


def get_token_issuer(config: TokenConfig = Depends(get_token_config)) -> TokenIssuer:
    return TokenIssuer(config)


def get_token_verifier(config: TokenConfig = Depends(get_token_config)) -> TokenVerifier:
    return TokenVerifier(config)


@lru_cache
def get_media_uploader() -> MediaUploader:
    return build_media_uploader(get_settings())


def get_staging_dir() -> Path:
    return Path(get_settings().upload_staging_dir)


def get_current_user(
    request: Request,
    bearer_token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> User:
    # Cookie wins over the Authorization header when both are present.
    token = request.cookies.get(ACCESS_TOKEN_COOKIE) or bearer_token
    if not token:
        raise AuthError("Unauthorized request", code="missing_token")

    try:
        claims = verifier.verify(token, "access")
    except TokenExpired as exc:
        raise AuthError("Access token has expired", code="token_expired") from exc
    except TokenError as exc:
        raise AuthError("Invalid access token", code="invalid_token") from exc

    user = db.get(User, claims["sub"])
    if user is None:
        logger.warning("Token user_id=%s not found", claims["sub"])
        raise AuthError("Invalid access token", code="invalid_token")

    request.state.user = UserPublic.model_validate(user)
    logger.debug("Resolved current user user_id=%s", user.id)
    return user
