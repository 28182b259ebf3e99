"""Session lifecycle: registration, login, logout and refresh-token rotation.

Each user holds at most one live refresh token (``User.refresh_token``). Login and
refresh overwrite it, which invalidates every earlier refresh token for that user;
logout clears it. Concurrent logins for the same user resolve last-writer-wins.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from videohub.core.errors import AuthError, ConflictError, InternalError, NotFoundError, UploadError, ValidationError
from videohub.core.security import TokenError, TokenExpired, TokenIssuer, TokenVerifier
from videohub.models import User
from videohub.schemas.auth import LoginRequest, RegisterRequest, TokenPair
from videohub.services.media_service import MediaUploader, upload_media

logger = logging.getLogger(__name__)


def _issue_token_pair(db: Session, user: User, issuer: TokenIssuer) -> TokenPair:
    claims = user.identity_claims()
    access_token = issuer.issue_access_token(claims)
    refresh_token = issuer.issue_refresh_token(claims)

    user.refresh_token = refresh_token
    db.commit()
    logger.debug("Stored refresh token user_id=%s", user.id)

    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=int(issuer.config.access_ttl.total_seconds()),
    )


def find_user_by_identity(db: Session, *, username: str | None, email: str | None) -> User | None:
    conditions = []
    if username:
        conditions.append(User.username == username)
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return None
    return db.scalar(select(User).where(or_(*conditions)))


def register_user(
    db: Session,
    payload: RegisterRequest,
    *,
    avatar_path: Path | None,
    cover_image_path: Path | None,
    uploader: MediaUploader,
) -> User:
    if not all([payload.username, payload.email, payload.full_name, payload.password.strip()]):
        raise ValidationError("All fields are required")

    if find_user_by_identity(db, username=payload.username, email=payload.email) is not None:
        logger.info("Registration rejected, identity taken username=%s", payload.username)
        raise ConflictError("User with email or username already exists")

    if avatar_path is None or not avatar_path.exists():
        raise ValidationError("Avatar file is required")

    avatar = upload_media(uploader, avatar_path)
    if avatar is None:
        raise UploadError("Avatar upload failed")

    cover_image = upload_media(uploader, cover_image_path)
    if cover_image_path is not None and cover_image is None:
        logger.warning("Cover image upload failed, continuing without it username=%s", payload.username)

    user = User(
        username=payload.username,
        email=payload.email,
        full_name=payload.full_name,
        password=payload.password,
        avatar_url=str(avatar["url"]),
        cover_image_url=str(cover_image["url"]) if cover_image else "",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Registration lost uniqueness race username=%s", payload.username)
        raise ConflictError("User with email or username already exists") from exc

    created_user = db.get(User, user.id, populate_existing=True)
    if created_user is None:
        logger.error("Registered user missing on read-back user_id=%s", user.id)
        raise InternalError("Something went wrong while registering the user")

    logger.info("Registered user user_id=%s username=%s", created_user.id, created_user.username)
    return created_user


def authenticate_user(db: Session, payload: LoginRequest, issuer: TokenIssuer) -> tuple[User, TokenPair]:
    if not payload.username and not payload.email:
        raise ValidationError("Username or email is required")

    user = find_user_by_identity(db, username=payload.username, email=payload.email)
    if user is None:
        raise NotFoundError("User does not exist")

    if not payload.password or not user.is_password_correct(payload.password):
        logger.info("Login rejected, bad credentials user_id=%s", user.id)
        raise AuthError("Invalid user credentials", code="invalid_credentials")

    tokens = _issue_token_pair(db, user, issuer)
    logger.info("User logged in user_id=%s", user.id)
    return user, tokens


def logout_user(db: Session, user: User) -> None:
    if user.refresh_token is None:
        logger.debug("Logout with no active refresh token user_id=%s", user.id)
        return
    user.refresh_token = None
    db.commit()
    logger.info("User logged out user_id=%s", user.id)


def rotate_refresh_token(
    db: Session,
    refresh_token_raw: str | None,
    *,
    issuer: TokenIssuer,
    verifier: TokenVerifier,
) -> tuple[User, TokenPair]:
    if not refresh_token_raw:
        raise AuthError("Unauthorized request", code="missing_refresh_token")

    try:
        claims = verifier.verify(refresh_token_raw, "refresh")
    except TokenExpired as exc:
        raise AuthError("Refresh token has expired", code="refresh_token_expired") from exc
    except TokenError as exc:
        raise AuthError("Invalid refresh token", code="invalid_refresh_token") from exc

    user = db.get(User, claims["sub"])
    if user is None:
        logger.warning("Refresh token subject not found user_id=%s", claims["sub"])
        raise AuthError("Invalid refresh token", code="invalid_refresh_token")

    if user.refresh_token is None or not secrets.compare_digest(
        user.refresh_token.encode("utf-8"), refresh_token_raw.encode("utf-8")
    ):
        logger.warning("Stale refresh token presented user_id=%s", user.id)
        raise AuthError("Refresh token is expired or used", code="invalid_refresh_token")

    tokens = _issue_token_pair(db, user, issuer)
    logger.info("Rotated refresh token user_id=%s", user.id)
    return user, tokens
