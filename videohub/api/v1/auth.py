from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session

from videohub.api.cookies import REFRESH_TOKEN_COOKIE, clear_token_cookies, set_token_cookies
from videohub.api.deps import (
    get_current_user,
    get_media_uploader,
    get_staging_dir,
    get_token_issuer,
    get_token_verifier,
)
from videohub.core.errors import success_response
from videohub.core.rate_limit import enforce_auth_rate_limit
from videohub.core.security import TokenIssuer, TokenVerifier
from videohub.db.session import get_db
from videohub.models import User
from videohub.schemas.auth import AuthResponse, LoginRequest, RefreshRequest, RegisterRequest
from videohub.schemas.users import UserPublic
from videohub.services import auth_service
from videohub.services.media_service import MediaUploader, stage_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["auth"])


@router.post("/register", dependencies=[Depends(enforce_auth_rate_limit)])
def register(
    username: str = Form(""),
    email: str = Form(""),
    full_name: str = Form("", alias="fullName"),
    password: str = Form(""),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: Session = Depends(get_db),
    uploader: MediaUploader = Depends(get_media_uploader),
    staging_dir: Path = Depends(get_staging_dir),
):
    payload = RegisterRequest(username=username, email=email, full_name=full_name, password=password)
    logger.info("Register endpoint hit username=%s", payload.username)
    with ExitStack() as stack:
        avatar_path = stack.enter_context(stage_upload(avatar, staging_dir))
        cover_image_path = stack.enter_context(stage_upload(cover_image, staging_dir))
        user = auth_service.register_user(
            db,
            payload,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
            uploader=uploader,
        )
    return success_response(
        UserPublic.model_validate(user).model_dump(mode="json"),
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", dependencies=[Depends(enforce_auth_rate_limit)])
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    logger.info("Login endpoint hit username=%s email=%s", payload.username, payload.email)
    user, tokens = auth_service.authenticate_user(db, payload, issuer)
    body = AuthResponse(user=UserPublic.model_validate(user), **tokens.model_dump())
    response = success_response(body.model_dump(mode="json", by_alias=True), message="User logged in successfully")
    set_token_cookies(response, tokens, issuer.config)
    return response


@router.post("/logout")
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    logger.info("Logout endpoint hit user_id=%s", current_user.id)
    auth_service.logout_user(db, current_user)
    response = success_response({}, message="User logged out")
    clear_token_cookies(response)
    return response


@router.post("/refresh-token", dependencies=[Depends(enforce_auth_rate_limit)])
def refresh_token(
    request: Request,
    payload: RefreshRequest | None = None,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
    verifier: TokenVerifier = Depends(get_token_verifier),
):
    logger.info("Refresh endpoint hit")
    # Cookie first, request body as the fallback channel.
    presented = request.cookies.get(REFRESH_TOKEN_COOKIE) or (payload.refresh_token if payload else None)
    _, tokens = auth_service.rotate_refresh_token(db, presented, issuer=issuer, verifier=verifier)
    response = success_response(
        tokens.model_dump(mode="json", by_alias=True),
        message="Access token refreshed",
    )
    set_token_cookies(response, tokens, issuer.config)
    return response
