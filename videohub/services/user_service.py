from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from videohub.core.errors import AuthError, ConflictError, UploadError, ValidationError
from videohub.models import User, Video, WatchHistoryEntry
from videohub.schemas.users import ChangePasswordRequest, UpdateAccountRequest
from videohub.services.media_service import MediaUploader, upload_media

logger = logging.getLogger(__name__)


def change_password(db: Session, user: User, payload: ChangePasswordRequest) -> None:
    if not payload.new_password.strip():
        raise ValidationError("New password is required")
    if not payload.old_password or not user.is_password_correct(payload.old_password):
        raise AuthError("Invalid old password", code="invalid_credentials")

    user.password = payload.new_password
    db.commit()
    logger.info("Password changed user_id=%s", user.id)


def update_account_details(db: Session, user: User, payload: UpdateAccountRequest) -> User:
    if not payload.full_name or not payload.email:
        raise ValidationError("Full name and email are required")

    owner_id = db.scalar(select(User.id).where(User.email == payload.email))
    if owner_id is not None and owner_id != user.id:
        raise ConflictError("Email is already in use")

    user.full_name = payload.full_name
    user.email = payload.email
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email is already in use") from exc

    logger.info("Account details updated user_id=%s", user.id)
    return user


def _replace_media(db: Session, user: User, *, field: str, local_path: Path | None, uploader: MediaUploader) -> User:
    label = field.removesuffix("_url").replace("_", " ")
    if local_path is None:
        raise ValidationError(f"{label.capitalize()} file is missing")

    uploaded = upload_media(uploader, local_path)
    if uploaded is None:
        raise UploadError(f"Error while uploading {label}")

    setattr(user, field, str(uploaded["url"]))
    db.commit()
    logger.info("Updated %s user_id=%s", label, user.id)
    return user


def update_avatar(db: Session, user: User, local_path: Path | None, uploader: MediaUploader) -> User:
    return _replace_media(db, user, field="avatar_url", local_path=local_path, uploader=uploader)


def update_cover_image(db: Session, user: User, local_path: Path | None, uploader: MediaUploader) -> User:
    return _replace_media(db, user, field="cover_image_url", local_path=local_path, uploader=uploader)


def get_watch_history(db: Session, user: User) -> list[Video]:
    rows = db.scalars(
        select(Video)
        .join(WatchHistoryEntry, WatchHistoryEntry.video_id == Video.id)
        .where(WatchHistoryEntry.user_id == user.id)
        .order_by(WatchHistoryEntry.id.asc())
    ).all()
    logger.debug("Fetched watch history user_id=%s entries=%s", user.id, len(rows))
    return list(rows)
