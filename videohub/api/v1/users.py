from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from videohub.api.deps import get_current_user, get_media_uploader, get_staging_dir
from videohub.core.errors import success_response
from videohub.db.session import get_db
from videohub.models import User
from videohub.schemas.users import (
    ChangePasswordRequest,
    UpdateAccountRequest,
    UserPublic,
    VideoSummary,
    WatchHistoryResponse,
)
from videohub.services import user_service
from videohub.services.media_service import MediaUploader, stage_upload

router = APIRouter(prefix="/users", tags=["users"])


def _profile(user: User) -> dict[str, object]:
    return UserPublic.model_validate(user).model_dump(mode="json")


@router.get("/current-user", dependencies=[Depends(get_current_user)])
def current_user_profile(request: Request):
    profile: UserPublic = request.state.user
    return success_response(profile.model_dump(mode="json"), message="Current user fetched")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_service.change_password(db, current_user, payload)
    return success_response({}, message="Password changed successfully")


@router.patch("/update-account")
def update_account(
    payload: UpdateAccountRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = user_service.update_account_details(db, current_user, payload)
    return success_response(_profile(user), message="Account details updated")


@router.patch("/avatar")
def update_avatar(
    avatar: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
    staging_dir: Path = Depends(get_staging_dir),
):
    with stage_upload(avatar, staging_dir) as local_path:
        user = user_service.update_avatar(db, current_user, local_path, uploader)
    return success_response(_profile(user), message="Avatar updated")


@router.patch("/cover-image")
def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    uploader: MediaUploader = Depends(get_media_uploader),
    staging_dir: Path = Depends(get_staging_dir),
):
    with stage_upload(cover_image, staging_dir) as local_path:
        user = user_service.update_cover_image(db, current_user, local_path, uploader)
    return success_response(_profile(user), message="Cover image updated")


@router.get("/history")
def watch_history(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    videos = user_service.get_watch_history(db, current_user)
    body = WatchHistoryResponse(videos=[VideoSummary.model_validate(video) for video in videos])
    return success_response(body.model_dump(mode="json"), message="Watch history fetched")
