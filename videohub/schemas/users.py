from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    full_name: str
    avatar_url: str
    cover_image_url: str
    created_at: datetime
    updated_at: datetime


class ChangePasswordRequest(BaseModel):
    old_password: str = ""
    new_password: str = ""


class UpdateAccountRequest(BaseModel):
    full_name: str = ""
    email: str = ""

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class VideoSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    thumbnail_url: str | None
    video_file_url: str
    duration: float
    views: int


class WatchHistoryResponse(BaseModel):
    videos: list[VideoSummary]
