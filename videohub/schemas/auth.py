from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from videohub.schemas.users import UserPublic


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    full_name: str = ""
    password: str = ""

    @field_validator("username", "email")
    @classmethod
    def normalize_identity(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        return value.strip()


class LoginRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str = ""

    @field_validator("username", "email")
    @classmethod
    def normalize_identity(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(
        default=None,
        max_length=4096,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
    )


class TokenPair(BaseModel):
    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")
    token_type: str = Field(default="bearer", serialization_alias="tokenType")
    expires_in: int = Field(serialization_alias="expiresIn")


class AuthResponse(TokenPair):
    model_config = ConfigDict(from_attributes=True)

    user: UserPublic
