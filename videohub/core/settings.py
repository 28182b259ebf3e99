from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    debug: bool = False
    log_level: str | None = None
    app_name: str = "VideoHub Accounts"
    api_v1_prefix: str = "/api/v1"
    database_url: str = "sqlite:///./videohub.db"

    access_token_secret: str = "change-me-access-secret"
    access_token_expire_minutes: int = 15
    refresh_token_secret: str = "change-me-refresh-secret"
    refresh_token_expire_days: int = 10
    jwt_algorithm: str = "HS256"
    password_hash_rounds: int = 3

    cookie_secure: bool = True
    cookie_samesite: str = "lax"

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"])

    auth_rate_limit_window_seconds: int = 60
    auth_rate_limit_max_requests: int = 12

    media_backend: str = "local"
    media_root: str = "./public/media"
    media_base_url: str = "/media"
    upload_staging_dir: str = "./public/temp"
    media_upload_timeout_seconds: float = 30.0
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return []

    @field_validator("media_backend")
    @classmethod
    def validate_media_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"local", "cloudinary"}:
            raise ValueError("media_backend must be 'local' or 'cloudinary'")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized


@lru_cache
def get_settings() -> Settings:
    return Settings()
