from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from videohub.core.security import hash_password, verify_password
from videohub.db.session import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    avatar_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    cover_image_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=lambda: datetime.now(UTC)
    )

    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.id",
        cascade="all, delete-orphan",
    )

    @validates("username", "email")
    def _normalize_identity(self, _key: str, value: str) -> str:
        return value.strip().lower()

    @validates("full_name")
    def _normalize_full_name(self, _key: str, value: str) -> str:
        return value.strip()

    @property
    def password(self) -> str:
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plain_password: str) -> None:
        self.password_hash = hash_password(plain_password)

    def is_password_correct(self, plain_password: str) -> bool:
        return verify_password(plain_password, self.password_hash)

    def identity_claims(self) -> dict[str, object]:
        return {
            "sub": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
        }
