from __future__ import annotations

import hashlib
import logging
import shutil
import time
import uuid
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Protocol

import httpx
from fastapi import UploadFile

from videohub.core.settings import Settings

logger = logging.getLogger(__name__)


class MediaUploader(Protocol):
    def upload(self, local_path: Path) -> dict[str, object]:
        """Push a local file to media storage and return the storage response, including ``url``."""


class LocalMediaUploader:
    def __init__(self, media_root: str | Path, base_url: str) -> None:
        self.media_root = Path(media_root)
        self.base_url = base_url.rstrip("/")
        self.media_root.mkdir(parents=True, exist_ok=True)

    def upload(self, local_path: Path) -> dict[str, object]:
        stored_name = f"{uuid.uuid4().hex}{local_path.suffix.lower()}"
        destination = self.media_root / stored_name
        shutil.copyfile(local_path, destination)
        logger.debug("Stored media locally name=%s bytes=%s", stored_name, destination.stat().st_size)
        return {
            "url": f"{self.base_url}/{stored_name}",
            "public_id": stored_name,
            "bytes": destination.stat().st_size,
        }


class CloudinaryUploader:
    """Signed uploads against Cloudinary's REST upload endpoint."""

    api_base = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        self._client = client

    @property
    def upload_url(self) -> str:
        return f"{self.api_base}/{self.cloud_name}/auto/upload"

    def sign(self, params: dict[str, str]) -> str:
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode("utf-8")).hexdigest()

    def upload(self, local_path: Path) -> dict[str, object]:
        params = {"timestamp": str(int(time.time()))}
        data = {**params, "api_key": self.api_key, "signature": self.sign(params)}
        with ExitStack() as stack:
            client = self._client or stack.enter_context(httpx.Client(timeout=self.timeout))
            handle = stack.enter_context(local_path.open("rb"))
            response = client.post(self.upload_url, data=data, files={"file": (local_path.name, handle)})
        response.raise_for_status()
        body = response.json()
        logger.debug("Cloudinary upload completed public_id=%s", body.get("public_id"))
        return body


def build_media_uploader(settings: Settings) -> MediaUploader:
    if settings.media_backend == "cloudinary":
        return CloudinaryUploader(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            timeout_seconds=settings.media_upload_timeout_seconds,
        )
    return LocalMediaUploader(settings.media_root, settings.media_base_url)


def has_file(upload: UploadFile | None) -> bool:
    return upload is not None and bool(upload.filename)


@contextmanager
def stage_upload(upload: UploadFile | None, staging_dir: Path) -> Iterator[Path | None]:
    """Copy an uploaded part into ``staging_dir`` and remove it when the block exits."""
    if not has_file(upload):
        yield None
        return

    staging_dir.mkdir(parents=True, exist_ok=True)
    staged_path = staging_dir / f"{uuid.uuid4().hex}{Path(upload.filename).suffix.lower()}"
    try:
        with staged_path.open("wb") as handle:
            shutil.copyfileobj(upload.file, handle)
        logger.debug("Staged upload field_filename=%s path=%s", upload.filename, staged_path)
        yield staged_path
    finally:
        staged_path.unlink(missing_ok=True)


def upload_media(uploader: MediaUploader, local_path: Path | None) -> dict[str, object] | None:
    """Upload a staged file, returning ``None`` when there is no usable URL.

    The local file is deleted whether the upload succeeds or not.
    """
    if local_path is None:
        return None
    try:
        result = uploader.upload(local_path)
    except (httpx.HTTPError, OSError, ValueError) as exc:
        logger.error("Media upload failed path=%s error=%s", local_path.name, exc)
        return None
    finally:
        local_path.unlink(missing_ok=True)

    if not isinstance(result, dict) or not result.get("url"):
        logger.error("Media upload returned no url path=%s", local_path.name)
        return None
    return result
