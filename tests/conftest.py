from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import videohub.db.session as db_session
from videohub.api.deps import get_media_uploader, get_staging_dir
from videohub.core.rate_limit import auth_limiter
from videohub.main import app


class FakeUploader:
    """Records uploads; files whose content starts with ``FAIL`` yield no url."""

    def __init__(self) -> None:
        self.uploaded: list[bytes] = []

    def upload(self, local_path: Path) -> dict[str, object]:
        content = local_path.read_bytes()
        if content.startswith(b"FAIL"):
            return {}
        self.uploaded.append(content)
        return {"url": f"https://media.test/{local_path.name}"}


@pytest.fixture()
def uploader():
    return FakeUploader()


@pytest.fixture()
def staging_dir(tmp_path):
    return tmp_path / "staging"


@pytest.fixture()
def client(tmp_path, uploader, staging_dir):
    auth_limiter.reset()
    database_path = tmp_path / "test.db"
    db_session.configure_engine(f"sqlite:///{database_path}")
    db_session.init_db()

    app.dependency_overrides[get_media_uploader] = lambda: uploader
    app.dependency_overrides[get_staging_dir] = lambda: staging_dir
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
