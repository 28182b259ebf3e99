from __future__ import annotations

import videohub.db.session as db_session
from videohub.models import User, Video, WatchHistoryEntry

from helpers import API, auth_headers, login, register


def test_change_password(client):
    register(client)
    tokens = login(client, username="ana")
    headers = auth_headers(tokens["access"])

    wrong_old = client.post(
        f"{API}/change-password",
        json={"old_password": "nope", "new_password": "secret2"},
        headers=headers,
    )
    assert wrong_old.status_code == 401

    blank_new = client.post(
        f"{API}/change-password",
        json={"old_password": "secret1", "new_password": "  "},
        headers=headers,
    )
    assert blank_new.status_code == 400

    changed = client.post(
        f"{API}/change-password",
        json={"old_password": "secret1", "new_password": "secret2"},
        headers=headers,
    )
    assert changed.status_code == 200
    assert changed.json()["data"] == {}

    old_login = client.post(f"{API}/login", json={"username": "ana", "password": "secret1"})
    assert old_login.status_code == 401
    login(client, password="secret2", username="ana")


def test_update_account_keeps_password_usable(client):
    register(client)
    tokens = login(client, username="ana")

    response = client.patch(
        f"{API}/update-account",
        json={"full_name": " Ana Maria ", "email": "Ana@New.com"},
        headers=auth_headers(tokens["access"]),
    )
    assert response.status_code == 200
    profile = response.json()["data"]
    assert profile["full_name"] == "Ana Maria"
    assert profile["email"] == "ana@new.com"

    login(client, email="ana@new.com")


def test_update_account_validation_and_conflict(client):
    register(client)
    register(client, username="bob", email="b@x.com", full_name="Bob")
    headers = auth_headers(login(client, username="ana")["access"])

    missing = client.patch(f"{API}/update-account", json={"full_name": "Ana"}, headers=headers)
    assert missing.status_code == 400

    taken = client.patch(f"{API}/update-account", json={"full_name": "Ana", "email": "b@x.com"}, headers=headers)
    assert taken.status_code == 409

    unchanged = client.patch(f"{API}/update-account", json={"full_name": "Ana", "email": "a@x.com"}, headers=headers)
    assert unchanged.status_code == 200


def test_update_avatar_and_cover_image(client, staging_dir):
    original = register(client).json()["data"]
    headers = auth_headers(login(client, username="ana")["access"])

    avatar = client.patch(
        f"{API}/avatar",
        files={"avatar": ("new.png", b"new-avatar", "image/png")},
        headers=headers,
    )
    assert avatar.status_code == 200
    assert avatar.json()["data"]["avatar_url"] != original["avatar_url"]

    cover = client.patch(
        f"{API}/cover-image",
        files={"coverImage": ("cover.jpg", b"cover", "image/jpeg")},
        headers=headers,
    )
    assert cover.status_code == 200
    assert cover.json()["data"]["cover_image_url"].startswith("https://media.test/")
    assert list(staging_dir.iterdir()) == []


def test_media_updates_require_a_successful_upload(client):
    register(client)
    headers = auth_headers(login(client, username="ana")["access"])

    no_file = client.patch(f"{API}/avatar", headers=headers)
    assert no_file.status_code == 400
    assert no_file.json()["code"] == "validation_error"

    failed = client.patch(
        f"{API}/cover-image",
        files={"coverImage": ("cover.jpg", b"FAIL", "image/jpeg")},
        headers=headers,
    )
    assert failed.status_code == 400
    assert failed.json()["code"] == "upload_failed"


def test_watch_history_is_ordered(client):
    user_id = register(client).json()["data"]["id"]
    headers = auth_headers(login(client, username="ana")["access"])

    session_factory = db_session.SessionLocal
    assert session_factory is not None
    with session_factory() as session:
        first = Video(owner_id=user_id, video_file_url="https://media.test/1.mp4", title="First", description="", duration=12.5)
        second = Video(owner_id=user_id, video_file_url="https://media.test/2.mp4", title="Second", description="", duration=3)
        session.add_all([first, second])
        session.flush()
        user = session.get(User, user_id)
        user.watch_history.append(WatchHistoryEntry(video_id=second.id))
        user.watch_history.append(WatchHistoryEntry(video_id=first.id))
        session.commit()

    response = client.get(f"{API}/history", headers=headers)
    assert response.status_code == 200
    titles = [video["title"] for video in response.json()["data"]["videos"]]
    assert titles == ["Second", "First"]


def test_account_routes_require_authentication(client):
    assert client.get(f"{API}/current-user").status_code == 401
    assert client.get(f"{API}/history").status_code == 401
    assert client.patch(f"{API}/update-account", json={"full_name": "x", "email": "y"}).status_code == 401
