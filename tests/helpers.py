from __future__ import annotations

API = "/api/v1/users"


def register(
    client,
    username: str = "ana",
    email: str = "a@x.com",
    full_name: str = "Ana",
    password: str = "secret1",
    *,
    avatar: bytes | None = b"avatar-bytes",
    cover_image: bytes | None = None,
):
    files = {}
    if avatar is not None:
        files["avatar"] = ("avatar.png", avatar, "image/png")
    if cover_image is not None:
        files["coverImage"] = ("cover.jpg", cover_image, "image/jpeg")
    return client.post(
        f"{API}/register",
        data={"username": username, "email": email, "fullName": full_name, "password": password},
        files=files or None,
    )


def login(client, password: str = "secret1", **identity: str) -> dict[str, str]:
    response = client.post(f"{API}/login", json={**(identity or {"username": "ana"}), "password": password})
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    return {
        "access": data["accessToken"],
        "refresh": data["refreshToken"],
    }


def auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
