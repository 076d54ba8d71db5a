"""Profile API 통합 테스트."""

import pytest

from tests.helpers import bearer, register

PROFILE_BODY = {
    "fullName": "John Doe",
    "email": "john@example.com",
    "title": "Engineer",
    "workExperiences": [
        {"company": "Acme", "position": "Dev", "startDate": "2020-01-01", "endDate": None},
    ],
    "socialLinks": [{"platform": "github", "url": "https://github.com/john"}],
}

# 1x1 투명 PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6300010000000500010d0a2db40000000049454e44ae426082"
)


@pytest.mark.asyncio
async def test_create_and_fetch_public_profile(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    assert created.status_code == 201
    profile = created.json()["profile"]
    assert created.json()["message"] == "Profile created successfully"
    assert profile["slug"] == "john-doe"
    assert profile["profileUrl"] == "http://frontend.test/john-doe"
    assert profile["qrCodeUrl"] == f"/uploads/qrcodes/{profile['id']}.png"
    assert profile["socialLinks"][0]["platform"] == "GITHUB"

    public = await api_client.get("/api/v1/profiles/john-doe")
    assert public.status_code == 200
    public_profile = public.json()["profile"]
    assert public_profile["fullName"] == "John Doe"
    assert public_profile["experiences"][0]["company"] == "Acme"
    assert "email" not in public_profile
    assert "isPublished" not in public_profile


@pytest.mark.asyncio
async def test_create_requires_auth(api_client) -> None:
    response = await api_client.post("/api/v1/profiles", json=PROFILE_BODY)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_missing_email_is_400(api_client, auth_headers) -> None:
    response = await api_client.post(
        "/api/v1/profiles", json={"fullName": "John Doe"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Full name and email are required"


@pytest.mark.asyncio
async def test_my_profiles_route_is_not_treated_as_slug(api_client, auth_headers) -> None:
    await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    response = await api_client.get("/api/v1/profiles/my-profiles", headers=auth_headers)
    assert response.status_code == 200
    profiles = response.json()["profiles"]
    assert len(profiles) == 1
    assert profiles[0]["experienceCount"] == 1
    assert profiles[0]["socialLinkCount"] == 1


@pytest.mark.asyncio
async def test_update_social_links_empty_list_clears(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    profile_id = created.json()["profile"]["id"]

    kept = await api_client.put(
        f"/api/v1/profiles/{profile_id}", json={"title": "CTO"}, headers=auth_headers
    )
    assert kept.status_code == 200
    assert kept.json()["message"] == "Profile updated successfully"
    assert len(kept.json()["profile"]["socialLinks"]) == 1

    cleared = await api_client.put(
        f"/api/v1/profiles/{profile_id}", json={"socialLinks": []}, headers=auth_headers
    )
    assert cleared.json()["profile"]["socialLinks"] == []
    assert cleared.json()["profile"]["title"] == "CTO"


@pytest.mark.asyncio
async def test_other_user_cannot_edit_or_delete(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    profile_id = created.json()["profile"]["id"]

    intruder = bearer(await register(api_client, email="intruder@example.com"))
    api_client.cookies.clear()

    for method, url in (
        ("PUT", f"/api/v1/profiles/{profile_id}"),
        ("DELETE", f"/api/v1/profiles/{profile_id}"),
        ("GET", f"/api/v1/profiles/edit/{profile_id}"),
        ("POST", f"/api/v1/profiles/{profile_id}/regenerate-qr"),
    ):
        kwargs = {"json": {"title": "hacked"}} if method == "PUT" else {}
        response = await api_client.request(method, url, headers=intruder, **kwargs)
        assert response.status_code == 404, (method, url)
        assert response.json()["detail"] == "Profile not found or unauthorized"


@pytest.mark.asyncio
async def test_malformed_profile_id_is_404(api_client, auth_headers) -> None:
    for method, url in (
        ("PUT", "/api/v1/profiles/not-a-uuid"),
        ("DELETE", "/api/v1/profiles/not-a-uuid"),
        ("GET", "/api/v1/profiles/edit/not-a-uuid"),
        ("POST", "/api/v1/profiles/not-a-uuid/regenerate-qr"),
    ):
        kwargs = {"json": {"title": "x"}} if method == "PUT" else {}
        response = await api_client.request(method, url, headers=auth_headers, **kwargs)
        assert response.status_code == 404, (method, url)
        assert response.json()["detail"] == "Profile not found or unauthorized"


@pytest.mark.asyncio
async def test_malformed_profile_id_without_auth_is_401(api_client) -> None:
    response = await api_client.delete("/api/v1/profiles/not-a-uuid")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete_then_slug_is_404(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    profile_id = created.json()["profile"]["id"]

    deleted = await api_client.delete(f"/api/v1/profiles/{profile_id}", headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Profile deleted successfully"
    assert (await api_client.get("/api/v1/profiles/john-doe")).status_code == 404


@pytest.mark.asyncio
async def test_regenerate_qr(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    profile_id = created.json()["profile"]["id"]

    response = await api_client.post(
        f"/api/v1/profiles/{profile_id}/regenerate-qr", headers=auth_headers
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "QR code regenerated successfully"
    assert body["qrCodeUrl"] == f"/uploads/qrcodes/{profile_id}.png"
    assert body["profileUrl"] == "http://frontend.test/john-doe"


@pytest.mark.asyncio
async def test_edit_returns_full_aggregate(api_client, auth_headers) -> None:
    created = await api_client.post("/api/v1/profiles", json=PROFILE_BODY, headers=auth_headers)
    profile_id = created.json()["profile"]["id"]
    response = await api_client.get(f"/api/v1/profiles/edit/{profile_id}", headers=auth_headers)
    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["email"] == "john@example.com"
    assert profile["isPublished"] is True


@pytest.mark.asyncio
async def test_upload_avatar_stores_file(api_client, auth_headers, upload_dir) -> None:
    response = await api_client.post(
        "/api/v1/profiles/upload-avatar",
        files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )
    assert response.status_code == 200
    avatar_url = response.json()["avatarUrl"]
    assert avatar_url.startswith("/uploads/avatars/avatar-")
    assert avatar_url.endswith(".png")
    stored = upload_dir / avatar_url.removeprefix("/uploads/")
    assert stored.read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_avatar_rejects_non_image(api_client, auth_headers) -> None:
    response = await api_client.post(
        "/api/v1/profiles/upload-avatar",
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Only image files are allowed"


@pytest.mark.asyncio
async def test_upload_avatar_without_file(api_client, auth_headers) -> None:
    response = await api_client.post("/api/v1/profiles/upload-avatar", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please upload an image file"
