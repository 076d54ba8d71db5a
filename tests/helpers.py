"""테스트 공용 헬퍼."""

import httpx

TEST_PASSWORD = "Password123"


async def register(
    ac: httpx.AsyncClient,
    email: str = "owner@example.com",
    password: str = TEST_PASSWORD,
    full_name: str = "Owner Person",
) -> httpx.Response:
    return await ac.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "fullName": full_name},
    )


def bearer(response: httpx.Response) -> dict[str, str]:
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}
