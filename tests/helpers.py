"""Request helpers shared by the API tests."""

import uuid

from httpx import AsyncClient


async def register_parent(client: AsyncClient, with_family: bool = True) -> dict:
    """Sign up a parent through the API.

    Keys: headers, user_id, email, tokens, family_code (None without family)
    """
    from giftbox.core.security import decode_token

    suffix = uuid.uuid4().hex[:8]
    email = f"parent-{suffix}@test.de"
    resp = await client.post("/api/v1/auth/register", json={
        "email": email,
        "password": "testpassword123",
        "display_name": "엄마",
    })
    assert resp.status_code == 200, resp.text
    tokens = resp.json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    user_id = decode_token(tokens["access_token"])["sub"]

    resp = await client.post("/api/v1/parents/me", headers=headers, json={})
    assert resp.status_code == 200, resp.text

    family_code = None
    if with_family:
        resp = await client.post("/api/v1/families", headers=headers)
        assert resp.status_code == 200, resp.text
        family_code = resp.json()["invite_code"]

    return {
        "headers": headers,
        "user_id": user_id,
        "email": email,
        "tokens": tokens,
        "family_code": family_code,
    }


async def create_link_request(
    client: AsyncClient,
    family_code: str,
    nickname: str = "민지",
    device_id: str | None = None,
    **extra,
):
    headers = {"X-Device-Id": device_id} if device_id else {}
    body = {
        "familyCode": family_code,
        "childNickname": nickname,
        "childAvatar": "🐰",
        "childAge": 5,
        **extra,
    }
    return await client.post("/api/v1/link-requests", json=body, headers=headers)


def approval_body(**overrides) -> dict:
    """A valid approval form as the mobile client sends it."""
    body = {
        "confirmedNickname": "민지",
        "confirmedAge": 5,
        "serviceTermsAgreed": True,
        "privacyAgreed": True,
        "pushAgreed": True,
        "rewardEnabled": True,
        "baseCoinReward": 10,
        "approvalMode": "manual",
        "recoveryEmail": "",
        "usageStartTime": "07:00",
        "usageEndTime": "20:00",
        "dailyMaxCompletion": 10,
    }
    body.update(overrides)
    return body
