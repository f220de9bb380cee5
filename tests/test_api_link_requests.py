"""Integration tests for the /api/v1/link-requests endpoints."""

import re

from giftbox.config import settings
from tests.helpers import approval_body, create_link_request, register_parent

REQUEST_ID_PATTERN = re.compile(r"^req_\d+_[a-z0-9]{6}$")
CHILD_ID_PATTERN = re.compile(r"^child_\d+_[a-z0-9]{6}$")


class TestCreateLinkRequest:
    async def test_create_pending_request(self, client, registered_parent):
        resp = await create_link_request(client, registered_parent["family_code"])
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert REQUEST_ID_PATTERN.match(data["id"])
        assert data["status"] == "pending"
        assert data["family_code"] == registered_parent["family_code"]
        assert data["child_nickname"] == "민지"
        assert data["child_avatar"] == "🐰"
        assert data["child_age"] == 5
        assert data["parent_uid"] is None
        assert data["child_id"] is None
        assert data["active_request_id"] == data["id"]

    async def test_code_is_case_insensitive(self, client, registered_parent):
        code = registered_parent["family_code"]
        resp = await create_link_request(client, f"  {code.lower()} ")
        assert resp.status_code == 201
        assert resp.json()["family_code"] == code

    async def test_snake_case_body_is_accepted(self, client, registered_parent):
        resp = await client.post("/api/v1/link-requests", json={
            "family_code": registered_parent["family_code"],
            "child_nickname": "준호",
        })
        assert resp.status_code == 201
        assert resp.json()["child_avatar"] == "🐼"

    async def test_unknown_code_rejected(self, client, registered_parent):
        resp = await create_link_request(client, "ZZZZZZ")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "invalid-family-code"

        pending = await client.get(
            "/api/v1/link-requests/pending", headers=registered_parent["headers"],
        )
        assert pending.json() == []

    async def test_blank_code_rejected(self, client):
        resp = await create_link_request(client, "   ")
        assert resp.status_code == 422

    async def test_long_nickname_rejected(self, client, registered_parent):
        resp = await create_link_request(client, registered_parent["family_code"], nickname="가" * 51)
        assert resp.status_code == 422

        resp = await create_link_request(client, registered_parent["family_code"], nickname="가" * 50)
        assert resp.status_code == 201

    async def test_long_avatar_rejected(self, client, registered_parent):
        resp = await create_link_request(
            client, registered_parent["family_code"], childAvatar="🐰" * 33,
        )
        assert resp.status_code == 422

    async def test_device_remembers_active_request(self, client, registered_parent):
        resp = await create_link_request(
            client, registered_parent["family_code"], device_id="tablet-1",
        )
        request_id = resp.json()["id"]

        session = await client.get("/api/v1/devices/tablet-1/session")
        assert session.json()["active_request_id"] == request_id

    async def test_new_request_replaces_active_request(self, client, registered_parent):
        code = registered_parent["family_code"]
        await create_link_request(client, code, device_id="tablet-1")
        second = await create_link_request(client, code, device_id="tablet-1")

        session = await client.get("/api/v1/devices/tablet-1/session")
        assert session.json()["active_request_id"] == second.json()["id"]

    async def test_creation_is_rate_limited(self, client, registered_parent):
        limit = int(settings.LINK_REQUEST_RATE_LIMIT.split("/")[0])
        for _ in range(limit):
            resp = await create_link_request(client, registered_parent["family_code"])
            assert resp.status_code == 201
        resp = await create_link_request(client, registered_parent["family_code"])
        assert resp.status_code == 429


class TestGetLinkRequest:
    async def test_point_lookup(self, client, registered_parent):
        created = (await create_link_request(client, registered_parent["family_code"])).json()
        resp = await client.get(f"/api/v1/link-requests/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "pending"

    async def test_missing_request(self, client):
        resp = await client.get("/api/v1/link-requests/req_0_missing")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "request-not-found"


class TestPendingRequests:
    async def test_most_recent_first(self, client, registered_parent):
        code = registered_parent["family_code"]
        ids = []
        for name in ("첫째", "둘째", "셋째"):
            ids.append((await create_link_request(client, code, nickname=name)).json()["id"])

        resp = await client.get(
            "/api/v1/link-requests/pending", headers=registered_parent["headers"],
        )
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()] == list(reversed(ids))

    async def test_only_own_family(self, client, registered_parent, other_parent):
        await create_link_request(client, registered_parent["family_code"], nickname="우리 애")
        await create_link_request(client, other_parent["family_code"], nickname="남의 애")

        resp = await client.get(
            "/api/v1/link-requests/pending", headers=registered_parent["headers"],
        )
        assert [r["child_nickname"] for r in resp.json()] == ["우리 애"]

    async def test_resolved_requests_drop_out(self, client, registered_parent):
        p = registered_parent
        approved = (await create_link_request(client, p["family_code"])).json()
        rejected = (await create_link_request(client, p["family_code"])).json()
        waiting = (await create_link_request(client, p["family_code"])).json()

        await client.post(
            f"/api/v1/link-requests/{approved['id']}/approve",
            headers=p["headers"], json=approval_body(),
        )
        await client.post(
            f"/api/v1/link-requests/{rejected['id']}/reject",
            headers=p["headers"], json={},
        )

        resp = await client.get("/api/v1/link-requests/pending", headers=p["headers"])
        assert [r["id"] for r in resp.json()] == [waiting["id"]]

    async def test_parent_without_family(self, client):
        p = await register_parent(client, with_family=False)
        resp = await client.get("/api/v1/link-requests/pending", headers=p["headers"])
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_requires_authentication(self, client):
        resp = await client.get("/api/v1/link-requests/pending")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "not-authenticated"


class TestApprove:
    async def test_approve_creates_child(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"],
            json=approval_body(confirmedNickname="  민지짱 ", confirmedAge=6),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()

        request = data["request"]
        child = data["child"]
        assert request["status"] == "approved"
        assert request["parent_uid"] == p["user_id"]
        assert request["child_id"] == child["child_id"]
        assert CHILD_ID_PATTERN.match(child["child_id"])
        assert child["nickname"] == "민지짱"
        assert child["age"] == 6
        assert child["avatar"] == "🐰"
        assert child["family_code"] == p["family_code"]
        assert child["parent_uid"] == p["user_id"]
        assert child["approval_settings"]["base_coin_reward"] == 10
        assert child["approval_settings"]["approval_mode"] == "manual"

        family = (await client.get("/api/v1/families/me", headers=p["headers"])).json()
        assert family["children"] == [child["child_id"]]

        child_resp = await client.get(f"/api/v1/children/{child['child_id']}")
        assert child_resp.status_code == 200
        assert child_resp.json()["nickname"] == "민지짱"

    async def test_second_approval_conflicts(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        url = f"/api/v1/link-requests/{created['id']}/approve"

        first = await client.post(url, headers=p["headers"], json=approval_body())
        assert first.status_code == 200
        second = await client.post(url, headers=p["headers"], json=approval_body())
        assert second.status_code == 409
        assert second.json()["detail"] == "request-not-pending"

        children = await client.get("/api/v1/families/me/children", headers=p["headers"])
        assert len(children.json()) == 1
        family = (await client.get("/api/v1/families/me", headers=p["headers"])).json()
        assert len(family["children"]) == 1

    async def test_missing_consent(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"],
            json=approval_body(privacyAgreed=False),
        )
        assert resp.status_code == 422
        assert "consent-required" in resp.text

        lookup = await client.get(f"/api/v1/link-requests/{created['id']}")
        assert lookup.json()["status"] == "pending"

    async def test_blank_nickname(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"],
            json=approval_body(confirmedNickname="   "),
        )
        assert resp.status_code == 422

    async def test_long_confirmed_nickname(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"],
            json=approval_body(confirmedNickname="가" * 51),
        )
        assert resp.status_code == 422

        pending = await client.get("/api/v1/link-requests/pending", headers=p["headers"])
        assert [item["id"] for item in pending.json()] == [created["id"]]

    async def test_bad_usage_time(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"],
            json=approval_body(usageStartTime="25:00"),
        )
        assert resp.status_code == 422

    async def test_approve_missing_request(self, client, registered_parent):
        resp = await client.post(
            "/api/v1/link-requests/req_0_missing/approve",
            headers=registered_parent["headers"],
            json=approval_body(),
        )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "request-not-found"

    async def test_other_family_cannot_approve(self, client, registered_parent, other_parent):
        created = (await create_link_request(client, registered_parent["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=other_parent["headers"],
            json=approval_body(),
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == "not-family-owner"

        lookup = await client.get(f"/api/v1/link-requests/{created['id']}")
        assert lookup.json()["status"] == "pending"

    async def test_ownership_check_can_be_disabled(
        self, client, registered_parent, other_parent, monkeypatch,
    ):
        monkeypatch.setattr(settings, "ENFORCE_FAMILY_OWNERSHIP", False)
        created = (await create_link_request(client, registered_parent["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=other_parent["headers"],
            json=approval_body(),
        )
        assert resp.status_code == 200
        # The child still joins the family the request was addressed to
        assert resp.json()["child"]["family_code"] == registered_parent["family_code"]

    async def test_approve_unauthenticated(self, client, registered_parent):
        created = (await create_link_request(client, registered_parent["family_code"])).json()
        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve", json=approval_body(),
        )
        assert resp.status_code == 401


class TestReject:
    async def test_reject_with_reason(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/reject",
            headers=p["headers"],
            json={"reason": "모르는 아이예요"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "rejected"
        assert data["rejection_reason"] == "모르는 아이예요"
        assert data["parent_uid"] == p["user_id"]
        assert data["child_id"] is None

    async def test_blank_reason_gets_default(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/reject",
            headers=p["headers"],
            json={"reason": "  "},
        )
        assert resp.json()["rejection_reason"] == settings.DEFAULT_REJECTION_REASON

    async def test_reject_creates_nothing(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        await client.post(
            f"/api/v1/link-requests/{created['id']}/reject", headers=p["headers"], json={},
        )

        children = await client.get("/api/v1/families/me/children", headers=p["headers"])
        assert children.json() == []
        family = (await client.get("/api/v1/families/me", headers=p["headers"])).json()
        assert family["children"] == []

    async def test_cannot_reject_approved_request(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"], json=approval_body(),
        )

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/reject", headers=p["headers"], json={},
        )
        assert resp.status_code == 409
        lookup = await client.get(f"/api/v1/link-requests/{created['id']}")
        assert lookup.json()["status"] == "approved"

    async def test_cannot_approve_rejected_request(self, client, registered_parent):
        p = registered_parent
        created = (await create_link_request(client, p["family_code"])).json()
        await client.post(
            f"/api/v1/link-requests/{created['id']}/reject", headers=p["headers"], json={},
        )

        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/approve",
            headers=p["headers"], json=approval_body(),
        )
        assert resp.status_code == 409

    async def test_other_family_cannot_reject(self, client, registered_parent, other_parent):
        created = (await create_link_request(client, registered_parent["family_code"])).json()
        resp = await client.post(
            f"/api/v1/link-requests/{created['id']}/reject",
            headers=other_parent["headers"],
            json={},
        )
        assert resp.status_code == 403


class TestPairingScenario:
    """A child pairs with a family from first request to rejection of a second one."""

    async def test_request_approve_reject(self, client, registered_parent):
        p = registered_parent

        # a. the child asks to join
        created = await create_link_request(
            client, p["family_code"], nickname="토토", childAvatar="🐼",
        )
        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status"] == "pending"

        # b. the parent sees it and approves
        pending = await client.get("/api/v1/link-requests/pending", headers=p["headers"])
        assert [r["id"] for r in pending.json()] == [request_id]

        approved = await client.post(
            f"/api/v1/link-requests/{request_id}/approve",
            headers=p["headers"],
            json=approval_body(confirmedNickname="토토"),
        )
        assert approved.status_code == 200
        child = approved.json()["child"]
        assert child["nickname"] == "토토"
        family = (await client.get("/api/v1/families/me", headers=p["headers"])).json()
        assert family["children"] == [child["child_id"]]

        # c. approving again fails and creates no second child
        again = await client.post(
            f"/api/v1/link-requests/{request_id}/approve",
            headers=p["headers"],
            json=approval_body(confirmedNickname="토토"),
        )
        assert again.json()["detail"] == "request-not-pending"
        children = await client.get("/api/v1/families/me/children", headers=p["headers"])
        assert len(children.json()) == 1

        # d. a wrong code is refused
        wrong = await create_link_request(client, "ZZZZZZ")
        assert wrong.json()["detail"] == "invalid-family-code"

        # e. a second request is rejected with a reason kept verbatim
        second = (await create_link_request(client, p["family_code"], nickname="두두")).json()
        rejected = await client.post(
            f"/api/v1/link-requests/{second['id']}/reject",
            headers=p["headers"],
            json={"reason": "코드를 다시 확인해주세요"},
        )
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejection_reason"] == "코드를 다시 확인해주세요"
        children = await client.get("/api/v1/families/me/children", headers=p["headers"])
        assert len(children.json()) == 1
