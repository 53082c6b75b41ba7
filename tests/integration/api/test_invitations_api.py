"""Integration tests for the invitation API."""

from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient

from infrastructure.auth.provider import TokenUser
from tests.conftest import ActingUser

GROUPS = "/api/v1/groups"
INVITATIONS = "/api/v1/invitations"


@pytest.fixture
async def group_id(authenticated_client: AsyncClient) -> str:
    response = await authenticated_client.post(GROUPS, json={"name": "Family"})
    return response.json()["data"]["id"]


async def _invite(client: AsyncClient, group_id: str, email: str, **extra: Any) -> dict[str, Any]:
    response = await client.post(
        f"{GROUPS}/{group_id}/invitations", json={"email": email, **extra}
    )
    assert response.status_code == 201
    return response.json()


class TestIssue:
    @pytest.mark.asyncio
    async def test_owner_invites(self, authenticated_client: AsyncClient, group_id: str) -> None:
        body = await _invite(
            authenticated_client, group_id, " Guest@Example.com", role="viewer", family_role="child"
        )

        assert body["token"]
        assert body["data"]["email"] == "guest@example.com"
        assert body["data"]["role"] == "viewer"
        assert body["data"]["family_role"] == "child"
        assert body["data"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_invalid_email(self, authenticated_client: AsyncClient, group_id: str) -> None:
        response = await authenticated_client.post(
            f"{GROUPS}/{group_id}/invitations", json={"email": "not-an-email"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_for_group(self, authenticated_client: AsyncClient, group_id: str) -> None:
        await _invite(authenticated_client, group_id, "a@example.com")
        await _invite(authenticated_client, group_id, "b@example.com")

        response = await authenticated_client.get(f"{GROUPS}/{group_id}/invitations")

        assert response.status_code == 200
        assert {i["email"] for i in response.json()["data"]} == {"a@example.com", "b@example.com"}

    @pytest.mark.asyncio
    async def test_cancel(self, authenticated_client: AsyncClient, group_id: str) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com")

        response = await authenticated_client.delete(
            f"{GROUPS}/{group_id}/invitations/{body['data']['id']}"
        )
        lookup = await authenticated_client.get(f"{INVITATIONS}/{body['token']}")

        assert response.status_code == 204
        assert lookup.status_code == 404

    @pytest.mark.asyncio
    async def test_cancel_through_other_group_is_not_found(
        self, authenticated_client: AsyncClient, group_id: str
    ) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com")
        other = await authenticated_client.post(GROUPS, json={"name": "Cabin"})
        other_id = other.json()["data"]["id"]

        response = await authenticated_client.delete(
            f"{GROUPS}/{other_id}/invitations/{body['data']['id']}"
        )
        lookup = await authenticated_client.get(f"{INVITATIONS}/{body['token']}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "INVITATION_NOT_FOUND"
        assert lookup.status_code == 200


class TestLookup:
    @pytest.mark.asyncio
    async def test_public_lookup_shows_group_and_inviter(
        self, authenticated_client: AsyncClient, group_id: str
    ) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com")

        response = await authenticated_client.get(f"{INVITATIONS}/{body['token']}")

        detail = response.json()
        assert response.status_code == 200
        assert detail["group_name"] == "Family"
        assert detail["inviter"]["full_name"] == "Test User"
        assert detail["data"]["id"] == body["data"]["id"]

    @pytest.mark.asyncio
    async def test_unknown_token(self, authenticated_client: AsyncClient) -> None:
        response = await authenticated_client.get(f"{INVITATIONS}/missing-token")

        assert response.status_code == 404
        assert response.json()["error_code"] == "INVITATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_pending_for_current_user(
        self,
        authenticated_client: AsyncClient,
        acting: ActingUser,
        make_user: Any,
        group_id: str,
    ) -> None:
        guest = await make_user(email="guest@example.com")
        await _invite(authenticated_client, group_id, "guest@example.com")
        await _invite(authenticated_client, group_id, "someone@example.com")
        acting.user = guest

        response = await authenticated_client.get(f"{INVITATIONS}/pending")

        assert response.status_code == 200
        assert [i["email"] for i in response.json()["data"]] == ["guest@example.com"]


class TestAccept:
    @pytest.mark.asyncio
    async def test_accept_joins_group(
        self,
        authenticated_client: AsyncClient,
        acting: ActingUser,
        make_user: Any,
        group_id: str,
    ) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com", role="admin")
        acting.user = await make_user(email="guest@example.com")

        response = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")
        group = await authenticated_client.get(f"{GROUPS}/{group_id}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "accepted"
        assert group.status_code == 200
        assert group.json()["data"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_accept_twice_conflicts(
        self,
        authenticated_client: AsyncClient,
        acting: ActingUser,
        make_user: Any,
        group_id: str,
    ) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com")
        acting.user = await make_user()
        await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")

        response = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_state"
        assert response.json()["details"] == {"status": "accepted"}

    @pytest.mark.asyncio
    async def test_existing_member_conflicts(
        self, authenticated_client: AsyncClient, group_id: str
    ) -> None:
        body = await _invite(authenticated_client, group_id, "test@example.com")

        response = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_A_GROUP_MEMBER"

    @pytest.mark.asyncio
    async def test_user_without_profile_is_not_reported_as_member(
        self,
        authenticated_client: AsyncClient,
        acting: ActingUser,
        test_user: TokenUser,
        group_id: str,
    ) -> None:
        body = await _invite(authenticated_client, group_id, "ghost@example.com")
        acting.user = TokenUser(id=uuid4(), email="ghost@example.com")

        response = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")
        acting.user = test_user
        lookup = await authenticated_client.get(f"{INVITATIONS}/{body['token']}")

        assert response.status_code == 422
        assert response.json()["kind"] == "validation"
        assert response.json()["error_code"] == "CONSTRAINT_VIOLATION"
        assert lookup.json()["data"]["status"] == "pending"


class TestReject:
    @pytest.mark.asyncio
    async def test_anonymous_reject(
        self, authenticated_client: AsyncClient, group_id: str
    ) -> None:
        body = await _invite(authenticated_client, group_id, "guest@example.com")

        response = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/reject")
        accept = await authenticated_client.post(f"{INVITATIONS}/{body['token']}/accept")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "rejected"
        assert accept.status_code == 409
