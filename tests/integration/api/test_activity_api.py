"""Integration tests for the group activity feed."""

from typing import Any

import pytest
from httpx import AsyncClient

from tests.conftest import ActingUser

GROUPS = "/api/v1/groups"


class TestActivityFeed:
    @pytest.mark.asyncio
    async def test_feed_records_group_actions(self, authenticated_client: AsyncClient) -> None:
        created = await authenticated_client.post(GROUPS, json={"name": "Family"})
        group_id = created.json()["data"]["id"]
        await authenticated_client.patch(f"{GROUPS}/{group_id}", json={"name": "Household"})
        await authenticated_client.post(
            f"{GROUPS}/{group_id}/invitations", json={"email": "guest@example.com"}
        )

        response = await authenticated_client.get(f"{GROUPS}/{group_id}/activity")

        body = response.json()
        assert response.status_code == 200
        assert body["meta"]["total"] == 3
        assert {e["action"] for e in body["data"]} == {
            "created_group",
            "updated_group",
            "invited_member",
        }
        assert all(e["user"]["full_name"] == "Test User" for e in body["data"])

    @pytest.mark.asyncio
    async def test_limit(self, authenticated_client: AsyncClient) -> None:
        created = await authenticated_client.post(GROUPS, json={"name": "Family"})
        group_id = created.json()["data"]["id"]
        for name in ("One", "Two", "Three"):
            await authenticated_client.patch(f"{GROUPS}/{group_id}", json={"name": name})

        response = await authenticated_client.get(f"{GROUPS}/{group_id}/activity?limit=2")
        invalid = await authenticated_client.get(f"{GROUPS}/{group_id}/activity?limit=0")

        assert len(response.json()["data"]) == 2
        assert invalid.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_membership(
        self, authenticated_client: AsyncClient, acting: ActingUser, make_user: Any
    ) -> None:
        created = await authenticated_client.post(GROUPS, json={"name": "Family"})
        acting.user = await make_user()

        response = await authenticated_client.get(
            f"{GROUPS}/{created.json()['data']['id']}/activity"
        )

        assert response.status_code == 404
