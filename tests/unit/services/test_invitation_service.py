"""Unit tests for InvitationService."""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    AlreadyAGroupMemberError,
    DataStoreError,
    InsufficientPermissionsError,
    InvitationExpiredError,
    InvitationNoLongerValidError,
    InvitationNotFoundError,
    NotAMemberError,
)
from domain.entities.activity import Actions
from domain.entities.group import BudgetGroup, FamilyRole, GroupRole
from domain.entities.invitation import InvitationStatus
from domain.repositories.data_store import Tables
from domain.services.invitation_service import normalize_email
from tests.unit.conftest import InMemoryDataStore, Services


@pytest.fixture
async def group(services: Services, owner_id: UUID) -> BudgetGroup:
    return await services.group_with(owner_id, ada=GroupRole.ADMIN, sam=GroupRole.MEMBER)


def _expire(store: InMemoryDataStore, token: str) -> None:
    for row in store.rows(Tables.INVITATIONS):
        if row["token"] == token:
            row["expires_at"] = datetime.utcnow() - timedelta(minutes=1)


# --- issue ---


class TestIssue:
    @pytest.mark.asyncio
    async def test_issues_pending_invitation(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "  Guest@Example.COM ")

        assert invitation.status == InvitationStatus.PENDING
        assert invitation.email == "guest@example.com"
        assert invitation.role == GroupRole.MEMBER
        assert invitation.token.startswith("store-token-")
        assert invitation.expires_at - invitation.created_at == timedelta(days=7)
        assert services.actions()[-1] == Actions.INVITED_MEMBER

    @pytest.mark.asyncio
    async def test_admin_may_invite(self, services: Services, group: BudgetGroup):
        invitation = await services.invitations.issue(
            group.id, services.users["ada"], "guest@example.com", role=GroupRole.VIEWER
        )

        assert invitation.role == GroupRole.VIEWER

    @pytest.mark.asyncio
    async def test_member_may_not_invite(self, services: Services, group: BudgetGroup):
        with pytest.raises(InsufficientPermissionsError):
            await services.invitations.issue(group.id, services.users["sam"], "guest@example.com")

    @pytest.mark.asyncio
    async def test_owner_role_cannot_be_invited(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        with pytest.raises(InsufficientPermissionsError):
            await services.invitations.issue(
                group.id, owner_id, "guest@example.com", role=GroupRole.OWNER
            )

    @pytest.mark.asyncio
    async def test_non_member_may_not_invite(self, services: Services, group: BudgetGroup):
        with pytest.raises(NotAMemberError):
            await services.invitations.issue(group.id, uuid4(), "guest@example.com")

    @pytest.mark.asyncio
    async def test_family_role_is_kept_in_metadata(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(
            group.id, owner_id, "kid@example.com", family_role="child"
        )

        assert invitation.metadata.family_role == FamilyRole.CHILD
        assert store.rows(Tables.INVITATIONS)[0]["metadata"] == {"family_role": "child"}

    @pytest.mark.asyncio
    async def test_token_falls_back_when_procedure_fails(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        store.fail("generate_invitation_token", "call")

        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")

        assert not invitation.token.startswith("store-token")
        assert len(invitation.token) >= 32

    @pytest.mark.asyncio
    async def test_token_falls_back_on_empty_result(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        store.procedure_result = None

        first = await services.invitations.issue(group.id, owner_id, "a@example.com")
        second = await services.invitations.issue(group.id, owner_id, "b@example.com")

        assert first.token and second.token
        assert first.token != second.token


# --- accept ---


class TestAccept:
    @pytest.mark.asyncio
    async def test_accept_creates_membership(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(
            group.id, owner_id, "guest@example.com", role=GroupRole.VIEWER, family_role="guardian"
        )
        guest = store.add_profile(email="guest@example.com")

        accepted = await services.invitations.accept(invitation.token, guest)

        assert accepted.status == InvitationStatus.ACCEPTED
        member = next(m for m in store.rows(Tables.MEMBERS) if m["user_id"] == guest)
        assert member["role"] == "viewer"
        assert member["family_role"] == "guardian"
        assert services.actions()[-1] == Actions.ACCEPTED_INVITATION

    @pytest.mark.asyncio
    async def test_accepting_twice_is_an_error(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        guest = uuid4()
        await services.invitations.accept(invitation.token, guest)

        with pytest.raises(InvitationNoLongerValidError) as exc_info:
            await services.invitations.accept(invitation.token, guest)

        assert exc_info.value.details == {"status": "accepted"}

    @pytest.mark.asyncio
    async def test_expired_invitation_is_marked_expired(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        _expire(store, invitation.token)

        with pytest.raises(InvitationExpiredError):
            await services.invitations.accept(invitation.token, uuid4())

        view = await services.invitations.lookup_by_token(invitation.token)
        assert view.invitation.status == InvitationStatus.EXPIRED
        with pytest.raises(InvitationNoLongerValidError):
            await services.invitations.accept(invitation.token, uuid4())

    @pytest.mark.asyncio
    async def test_existing_member_cannot_accept(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "sam@example.com")

        with pytest.raises(AlreadyAGroupMemberError):
            await services.invitations.accept(invitation.token, services.users["sam"])

        view = await services.invitations.lookup_by_token(invitation.token)
        assert view.invitation.status == InvitationStatus.PENDING

    @pytest.mark.asyncio
    async def test_membership_failure_leaves_invitation_pending(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        store.fail(Tables.MEMBERS, "insert", times=1)
        guest = uuid4()

        with pytest.raises(DataStoreError):
            await services.invitations.accept(invitation.token, guest)

        retried = await services.invitations.accept(invitation.token, guest)
        assert retried.status == InvitationStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_unknown_token(self, services: Services):
        with pytest.raises(InvitationNotFoundError):
            await services.invitations.accept("nope", uuid4())


# --- reject / cancel ---


class TestReject:
    @pytest.mark.asyncio
    async def test_anonymous_reject_is_attributed_to_inviter(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")

        rejected = await services.invitations.reject(invitation.token)

        assert rejected.status == InvitationStatus.REJECTED
        entry = store.rows(Tables.ACTIVITY)[-1]
        assert entry["action"] == Actions.REJECTED_INVITATION
        assert entry["user_id"] == owner_id

    @pytest.mark.asyncio
    async def test_reject_ignores_expiry(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        _expire(store, invitation.token)
        guest = uuid4()

        rejected = await services.invitations.reject(invitation.token, guest)

        assert rejected.status == InvitationStatus.REJECTED
        assert store.rows(Tables.ACTIVITY)[-1]["user_id"] == guest

    @pytest.mark.asyncio
    async def test_cannot_accept_after_reject(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        await services.invitations.reject(invitation.token)

        with pytest.raises(InvitationNoLongerValidError):
            await services.invitations.accept(invitation.token, uuid4())
        with pytest.raises(InvitationNoLongerValidError):
            await services.invitations.reject(invitation.token)


class TestCancel:
    @pytest.mark.asyncio
    async def test_admin_cancels(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")

        await services.invitations.cancel(group.id, invitation.id, services.users["ada"])

        assert store.rows(Tables.INVITATIONS) == []
        assert services.actions()[-1] == Actions.CANCELLED_INVITATION

    @pytest.mark.asyncio
    async def test_member_cannot_cancel(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")

        with pytest.raises(InsufficientPermissionsError):
            await services.invitations.cancel(group.id, invitation.id, services.users["sam"])

    @pytest.mark.asyncio
    async def test_unknown_invitation(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        with pytest.raises(InvitationNotFoundError):
            await services.invitations.cancel(group.id, uuid4(), owner_id)

    @pytest.mark.asyncio
    async def test_invitation_of_another_group_is_not_found(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        other = await services.groups.create("Cabin", owner_id)
        invitation = await services.invitations.issue(other.id, owner_id, "guest@example.com")

        with pytest.raises(InvitationNotFoundError):
            await services.invitations.cancel(group.id, invitation.id, owner_id)

        assert [row["id"] for row in store.rows(Tables.INVITATIONS)] == [invitation.id]


# --- reads ---


class TestReads:
    @pytest.mark.asyncio
    async def test_lookup_includes_group_and_inviter(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")

        view = await services.invitations.lookup_by_token(invitation.token)

        assert view.group_name == "Household"
        assert view.inviter is not None
        assert view.inviter.full_name == "Olive Owner"

    @pytest.mark.asyncio
    async def test_lookup_survives_enrichment_failure(
        self, services: Services, store: InMemoryDataStore, group: BudgetGroup, owner_id: UUID
    ):
        invitation = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        store.fail(Tables.GROUPS, "select")

        view = await services.invitations.lookup_by_token(invitation.token)

        assert view.invitation.id == invitation.id
        assert view.group_name is None

    @pytest.mark.asyncio
    async def test_list_for_email_only_pending(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        kept = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        gone = await services.invitations.issue(group.id, owner_id, "guest@example.com")
        await services.invitations.reject(gone.token)
        await services.invitations.issue(group.id, owner_id, "other@example.com")

        result = await services.invitations.list_for_email("GUEST@example.com")

        assert [i.id for i in result] == [kept.id]

    @pytest.mark.asyncio
    async def test_list_for_blank_email(self, services: Services):
        assert await services.invitations.list_for_email("  ") == []
        assert await services.invitations.list_for_email(None) == []

    @pytest.mark.asyncio
    async def test_list_for_group_requires_membership(
        self, services: Services, group: BudgetGroup, owner_id: UUID
    ):
        await services.invitations.issue(group.id, owner_id, "guest@example.com")

        assert len(await services.invitations.list_for_group(group.id, services.users["sam"])) == 1
        with pytest.raises(NotAMemberError):
            await services.invitations.list_for_group(group.id, uuid4())


def test_normalize_email() -> None:
    assert normalize_email(" A@B.com ") == "a@b.com"
    assert normalize_email(None) == ""
