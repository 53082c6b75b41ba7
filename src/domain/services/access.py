"""Membership lookups shared by the services before they authorize."""

from uuid import UUID

from core.exceptions import NotAMemberError
from domain.entities.group import GroupMember
from domain.repositories.membership_repository import MembershipRepository


async def require_membership(
    members: MembershipRepository, group_id: UUID, user_id: UUID
) -> GroupMember:
    """Return the user's membership or raise NotAMemberError.

    A missing membership means no access; no role is ever assumed.
    """
    member = await members.get(group_id, user_id)
    if member is None:
        raise NotAMemberError(str(group_id))
    return member
