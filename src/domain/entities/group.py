"""Budget group and membership domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class GroupRole(StrEnum):
    """Role of a user within a budget group."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class FamilyRole(StrEnum):
    """Household role shown next to a member. Display metadata only."""

    PARENT = "parent"
    CHILD = "child"
    GUARDIAN = "guardian"
    OTHER = "other"


def parse_family_role(value: object) -> FamilyRole | None:
    """Return the FamilyRole for ``value`` or None when absent or unknown."""
    if isinstance(value, FamilyRole):
        return value
    if not isinstance(value, str):
        return None
    try:
        return FamilyRole(value.strip().lower())
    except ValueError:
        return None


@dataclass
class BudgetGroup:
    """Domain entity for a shared budget group."""

    name: str
    created_by: UUID
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    is_active: bool = True
    avatar_url: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class GroupMember:
    """Domain entity for a group membership, keyed by (group_id, user_id)."""

    group_id: UUID
    user_id: UUID
    role: GroupRole = GroupRole.MEMBER
    family_role: FamilyRole | None = None
    joined_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class GroupWithRole:
    """A group as seen by one of its members."""

    group: BudgetGroup
    role: GroupRole
    joined_at: datetime
