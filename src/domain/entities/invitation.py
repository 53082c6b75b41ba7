"""Invitation domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from domain.entities.group import FamilyRole, GroupRole, parse_family_role
from domain.entities.profile import UserStub

# Default invitation expiry: 7 days
INVITATION_EXPIRY_DAYS = 7

# Roles an invitation may carry. Ownership is never handed out by invite.
INVITABLE_ROLES = frozenset({GroupRole.ADMIN, GroupRole.MEMBER, GroupRole.VIEWER})


class InvitationStatus(StrEnum):
    """Status of a group invitation.

    ``pending`` is the only non-terminal state.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


@dataclass(frozen=True)
class InvitationMetadata:
    """Validated shape of the free-form invitation metadata blob."""

    family_role: FamilyRole | None = None

    @classmethod
    def parse(cls, raw: Any) -> "InvitationMetadata":
        """Parse stored metadata. Malformed input yields empty metadata."""
        if not isinstance(raw, dict):
            return cls()
        return cls(family_role=parse_family_role(raw.get("family_role")))

    def to_dict(self) -> dict[str, Any] | None:
        if self.family_role is None:
            return None
        return {"family_role": self.family_role.value}


@dataclass
class Invitation:
    """Domain entity for an email-addressed group invitation."""

    group_id: UUID
    invited_by: UUID
    email: str
    role: GroupRole
    token: str
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=INVITATION_EXPIRY_DAYS)
    )
    metadata: InvitationMetadata = field(default_factory=InvitationMetadata)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the invitation is past its expiry date."""
        return (now or datetime.utcnow()) > self.expires_at

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING


@dataclass
class InvitationView:
    """An invitation with denormalized group and inviter display fields.

    Used before the invitee has joined, so everything beyond the invitation
    itself is optional.
    """

    invitation: Invitation
    group_name: str | None = None
    group_description: str | None = None
    group_avatar_url: str | None = None
    inviter: UserStub | None = None
