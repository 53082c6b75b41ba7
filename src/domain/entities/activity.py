"""Activity log domain entity, action constants and typed details."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Union
from uuid import UUID, uuid4

from domain.entities.profile import UserStub


class Actions:
    """Activity action names as stored in ``group_activity_log.action``."""

    # Group actions
    CREATED_GROUP = "created_group"
    UPDATED_GROUP = "updated_group"

    # Member actions
    UPDATED_MEMBER = "updated_member"
    REMOVED_MEMBER = "removed_member"

    # Invitation actions
    INVITED_MEMBER = "invited_member"
    ACCEPTED_INVITATION = "accepted_invitation"
    REJECTED_INVITATION = "rejected_invitation"
    CANCELLED_INVITATION = "cancelled_invitation"

    # Transaction / budget actions (paired with an entity type)
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class EntityTypes:
    """Entity type names as stored in ``group_activity_log.entity_type``."""

    GROUP = "group"
    MEMBER = "member"
    INVITATION = "invitation"
    TRANSACTION = "transaction"
    BUDGET = "budget"


@dataclass(frozen=True)
class GroupActivityDetails:
    group_name: str
    is_active: bool | None = None


@dataclass(frozen=True)
class MemberActivityDetails:
    role: str
    previous_role: str | None = None
    family_role: str | None = None


@dataclass(frozen=True)
class InvitationActivityDetails:
    email: str
    role: str


@dataclass(frozen=True)
class TransactionActivityDetails:
    amount: Decimal
    type: str


@dataclass(frozen=True)
class BudgetActivityDetails:
    name: str
    amount: Decimal


ActivityDetails = Union[
    GroupActivityDetails,
    MemberActivityDetails,
    InvitationActivityDetails,
    TransactionActivityDetails,
    BudgetActivityDetails,
    dict[str, Any],
]


def details_to_json(details: ActivityDetails | None) -> dict[str, Any]:
    """Serialize typed details to the JSON object stored on the row."""
    if details is None:
        return {}
    raw = details if isinstance(details, dict) else asdict(details)
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in raw.items()
        if value is not None
    }


@dataclass
class ActivityLogEntry:
    """Domain entity for an append-only group activity log entry."""

    group_id: UUID
    user_id: UUID
    action: str
    entity_type: str
    id: UUID = field(default_factory=uuid4)
    entity_id: UUID | None = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    user: UserStub | None = None
