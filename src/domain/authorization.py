"""Role-based authorization rules for budget groups.

Pure functions with no I/O. Services resolve the actor's role (and the
target's role where relevant) and ask here before every write.

    MANAGE_GROUP                     owner, admin
    UPDATE_MEMBER_ROLE / REMOVE      owner: any target but self
                                     admin: member and viewer targets only
    INVITE                           owner, admin; invited role never owner
    CREATE_RECORD                    owner, admin, member
    EDIT_RECORD / DELETE_RECORD      owner, admin, or the record's creator
    VIEW                             any member
"""

from enum import StrEnum

from core.exceptions import InsufficientPermissionsError
from domain.entities.group import GroupRole
from domain.entities.invitation import INVITABLE_ROLES


class GroupOperation(StrEnum):
    """Operations gated by a member's role."""

    VIEW = "view"
    MANAGE_GROUP = "manage_group"
    UPDATE_MEMBER_ROLE = "update_member_role"
    REMOVE_MEMBER = "remove_member"
    INVITE = "invite"
    CREATE_RECORD = "create_record"
    EDIT_RECORD = "edit_record"
    DELETE_RECORD = "delete_record"


_MANAGERS = frozenset({GroupRole.OWNER, GroupRole.ADMIN})
_CONTRIBUTORS = frozenset({GroupRole.OWNER, GroupRole.ADMIN, GroupRole.MEMBER})
_ADMIN_MANAGEABLE = frozenset({GroupRole.MEMBER, GroupRole.VIEWER})

MEMBER_OPERATIONS = frozenset({GroupOperation.UPDATE_MEMBER_ROLE, GroupOperation.REMOVE_MEMBER})
RECORD_OPERATIONS = frozenset({GroupOperation.EDIT_RECORD, GroupOperation.DELETE_RECORD})


def can_manage_member(actor_role: GroupRole, target_role: GroupRole, is_self: bool = False) -> bool:
    """Whether ``actor_role`` may change or remove a member holding ``target_role``."""
    if actor_role == GroupRole.OWNER:
        return not is_self
    if actor_role == GroupRole.ADMIN:
        return target_role in _ADMIN_MANAGEABLE
    return False


def is_allowed(
    actor_role: GroupRole,
    operation: GroupOperation,
    *,
    target_role: GroupRole | None = None,
    is_self: bool = False,
    is_creator: bool = False,
) -> bool:
    """Decide whether an actor may perform an operation.

    Args:
        actor_role: The acting user's role in the group.
        operation: The requested operation.
        target_role: For member operations, the role held by the target
            membership. For INVITE, the role the invitation would grant.
        is_self: The target membership belongs to the actor.
        is_creator: The actor created the record being edited or deleted.
    """
    if operation == GroupOperation.VIEW:
        return True

    if operation == GroupOperation.MANAGE_GROUP:
        return actor_role in _MANAGERS

    if operation in MEMBER_OPERATIONS:
        if target_role is None:
            return False
        return can_manage_member(actor_role, target_role, is_self)

    if operation == GroupOperation.INVITE:
        if actor_role not in _MANAGERS:
            return False
        return target_role is None or target_role in INVITABLE_ROLES

    if operation == GroupOperation.CREATE_RECORD:
        return actor_role in _CONTRIBUTORS

    if operation in RECORD_OPERATIONS:
        return actor_role in _MANAGERS or is_creator

    return False


def require_allowed(
    actor_role: GroupRole,
    operation: GroupOperation,
    *,
    target_role: GroupRole | None = None,
    is_self: bool = False,
    is_creator: bool = False,
) -> None:
    """Raise InsufficientPermissionsError unless ``is_allowed`` approves."""
    if not is_allowed(
        actor_role,
        operation,
        target_role=target_role,
        is_self=is_self,
        is_creator=is_creator,
    ):
        raise InsufficientPermissionsError(operation.value, actor_role.value)


def can_assign_role(actor_role: GroupRole, new_role: GroupRole) -> bool:
    """Whether ``actor_role`` may hand out ``new_role`` in a role change.

    Same ceiling as invitations: nobody is promoted to owner through a
    role change.
    """
    return actor_role in _MANAGERS and new_role in INVITABLE_ROLES
