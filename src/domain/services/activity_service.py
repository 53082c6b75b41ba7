"""Activity service layer for recording and reading the group audit trail."""

from uuid import UUID

import structlog

from core.config import settings
from domain.entities.activity import ActivityDetails, ActivityLogEntry, details_to_json
from domain.entities.profile import UserStub
from domain.repositories.activity_repository import ActivityRepository
from domain.repositories.data_store import IDataStore
from domain.repositories.membership_repository import MembershipRepository
from domain.repositories.profile_repository import ProfileRepository
from domain.services.access import require_membership

logger = structlog.get_logger()


class ActivityService:
    """Service layer for the append-only group activity log."""

    def __init__(self, store: IDataStore) -> None:
        self._activities = ActivityRepository(store)
        self._members = MembershipRepository(store)
        self._profiles = ProfileRepository(store)

    async def record(
        self,
        group_id: UUID,
        user_id: UUID,
        action: str,
        entity_type: str,
        entity_id: UUID | None = None,
        details: ActivityDetails | None = None,
    ) -> ActivityLogEntry | None:
        """Append an activity entry without ever failing the caller.

        The write is retried once without ``details`` and ``entity_id``
        (the fields most likely to be rejected by the store). If that also
        fails the error is logged and None is returned.

        Args:
            group_id: The group where the activity occurred.
            user_id: The user who performed the action.
            action: The action string (use Actions constants).
            entity_type: The type of entity affected (use EntityTypes).
            entity_id: The ID of the entity affected, if any.
            details: Typed details for the action, or a free-form map.

        Returns:
            The stored entry, or None when logging gave up.
        """
        entry = ActivityLogEntry(
            group_id=group_id,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details_to_json(details),
        )
        try:
            return await self._activities.create(ActivityRepository.to_row(entry))
        except Exception as exc:
            logger.warning(
                "activity_record_retry",
                group_id=str(group_id),
                action=action,
                error=str(exc),
            )

        reduced = ActivityRepository.to_row(entry)
        reduced["details"] = {}
        reduced["entity_id"] = None
        try:
            return await self._activities.create(reduced)
        except Exception:
            logger.exception(
                "activity_record_failed",
                group_id=str(group_id),
                action=action,
                entity_type=entity_type,
            )
            return None

    async def list_for_group(
        self,
        group_id: UUID,
        actor_id: UUID,
        limit: int | None = None,
    ) -> list[ActivityLogEntry]:
        """Get the activity feed for a group. Requires membership.

        Entries come back newest first. Each entry carries the actor's
        display info when it can be loaded; otherwise ``user`` is a stub
        holding only the user ID.

        Args:
            group_id: The group to read.
            actor_id: The requesting user (must be a member).
            limit: Maximum number of entries, clamped to the configured range.
        """
        await require_membership(self._members, group_id, actor_id)

        if limit is None:
            limit = settings.activity_feed_default_limit
        limit = max(1, min(limit, settings.activity_feed_max_limit))

        entries = await self._activities.list_for_group(group_id, limit)
        if not entries:
            return entries

        try:
            profiles = await self._profiles.get_many({e.user_id for e in entries})
        except Exception as exc:
            logger.warning(
                "activity_enrichment_failed",
                group_id=str(group_id),
                error=str(exc),
            )
            profiles = {}

        for entry in entries:
            profile = profiles.get(entry.user_id)
            entry.user = UserStub.from_profile(profile) if profile else UserStub(id=entry.user_id)
        return entries
