"""Best-effort creator display info for shared group records."""

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

import structlog

from domain.entities.profile import UserStub
from domain.repositories.profile_repository import ProfileRepository

logger = structlog.get_logger()


class _CreatedRecord(Protocol):
    created_by: UUID
    creator: UserStub | None


async def attach_creators(profiles: ProfileRepository, records: Sequence[_CreatedRecord]) -> None:
    """Set ``creator`` on each record; falls back to ID-only stubs."""
    if not records:
        return
    try:
        found = await profiles.get_many({r.created_by for r in records})
    except Exception as exc:
        logger.warning("creator_enrichment_failed", error=str(exc))
        found = {}

    for record in records:
        profile = found.get(record.created_by)
        record.creator = UserStub.from_profile(profile) if profile else UserStub(id=record.created_by)
