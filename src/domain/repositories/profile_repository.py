"""Profile lookups used to enrich group reads with display info."""

from collections.abc import Collection
from uuid import UUID

import structlog

from domain.entities.profile import Profile
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import In

logger = structlog.get_logger()


class ProfileRepository:
    """Read-only access to ``profiles``."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def get_many(self, ids: Collection[UUID]) -> dict[UUID, Profile]:
        """Fetch profiles for ``ids`` in one query.

        Store failures propagate. Rows that cannot be mapped are skipped
        and logged, so the caller sees them as missing.
        """
        if not ids:
            return {}
        rows = await self._store.select(Tables.PROFILES, [In("id", list(set(ids)))])
        profiles: dict[UUID, Profile] = {}
        for row in rows:
            try:
                profile = self._to_entity(row)
            except (KeyError, TypeError, ValueError):
                logger.warning("profile_row_malformed", profile_id=str(row.get("id")))
                continue
            profiles[profile.id] = profile
        return profiles

    @staticmethod
    def _to_entity(row: Row) -> Profile:
        profile_id = row["id"]
        if not isinstance(profile_id, UUID):
            profile_id = UUID(str(profile_id))
        return Profile(
            id=profile_id,
            email=_text(row, "email"),
            full_name=_text(row, "full_name"),
            avatar_url=_text(row, "avatar_url"),
        )


def _text(row: Row, column: str) -> str | None:
    value = row.get(column)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"profiles.{column} is {type(value).__name__}, expected text")
    return value
