"""Profile domain entity."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Profile:
    """Public display info of a user (synced from Supabase auth)."""

    id: UUID
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None


@dataclass
class UserStub:
    """Minimal user reference used when profile enrichment is unavailable."""

    id: UUID
    full_name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_profile(cls, profile: Profile) -> "UserStub":
        return cls(id=profile.id, full_name=profile.full_name, avatar_url=profile.avatar_url)
