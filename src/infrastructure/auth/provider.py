"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID


@dataclass
class TokenUser:
    """The caller identity carried by a bearer token.

    ``id`` is the actor ID passed into every group operation; ``email``
    is used to find invitations addressed to the caller.
    """

    id: UUID
    email: str
    full_name: Optional[str] = None
    role: Optional[str] = None


class IAuthProvider(Protocol):
    """Protocol for authentication providers."""

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """Return the token's user, or None if the token is invalid or expired."""
        ...

    def create_token(self, user: TokenUser) -> str:
        """Sign a token for ``user`` (local development and tests)."""
        ...
