"""Common Pydantic schemas shared across the API."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error_code: str
    kind: str
    message: str
    details: Any | None = None


class UserSummary(BaseModel):
    """Display info of a user; only ``id`` is guaranteed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str | None = None
    avatar_url: str | None = None
