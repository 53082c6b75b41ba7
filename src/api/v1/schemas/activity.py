"""Pydantic schemas for Activity API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import UserSummary


class ActivityLogResponse(BaseModel):
    """Schema for an activity log entry response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    user_id: UUID
    action: str
    entity_type: str
    entity_id: UUID | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    user: UserSummary | None = None


class ActivityListResponse(BaseModel):
    """Schema for activity feed response."""

    data: list[ActivityLogResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
