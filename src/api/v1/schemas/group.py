"""Pydantic schemas for Group and Member API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from api.v1.schemas.common import UserSummary


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=500)


class GroupUpdate(BaseModel):
    """Schema for updating a group. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    avatar_url: str | None = Field(None, max_length=500)
    is_active: bool | None = None


class GroupResponse(BaseModel):
    """Schema for Group response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    avatar_url: str | None
    is_active: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    role: str | None = Field(None, description="The caller's role in the group")
    joined_at: datetime | None = None


class GroupListResponse(BaseModel):
    """Schema for list of Groups response."""

    data: list[GroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupDetailResponse(BaseModel):
    """Schema for single Group response."""

    data: GroupResponse


class GroupMemberResponse(BaseModel):
    """Schema for Group Member response."""

    user_id: UUID
    role: str
    family_role: str | None = None
    joined_at: datetime
    user: UserSummary | None = None
    email: str | None = None


class GroupMemberListResponse(BaseModel):
    """Schema for list of Group Members response."""

    data: list[GroupMemberResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UpdateGroupMemberRequest(BaseModel):
    """Change a member's role and/or family role.

    Send ``family_role: null`` explicitly to clear the family role.
    """

    role: str | None = Field(None, pattern="^(admin|member|viewer)$")
    family_role: str | None = Field(None, pattern="^(parent|child|guardian|other)$")

    @model_validator(mode="after")
    def require_a_change(self) -> "UpdateGroupMemberRequest":
        if self.role is None and "family_role" not in self.model_fields_set:
            raise ValueError("Provide role or family_role")
        return self
