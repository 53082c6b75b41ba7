"""Pydantic schemas for Invitation API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.v1.schemas.common import UserSummary


class CreateInvitationRequest(BaseModel):
    """Schema for inviting an email address to a group."""

    email: str = Field(..., min_length=3, max_length=255)
    role: str = Field("member", pattern="^(admin|member|viewer)$")
    family_role: str | None = Field(None, pattern="^(parent|child|guardian|other)$")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        v = v.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Invalid email address")
        return v


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "group_id": "456e4567-e89b-12d3-a456-426614174000",
                "email": "partner@example.com",
                "role": "member",
                "status": "pending",
                "invited_by": "789e4567-e89b-12d3-a456-426614174000",
                "family_role": "parent",
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-08T10:00:00",
            }
        },
    )

    id: UUID
    group_id: UUID
    email: str
    role: str
    status: str
    invited_by: UUID
    family_role: str | None = None
    created_at: datetime
    expires_at: datetime


class InvitationListResponse(BaseModel):
    """Schema for list of Invitations response."""

    data: list[InvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class InvitationCreatedResponse(BaseModel):
    """Schema for invitation creation response (includes the token)."""

    data: InvitationResponse
    token: str = Field(..., description="Invitation token. Share it with the invitee.")


class InvitationDetailResponse(BaseModel):
    """Public view of an invitation, looked up by token."""

    data: InvitationResponse
    group_name: str | None = None
    group_description: str | None = None
    group_avatar_url: str | None = None
    inviter: UserSummary | None = None


class InvitationStatusResponse(BaseModel):
    """Result of accepting or rejecting an invitation."""

    data: InvitationResponse
    message: str
