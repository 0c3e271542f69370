"""
Reference Link Schemas
"""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class SendMagicLinkRequest(BaseModel):
    """EIT request to send a standalone reference-approval link."""

    job_reference_id: UUID | None = None
    eit_name: str = Field(..., min_length=1, max_length=200)
    eit_email: EmailStr
    job_title: str = Field(..., min_length=1, max_length=200)
    job_company: str = Field(..., min_length=1, max_length=200)
    reference_email: EmailStr


class ApproveMagicLinkRequest(BaseModel):
    """
    Approval submitted from the standalone approval page.

    Fields are optional here so that a missing value is reported as a
    400 INVALID_REQUEST rather than a validation error.
    """

    token: str | None = None
    reference_name: str | None = Field(None, max_length=200)
    reference_position: str | None = Field(None, max_length=200)
