"""
Job Reference Schemas
"""

from uuid import UUID

from pydantic import BaseModel, EmailStr


class SendReferenceRequest(BaseModel):
    """EIT request to email a reference link to a referee."""

    reference_id: UUID
    email: EmailStr
