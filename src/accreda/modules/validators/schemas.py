"""
Validator Schemas
"""

from uuid import UUID

from pydantic import BaseModel, EmailStr


class SendValidatorRequest(BaseModel):
    """EIT request to email a validation link to a validator."""

    validator_id: UUID
    email: EmailStr
