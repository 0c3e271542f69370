"""
Approval Schemas

Tagged variants for the three kinds of approvable subject: what the
approver sees when resolving a link (``*View``) and what they submit when
approving (``*Approval``). The ``kind`` field is the discriminator.
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from accreda.modules.approvals.models import SubjectKind, SubjectStatus

# ============================================
# Subject views (returned by the resolver)
# ============================================


class ReferenceView(BaseModel):
    """Job reference details shown to a referee."""

    kind: Literal["reference"] = "reference"
    reference_id: UUID
    eit_name: str
    eit_email: str
    job_title: str
    job_company: str
    description: str | None = None
    expires_at: datetime


class ValidatorView(BaseModel):
    """Validation request details shown to a validator."""

    kind: Literal["validator"] = "validator"
    validator_id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    description: str | None = None
    skill_id: UUID | None = None
    skill_name: str | None = None
    eit_name: str
    expires_at: datetime


class ReferenceLinkView(BaseModel):
    """Standalone reference-approval request details."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["reference_link"] = "reference_link"
    id: UUID
    job_reference_id: UUID | None = None
    eit_name: str
    eit_email: str
    job_title: str
    job_company: str
    reference_email: str
    reference_name: str | None = None
    reference_position: str | None = None
    approved: bool
    expires_at: datetime


SubjectView = Annotated[
    ReferenceView | ValidatorView | ReferenceLinkView,
    Field(discriminator="kind"),
]


# ============================================
# Approval submissions (consumed by the committer)
# ============================================


class ReferenceApproval(BaseModel):
    """Fields a referee fills in."""

    kind: Literal["reference"] = "reference"
    full_name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=200)
    relation: str = Field(..., min_length=1, max_length=200)
    approved: bool = True


class ValidatorApproval(BaseModel):
    """Fields a validator fills in."""

    kind: Literal["validator"] = "validator"
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(..., min_length=1, max_length=200)
    relation: str = Field(..., min_length=1, max_length=200)
    score: int = Field(..., ge=1, le=5)


class ReferenceLinkApproval(BaseModel):
    """Fields a referee fills in on the standalone approval page."""

    kind: Literal["reference_link"] = "reference_link"
    reference_name: str = Field(..., min_length=1, max_length=200)
    reference_position: str = Field(..., min_length=1, max_length=200)


# ============================================
# Responses
# ============================================


class IssueResponse(BaseModel):
    """Response after an approval request has been sent."""

    success: bool = True
    subject_kind: SubjectKind
    subject_id: UUID
    recipient_email: str
    expires_at: datetime
    email_sent: bool
    message: str


class CommitResponse(BaseModel):
    """Response after an approval has been recorded."""

    success: bool = True
    subject_kind: SubjectKind
    subject_id: UUID
    status: SubjectStatus
    message: str


class StatusOverrideRequest(BaseModel):
    """Admin request to force a subject's status."""

    status: SubjectStatus
    reason: str | None = Field(None, max_length=500)


class StatusOverrideResponse(BaseModel):
    subject_kind: SubjectKind
    subject_id: UUID
    previous_status: SubjectStatus
    status: SubjectStatus
    revoked_tokens: int


class RevokeTokensResponse(BaseModel):
    subject_kind: SubjectKind
    subject_id: UUID
    revoked_tokens: int
