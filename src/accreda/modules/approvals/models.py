"""
Approval Token Models

One table holds the magic-link tokens for every kind of approvable subject.
Only the SHA-256 digest of a token is stored; the plain value lives solely
in the emailed link.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from accreda.core.database import Base


class SubjectKind(str, enum.Enum):
    """The kind of record an approval token points at."""

    REFERENCE = "reference"
    VALIDATOR = "validator"
    REFERENCE_LINK = "reference_link"


class SubjectStatus(str, enum.Enum):
    """Lifecycle status of an approvable subject."""

    UNSENT = "unsent"
    PENDING = "pending"
    VALIDATED = "validated"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({SubjectStatus.VALIDATED, SubjectStatus.REJECTED})


class ConsumptionMode(str, enum.Enum):
    """How a token is invalidated after its one use."""

    DELETE = "delete"  # token row removed
    FLAG = "flag"  # token row kept with consumed_at set


class ApprovalToken(Base):
    """
    A single-use, time-limited approval token.

    Looked up only by token_hash. Created when a request is sent, read-only
    until consumed, consumed at most once, never renewed.
    """

    __tablename__ = "approval_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    subject_kind: Mapped[SubjectKind] = mapped_column(
        Enum(SubjectKind, name="subject_kind"), nullable=False
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_approval_tokens_subject", "subject_kind", "subject_id"),
        Index("ix_approval_tokens_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<ApprovalToken(id={self.id}, kind={self.subject_kind.value}, subject={self.subject_id})>"
