"""
Job Reference Models

A job on an EIT's experience record and the references attached to it.
A referee fills in their own details through the emailed approval link.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accreda.modules.approvals.models import SubjectStatus
from accreda.modules.shared import BaseModel
from accreda.modules.users.models import EitProfile


class Job(BaseModel):
    """A position held by an EIT."""

    __tablename__ = "jobs"

    eit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("eit_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    company: Mapped[str] = mapped_column(String(200), nullable=False)

    eit: Mapped[EitProfile] = relationship(EitProfile, lazy="selectin")


class JobReference(BaseModel):
    """A reference for a job, completed by the referee."""

    __tablename__ = "job_references"

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Entered by the EIT when creating the request
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Filled in by the referee
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(200), nullable=True)
    relation: Mapped[str | None] = mapped_column(String(200), nullable=True)

    validation_status: Mapped[SubjectStatus] = mapped_column(
        Enum(SubjectStatus, name="subject_status"),
        nullable=False,
        default=SubjectStatus.UNSENT,
    )
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    job: Mapped[Job] = relationship(Job, lazy="selectin")

    @property
    def requested_name(self) -> str:
        """Name the EIT entered for the referee, if any."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)
