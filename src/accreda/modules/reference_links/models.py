"""
Reference Link Models

Standalone reference-approval requests. The request row carries a snapshot
of the job details so the approval page needs no further joins.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from accreda.modules.shared import BaseModel


class ReferenceMagicLink(BaseModel):
    """A reference approval request sent through the standalone approval app."""

    __tablename__ = "reference_magic_links"

    eit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("eit_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    job_reference_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("job_references.id", ondelete="SET NULL"), nullable=True
    )

    eit_name: Mapped[str] = mapped_column(String(200), nullable=False)
    eit_email: Mapped[str] = mapped_column(String(255), nullable=False)
    job_title: Mapped[str] = mapped_column(String(200), nullable=False)
    job_company: Mapped[str] = mapped_column(String(200), nullable=False)
    reference_email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Filled in by the referee
    reference_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reference_position: Mapped[str | None] = mapped_column(String(200), nullable=True)

    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
