"""
Job Reference Repository

Database operations for job references. Changes are flushed, not committed;
the approval service owns the transaction.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.modules.approvals.models import TERMINAL_STATUSES, SubjectStatus

from .models import JobReference


async def get_reference_by_id(db: AsyncSession, reference_id: UUID) -> JobReference | None:
    """Get a reference with its job and the job's EIT loaded."""

    result = await db.execute(select(JobReference).where(JobReference.id == reference_id))
    return result.scalar_one_or_none()


async def update_referee_details(
    db: AsyncSession,
    reference_id: UUID,
    full_name: str,
    email: str,
    position: str,
    relation: str,
) -> JobReference | None:
    """Store the details a referee filled in."""

    reference = await get_reference_by_id(db, reference_id)
    if not reference:
        return None

    reference.full_name = full_name
    reference.email = email
    reference.position = position
    reference.relation = relation

    await db.flush()
    return reference


async def update_validation_status(
    db: AsyncSession,
    reference_id: UUID,
    status: SubjectStatus,
    at: datetime,
) -> JobReference | None:
    """Set a reference's status. Terminal statuses stamp validated_at."""

    reference = await get_reference_by_id(db, reference_id)
    if not reference:
        return None

    reference.validation_status = status
    reference.validated_at = at if status in TERMINAL_STATUSES else None

    await db.flush()
    return reference
