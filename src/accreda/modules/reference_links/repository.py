"""
Reference Link Repository

Database operations for standalone reference-approval requests.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ReferenceMagicLink


async def create_reference_link(
    db: AsyncSession,
    eit_id: UUID,
    eit_name: str,
    eit_email: str,
    job_title: str,
    job_company: str,
    reference_email: str,
    job_reference_id: UUID | None = None,
) -> ReferenceMagicLink:
    """Add a new request row and flush it so it has an id."""

    link = ReferenceMagicLink(
        eit_id=eit_id,
        job_reference_id=job_reference_id,
        eit_name=eit_name,
        eit_email=eit_email,
        job_title=job_title,
        job_company=job_company,
        reference_email=reference_email,
    )

    db.add(link)
    await db.flush()

    return link


async def get_reference_link_by_id(db: AsyncSession, link_id: UUID) -> ReferenceMagicLink | None:
    result = await db.execute(select(ReferenceMagicLink).where(ReferenceMagicLink.id == link_id))
    return result.scalar_one_or_none()


async def update_reference_details(
    db: AsyncSession,
    link_id: UUID,
    reference_name: str,
    reference_position: str,
) -> ReferenceMagicLink | None:
    link = await get_reference_link_by_id(db, link_id)
    if not link:
        return None

    link.reference_name = reference_name
    link.reference_position = reference_position

    await db.flush()
    return link


async def update_approval(
    db: AsyncSession,
    link_id: UUID,
    approved: bool,
    at: datetime | None,
) -> ReferenceMagicLink | None:
    """Set or clear the approved flag and its timestamp."""

    link = await get_reference_link_by_id(db, link_id)
    if not link:
        return None

    link.approved = approved
    link.approved_at = at if approved else None

    await db.flush()
    return link
