"""
Validator Repository

Database operations for skill validators. Changes are flushed, not committed.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.modules.approvals.models import SubjectStatus

from .models import Validator


async def get_validator_by_id(db: AsyncSession, validator_id: UUID) -> Validator | None:
    """Get a validator with its EIT and skill loaded."""

    result = await db.execute(select(Validator).where(Validator.id == validator_id))
    return result.scalar_one_or_none()


async def update_validator_details(
    db: AsyncSession,
    validator_id: UUID,
    first_name: str,
    last_name: str,
    email: str,
    position: str,
    relation: str,
    score: int,
) -> Validator | None:
    """Store the details and score a validator submitted."""

    validator = await get_validator_by_id(db, validator_id)
    if not validator:
        return None

    validator.first_name = first_name
    validator.last_name = last_name
    validator.email = email
    validator.position = position
    validator.relation = relation
    validator.score = score

    await db.flush()
    return validator


async def update_status(
    db: AsyncSession, validator_id: UUID, status: SubjectStatus
) -> Validator | None:
    validator = await get_validator_by_id(db, validator_id)
    if not validator:
        return None

    validator.status = status

    await db.flush()
    return validator
