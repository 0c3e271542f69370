"""
Approval Token Repository

Database operations for approval tokens. Functions flush but do not commit,
except the maintenance purge: the service decides where a unit of work ends
so that claiming a token and writing the approval commit together.
"""

from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ApprovalToken, ConsumptionMode, SubjectKind


class ClaimedToken(NamedTuple):
    id: UUID
    subject_kind: SubjectKind
    subject_id: UUID


async def create_token(
    db: AsyncSession,
    token_hash: str,
    subject_kind: SubjectKind,
    subject_id: UUID,
    recipient_email: str,
    expires_at: datetime,
) -> ApprovalToken:
    """Add a new token row to the session."""

    new_token = ApprovalToken(
        token_hash=token_hash,
        subject_kind=subject_kind,
        subject_id=subject_id,
        recipient_email=recipient_email,
        expires_at=expires_at,
    )

    db.add(new_token)
    await db.flush()

    return new_token


async def get_by_token_hash(db: AsyncSession, token_hash: str) -> ApprovalToken | None:
    """Get a token by its hash."""

    result = await db.execute(select(ApprovalToken).where(ApprovalToken.token_hash == token_hash))
    return result.scalar_one_or_none()


async def claim_token(
    db: AsyncSession,
    token_hash: str,
    subject_kind: SubjectKind,
    now: datetime,
    mode: ConsumptionMode,
) -> ClaimedToken | None:
    """
    Atomically consume a live token.

    A single conditional DELETE (or UPDATE for the flag mode) matches only an
    unconsumed, unexpired token of the given kind, so of two concurrent
    claims at most one gets a row back.

    Returns:
        The claimed token's identifiers, or None if nothing matched
    """
    conditions = (
        ApprovalToken.token_hash == token_hash,
        ApprovalToken.subject_kind == subject_kind,
        ApprovalToken.consumed_at.is_(None),
        ApprovalToken.expires_at > now,
    )
    returning = (ApprovalToken.id, ApprovalToken.subject_kind, ApprovalToken.subject_id)

    if mode == ConsumptionMode.DELETE:
        stmt = delete(ApprovalToken).where(*conditions).returning(*returning)
    else:
        stmt = (
            update(ApprovalToken)
            .where(*conditions)
            .values(consumed_at=now)
            .returning(*returning)
        )

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    row = result.one_or_none()
    if row is None:
        return None
    return ClaimedToken(id=row[0], subject_kind=row[1], subject_id=row[2])


async def delete_outstanding_tokens(
    db: AsyncSession,
    subject_kind: SubjectKind,
    subject_id: UUID,
) -> int:
    """Delete the unconsumed tokens of a subject. Returns the number removed."""

    result = await db.execute(
        delete(ApprovalToken)
        .where(
            ApprovalToken.subject_kind == subject_kind,
            ApprovalToken.subject_id == subject_id,
            ApprovalToken.consumed_at.is_(None),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


# ============================================
# Background Job Repository Methods
# ============================================


async def purge_expired_tokens(db: AsyncSession, expired_before: datetime) -> int:
    """
    Delete unconsumed tokens that expired before the given instant.

    Consumed (flagged) tokens are kept as the record of the approval.
    Commits, since it runs as its own unit of work.
    """
    result = await db.execute(
        delete(ApprovalToken)
        .where(
            ApprovalToken.consumed_at.is_(None),
            ApprovalToken.expires_at < expired_before,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
