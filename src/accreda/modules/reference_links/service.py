"""
Reference Link Service

Standalone reference-approval requests: the request row is created and its
token issued in one step.
"""

import logging
from datetime import timedelta

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.auth import CurrentUser
from accreda.core.config import settings
from accreda.modules.approvals.errors import InvalidApprovalRequestError
from accreda.modules.approvals.schemas import ReferenceLinkApproval
from accreda.modules.approvals.service import ApprovalTokenService, CommitResult, IssuedToken
from accreda.modules.reference_links import repository
from accreda.modules.reference_links.adapter import ReferenceLinkAdapter
from accreda.modules.reference_links.schemas import ApproveMagicLinkRequest, SendMagicLinkRequest

logger = logging.getLogger(__name__)


def get_reference_link_service() -> ApprovalTokenService:
    """FastAPI dependency returning the reference link token service."""
    return ApprovalTokenService(
        adapter=ReferenceLinkAdapter(),
        expiry=timedelta(hours=settings.magic_link_expiry_hours),
    )


async def send_magic_link(
    db: AsyncSession,
    data: SendMagicLinkRequest,
    current_user: CurrentUser,
    redis_client: Redis | None,
    approvals: ApprovalTokenService,
) -> IssuedToken:
    """
    Create a reference-approval request for the current EIT and email its link.

    The request row is only kept if the token is stored as well.
    """
    try:
        link = await repository.create_reference_link(
            db,
            eit_id=current_user.id,
            job_reference_id=data.job_reference_id,
            eit_name=data.eit_name,
            eit_email=str(data.eit_email),
            job_title=data.job_title,
            job_company=data.job_company,
            reference_email=str(data.reference_email),
        )
        logger.info(f"Created reference link request {link.id} for EIT {current_user.id}")

        return await approvals.issue(
            db,
            subject_id=link.id,
            recipient_email=str(data.reference_email),
            requested_by=current_user,
            redis_client=redis_client,
        )
    except Exception:
        await db.rollback()
        raise


async def approve_magic_link(
    db: AsyncSession,
    data: ApproveMagicLinkRequest,
    approvals: ApprovalTokenService,
) -> CommitResult:
    """
    Validate the standalone approval payload and commit it.

    Raises:
        InvalidApprovalRequestError: If the token or a required field is missing
    """
    if not data.token or not data.reference_name or not data.reference_position:
        raise InvalidApprovalRequestError("Missing required fields.")

    fields = ReferenceLinkApproval(
        reference_name=data.reference_name,
        reference_position=data.reference_position,
    )
    return await approvals.commit(db, data.token, fields)
