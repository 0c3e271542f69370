"""
Reference Links Router

Endpoints used by the standalone reference-approval app:
- POST /send-magic-link - EIT creates a request and emails the link (auth required)
- GET /get-magic-link?token= - Referee loads the request (public)
- POST /approve-magic-link - Referee approves with their name and position (public)

The approval link stays on record after use; opening it again reports
that the reference was already approved.
"""

import logging

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.auth import CurrentUser, get_current_user
from accreda.core.database import get_db
from accreda.core.redis import get_redis
from accreda.modules.approvals.errors import (
    ApprovalServiceError,
    InvalidApprovalRequestError,
    internal_error,
    to_http_exception,
)
from accreda.modules.approvals.models import SubjectKind
from accreda.modules.approvals.schemas import CommitResponse, IssueResponse, ReferenceLinkView
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.reference_links import service
from accreda.modules.reference_links.schemas import ApproveMagicLinkRequest, SendMagicLinkRequest
from accreda.modules.reference_links.service import get_reference_link_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reference Links"])


@router.post(
    "/send-magic-link",
    response_model=IssueResponse,
    summary="Send Reference Approval Link",
    description="""
Create a standalone reference-approval request and email the link to the
referee. The link expires after 24 hours by default.
""",
)
async def send_magic_link(
    data: SendMagicLinkRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client: Redis | None = Depends(get_redis),
    approvals: ApprovalTokenService = Depends(get_reference_link_service),
) -> IssueResponse:
    try:
        issued = await service.send_magic_link(db, data, current_user, redis_client, approvals)
    except ApprovalServiceError as e:
        logger.warning(f"Send magic link failed for EIT {current_user.id}: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error sending magic link: {e}")
        raise internal_error() from e

    return IssueResponse(
        subject_kind=SubjectKind.REFERENCE_LINK,
        subject_id=issued.subject_id,
        recipient_email=issued.recipient_email,
        expires_at=issued.expires_at,
        email_sent=issued.email_sent,
        message="Reference approval link sent successfully."
        if issued.email_sent
        else "Reference approval request created, but the email could not be sent.",
    )


@router.get(
    "/get-magic-link",
    response_model=ReferenceLinkView,
    summary="Get Reference Approval Request",
)
async def get_magic_link(
    token: str | None = None,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_reference_link_service),
) -> ReferenceLinkView:
    """
    Raises:
        HTTPException 400: If no token is given
        HTTPException 404: If the link is unknown
        HTTPException 409: If the reference was already approved
        HTTPException 410: If the link has expired
    """
    try:
        if not token:
            raise InvalidApprovalRequestError("No token provided.")
        return await approvals.resolve(db, token)
    except ApprovalServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error resolving magic link: {e}")
        raise internal_error() from e


@router.post(
    "/approve-magic-link",
    response_model=CommitResponse,
    summary="Approve Reference",
)
async def approve_magic_link(
    data: ApproveMagicLinkRequest,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_reference_link_service),
) -> CommitResponse:
    """
    Raises:
        HTTPException 400: If the token or a required field is missing
        HTTPException 404: If the link is unknown
        HTTPException 409: If the reference was already approved
        HTTPException 410: If the link has expired
    """
    try:
        result = await service.approve_magic_link(db, data, approvals)
    except ApprovalServiceError as e:
        logger.warning(f"Magic link approval rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error approving magic link: {e}")
        raise internal_error() from e

    return CommitResponse(
        subject_kind=SubjectKind.REFERENCE_LINK,
        subject_id=result.subject_id,
        status=result.status,
        message="Reference approved.",
    )
