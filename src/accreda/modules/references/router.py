"""
Job References Router

Endpoints:
- POST /send-reference - EIT emails a reference link to a referee (auth required)
- GET /references/{token} - Referee loads the reference form (public)
- POST /references/{token} - Referee submits the reference (public)

Security:
- The token in the path is the referee's only credential
- Issuance is rate limited per reference via Redis (fail closed)
- Error responses carry only an error code and message
"""

import logging

from fastapi import APIRouter, Depends, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.auth import CurrentUser, get_current_user
from accreda.core.database import get_db
from accreda.core.redis import get_redis
from accreda.modules.approvals.errors import (
    ApprovalServiceError,
    internal_error,
    to_http_exception,
)
from accreda.modules.approvals.models import SubjectKind, SubjectStatus
from accreda.modules.approvals.schemas import (
    CommitResponse,
    IssueResponse,
    ReferenceApproval,
    ReferenceView,
)
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.references.schemas import SendReferenceRequest
from accreda.modules.references.service import get_reference_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["References"])


@router.post(
    "/send-reference",
    response_model=IssueResponse,
    status_code=status.HTTP_200_OK,
    summary="Send Reference Request",
    description="""
Email a single-use reference link to a referee.

Sending again replaces any earlier link for the same reference. At most
3 requests per reference per hour.
""",
)
async def send_reference(
    data: SendReferenceRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client: Redis | None = Depends(get_redis),
    approvals: ApprovalTokenService = Depends(get_reference_service),
) -> IssueResponse:
    """
    Issue a reference token and email the link.

    Raises:
        HTTPException 403: If the reference belongs to another EIT
        HTTPException 404: If the reference does not exist
        HTTPException 409: If the reference is already completed
        HTTPException 429: If the rate limit is exceeded
        HTTPException 503: If the rate limiter is unavailable
    """
    try:
        issued = await approvals.issue(
            db,
            subject_id=data.reference_id,
            recipient_email=str(data.email),
            requested_by=current_user,
            redis_client=redis_client,
        )
    except ApprovalServiceError as e:
        logger.warning(f"Send reference failed for {data.reference_id}: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error sending reference {data.reference_id}: {e}")
        raise internal_error() from e

    return IssueResponse(
        subject_kind=SubjectKind.REFERENCE,
        subject_id=issued.subject_id,
        recipient_email=issued.recipient_email,
        expires_at=issued.expires_at,
        email_sent=issued.email_sent,
        message="Reference request sent successfully."
        if issued.email_sent
        else "Reference request created, but the email could not be sent.",
    )


@router.get(
    "/references/{token}",
    response_model=ReferenceView,
    summary="Get Reference Form",
    description="Load the reference a referee is asked to complete. Does not use up the link.",
)
async def get_reference(
    token: str,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_reference_service),
) -> ReferenceView:
    """
    Raises:
        HTTPException 404: If the link is unknown
        HTTPException 409: If the reference was already submitted
        HTTPException 410: If the link has expired
    """
    try:
        return await approvals.resolve(db, token)
    except ApprovalServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error resolving reference token: {e}")
        raise internal_error() from e


@router.post(
    "/references/{token}",
    response_model=CommitResponse,
    summary="Submit Reference",
    description="Record the referee's details and decision. The link cannot be used again.",
)
async def submit_reference(
    token: str,
    data: ReferenceApproval,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_reference_service),
) -> CommitResponse:
    """
    Raises:
        HTTPException 404: If the link is unknown or already used
        HTTPException 409: If the reference is already completed
        HTTPException 410: If the link has expired
    """
    try:
        result = await approvals.commit(db, token, data)
    except ApprovalServiceError as e:
        logger.warning(f"Reference submission rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting reference: {e}")
        raise internal_error() from e

    return CommitResponse(
        subject_kind=SubjectKind.REFERENCE,
        subject_id=result.subject_id,
        status=result.status,
        message="Reference submitted successfully."
        if result.status == SubjectStatus.VALIDATED
        else "Reference declined.",
    )
