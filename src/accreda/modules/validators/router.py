"""
Validators Router

Endpoints:
- POST /send-validator - EIT emails a validation link (auth required)
- GET /validators/{token} - Validator loads the validation form (public)
- POST /validators/{token} - Validator submits the validation (public)
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
    internal_error,
    to_http_exception,
)
from accreda.modules.approvals.models import SubjectKind
from accreda.modules.approvals.schemas import (
    CommitResponse,
    IssueResponse,
    ValidatorApproval,
    ValidatorView,
)
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.validators.schemas import SendValidatorRequest
from accreda.modules.validators.service import get_validator_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Validators"])


@router.post(
    "/send-validator",
    response_model=IssueResponse,
    summary="Send Validation Request",
    description="""
Email a single-use validation link to a validator.

Sending again replaces any earlier link for the same validator. At most
3 requests per validator per hour.
""",
)
async def send_validator(
    data: SendValidatorRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis_client: Redis | None = Depends(get_redis),
    approvals: ApprovalTokenService = Depends(get_validator_service),
) -> IssueResponse:
    """
    Issue a validator token and email the link.

    Raises:
        HTTPException 403: If the validator belongs to another EIT
        HTTPException 404: If the validator does not exist
        HTTPException 409: If the validation is already completed
        HTTPException 429: If the rate limit is exceeded
        HTTPException 503: If the rate limiter is unavailable
    """
    try:
        issued = await approvals.issue(
            db,
            subject_id=data.validator_id,
            recipient_email=str(data.email),
            requested_by=current_user,
            redis_client=redis_client,
        )
    except ApprovalServiceError as e:
        logger.warning(f"Send validator failed for {data.validator_id}: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error sending validator {data.validator_id}: {e}")
        raise internal_error() from e

    return IssueResponse(
        subject_kind=SubjectKind.VALIDATOR,
        subject_id=issued.subject_id,
        recipient_email=issued.recipient_email,
        expires_at=issued.expires_at,
        email_sent=issued.email_sent,
        message="Validation request sent successfully."
        if issued.email_sent
        else "Validation request created, but the email could not be sent.",
    )


@router.get(
    "/validators/{token}",
    response_model=ValidatorView,
    summary="Get Validation Form",
)
async def get_validator(
    token: str,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_validator_service),
) -> ValidatorView:
    try:
        return await approvals.resolve(db, token)
    except ApprovalServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error resolving validator token: {e}")
        raise internal_error() from e


@router.post(
    "/validators/{token}",
    response_model=CommitResponse,
    summary="Submit Validation",
)
async def submit_validation(
    token: str,
    data: ValidatorApproval,
    db: AsyncSession = Depends(get_db),
    approvals: ApprovalTokenService = Depends(get_validator_service),
) -> CommitResponse:
    """Record the validator's details and score. The link cannot be used again."""
    try:
        result = await approvals.commit(db, token, data)
    except ApprovalServiceError as e:
        logger.warning(f"Validation submission rejected: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting validation: {e}")
        raise internal_error() from e

    return CommitResponse(
        subject_kind=SubjectKind.VALIDATOR,
        subject_id=result.subject_id,
        status=result.status,
        message="Validation submitted successfully.",
    )
