"""
Approvals Admin Router

Administrative control over approvable subjects. All endpoints require a
JWT with the admin role.

Endpoints:
- POST /admin/subjects/{kind}/{subject_id}/status - Override a subject's status
- DELETE /admin/subjects/{kind}/{subject_id}/tokens - Revoke outstanding links

Security:
- Audit logging for all admin actions
- Rate limiting on action endpoints to prevent abuse
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.auth import CurrentUser, get_current_admin_user
from accreda.core.database import get_db
from accreda.core.rate_limit import RateLimitExceeded, check_rate_limit
from accreda.modules.approvals.errors import (
    ApprovalServiceError,
    internal_error,
    to_http_exception,
)
from accreda.modules.approvals.models import SubjectKind
from accreda.modules.approvals.registry import get_service_for_kind
from accreda.modules.approvals.schemas import (
    RevokeTokensResponse,
    StatusOverrideRequest,
    StatusOverrideResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/subjects", tags=["Admin - Approvals"])

RATE_LIMIT_OVERRIDE = (20, 60)  # 20 overrides per minute
RATE_LIMIT_REVOKE = (30, 60)  # 30 revocations per minute


async def _check_admin_rate_limit(
    admin: CurrentUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Raises:
        RateLimitExceeded: If the admin exceeded the limit for this action
    """
    key = f"admin:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


@router.post(
    "/{kind}/{subject_id}/status",
    response_model=StatusOverrideResponse,
    summary="Override Subject Status",
    description="""
Force the status of a reference, validator or reference link.

This is the only way to move a subject out of `validated` or `rejected`.
Outstanding approval links for the subject are revoked.
""",
)
async def override_status(
    kind: SubjectKind,
    subject_id: UUID,
    data: StatusOverrideRequest,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> StatusOverrideResponse:
    await _check_admin_rate_limit(admin, "override_status", *RATE_LIMIT_OVERRIDE)

    approvals = get_service_for_kind(kind)
    try:
        previous, revoked = await approvals.override_status(
            db, subject_id, data.status, admin=admin, reason=data.reason
        )
    except ApprovalServiceError as e:
        logger.warning(f"Status override failed for {kind.value} {subject_id}: {e.error_code}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error overriding {kind.value} {subject_id}: {e}")
        raise internal_error() from e

    return StatusOverrideResponse(
        subject_kind=kind,
        subject_id=subject_id,
        previous_status=previous,
        status=data.status,
        revoked_tokens=revoked,
    )


@router.delete(
    "/{kind}/{subject_id}/tokens",
    response_model=RevokeTokensResponse,
    summary="Revoke Approval Links",
)
async def revoke_tokens(
    kind: SubjectKind,
    subject_id: UUID,
    admin: CurrentUser = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> RevokeTokensResponse:
    """Delete every unused link of a subject. Used links are kept."""
    await _check_admin_rate_limit(admin, "revoke_tokens", *RATE_LIMIT_REVOKE)

    approvals = get_service_for_kind(kind)
    try:
        revoked = await approvals.revoke(db, subject_id)
    except Exception as e:
        logger.exception(f"Unexpected error revoking tokens for {kind.value} {subject_id}: {e}")
        raise internal_error() from e

    logger.info(f"Admin {admin.id} revoked {revoked} link(s) for {kind.value} {subject_id}")
    return RevokeTokensResponse(subject_kind=kind, subject_id=subject_id, revoked_tokens=revoked)
