"""
Reference link subject adapter.

The standalone approval app's requests have a boolean ``approved`` flag
instead of a status column: approved reads as ``validated``, anything else
as ``pending``. The token row is kept with ``consumed_at`` set when used.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.config import settings
from accreda.core.email import send_reference_link_request
from accreda.modules.approvals.adapters import SubjectAdapter
from accreda.modules.approvals.errors import InvalidApprovalRequestError, SubjectNotFoundError
from accreda.modules.approvals.models import ConsumptionMode, SubjectKind, SubjectStatus
from accreda.modules.approvals.schemas import ReferenceLinkApproval, ReferenceLinkView
from accreda.modules.reference_links import repository
from accreda.modules.reference_links.models import ReferenceMagicLink


class ReferenceLinkAdapter(SubjectAdapter[ReferenceMagicLink, ReferenceLinkApproval]):
    kind = SubjectKind.REFERENCE_LINK
    consumption = ConsumptionMode.FLAG

    async def fetch_subject(
        self, db: AsyncSession, subject_id: UUID
    ) -> ReferenceMagicLink | None:
        return await repository.get_reference_link_by_id(db, subject_id)

    async def write_approval(
        self, db: AsyncSession, subject_id: UUID, fields: ReferenceLinkApproval
    ) -> None:
        link = await repository.update_reference_details(
            db,
            subject_id,
            reference_name=fields.reference_name,
            reference_position=fields.reference_position,
        )
        if link is None:
            raise SubjectNotFoundError(subject_id)

    def get_status(self, subject: ReferenceMagicLink) -> SubjectStatus:
        return SubjectStatus.VALIDATED if subject.approved else SubjectStatus.PENDING

    async def set_status(
        self, db: AsyncSession, subject_id: UUID, status: SubjectStatus, at: datetime
    ) -> None:
        if status == SubjectStatus.REJECTED:
            raise InvalidApprovalRequestError("Reference links can only be approved or reopened.")

        link = await repository.update_approval(
            db, subject_id, approved=status == SubjectStatus.VALIDATED, at=at
        )
        if link is None:
            raise SubjectNotFoundError(subject_id)

    def decision_for(self, fields: ReferenceLinkApproval) -> SubjectStatus:
        return SubjectStatus.VALIDATED

    def owner_id(self, subject: ReferenceMagicLink) -> UUID:
        return subject.eit_id

    def rate_limit_scope(self, subject_id: UUID, subject: ReferenceMagicLink) -> str:
        # Every send creates a new request row, so count per EIT and referee
        return f"{subject.eit_id}:{subject.reference_email.lower()}"

    def link_for(self, token: str) -> str:
        return f"{settings.magic_link_base_url.rstrip('/')}/approve?token={token}"

    def build_view(self, subject: ReferenceMagicLink, expires_at: datetime) -> ReferenceLinkView:
        return ReferenceLinkView(
            id=subject.id,
            job_reference_id=subject.job_reference_id,
            eit_name=subject.eit_name,
            eit_email=subject.eit_email,
            job_title=subject.job_title,
            job_company=subject.job_company,
            reference_email=subject.reference_email,
            reference_name=subject.reference_name,
            reference_position=subject.reference_position,
            approved=subject.approved,
            expires_at=expires_at,
        )

    async def send_request(
        self,
        subject: ReferenceMagicLink,
        recipient_email: str,
        link: str,
        expires_in_hours: int,
    ) -> bool:
        return await send_reference_link_request(
            to_email=recipient_email,
            eit_name=subject.eit_name,
            eit_email=subject.eit_email,
            job_title=subject.job_title,
            job_company=subject.job_company,
            link=link,
            expires_in_hours=expires_in_hours,
        )
