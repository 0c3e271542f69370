"""
Job reference subject adapter.

A referee receives a link to the reference form, fills in their own
details and approves (or declines) the reference. The token row is deleted
when used.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.config import settings
from accreda.core.email import display_name_from_address, send_reference_request
from accreda.modules.approvals.adapters import SubjectAdapter
from accreda.modules.approvals.errors import SubjectNotFoundError
from accreda.modules.approvals.models import ConsumptionMode, SubjectKind, SubjectStatus
from accreda.modules.approvals.schemas import ReferenceApproval, ReferenceView
from accreda.modules.references import repository
from accreda.modules.references.models import JobReference


class ReferenceAdapter(SubjectAdapter[JobReference, ReferenceApproval]):
    kind = SubjectKind.REFERENCE
    consumption = ConsumptionMode.DELETE

    async def fetch_subject(self, db: AsyncSession, subject_id: UUID) -> JobReference | None:
        return await repository.get_reference_by_id(db, subject_id)

    async def write_approval(
        self, db: AsyncSession, subject_id: UUID, fields: ReferenceApproval
    ) -> None:
        reference = await repository.update_referee_details(
            db,
            subject_id,
            full_name=fields.full_name,
            email=fields.email,
            position=fields.position,
            relation=fields.relation,
        )
        if reference is None:
            raise SubjectNotFoundError(subject_id)

    def get_status(self, subject: JobReference) -> SubjectStatus:
        return subject.validation_status

    async def set_status(
        self, db: AsyncSession, subject_id: UUID, status: SubjectStatus, at: datetime
    ) -> None:
        reference = await repository.update_validation_status(db, subject_id, status, at)
        if reference is None:
            raise SubjectNotFoundError(subject_id)

    def decision_for(self, fields: ReferenceApproval) -> SubjectStatus:
        return SubjectStatus.VALIDATED if fields.approved else SubjectStatus.REJECTED

    def owner_id(self, subject: JobReference) -> UUID:
        return subject.job.eit_id

    def link_for(self, token: str) -> str:
        return f"{settings.reference_form_url.rstrip('/')}/reference/{token}"

    def build_view(self, subject: JobReference, expires_at: datetime) -> ReferenceView:
        job = subject.job
        return ReferenceView(
            reference_id=subject.id,
            eit_name=job.eit.full_name,
            eit_email=job.eit.email,
            job_title=job.title,
            job_company=job.company,
            description=subject.description,
            expires_at=expires_at,
        )

    async def send_request(
        self,
        subject: JobReference,
        recipient_email: str,
        link: str,
        expires_in_hours: int,
    ) -> bool:
        job = subject.job
        return await send_reference_request(
            to_email=recipient_email,
            referee_name=subject.requested_name or display_name_from_address(recipient_email),
            eit_name=job.eit.full_name,
            job_title=job.title,
            job_company=job.company,
            link=link,
            expires_in_hours=expires_in_hours,
        )
