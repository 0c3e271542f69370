"""
Validator subject adapter.

A validator confirms an EIT's experience for a skill and scores it from 1
to 5. Submitting always validates; the token row is deleted when used.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.config import settings
from accreda.core.email import display_name_from_address, send_validator_request
from accreda.modules.approvals.adapters import SubjectAdapter
from accreda.modules.approvals.errors import SubjectNotFoundError
from accreda.modules.approvals.models import ConsumptionMode, SubjectKind, SubjectStatus
from accreda.modules.approvals.schemas import ValidatorApproval, ValidatorView
from accreda.modules.validators import repository
from accreda.modules.validators.models import Validator


class ValidatorAdapter(SubjectAdapter[Validator, ValidatorApproval]):
    kind = SubjectKind.VALIDATOR
    consumption = ConsumptionMode.DELETE

    async def fetch_subject(self, db: AsyncSession, subject_id: UUID) -> Validator | None:
        return await repository.get_validator_by_id(db, subject_id)

    async def write_approval(
        self, db: AsyncSession, subject_id: UUID, fields: ValidatorApproval
    ) -> None:
        validator = await repository.update_validator_details(
            db,
            subject_id,
            first_name=fields.first_name,
            last_name=fields.last_name,
            email=fields.email,
            position=fields.position,
            relation=fields.relation,
            score=fields.score,
        )
        if validator is None:
            raise SubjectNotFoundError(subject_id)

    def get_status(self, subject: Validator) -> SubjectStatus:
        return subject.status

    async def set_status(
        self, db: AsyncSession, subject_id: UUID, status: SubjectStatus, at: datetime
    ) -> None:
        # Validators keep no decision timestamp; updated_at records it
        validator = await repository.update_status(db, subject_id, status)
        if validator is None:
            raise SubjectNotFoundError(subject_id)

    def decision_for(self, fields: ValidatorApproval) -> SubjectStatus:
        return SubjectStatus.VALIDATED

    def owner_id(self, subject: Validator) -> UUID:
        return subject.eit_id

    def link_for(self, token: str) -> str:
        return f"{settings.reference_form_url.rstrip('/')}/validator/{token}"

    def build_view(self, subject: Validator, expires_at: datetime) -> ValidatorView:
        return ValidatorView(
            validator_id=subject.id,
            first_name=subject.first_name,
            last_name=subject.last_name,
            email=subject.email,
            description=subject.description,
            skill_id=subject.skill_id,
            skill_name=subject.skill.name if subject.skill else None,
            eit_name=subject.eit.full_name,
            expires_at=expires_at,
        )

    async def send_request(
        self,
        subject: Validator,
        recipient_email: str,
        link: str,
        expires_in_hours: int,
    ) -> bool:
        return await send_validator_request(
            to_email=recipient_email,
            validator_name=subject.full_name or display_name_from_address(recipient_email),
            eit_name=subject.eit.full_name,
            skill_name=subject.skill.name if subject.skill else None,
            link=link,
            expires_in_hours=expires_in_hours,
        )
