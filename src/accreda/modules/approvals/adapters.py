"""
Subject Adapters

A subject adapter gives the generic approval service access to one kind of
approvable record. Each implementation declares its kind and consumption
mode and knows how to load, fill in, re-status and describe its records.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from accreda.modules.approvals.errors import (
    InvalidStatusTransitionError,
    SubjectNotFoundError,
)
from accreda.modules.approvals.models import (
    TERMINAL_STATUSES,
    ConsumptionMode,
    SubjectKind,
    SubjectStatus,
)

logger = logging.getLogger(__name__)

SubjectT = TypeVar("SubjectT")
FieldsT = TypeVar("FieldsT")

# Status changes allowed in the normal request flow.
# Leaving a terminal state needs an administrative override.
VALID_STATUS_TRANSITIONS: dict[SubjectStatus, set[SubjectStatus]] = {
    SubjectStatus.UNSENT: {SubjectStatus.PENDING},
    SubjectStatus.PENDING: {
        SubjectStatus.PENDING,  # Request re-sent
        SubjectStatus.VALIDATED,
        SubjectStatus.REJECTED,
    },
    SubjectStatus.VALIDATED: set(),
    SubjectStatus.REJECTED: set(),
}


def ensure_transition(current: SubjectStatus, new: SubjectStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If current -> new is not allowed
    """
    if new not in VALID_STATUS_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransitionError(current.value, new.value)


class SubjectAdapter(ABC, Generic[SubjectT, FieldsT]):
    """Access to one kind of approvable subject."""

    kind: ClassVar[SubjectKind]
    consumption: ClassVar[ConsumptionMode]

    @abstractmethod
    async def fetch_subject(self, db: AsyncSession, subject_id: UUID) -> SubjectT | None:
        """Load a subject with everything its view and email need."""

    @abstractmethod
    async def write_approval(self, db: AsyncSession, subject_id: UUID, fields: FieldsT) -> None:
        """Copy the approver's submitted fields onto the subject."""

    @abstractmethod
    def get_status(self, subject: SubjectT) -> SubjectStatus:
        """Current status of a subject."""

    @abstractmethod
    async def set_status(
        self, db: AsyncSession, subject_id: UUID, status: SubjectStatus, at: datetime
    ) -> None:
        """Store a status (and its timestamp, if the subject keeps one)."""

    @abstractmethod
    def decision_for(self, fields: FieldsT) -> SubjectStatus:
        """Terminal status an approval submission leads to."""

    @abstractmethod
    def owner_id(self, subject: SubjectT) -> UUID:
        """Id of the EIT who owns the subject."""

    @abstractmethod
    def link_for(self, token: str) -> str:
        """Absolute URL of the approval page for a token."""

    @abstractmethod
    def build_view(self, subject: SubjectT, expires_at: datetime) -> Any:
        """Tagged view returned by the resolver."""

    @abstractmethod
    async def send_request(
        self,
        subject: SubjectT,
        recipient_email: str,
        link: str,
        expires_in_hours: int,
    ) -> bool:
        """Email the approval link. Returns False if sending failed."""

    def is_terminal(self, subject: SubjectT) -> bool:
        return self.get_status(subject) in TERMINAL_STATUSES

    def rate_limit_scope(self, subject_id: UUID, subject: SubjectT) -> str:
        """What issuance is counted against. Defaults to the subject itself."""
        return str(subject_id)

    async def _require(self, db: AsyncSession, subject_id: UUID) -> SubjectT:
        subject = await self.fetch_subject(db, subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)
        return subject

    async def mark_subject_pending(self, db: AsyncSession, subject_id: UUID, at: datetime) -> None:
        subject = await self._require(db, subject_id)
        ensure_transition(self.get_status(subject), SubjectStatus.PENDING)
        await self.set_status(db, subject_id, SubjectStatus.PENDING, at)

    async def mark_subject_terminal(
        self, db: AsyncSession, subject_id: UUID, status: SubjectStatus, at: datetime
    ) -> None:
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"{status.value} is not a terminal status")
        subject = await self._require(db, subject_id)
        ensure_transition(self.get_status(subject), status)
        await self.set_status(db, subject_id, status, at)
