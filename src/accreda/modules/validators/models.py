"""
Validator Models

Skills on an EIT's record and the validators asked to confirm them.
"""

import uuid

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accreda.modules.approvals.models import SubjectStatus
from accreda.modules.shared import BaseModel
from accreda.modules.users.models import EitProfile


class Skill(BaseModel):
    """A competency from the certification framework."""

    __tablename__ = "skills"

    name: Mapped[str] = mapped_column(String(200), nullable=False)


class Validator(BaseModel):
    """A person asked to validate an EIT's experience for a skill."""

    __tablename__ = "validators"

    eit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("eit_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    skill_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("skills.id", ondelete="SET NULL"), nullable=True
    )

    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(200), nullable=True)
    relation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[SubjectStatus] = mapped_column(
        Enum(SubjectStatus, name="subject_status"),
        nullable=False,
        default=SubjectStatus.UNSENT,
    )

    eit: Mapped[EitProfile] = relationship(EitProfile, lazy="selectin")
    skill: Mapped[Skill | None] = relationship(Skill, lazy="selectin")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
