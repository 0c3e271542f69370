"""
User Models

EIT profiles. Authentication itself is handled by the identity provider;
the profile id matches the JWT subject.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from accreda.modules.shared import BaseModel


class EitProfile(BaseModel):
    """An engineer-in-training who requests references and validations."""

    __tablename__ = "eit_profiles"

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    def __repr__(self) -> str:
        return f"<EitProfile(id={self.id}, email={self.email})>"
