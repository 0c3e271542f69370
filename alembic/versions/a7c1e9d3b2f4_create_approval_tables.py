"""create approval tables

Revision ID: a7c1e9d3b2f4
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the subject_kind and subject_status enum types
2. Creates eit_profiles, jobs, job_references, skills and validators
3. Creates reference_magic_links
4. Creates approval_tokens, the one table holding every approval link

Enum columns store the Python enum NAMES (e.g. 'PENDING'), which is how
SQLAlchemy's Enum type persists str enums.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e9d3b2f4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create subject tables and the approval_tokens table."""
    subject_kind_enum = postgresql.ENUM(
        "REFERENCE",
        "VALIDATOR",
        "REFERENCE_LINK",
        name="subject_kind",
        create_type=False,  # Created manually with checkfirst
    )
    subject_kind_enum.create(op.get_bind(), checkfirst=True)

    subject_status_enum = postgresql.ENUM(
        "UNSENT",
        "PENDING",
        "VALIDATED",
        "REJECTED",
        name="subject_status",
        create_type=False,
    )
    subject_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "eit_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_eit_profiles_email"), "eit_profiles", ["email"], unique=True)

    op.create_table(
        "jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("eit_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["eit_id"], ["eit_profiles.id"], ondelete="CASCADE"),
    )
    op.create_index(op.f("ix_jobs_eit_id"), "jobs", ["eit_id"], unique=False)

    op.create_table(
        "job_references",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("job_id", sa.Uuid(), nullable=False),
        # Entered by the EIT
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        # Filled in by the referee
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=200), nullable=True),
        sa.Column("relation", sa.String(length=200), nullable=True),
        sa.Column(
            "validation_status",
            subject_status_enum,
            nullable=False,
            server_default="UNSENT",
        ),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
    )
    op.create_index(op.f("ix_job_references_job_id"), "job_references", ["job_id"], unique=False)

    op.create_table(
        "skills",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "validators",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("eit_id", sa.Uuid(), nullable=False),
        sa.Column("skill_id", sa.Uuid(), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=200), nullable=True),
        sa.Column("relation", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("status", subject_status_enum, nullable=False, server_default="UNSENT"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["eit_id"], ["eit_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"], ondelete="SET NULL"),
        sa.CheckConstraint("score IS NULL OR score BETWEEN 1 AND 5", name="ck_validators_score"),
    )
    op.create_index(op.f("ix_validators_eit_id"), "validators", ["eit_id"], unique=False)

    op.create_table(
        "reference_magic_links",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.Column("eit_id", sa.Uuid(), nullable=False),
        sa.Column("job_reference_id", sa.Uuid(), nullable=True),
        sa.Column("eit_name", sa.String(length=200), nullable=False),
        sa.Column("eit_email", sa.String(length=255), nullable=False),
        sa.Column("job_title", sa.String(length=200), nullable=False),
        sa.Column("job_company", sa.String(length=200), nullable=False),
        sa.Column("reference_email", sa.String(length=255), nullable=False),
        sa.Column("reference_name", sa.String(length=200), nullable=True),
        sa.Column("reference_position", sa.String(length=200), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["eit_id"], ["eit_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["job_reference_id"], ["job_references.id"], ondelete="SET NULL"
        ),
    )
    op.create_index(
        op.f("ix_reference_magic_links_eit_id"),
        "reference_magic_links",
        ["eit_id"],
        unique=False,
    )

    # subject_id is polymorphic (points at one of three tables), so no FK
    op.create_table(
        "approval_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("subject_kind", subject_kind_enum, nullable=False),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_email", sa.String(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash", name="uq_approval_tokens_token_hash"),
    )
    op.create_index(
        "ix_approval_tokens_subject",
        "approval_tokens",
        ["subject_kind", "subject_id"],
        unique=False,
    )
    op.create_index(
        "ix_approval_tokens_expires_at",
        "approval_tokens",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop all approval tables and enum types."""
    op.drop_index("ix_approval_tokens_expires_at", table_name="approval_tokens")
    op.drop_index("ix_approval_tokens_subject", table_name="approval_tokens")
    op.drop_table("approval_tokens")

    op.drop_index(op.f("ix_reference_magic_links_eit_id"), table_name="reference_magic_links")
    op.drop_table("reference_magic_links")

    op.drop_index(op.f("ix_validators_eit_id"), table_name="validators")
    op.drop_table("validators")
    op.drop_table("skills")

    op.drop_index(op.f("ix_job_references_job_id"), table_name="job_references")
    op.drop_table("job_references")

    op.drop_index(op.f("ix_jobs_eit_id"), table_name="jobs")
    op.drop_table("jobs")

    op.drop_index(op.f("ix_eit_profiles_email"), table_name="eit_profiles")
    op.drop_table("eit_profiles")

    sa.Enum(name="subject_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="subject_kind").drop(op.get_bind(), checkfirst=True)
