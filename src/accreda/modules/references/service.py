"""
Job Reference Service

The approval token service configured for job references.
"""

from datetime import timedelta

from accreda.core.config import settings
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.references.adapter import ReferenceAdapter


def get_reference_service() -> ApprovalTokenService:
    """FastAPI dependency returning the reference token service."""
    return ApprovalTokenService(
        adapter=ReferenceAdapter(),
        expiry=timedelta(hours=settings.reference_token_expiry_hours),
    )
