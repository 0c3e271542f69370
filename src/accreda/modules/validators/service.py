"""
Validator Service

The approval token service configured for skill validators.
"""

from datetime import timedelta

from accreda.core.config import settings
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.validators.adapter import ValidatorAdapter


def get_validator_service() -> ApprovalTokenService:
    """FastAPI dependency returning the validator token service."""
    return ApprovalTokenService(
        adapter=ValidatorAdapter(),
        expiry=timedelta(hours=settings.validator_token_expiry_hours),
    )
