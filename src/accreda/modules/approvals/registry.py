"""
Approval service lookup by subject kind.
"""

from accreda.modules.approvals.models import SubjectKind
from accreda.modules.approvals.service import ApprovalTokenService
from accreda.modules.reference_links.service import get_reference_link_service
from accreda.modules.references.service import get_reference_service
from accreda.modules.validators.service import get_validator_service

SERVICE_FACTORIES = {
    SubjectKind.REFERENCE: get_reference_service,
    SubjectKind.VALIDATOR: get_validator_service,
    SubjectKind.REFERENCE_LINK: get_reference_link_service,
}


def get_service_for_kind(kind: SubjectKind) -> ApprovalTokenService:
    return SERVICE_FACTORIES[kind]()
