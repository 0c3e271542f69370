from fastapi import APIRouter

from accreda.modules.approvals.admin_router import router as admin_approvals_router
from accreda.modules.reference_links import router as reference_links_router
from accreda.modules.references import router as references_router
from accreda.modules.validators import router as validators_router

api_router = APIRouter()

api_router.include_router(references_router)

api_router.include_router(validators_router)

api_router.include_router(reference_links_router)

api_router.include_router(admin_approvals_router)
