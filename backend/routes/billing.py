"""
Billing routes - package catalog and the manual EFT flow.

Flow:
1. POST /api/billing/eft/start  - returns bank details and a provisional reference
2. customer pays by EFT outside the system
3. POST /api/billing/eft/done   - stages a claim and emails the operator approve/deny links
4. operator clicks a link (routes/admin.py) to activate or discard

Nothing here grants an entitlement.
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from models import IdentityHint
from services.app_services import AppServices, get_services
from services.approval_workflow import CLAIM_RECEIVED_MESSAGE

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/billing", tags=["billing"])


class EftRequest(IdentityHint):
    package_id: Optional[str] = None
    provisional_ref: Optional[str] = None


@router.get("/packages")
async def list_packages(services: AppServices = Depends(get_services)):
    return services.catalog.list_packages()


@router.post("/eft/start")
async def start_eft(request: Optional[EftRequest] = None, services: AppServices = Depends(get_services)):
    request = request or EftRequest()
    return services.approvals.start_payment(request.package_id, request)


@router.post("/eft/done")
async def eft_done(request: Optional[EftRequest] = None, services: AppServices = Depends(get_services)):
    """Customer reports payment made. Responds before the operator email is delivered."""
    request = request or EftRequest()
    claim = services.approvals.stage_claim(request.package_id, request, request.provisional_ref)
    return {"ok": True, "message": CLAIM_RECEIVED_MESSAGE, "token": claim.token}


@router.post("/status")
async def subscription_status(request: Optional[IdentityHint] = None, services: AppServices = Depends(get_services)):
    tenant_id = services.resolver.resolve(request)
    return services.entitlements.subscription_status(tenant_id)
