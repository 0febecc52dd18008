"""
Business onboarding routes.

Businesses are never registered by id: every request carries name, industry
and optionally a contact, and the tenant is matched or created from those.
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from errors import ValidationError
from models import IdentityHint, WireModel
from services.app_services import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["business"])


class BusinessCreateRequest(WireModel):
    name: Optional[str] = None
    industry: Optional[str] = None
    timezone: Optional[str] = None


@router.post("/onboard/welcome")
async def onboard_welcome(hint: Optional[IdentityHint] = None, services: AppServices = Depends(get_services)):
    """Collect business details first and create or match the tenant immediately."""
    hint = hint or IdentityHint()
    business_name = (hint.business_name or "").strip()
    industry = (hint.industry or "").strip()
    if not business_name or not industry:
        raise ValidationError("businessName and industry required")

    tenant = services.resolver.resolve_tenant(hint)
    contact_note = f" with contact {hint.contact_handle}" if hint.contact_handle else ""
    message = (
        f"Welcome to Alice ✨ — I’ve registered **{business_name}** ({industry}){contact_note}. "
        "We’re ready to proceed."
    )
    return {"ok": True, "businessId": tenant.id, "business": tenant.to_wire(), "message": message}


@router.post("/business/resolve")
async def resolve_business(hint: Optional[IdentityHint] = None, services: AppServices = Depends(get_services)):
    tenant = services.resolver.resolve_tenant(hint)
    return {"businessId": tenant.id, "business": tenant.to_wire()}


@router.post("/business/create")
async def create_business(request: BusinessCreateRequest, services: AppServices = Depends(get_services)):
    name = (request.name or "").strip()
    industry = (request.industry or "").strip()
    if not name or not industry:
        raise ValidationError("name and industry required")

    tenant_id = services.resolver.resolve(IdentityHint(business_name=name, industry=industry))
    tenant = services.resolver.set_timezone(tenant_id, request.timezone)
    return {"businessId": tenant.id, "business": tenant.to_wire()}
