"""
Lead capture routes.

Leads are stored per tenant; the tenant is resolved from the identity fields
sent with the lead.
"""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from errors import ValidationError
from middleware import identity_from_query
from models import IdentityHint, Lead
from services.app_services import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/leads", tags=["leads"])


class LeadCaptureRequest(IdentityHint):
    """Lead from the chat agent."""
    name: Optional[str] = None
    client_contact: Optional[str] = None
    service: Optional[str] = None
    budget: Optional[str] = None
    source: Optional[str] = None
    notes: Optional[str] = None


@router.post("")
async def capture_lead(request: LeadCaptureRequest, services: AppServices = Depends(get_services)):
    client_contact = (request.client_contact or request.contact or "").strip()
    if not request.name or not client_contact or not request.service:
        raise ValidationError("name, contact, service required")

    tenant_id = services.resolver.resolve(request)
    lead = services.db.leads.append(Lead(
        tenant_id=tenant_id,
        name=request.name,
        contact=client_contact,
        service=request.service,
        budget=request.budget or "",
        source=request.source or "",
        notes=request.notes or "",
    ))
    logger.info("Lead captured tenant_id=%s lead_id=%s source=%s", tenant_id, lead.id, lead.source or "-")
    return {"businessId": tenant_id, "lead": lead.to_wire()}


@router.get("")
async def list_leads(
    hint: IdentityHint = Depends(identity_from_query),
    services: AppServices = Depends(get_services),
):
    tenant_id = services.resolver.resolve(hint)
    return {"businessId": tenant_id, "leads": [l.to_wire() for l in services.db.leads.for_tenant(tenant_id)]}
