"""Bookings - append-only per tenant."""
from fastapi import APIRouter, Depends
from typing import Optional
import logging

from errors import ValidationError
from middleware import identity_from_query
from models import Booking, IdentityHint
from services.app_services import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/bookings", tags=["bookings"])


class BookingCreateRequest(IdentityHint):
    client_name: Optional[str] = None
    client_contact: Optional[str] = None
    service: Optional[str] = None
    when: Optional[str] = None
    staff_id: Optional[str] = None
    notes: Optional[str] = None


@router.get("")
async def list_bookings(
    hint: IdentityHint = Depends(identity_from_query),
    services: AppServices = Depends(get_services),
):
    tenant_id = services.resolver.resolve(hint)
    items = services.db.bookings.for_tenant(tenant_id)
    return {"businessId": tenant_id, "bookings": [b.to_wire() for b in items]}


@router.post("")
async def create_booking(request: BookingCreateRequest, services: AppServices = Depends(get_services)):
    client_contact = (request.client_contact or request.contact or "").strip()
    if not request.client_name or not client_contact or not request.service or not request.when:
        raise ValidationError("clientName, contact/clientContact, service, when required")

    tenant_id = services.resolver.resolve(request)
    booking = services.db.bookings.append(Booking(
        tenant_id=tenant_id,
        client_name=request.client_name,
        contact=client_contact,
        service=request.service,
        when=request.when,
        staff_id=request.staff_id or None,
        notes=request.notes or "",
    ))
    logger.info("Booking created tenant_id=%s booking_id=%s", tenant_id, booking.id)
    return {"businessId": tenant_id, "booking": booking.to_wire()}
