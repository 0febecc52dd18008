"""
Staff routes.

Create and login are identity-scoped like every other endpoint; the rest
require the signed staff session issued at login.
"""
from fastapi import APIRouter, Depends
from typing import Any, Optional
import logging

from auth import create_staff_session, hash_pin, verify_pin
from errors import UnauthorizedError, ValidationError
from middleware import require_staff
from models import (
    AttendanceEvent,
    AttendanceType,
    BookingStatus,
    IdentityHint,
    OvertimeRequest,
    StaffMember,
    StaffRole,
    WireModel,
)
from services.app_services import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/staff", tags=["staff"])


class StaffCreateRequest(IdentityHint):
    name: Optional[str] = None
    national_id: Optional[str] = None
    pin: Optional[str] = None
    role: Optional[StaffRole] = None


class StaffLoginRequest(IdentityHint):
    name: Optional[str] = None
    national_id: Optional[str] = None
    pin: Optional[str] = None


class OvertimeSubmitRequest(WireModel):
    hours: Optional[Any] = None
    reason: Optional[str] = None


@router.post("/create")
async def create_staff(request: StaffCreateRequest, services: AppServices = Depends(get_services)):
    if not request.name or not request.national_id or not request.pin:
        raise ValidationError("name, nationalId, pin required")

    tenant_id = services.resolver.resolve(request)
    member = services.db.staff.append(StaffMember(
        tenant_id=tenant_id,
        name=request.name,
        national_id=request.national_id,
        pin_hash=hash_pin(request.pin),
        role=request.role or StaffRole.STAFF,
    ))
    logger.info("Staff created tenant_id=%s staff_id=%s role=%s", tenant_id, member.id, member.role.value)
    return {"id": member.id, "businessId": tenant_id}


@router.post("/login")
async def login_staff(request: StaffLoginRequest, services: AppServices = Depends(get_services)):
    tenant_id = services.resolver.resolve(request)
    member = services.db.staff.find(
        lambda s: s.tenant_id == tenant_id
        and s.name == request.name
        and s.national_id == request.national_id
        and verify_pin(request.pin or "", s.pin_hash)
    )
    if not member:
        logger.warning("Staff login failed tenant_id=%s", tenant_id)
        raise UnauthorizedError("Invalid credentials")

    token = create_staff_session(member.id, tenant_id, member.role.value)
    return {"token": token, "staff": member.summary(), "businessId": tenant_id}


@router.get("/agenda")
async def staff_agenda(staff: dict = Depends(require_staff), services: AppServices = Depends(get_services)):
    items = services.db.bookings.filter(
        lambda b: b.tenant_id == staff["tenantId"]
        and b.staff_id == staff["staffId"]
        and b.status != BookingStatus.CANCELLED
    )
    return {"bookings": [b.to_wire() for b in items]}


def _record_attendance(services: AppServices, staff: dict, kind: AttendanceType) -> dict:
    services.db.attendance.append(AttendanceEvent(
        tenant_id=staff["tenantId"],
        staff_id=staff["staffId"],
        type=kind,
    ))
    return {"ok": True}


@router.post("/clock-in")
async def clock_in(staff: dict = Depends(require_staff), services: AppServices = Depends(get_services)):
    return _record_attendance(services, staff, AttendanceType.CLOCK_IN)


@router.post("/clock-out")
async def clock_out(staff: dict = Depends(require_staff), services: AppServices = Depends(get_services)):
    return _record_attendance(services, staff, AttendanceType.CLOCK_OUT)


@router.post("/overtime")
async def submit_overtime(
    request: Optional[OvertimeSubmitRequest] = None,
    staff: dict = Depends(require_staff),
    services: AppServices = Depends(get_services),
):
    request = request or OvertimeSubmitRequest()
    hours = request.hours
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours <= 0:
        raise ValidationError("hours must be positive")

    entry = services.db.overtime.append(OvertimeRequest(
        tenant_id=staff["tenantId"],
        staff_id=staff["staffId"],
        hours=hours,
        reason=request.reason or "",
    ))
    return entry.to_wire()
