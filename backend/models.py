from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum
import os
import uuid

DEFAULT_BUSINESS_NAME = "Auto Business"
DEFAULT_INDUSTRY = "general"
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Africa/Johannesburg")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize(value: Optional[str]) -> str:
    """Trim and case-fold an identity field."""
    return str(value or "").strip().casefold()


# ============================================================================
# ENUMS (System Constants)
# ============================================================================

class EntitlementStatus(str, Enum):
    ACTIVE = "active"

class ClaimStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"

class StaffRole(str, Enum):
    STAFF = "staff"
    MANAGER = "manager"
    OWNER = "owner"

class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class AttendanceType(str, Enum):
    CLOCK_IN = "in"
    CLOCK_OUT = "out"

class OvertimeStatus(str, Enum):
    PENDING = "pending"


class WireModel(BaseModel):
    """Base for models exchanged with chat-agent callers (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# IDENTITY
# ============================================================================

class IdentityHint(WireModel):
    """Loosely-identifying contact fields sent with every request.

    Defaults are applied here once: a blank name becomes DEFAULT_BUSINESS_NAME,
    a blank industry becomes DEFAULT_INDUSTRY, a blank contact is absent.
    """
    business_name: Optional[str] = None
    industry: Optional[str] = None
    contact: Optional[str] = None

    @property
    def display_name(self) -> str:
        return (self.business_name or "").strip() or DEFAULT_BUSINESS_NAME

    @property
    def industry_name(self) -> str:
        return (self.industry or "").strip() or DEFAULT_INDUSTRY

    @property
    def contact_handle(self) -> Optional[str]:
        return (self.contact or "").strip() or None

    def name_key(self) -> str:
        return f"{normalize(self.display_name)}|{normalize(self.industry_name)}"

    def contact_key(self) -> Optional[str]:
        handle = self.contact_handle
        return f"c:{normalize(handle)}" if handle else None


# ============================================================================
# CORE MODELS
# ============================================================================

class Tenant(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    industry: str
    contact: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE

class Entitlement(WireModel):
    tenant_id: str = Field(alias="businessId")
    package_id: str
    status: EntitlementStatus = EntitlementStatus.ACTIVE
    current_period_end: Optional[int] = None  # epoch seconds; None = unbounded

class ApprovalClaim(WireModel):
    token: str
    tenant_id: Optional[str] = Field(default=None, alias="businessId")
    package_id: str
    amount: int
    requested_at: int  # epoch millis
    provisional_ref: str
    business_name: str
    industry: str
    contact: str = ""
    validity_days: int = 30
    status: ClaimStatus = ClaimStatus.PENDING

class FaqItem(WireModel):
    q: str
    a: str

DEFAULT_FAQS = [
    FaqItem(q="What are your hours?", a="Mon–Sat 09:00–18:00"),
    FaqItem(q="Do you accept walk-ins?", a="Yes, subject to availability."),
]


# ============================================================================
# BUSINESS RECORDS
# ============================================================================

class Booking(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(alias="businessId")
    client_name: str
    contact: str
    service: str
    when: str
    staff_id: Optional[str] = None
    notes: str = ""
    status: BookingStatus = BookingStatus.CONFIRMED

class Lead(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(alias="businessId")
    name: str
    contact: str
    service: str
    budget: str = ""
    source: str = ""
    notes: str = ""
    created_at: str = Field(default_factory=_now_iso)

class StaffMember(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(alias="businessId")
    name: str
    national_id: str
    pin_hash: str
    role: StaffRole = StaffRole.STAFF

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role.value}

class AttendanceEvent(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(alias="businessId")
    staff_id: str
    type: AttendanceType
    timestamp: str = Field(default_factory=_now_iso)

class OvertimeRequest(WireModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str = Field(alias="businessId")
    staff_id: str
    hours: float
    reason: str = ""
    status: OvertimeStatus = OvertimeStatus.PENDING


class MessageLog(BaseModel):
    """Outcome of one notification delivery attempt (kept in memory only)."""
    model_config = ConfigDict(extra="ignore")

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient: str
    subject: str
    status: str = "queued"  # queued | sent | failed | dropped
    postmark_message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider_error_type: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    sent_at: Optional[datetime] = None
