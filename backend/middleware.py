from fastapi import Depends, Query, Request
from typing import Optional
import json
import logging
from pydantic import ValidationError as PydanticValidationError
from auth import verify_staff_session
from errors import UnauthorizedError, ValidationError
from models import IdentityHint
from services.app_services import AppServices, get_services
from services.plan_gating import Admission

logger = logging.getLogger(__name__)

async def get_current_staff(request: Request) -> Optional[dict]:
    """Extract and validate the staff session from the Bearer token."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    token = auth_header.split(" ", 1)[1] if auth_header.lower().startswith("bearer ") else auth_header
    return verify_staff_session(token.strip())

async def require_staff(request: Request) -> dict:
    """Require a valid staff session; returns its {staffId, tenantId, role} claims."""
    if not request.headers.get("Authorization"):
        raise UnauthorizedError("Missing Authorization header")

    staff = await get_current_staff(request)
    if not staff:
        raise UnauthorizedError("Invalid or expired token")
    return staff

async def identity_from_body(request: Request) -> IdentityHint:
    """Identity fields from a JSON body; anything unparseable counts as no identity."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    try:
        return IdentityHint.model_validate(body if isinstance(body, dict) else {})
    except PydanticValidationError:
        raise ValidationError("businessName, industry and contact must be strings")

async def identity_from_query(
    businessName: Optional[str] = Query(None),
    industry: Optional[str] = Query(None),
    contact: Optional[str] = Query(None),
) -> IdentityHint:
    return IdentityHint(business_name=businessName, industry=industry, contact=contact)

def require_package(package_id: str):
    """
    Dependency enforcing package-gated access.
    Resolves the tenant from the request body, then admits or raises EntitlementRequired.

    Usage:
        @router.post("/endpoint")
        async def my_endpoint(admission: Admission = Depends(require_package("basic"))):
            ...
    """
    async def dependency(
        hint: IdentityHint = Depends(identity_from_body),
        services: AppServices = Depends(get_services),
    ) -> Admission:
        return services.gate.admit_hint(hint, package_id)

    return dependency
