"""Operator routes for the EFT approval flow.

These are reached from the links in the operator claim email, so they are
plain GETs authenticated by the operator key in the query string.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from typing import Optional
import logging
import math

from errors import ValidationError
from services.app_services import AppServices, get_services
from services.approval_workflow import MAX_APPROVAL_DAYS

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


def _parse_days(days: Optional[str]) -> Optional[float]:
    if days is None or days == "":
        return None
    try:
        value = float(days)
    except ValueError:
        value = math.nan
    if not math.isfinite(value) or not 0 < value <= MAX_APPROVAL_DAYS:
        raise ValidationError(f"days must be between 0 and {MAX_APPROVAL_DAYS}")
    return value


@router.get("/approve", response_class=HTMLResponse)
async def approve_claim(
    token: Optional[str] = Query(None),
    days: Optional[str] = Query(None),
    key: Optional[str] = Query(None),
    services: AppServices = Depends(get_services),
):
    result = services.approvals.approve(token, key, _parse_days(days))
    return HTMLResponse(content=result.operator_html)


@router.get("/deny", response_class=HTMLResponse)
async def deny_claim(
    token: Optional[str] = Query(None),
    key: Optional[str] = Query(None),
    services: AppServices = Depends(get_services),
):
    services.approvals.deny(token, key)
    return HTMLResponse(content="<h3>Denied</h3>")


@router.get("/pending-claims")
async def pending_claims(key: Optional[str] = Query(None), services: AppServices = Depends(get_services)):
    claims = services.approvals.list_pending(key)
    return {"items": [c.to_wire() for c in claims]}
