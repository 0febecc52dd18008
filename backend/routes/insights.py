"""
Insights routes - basic-package features.

Tenants without a basic entitlement get FREE_CALL_LIMIT free calls, then a 402
paywall listing the package catalog.
"""
from fastapi import APIRouter, Depends
from pydantic import Field
from typing import Annotated, Optional, Union
import logging

from middleware import require_package
from models import IdentityHint
from services.app_services import AppServices, get_services
from services.insights_service import (
    DEFAULT_BASELINE_WEEKLY_REVENUE,
    DEFAULT_MARKETING_SPEND,
    MAX_FORECAST_AMOUNT,
    revenue_forecast,
    weekly_insights,
)
from services.package_catalog import PackageId
from services.plan_gating import Admission

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/insights", tags=["insights"])


# Ints stay ints on the wire; the bound keeps the arithmetic finite
Amount = Union[
    Annotated[int, Field(ge=0, le=MAX_FORECAST_AMOUNT)],
    Annotated[float, Field(ge=0, le=MAX_FORECAST_AMOUNT)],
]


class ForecastRequest(IdentityHint):
    baseline_weekly_revenue: Amount = DEFAULT_BASELINE_WEEKLY_REVENUE
    marketing_spend: Amount = DEFAULT_MARKETING_SPEND


@router.post("/weekly")
async def weekly(
    admission: Admission = Depends(require_package(PackageId.BASIC.value)),
    services: AppServices = Depends(get_services),
):
    tenant = services.db.tenants.get(admission.tenant_id)
    return weekly_insights(admission.tenant_id, tenant.industry if tenant else "general")


@router.post("/forecast")
async def forecast(
    request: Optional[ForecastRequest] = None,
    admission: Admission = Depends(require_package(PackageId.BASIC.value)),
):
    request = request or ForecastRequest()
    return revenue_forecast(admission.tenant_id, request.baseline_weekly_revenue, request.marketing_spend)
