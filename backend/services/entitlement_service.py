"""Entitlement Service - per-tenant subscription state.

An entitlement satisfies a gate check only when it is ACTIVE, its package_id
equals the required package exactly, and its period end is unset or strictly
in the future.
"""
from typing import Any, Callable, Dict, Optional
import logging
import time

from database import EntitlementStore, UsageCounterStore
from models import Entitlement, EntitlementStatus
from services.package_catalog import FREE_CALL_LIMIT

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def _is_live(entitlement: Optional[Entitlement], now: int) -> bool:
    if entitlement is None or entitlement.status != EntitlementStatus.ACTIVE:
        return False
    return entitlement.current_period_end is None or entitlement.current_period_end > now


class EntitlementService:
    def __init__(
        self,
        entitlements: EntitlementStore,
        usage: UsageCounterStore,
        clock: Callable[[], float] = time.time,
    ):
        self.entitlements = entitlements
        self.usage = usage
        self.clock = clock

    def now(self) -> int:
        return int(self.clock())

    def is_entitled(self, tenant_id: str, package_id: str) -> bool:
        entitlement = self.entitlements.get(tenant_id)
        if not _is_live(entitlement, self.now()):
            return False
        return entitlement.package_id == package_id

    def activate(self, tenant_id: str, package_id: str, days: Optional[float]) -> Entitlement:
        """Write an active entitlement, replacing any previous one for the tenant."""
        period_end = None if days is None else self.now() + int(days * SECONDS_PER_DAY)
        entitlement = Entitlement(
            tenant_id=tenant_id,
            package_id=package_id,
            status=EntitlementStatus.ACTIVE,
            current_period_end=period_end,
        )
        self.entitlements.put(entitlement)
        logger.info(
            "Entitlement activated tenant_id=%s package_id=%s current_period_end=%s",
            tenant_id, package_id, period_end,
        )
        return entitlement

    def subscription_status(self, tenant_id: str) -> Dict[str, Any]:
        """Status summary for callers; 'active' ignores which package is held."""
        entitlement = self.entitlements.get(tenant_id)
        used = self.usage.get(tenant_id)
        return {
            "businessId": tenant_id,
            "active": _is_live(entitlement, self.now()),
            "packageId": entitlement.package_id if entitlement else None,
            "currentPeriodEnd": entitlement.current_period_end if entitlement else None,
            "freeCallsUsed": used,
            "freeCallsRemaining": max(FREE_CALL_LIMIT - used, 0),
        }
