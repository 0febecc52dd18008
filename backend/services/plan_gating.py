"""Plan Gating Service - request-time admission for package-gated features.

Rules:
- An active entitlement for the exact package always admits
- The free package (basic) admits the first FREE_CALL_LIMIT calls per tenant;
  the counter is incremented on every non-entitled call, denied ones included
- Every other package has no free allowance
- Denials raise EntitlementRequired carrying the full package catalog
"""
from dataclasses import dataclass
from typing import Optional
import logging

from errors import EntitlementRequired
from models import IdentityHint
from services.entitlement_service import EntitlementService
from services.identity_resolver import IdentityResolver
from services.package_catalog import (
    FREE_CALL_LIMIT,
    FREE_PACKAGE_ID,
    PAYWALL_MESSAGE,
    PackageCatalog,
)

logger = logging.getLogger(__name__)


@dataclass
class Admission:
    tenant_id: str
    package_id: str
    via_entitlement: bool
    usage_count: Optional[int] = None


class PlanGate:
    def __init__(
        self,
        resolver: IdentityResolver,
        entitlements: EntitlementService,
        catalog: PackageCatalog,
    ):
        self.resolver = resolver
        self.entitlements = entitlements
        self.catalog = catalog

    def admit(self, tenant_id: str, package_id: str = FREE_PACKAGE_ID) -> Admission:
        """Admit the call or raise EntitlementRequired."""
        if self.entitlements.is_entitled(tenant_id, package_id):
            return Admission(tenant_id=tenant_id, package_id=package_id, via_entitlement=True)

        usage_count = None
        if package_id == FREE_PACKAGE_ID:
            usage_count = self.entitlements.usage.increment(tenant_id)
            if usage_count <= FREE_CALL_LIMIT:
                return Admission(
                    tenant_id=tenant_id,
                    package_id=package_id,
                    via_entitlement=False,
                    usage_count=usage_count,
                )

        logger.warning(
            "Gate denied tenant_id=%s package_id=%s usage_count=%s",
            tenant_id, package_id, usage_count,
        )
        raise self.denial(tenant_id)

    def admit_hint(self, hint: Optional[IdentityHint], package_id: str = FREE_PACKAGE_ID) -> Admission:
        """Resolve the tenant from request identity fields, then admit."""
        return self.admit(self.resolver.resolve(hint), package_id)

    def denial(self, tenant_id: Optional[str] = None) -> EntitlementRequired:
        return EntitlementRequired(
            message=PAYWALL_MESSAGE,
            packages=self.catalog.list_packages(),
            tenant_id=tenant_id,
        )
