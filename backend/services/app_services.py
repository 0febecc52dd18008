"""Wiring of stores into services.

Routes obtain services through get_services() (usable as a FastAPI
dependency). reset_services() rebuilds the graph against the current stores,
optionally with a different notifier or clock.
"""
from typing import Callable, Optional
import logging
import time

from database import Database, database
from services.approval_workflow import ApprovalWorkflow, Notifier
from services.entitlement_service import EntitlementService
from services.identity_resolver import IdentityResolver
from services.notification_dispatcher import notification_dispatcher
from services.package_catalog import PackageCatalog, package_catalog
from services.plan_gating import PlanGate

logger = logging.getLogger(__name__)


class AppServices:
    def __init__(
        self,
        db: Database,
        notifier: Notifier,
        catalog: PackageCatalog = package_catalog,
        clock: Callable[[], float] = time.time,
        operator_key: Optional[str] = None,
        operator_email: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.db = db
        self.catalog = catalog
        self.notifier = notifier
        self.resolver = IdentityResolver(db.tenants, db.faqs)
        self.entitlements = EntitlementService(db.entitlements, db.usage, clock=clock)
        self.gate = PlanGate(self.resolver, self.entitlements, catalog)
        self.approvals = ApprovalWorkflow(
            db.claims,
            self.resolver,
            self.entitlements,
            catalog,
            notifier,
            operator_key=operator_key,
            operator_email=operator_email,
            base_url=base_url,
        )


_services: Optional[AppServices] = None


def reset_services(notifier: Optional[Notifier] = None, **kwargs) -> AppServices:
    global _services
    _services = AppServices(database.get_db(), notifier or notification_dispatcher, **kwargs)
    return _services


def get_services() -> AppServices:
    # Stores are rebuilt by database.connect(); rewire when that happened
    if _services is None or _services.resolver.tenants is not database.tenants:
        return reset_services(_services.notifier if _services else None)
    return _services
