"""Package Catalog - Single source of truth for purchasable packages.

This is the AUTHORITATIVE source for:
- Package ids and display names
- Pricing (ZAR, paid by manual EFT)
- Benefit lists shown on the paywall
- Approval validity windows (days granted on operator approval)

RULES:
1. The catalog is static and read-only after import
2. Entitlement checks match package ids exactly - there is no tier hierarchy
3. Unknown package ids fall back to BASIC when a claim is staged
"""
from enum import Enum
from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)


# ============================================================================
# PACKAGE ENUM - Canonical Package Ids
# ============================================================================
class PackageId(str, Enum):
    """Canonical package ids."""
    BASIC = "basic"
    PRO = "pro"
    ELITE = "elite"
    ELITE_PLUS = "elite_plus"
    ELITE_6MO = "elite_6mo"
    ELITE_12MO = "elite_12mo"


# Free allowance applies to this package only
FREE_PACKAGE_ID = PackageId.BASIC.value
FREE_CALL_LIMIT = 40

DEFAULT_VALIDITY_DAYS = 30
VALIDITY_DAYS_OVERRIDES = {
    PackageId.ELITE_6MO.value: 180,
    PackageId.ELITE_12MO.value: 365,
}

PAYWALL_MESSAGE = "Choose a package to continue: R150 / R250 / R500 / R1000 / R4000 / R7000"


# ============================================================================
# PACKAGE DEFINITIONS - Complete catalog (insertion order is display order)
# ============================================================================
PACKAGE_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    PackageId.BASIC.value: {
        "id": "basic",
        "name": "R150 – Basic (Self-Service Alice EntrepreBot Assistant)",
        "price": 150,
        "benefits": [
            "Weekly industry insights & trending hooks",
            "What to post, when to post, which platform",
            "Payday awareness (15th, 25th–30th)",
            "Simple revenue forecasts",
            "Core ops: Bookings, Leads, FAQs, Staff login, Agenda, Clock-in/out",
        ],
    },
    PackageId.PRO.value: {
        "id": "pro",
        "name": "R250 – Pro (Alice Assistant + Virtual Consultations)",
        "price": 250,
        "benefits": [
            "Everything in Basic",
            "2× Virtual Consultations per month",
            "Automatic reminders to staff/clients",
            "Priority CEO/staff scheduling",
        ],
    },
    PackageId.ELITE.value: {
        "id": "elite",
        "name": "R500 – Elite (Exclusive consulting access, 30-day window)",
        "price": 500,
        "benefits": [
            "Everything in Pro",
            "Elite concierge access",
            "30–31 day strategy window per cycle",
            "Creation cap: up to 6 assets (images/mockups/PDF/docs) per 30 days",
            "Tailored insights, competitor checks, ROI planning",
        ],
    },
    PackageId.ELITE_PLUS.value: {
        "id": "elite_plus",
        "name": "R1000 – Elite+ Monthly (expanded creation cap)",
        "price": 1000,
        "benefits": [
            "Everything in Elite",
            "30–31 day strategy & campaign planning per cycle",
            "Creation cap: up to 15 assets per 30 days",
            "Priority turnarounds & extended reviews",
        ],
    },
    PackageId.ELITE_6MO.value: {
        "id": "elite_6mo",
        "name": "R4000 – Elite (6 Months, upfront)",
        "price": 4000,
        "benefits": [
            "6-month engagement, upfront payment",
            "Half-year roadmaps & projects (plan for the year, deliver 6 months)",
            "All creation needs unlocked (fair-use), priority support",
            "Mid-cycle reviews & adjustments",
        ],
    },
    PackageId.ELITE_12MO.value: {
        "id": "elite_12mo",
        "name": "R7000 – Elite (12 Months, upfront)",
        "price": 7000,
        "benefits": [
            "12-month engagement, upfront payment",
            "Annual plan, quarterly reviews, all creation unlocked (fair-use)",
            "Full campaign orchestration & premium analytics",
            "Highest priority, annual retrospective & replan",
        ],
    },
}


class PackageCatalog:
    """Read-only access to the package catalog."""

    def get_package(self, package_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not package_id:
            return None
        package = PACKAGE_DEFINITIONS.get(package_id)
        return dict(package) if package else None

    def resolve_package(self, package_id: Optional[str]) -> Dict[str, Any]:
        """Return the package for an id, falling back to BASIC for unknown ids."""
        package = self.get_package(package_id)
        if package is None:
            if package_id:
                logger.info("Unknown package_id=%s, falling back to %s", package_id, FREE_PACKAGE_ID)
            package = dict(PACKAGE_DEFINITIONS[FREE_PACKAGE_ID])
        return package

    def list_packages(self) -> List[Dict[str, Any]]:
        """Public catalog shape used by the paywall and /billing/packages."""
        return [
            {
                "id": p["id"],
                "name": p["name"],
                "price": p["price"],
                "benefits": list(p["benefits"]),
            }
            for p in PACKAGE_DEFINITIONS.values()
        ]

    def validity_days(self, package_id: Optional[str]) -> int:
        """Days granted on approval: 6-month and 12-month packages are special-cased."""
        return VALIDITY_DAYS_OVERRIDES.get(package_id, DEFAULT_VALIDITY_DAYS)

    def display_name(self, package_id: Optional[str]) -> str:
        package = self.get_package(package_id)
        return package["name"] if package else (package_id or "")


package_catalog = PackageCatalog()
