"""
EFT Approval Workflow State Machine.

PENDING -> APPROVED | DENIED (terminal). A claim is removed from the store on
either transition, so an unknown token means "already resolved or never
issued" and the two cases are indistinguishable on purpose:
- approve() on an unknown token raises NotFoundError (a double click is a not-found)
- deny() on an unknown token is a silent no-op

Notifications are fire-and-forget; a failed send never rolls back a claim or
an activation.

Gaps: pending claims never expire, and operator key checks are not rate limited.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
import hmac
import logging
import os
import re
import uuid

from database import ApprovalClaimStore
from errors import NotFoundError, UnauthorizedError, ValidationError
from models import ApprovalClaim, ClaimStatus, Entitlement, IdentityHint, Tenant
from services import eft_email_templates as templates
from services.entitlement_service import EntitlementService
from services.identity_resolver import IdentityResolver
from services.package_catalog import PackageCatalog

logger = logging.getLogger(__name__)

DEV_ADMIN_KEY = "change-me"
MAX_APPROVAL_DAYS = 3650
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")

EFT_BANK_NAME = os.getenv("EFT_BANK_NAME", "FNB")
EFT_ACCOUNT_NAME = os.getenv("EFT_ACCOUNT_NAME", "Alice N")
EFT_ACCOUNT_TYPE = os.getenv("EFT_ACCOUNT_TYPE", "Cheque")
EFT_ACCOUNT_NUMBER = os.getenv("EFT_ACCOUNT_NUMBER", "0000000000")

CLAIM_RECEIVED_MESSAGE = "Claim sent to admin. You’ll be unlocked after verification."


class Notifier(Protocol):
    def dispatch(self, recipient: Optional[str], subject: str, html_body: str, tag: Optional[str] = None) -> bool:
        ...


@dataclass
class ApprovalResult:
    entitlement: Entitlement
    tenant: Tenant
    claim: ApprovalClaim
    operator_html: str


def looks_like_email(contact: Optional[str]) -> bool:
    """Structural check only: something@something with no whitespace."""
    return bool(contact and EMAIL_PATTERN.match(contact.strip()))


def _short_code() -> str:
    return uuid.uuid4().hex[:6].upper()


def generate_provisional_ref() -> str:
    return f"P-{_short_code()}"


class ApprovalWorkflow:
    def __init__(
        self,
        claims: ApprovalClaimStore,
        resolver: IdentityResolver,
        entitlements: EntitlementService,
        catalog: PackageCatalog,
        notifier: Notifier,
        operator_key: Optional[str] = None,
        operator_email: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.claims = claims
        self.resolver = resolver
        self.entitlements = entitlements
        self.catalog = catalog
        self.notifier = notifier
        self.operator_key = operator_key if operator_key is not None else os.getenv("ADMIN_KEY", DEV_ADMIN_KEY)
        self.operator_email = operator_email if operator_email is not None else os.getenv("ADMIN_EMAIL")
        self.base_url = base_url

    # ------------------------------------------------------------------
    # Customer side
    # ------------------------------------------------------------------

    def start_payment(self, package_id: Optional[str], hint: IdentityHint) -> Dict[str, Any]:
        """Resolve the tenant now so it exists through the flow; return EFT instructions."""
        package = self.catalog.resolve_package(package_id)
        tenant_id = self.resolver.resolve(hint)
        provisional_ref = generate_provisional_ref()
        message = (
            "💳 EFT Payment Instructions\n"
            f"Service: {package['name']}\n"
            f"Total: R{package['price']}\n\n"
            f"Bank: {EFT_BANK_NAME}\n"
            f"Account Name: {EFT_ACCOUNT_NAME}\n"
            f"Account Type: {EFT_ACCOUNT_TYPE}\n"
            f"Account Number: {EFT_ACCOUNT_NUMBER}\n"
            f"Reference: {provisional_ref}\n\n"
            "After payment, reply: DONE"
        )
        logger.info("EFT started tenant_id=%s package_id=%s ref=%s", tenant_id, package["id"], provisional_ref)
        return {
            "ok": True,
            "businessId": tenant_id,
            "packageId": package["id"],
            "amount": package["price"],
            "message": message,
            "provisionalRef": provisional_ref,
            "businessName": hint.display_name,
            "industry": hint.industry_name,
            "contact": hint.contact_handle or "",
        }

    def stage_claim(
        self,
        package_id: Optional[str],
        hint: IdentityHint,
        payout_reference: Optional[str] = None,
    ) -> ApprovalClaim:
        """Store a PENDING claim and notify the operator. Returns the claim (token inside)."""
        package = self.catalog.resolve_package(package_id)
        validity_days = self.catalog.validity_days(package["id"])

        while True:
            claim = ApprovalClaim(
                token=_short_code(),
                tenant_id=None,
                package_id=package["id"],
                amount=package["price"],
                requested_at=int(self.entitlements.clock() * 1000),
                provisional_ref=(payout_reference or "").strip() or generate_provisional_ref(),
                business_name=hint.display_name,
                industry=hint.industry_name,
                contact=hint.contact_handle or "",
                validity_days=validity_days,
            )
            if self.claims.add(claim):
                break

        logger.info(
            "EFT claim staged token=%s package_id=%s ref=%s",
            claim.token, claim.package_id, claim.provisional_ref,
        )

        approve_link, deny_link = templates.build_approval_links(
            claim.token, validity_days, self.operator_key, self.base_url
        )
        self.notifier.dispatch(
            self.operator_email,
            f"[Alice EFT] {package['name']} — Ref {claim.provisional_ref}",
            templates.build_claim_notice(claim, package["name"], approve_link, deny_link),
            tag="eft-claim",
        )
        return claim

    # ------------------------------------------------------------------
    # Operator side
    # ------------------------------------------------------------------

    def check_operator_key(self, operator_key: Optional[str]) -> None:
        if not operator_key or not hmac.compare_digest(str(operator_key).encode(), str(self.operator_key).encode()):
            logger.warning("Operator action rejected: bad or missing key")
            raise UnauthorizedError("Unauthorized")

    def approve(self, token: Optional[str], operator_key: Optional[str], days: Optional[float] = None) -> ApprovalResult:
        self.check_operator_key(operator_key)
        if days is not None and not 0 < days <= MAX_APPROVAL_DAYS:
            raise ValidationError(f"days must be between 0 and {MAX_APPROVAL_DAYS}")

        claim = self.claims.pop(token) if token else None
        if claim is None:
            raise NotFoundError("Invalid token")

        hint = IdentityHint(business_name=claim.business_name, industry=claim.industry, contact=claim.contact)
        tenant = self.resolver.resolve_tenant(hint)
        period_days = days if days is not None else claim.validity_days
        entitlement = self.entitlements.activate(tenant.id, claim.package_id, period_days)
        claim = claim.model_copy(update={"tenant_id": tenant.id, "status": ClaimStatus.APPROVED})

        logger.info(
            "EFT claim approved token=%s tenant_id=%s package_id=%s days=%s",
            claim.token, tenant.id, claim.package_id, period_days,
        )

        operator_html = templates.build_operator_approval_notice(claim, tenant.id, entitlement.current_period_end)
        self.notifier.dispatch(
            self.operator_email,
            f"Approved: {claim.business_name} ({claim.package_id})",
            operator_html,
            tag="eft-approved",
        )
        if looks_like_email(claim.contact):
            self.notifier.dispatch(
                claim.contact.strip(),
                "Welcome to Alice EntrepreBot — Access Activated",
                templates.build_tenant_welcome(
                    claim, tenant.id, self.catalog.display_name(claim.package_id), entitlement.current_period_end
                ),
                tag="eft-welcome",
            )

        return ApprovalResult(entitlement=entitlement, tenant=tenant, claim=claim, operator_html=operator_html)

    def deny(self, token: Optional[str], operator_key: Optional[str]) -> Optional[ApprovalClaim]:
        """Discard a pending claim. Returns the DENIED claim, or None for an unknown token."""
        self.check_operator_key(operator_key)
        claim = self.claims.pop(token) if token else None
        if claim is None:
            logger.info("Deny for unknown token=%s ignored", token)
            return None
        logger.info("EFT claim denied token=%s ref=%s", claim.token, claim.provisional_ref)
        return claim.model_copy(update={"status": ClaimStatus.DENIED})

    def list_pending(self, operator_key: Optional[str]) -> List[ApprovalClaim]:
        self.check_operator_key(operator_key)
        return self.claims.list()
