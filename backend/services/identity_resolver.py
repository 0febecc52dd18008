"""Identity Resolver - maps loose contact details to a stable tenant id.

Two identity keys are derived from an IdentityHint:
- name key:    "<name>|<industry>" (always present, defaults applied)
- contact key: "c:<contact>" (only when a contact handle was given)

The name key is looked up first, then the contact key. On a miss for both a
tenant is created, seeded with the default FAQs, and indexed under every key,
so a later request using either identity form lands on the same tenant.
Resolution never fails.

Known limitation: two distinct businesses sharing a name+industry pair and
giving no contact are merged into one tenant.
"""
from typing import Optional
import logging

from database import TenantStore, FaqStore
from models import DEFAULT_FAQS, DEFAULT_TIMEZONE, IdentityHint, Tenant

logger = logging.getLogger(__name__)


class IdentityResolver:
    def __init__(self, tenants: TenantStore, faqs: FaqStore):
        self.tenants = tenants
        self.faqs = faqs

    def resolve(self, hint: Optional[IdentityHint] = None) -> str:
        """Return the tenant id for the hint, creating the tenant on first sight."""
        hint = hint or IdentityHint()
        keys = [hint.name_key()]
        contact_key = hint.contact_key()
        if contact_key:
            keys.append(contact_key)

        tenant, created = self.tenants.lookup_or_create(
            keys,
            lambda: Tenant(
                name=hint.display_name,
                industry=hint.industry_name,
                contact=hint.contact_handle,
                timezone=DEFAULT_TIMEZONE,
            ),
        )
        if created:
            self.faqs.seed(tenant.id, DEFAULT_FAQS)
            logger.info(
                "Tenant created tenant_id=%s name=%s industry=%s has_contact=%s",
                tenant.id, tenant.name, tenant.industry, bool(contact_key),
            )
        return tenant.id

    def resolve_tenant(self, hint: Optional[IdentityHint] = None) -> Tenant:
        return self.tenants.get(self.resolve(hint))

    def set_timezone(self, tenant_id: str, tz: Optional[str]) -> Optional[Tenant]:
        return self.tenants.update(tenant_id, timezone=tz or DEFAULT_TIMEZONE)
