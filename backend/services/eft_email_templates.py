"""
EFT Email Templates - HTML bodies for the manual EFT approval flow.
Includes: Operator Claim Notice, Operator Approval Notice, Tenant Welcome
"""
from datetime import datetime, timezone
from html import escape
from typing import Optional
from urllib.parse import urlencode
import os

BRAND_COLOR_PRIMARY = "#1F2937"
BRAND_COLOR_ACCENT = "#10B981"
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8080")


def _row(label: str, value) -> str:
    return f"<p><b>{escape(label)}:</b> {escape(str(value if value is not None else ''))}</p>"


def _format_epoch(seconds: Optional[int]) -> str:
    if seconds is None:
        return "no expiry"
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    except (OverflowError, OSError, ValueError):
        return f"epoch {seconds}"


def build_approval_links(token: str, days: int, operator_key: str, base_url: Optional[str] = None):
    """Operator action links: approve carries token, days and key; deny carries token and key."""
    base = (base_url or PUBLIC_BASE_URL).rstrip("/")
    approve = f"{base}/api/admin/approve?" + urlencode({"token": token, "days": days, "key": operator_key})
    deny = f"{base}/api/admin/deny?" + urlencode({"token": token, "key": operator_key})
    return approve, deny


def build_claim_notice(claim, package_name: str, approve_link: str, deny_link: str) -> str:
    return f"""
    <h3 style="color: {BRAND_COLOR_PRIMARY};">EFT Claim</h3>
    {_row("Ref", claim.provisional_ref)}
    {_row("Package", f"{package_name} (R{claim.amount})")}
    {_row("Business Name", claim.business_name)}
    {_row("Industry", claim.industry)}
    {_row("Contact", claim.contact)}
    {_row("Requested validity", f"{claim.validity_days} days")}
    <p><a href="{escape(approve_link)}">✅ Approve</a> | <a href="{escape(deny_link)}">❌ Deny</a></p>
    """


def build_operator_approval_notice(claim, tenant_id: str, current_period_end: Optional[int]) -> str:
    return f"""
    <h3 style="color: {BRAND_COLOR_ACCENT};">Approved</h3>
    {_row("BusinessId", tenant_id)}
    {_row("Package", claim.package_id)}
    {_row("Expires", _format_epoch(current_period_end))}
    {_row("Ref", claim.provisional_ref)}
    {_row("Name/Industry", f"{claim.business_name} / {claim.industry}")}
    """


def build_tenant_welcome(claim, tenant_id: str, package_name: str, current_period_end: Optional[int]) -> str:
    return f"""
    <h3 style="color: {BRAND_COLOR_ACCENT};">Your Alice EntrepreBot subscription is active ✅</h3>
    {_row("Business", f"{claim.business_name} ({claim.industry or 'general'})")}
    {_row("Business ID", tenant_id)}
    {_row("Package", package_name)}
    {_row("Active until", _format_epoch(current_period_end))}
    <p>You can now ask Alice for insights, bookings, and more using your business details.</p>
    """
