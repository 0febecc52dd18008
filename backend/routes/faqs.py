"""FAQ routes - each tenant owns one list, seeded with defaults on creation."""
from fastapi import APIRouter, Depends
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Optional
import logging

from errors import ValidationError
from middleware import identity_from_query
from models import FaqItem, IdentityHint
from services.app_services import AppServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/faqs", tags=["faqs"])


class FaqReplaceRequest(IdentityHint):
    items: Optional[Any] = None


@router.get("")
async def get_faqs(
    hint: IdentityHint = Depends(identity_from_query),
    services: AppServices = Depends(get_services),
):
    tenant_id = services.resolver.resolve(hint)
    return {"businessId": tenant_id, "items": [f.to_wire() for f in services.db.faqs.get(tenant_id)]}


@router.post("")
async def replace_faqs(request: FaqReplaceRequest, services: AppServices = Depends(get_services)):
    tenant_id = services.resolver.resolve(request)
    if not isinstance(request.items, list):
        raise ValidationError("items array required")
    try:
        items = [FaqItem.model_validate(item) for item in request.items]
    except PydanticValidationError:
        raise ValidationError("each item requires q and a")

    services.db.faqs.replace(tenant_id, items)
    logger.info("FAQs replaced tenant_id=%s count=%s", tenant_id, len(items))
    return {"businessId": tenant_id, "ok": True}
