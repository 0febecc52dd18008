"""Error taxonomy for the EntrepreBot API.

Raised by services, translated to HTTP responses by the handlers in server.py.
"""
from typing import Any, Dict, List, Optional


class AliceError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.detail}


class ValidationError(AliceError):
    """Missing or malformed request fields - caller-fixable."""
    status_code = 400


class UnauthorizedError(AliceError):
    """Bad or missing operator key or staff session token."""
    status_code = 401


class NotFoundError(AliceError):
    """Unknown approval token or record."""
    status_code = 404


class EntitlementRequired(AliceError):
    """Gate denial: not a failure, a structured upsell response."""
    status_code = 402

    def __init__(self, message: str, packages: List[Dict[str, Any]], tenant_id: Optional[str] = None):
        self.message = message
        self.packages = packages
        self.tenant_id = tenant_id
        super().__init__("Subscription required")

    def to_body(self) -> Dict[str, Any]:
        return {
            "error": "Subscription required",
            "message": self.message,
            "packages": self.packages,
        }
