from passlib.context import CryptContext
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import os

pin_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
STAFF_SESSION_HOURS = int(os.getenv("STAFF_SESSION_HOURS", "8"))

SESSION_CLAIMS = ("staffId", "tenantId", "role")

def hash_pin(pin: str) -> str:
    """Hash a staff PIN."""
    return pin_context.hash(str(pin))

def verify_pin(plain_pin: str, pin_hash: str) -> bool:
    """Verify a staff PIN against its hash."""
    try:
        return pin_context.verify(str(plain_pin), pin_hash)
    except (ValueError, TypeError):
        return False

def create_staff_session(staff_id: str, tenant_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed staff session carrying {staffId, tenantId, role}; STAFF_SESSION_HOURS unless overridden."""
    issued = datetime.now(timezone.utc)
    claims = {
        "staffId": staff_id,
        "tenantId": tenant_id,
        "role": role,
        "iat": issued,
        "exp": issued + (expires_delta if expires_delta is not None else timedelta(hours=STAFF_SESSION_HOURS)),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)

def verify_staff_session(token: str) -> Optional[Dict[str, str]]:
    """Session claims for a valid token; None when the signature, expiry or claim set is wrong."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("staffId") or not payload.get("tenantId"):
        return None
    return {name: payload.get(name) for name in SESSION_CLAIMS}
