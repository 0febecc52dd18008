"""In-process stores for tenants, entitlements, usage counters, approval claims
and tenant-scoped business records.

Every store owns its own lock; read-modify-write sequences (resolve-or-create,
increment-and-compare, stage/consume claim) run under that lock so the
service stays correct when uvicorn runs handlers in a thread pool.
"""
from dotenv import load_dotenv
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from models import ApprovalClaim, Entitlement, FaqItem, Tenant

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TenantStore:
    """Tenant records plus the identity-key index pointing at them."""

    def __init__(self):
        self._lock = threading.Lock()
        self._tenants: Dict[str, Tenant] = {}
        self._index: Dict[str, str] = {}

    def get(self, tenant_id: str) -> Optional[Tenant]:
        with self._lock:
            return self._tenants.get(tenant_id)

    def count(self) -> int:
        with self._lock:
            return len(self._tenants)

    def lookup_or_create(
        self,
        keys: List[str],
        factory: Callable[[], Tenant],
    ) -> Tuple[Tenant, bool]:
        """Return the tenant of the first indexed key, else create one and index every key.

        Returns (tenant, created).
        """
        with self._lock:
            for key in keys:
                tenant_id = self._index.get(key)
                if tenant_id and tenant_id in self._tenants:
                    return self._tenants[tenant_id], False
            tenant = factory()
            self._tenants[tenant.id] = tenant
            for key in keys:
                self._index[key] = tenant.id
            return tenant, True

    def update(self, tenant_id: str, **changes) -> Optional[Tenant]:
        with self._lock:
            tenant = self._tenants.get(tenant_id)
            if tenant is None:
                return None
            updated = tenant.model_copy(update=changes)
            self._tenants[tenant_id] = updated
            return updated


class EntitlementStore:
    """At most one live entitlement per tenant; a later activation overwrites it."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entitlements: Dict[str, Entitlement] = {}

    def get(self, tenant_id: str) -> Optional[Entitlement]:
        with self._lock:
            return self._entitlements.get(tenant_id)

    def put(self, entitlement: Entitlement) -> Entitlement:
        with self._lock:
            self._entitlements[entitlement.tenant_id] = entitlement
            return entitlement


class UsageCounterStore:
    """Monotonic free-tier call counters, never reset within the process lifetime."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}

    def increment(self, tenant_id: str) -> int:
        with self._lock:
            value = self._counts.get(tenant_id, 0) + 1
            self._counts[tenant_id] = value
            return value

    def get(self, tenant_id: str) -> int:
        with self._lock:
            return self._counts.get(tenant_id, 0)


class ApprovalClaimStore:
    """Pending approval claims keyed by token; a claim is consumed exactly once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._claims: Dict[str, ApprovalClaim] = {}

    def add(self, claim: ApprovalClaim) -> bool:
        """Store a claim; False if the token is already pending."""
        with self._lock:
            if claim.token in self._claims:
                return False
            self._claims[claim.token] = claim
            return True

    def get(self, token: str) -> Optional[ApprovalClaim]:
        with self._lock:
            return self._claims.get(token)

    def pop(self, token: str) -> Optional[ApprovalClaim]:
        with self._lock:
            return self._claims.pop(token, None)

    def list(self) -> List[ApprovalClaim]:
        with self._lock:
            return sorted(self._claims.values(), key=lambda c: c.requested_at)


class FaqStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[str, List[FaqItem]] = {}

    def get(self, tenant_id: str) -> List[FaqItem]:
        with self._lock:
            return list(self._items.get(tenant_id, []))

    def seed(self, tenant_id: str, items: List[FaqItem]) -> None:
        """Set items only when the tenant has none yet."""
        with self._lock:
            self._items.setdefault(tenant_id, list(items))

    def replace(self, tenant_id: str, items: List[FaqItem]) -> None:
        with self._lock:
            self._items[tenant_id] = list(items)


class RecordStore(Generic[T]):
    """Append-only list of tenant-scoped records, filtered on read."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[T] = []

    def append(self, record: T) -> T:
        with self._lock:
            self._records.append(record)
            return record

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [r for r in self._records if predicate(r)]

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            return next((r for r in self._records if predicate(r)), None)

    def for_tenant(self, tenant_id: str) -> List[T]:
        return self.filter(lambda r: r.tenant_id == tenant_id)


class Database:
    tenants: TenantStore = None
    entitlements: EntitlementStore = None
    usage: UsageCounterStore = None
    claims: ApprovalClaimStore = None
    faqs: FaqStore = None
    bookings: RecordStore = None
    leads: RecordStore = None
    staff: RecordStore = None
    attendance: RecordStore = None
    overtime: RecordStore = None

    def __init__(self):
        self.connect()

    def connect(self):
        """Build a fresh, empty set of stores."""
        self.tenants = TenantStore()
        self.entitlements = EntitlementStore()
        self.usage = UsageCounterStore()
        self.claims = ApprovalClaimStore()
        self.faqs = FaqStore()
        self.bookings = RecordStore()
        self.leads = RecordStore()
        self.staff = RecordStore()
        self.attendance = RecordStore()
        self.overtime = RecordStore()
        logger.info("In-memory stores initialised")

    def close(self):
        """Drop every store; connect() must run again before the next use."""
        if self.tenants is None:
            return
        logger.info("In-memory stores released (tenants=%s)", self.tenants.count())
        self.tenants = None
        self.entitlements = None
        self.usage = None
        self.claims = None
        self.faqs = None
        self.bookings = None
        self.leads = None
        self.staff = None
        self.attendance = None
        self.overtime = None

    def get_db(self):
        return self


database = Database()
