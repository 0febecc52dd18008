"""
Concurrency tests for the in-process stores.
Resolve-or-create, increment-and-compare and claim consumption must hold up
when handlers run on several threads at once.
"""
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from database import Database
from errors import EntitlementRequired, NotFoundError
from models import IdentityHint, Tenant
from services.package_catalog import FREE_CALL_LIMIT

WORKERS = 16


def run_together(count, fn):
    """Run fn(i) for i in range(count) across WORKERS threads, released together."""
    barrier = threading.Barrier(min(count, WORKERS))

    def call(i):
        if i < WORKERS:
            barrier.wait(timeout=5)
        try:
            return fn(i), None
        except Exception as e:
            return None, e

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(call, range(count)))


class TestConcurrentResolve:
    def test_racing_resolves_create_one_tenant(self, services):
        """Many threads resolving the same hint agree on a single tenant."""
        hint = IdentityHint(business_name="Glow Studio", industry="beauty", contact="owner@glow.co.za")
        outcomes = run_together(64, lambda _: services.resolver.resolve(hint))

        assert all(error is None for _, error in outcomes)
        assert len({tenant_id for tenant_id, _ in outcomes}) == 1
        assert services.db.tenants.count() == 1

    def test_racing_name_and_contact_forms_converge(self, services):
        """Name-only and contact-only callers created concurrently never split once indexed."""
        tenant_id = services.resolver.resolve(
            IdentityHint(business_name="Glow Studio", industry="beauty", contact="owner@glow.co.za")
        )
        hints = [
            IdentityHint(business_name="Glow Studio", industry="beauty"),
            IdentityHint(contact="owner@glow.co.za"),
        ]
        outcomes = run_together(40, lambda i: services.resolver.resolve(hints[i % 2]))
        assert {t for t, _ in outcomes} == {tenant_id}


class TestConcurrentGate:
    def test_racing_admits_count_exactly(self, services):
        """100 concurrent basic calls: counter reaches 100, exactly 40 admitted."""
        tenant_id = services.resolver.resolve(IdentityHint(business_name="Glow", industry="beauty"))
        outcomes = run_together(100, lambda _: services.gate.admit(tenant_id))

        admitted = [a for a, error in outcomes if error is None]
        denied = [e for _, e in outcomes if e is not None]
        assert len(admitted) == FREE_CALL_LIMIT
        assert all(isinstance(e, EntitlementRequired) for e in denied)
        assert len(denied) == 100 - FREE_CALL_LIMIT
        assert sorted(a.usage_count for a in admitted) == list(range(1, FREE_CALL_LIMIT + 1))
        assert services.db.usage.get(tenant_id) == 100


class TestConcurrentApproval:
    def test_racing_approvals_consume_claim_once(self, services):
        """Two operators clicking approve together: one activation, one not-found."""
        claim = services.approvals.stage_claim(
            "pro", IdentityHint(business_name="Glow", industry="beauty", contact="0821234567")
        )
        key = services.approvals.operator_key
        outcomes = run_together(2, lambda _: services.approvals.approve(claim.token, key))

        successes = [r for r, error in outcomes if error is None]
        failures = [e for _, e in outcomes if e is not None]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], NotFoundError)
        assert successes[0].entitlement.package_id == "pro"

    def test_racing_stage_claims_keep_every_claim(self, services):
        """Concurrent staging never overwrites a pending claim."""
        hint = IdentityHint(business_name="Glow", industry="beauty")
        outcomes = run_together(50, lambda i: services.approvals.stage_claim("pro", hint, f"P-{i}"))

        tokens = {claim.token for claim, _ in outcomes}
        assert len(tokens) == 50
        assert len(services.db.claims.list()) == 50


class TestDatabaseLifecycle:
    def test_close_drops_stores_and_connect_rebuilds(self):
        """close() releases all data; connect() starts empty again."""
        db = Database()
        db.tenants.lookup_or_create(["glow|beauty"], lambda: Tenant(name="Glow", industry="beauty"))
        db.close()
        assert db.tenants is None
        assert db.claims is None
        db.close()

        db.connect()
        assert db.tenants.count() == 0
        assert db.claims.list() == []
