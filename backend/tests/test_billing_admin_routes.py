"""
Billing, operator and insights API tests.
EFT start -> claim -> operator approve/deny over HTTP, plus the 402 paywall
returned by basic-gated insights.
"""
import sys
from pathlib import Path
from urllib.parse import parse_qs, urlparse

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from services.package_catalog import FREE_CALL_LIMIT, PAYWALL_MESSAGE

GLOW = {"businessName": "Glow Studio", "industry": "beauty", "contact": "owner@glow.co.za"}
KEY = "test-operator-key"


def stage(client, package_id="pro", **extra):
    response = client.post("/api/billing/eft/done", json={**GLOW, "packageId": package_id, **extra})
    assert response.status_code == 200
    return response.json()["token"]


def approve_link(notifier):
    html = notifier.tagged("eft-claim")[-1]["html"]
    start = html.index('href="') + len('href="')
    return html[start:html.index('"', start)].replace("&amp;", "&")


class TestPackages:
    def test_list_packages(self, client):
        packages = client.get("/api/billing/packages").json()
        assert len(packages) == 6
        assert packages[0]["id"] == "basic"


class TestEftFlow:
    def test_start(self, client):
        response = client.post("/api/billing/eft/start", json={**GLOW, "packageId": "elite"})
        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == 500
        assert data["provisionalRef"].startswith("P-")

    def test_start_without_body(self, client):
        data = client.post("/api/billing/eft/start").json()
        assert data["packageId"] == "basic"
        assert data["businessName"] == "Auto Business"

    def test_done_stages_claim_and_emails_operator(self, client, notifier):
        """Response arrives with the token; the operator email carries both links."""
        response = client.post("/api/billing/eft/done",
                               json={**GLOW, "packageId": "elite_6mo", "provisionalRef": "P-ABC123"})
        data = response.json()
        assert data["ok"] is True
        assert "admin" in data["message"]

        link = urlparse(approve_link(notifier))
        assert link.path == "/api/admin/approve"
        assert parse_qs(link.query) == {"token": [data["token"]], "days": ["180"], "key": [KEY]}
        assert "/api/admin/deny?" in notifier.tagged("eft-claim")[-1]["html"]

    def test_emailed_link_approves(self, client, notifier):
        """Following the emailed approve link activates the package."""
        stage(client, "elite_12mo")
        link = urlparse(approve_link(notifier))
        response = client.get(f"{link.path}?{link.query}")
        assert response.status_code == 200
        assert "Approved" in response.text

        status = client.post("/api/billing/status", json=GLOW).json()
        assert status["active"] is True
        assert status["packageId"] == "elite_12mo"


class TestAdminApprove:
    def test_approve_html_and_exactly_once(self, client, clock):
        token = stage(client)
        response = client.get("/api/admin/approve", params={"token": token, "days": "30", "key": KEY})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Approved" in response.text

        status = client.post("/api/billing/status", json=GLOW).json()
        assert status["currentPeriodEnd"] == int(clock()) + 30 * 86400

        again = client.get("/api/admin/approve", params={"token": token, "days": "30", "key": KEY})
        assert again.status_code == 404
        assert again.json() == {"error": "Invalid token"}

    def test_bad_key(self, client):
        token = stage(client)
        response = client.get("/api/admin/approve", params={"token": token, "key": "nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert client.post("/api/billing/status", json=GLOW).json()["active"] is False

    def test_bad_days(self, client):
        token = stage(client)
        for days in ("abc", "0", "-3", "inf", "nan"):
            response = client.get("/api/admin/approve", params={"token": token, "days": days, "key": KEY})
            assert response.status_code == 400
        assert client.get("/api/admin/approve", params={"token": token, "key": KEY}).status_code == 200

    def test_oversized_days_rejected_before_consuming_claim(self, client, services):
        """An out-of-range window is a 400; the claim stays pending and nothing is activated."""
        token = stage(client)
        response = client.get("/api/admin/approve", params={"token": token, "days": "100000000", "key": KEY})
        assert response.status_code == 400
        assert services.db.claims.get(token) is not None
        assert client.post("/api/billing/status", json=GLOW).json()["active"] is False

        ok = client.get("/api/admin/approve", params={"token": token, "days": "3650", "key": KEY})
        assert ok.status_code == 200
        assert "Approved" in ok.text

    def test_approve_sends_welcome(self, client, notifier):
        token = stage(client)
        client.get("/api/admin/approve", params={"token": token, "key": KEY})
        assert [m["to"] for m in notifier.tagged("eft-welcome")] == ["owner@glow.co.za"]


class TestAdminDeny:
    def test_deny(self, client):
        token = stage(client)
        response = client.get("/api/admin/deny", params={"token": token, "key": KEY})
        assert response.status_code == 200
        assert "Denied" in response.text
        assert client.get("/api/admin/approve", params={"token": token, "key": KEY}).status_code == 404

    def test_deny_unknown_token(self, client):
        assert client.get("/api/admin/deny", params={"token": "ZZZZZZ", "key": KEY}).status_code == 200

    def test_deny_bad_key(self, client):
        assert client.get("/api/admin/deny", params={"token": "ZZZZZZ"}).status_code == 401


class TestPendingClaims:
    def test_list(self, client):
        token = stage(client, provisionalRef="P-XYZ")
        items = client.get("/api/admin/pending-claims", params={"key": KEY}).json()["items"]
        assert [(i["token"], i["provisionalRef"], i["status"]) for i in items] == [(token, "P-XYZ", "PENDING")]

    def test_requires_key(self, client):
        assert client.get("/api/admin/pending-claims").status_code == 401


class TestInsightsGate:
    """Basic-gated insights: 40 free calls, then the 402 paywall."""

    def test_weekly_insights(self, client):
        response = client.post("/api/insights/weekly", json=GLOW)
        assert response.status_code == 200
        data = response.json()
        assert data["industry"] == "beauty"
        assert len(data["suggestedPosts"]) == 3

    def test_forecast(self, client):
        body = {**GLOW, "baselineWeeklyRevenue": 10000, "marketingSpend": 1500}
        data = client.post("/api/insights/forecast", json=body).json()
        assert data["projectedWeeklyRevenue"] == 11700
        assert data["estimatedROI"] == 0.13

    def test_forecast_echoes_number_type(self, client):
        """Integer inputs come back as integers, decimals as decimals."""
        data = client.post("/api/insights/forecast",
                           json={**GLOW, "baselineWeeklyRevenue": 20000, "marketingSpend": 1500.5}).json()
        assert data["baselineWeeklyRevenue"] == 20000
        assert isinstance(data["baselineWeeklyRevenue"], int)
        assert data["marketingSpend"] == 1500.5

    def test_forecast_rejects_huge_amounts(self, client):
        """Amounts past the bound are a 422, not a server error."""
        response = client.post("/api/insights/forecast", json={**GLOW, "baselineWeeklyRevenue": 1.7e308})
        assert response.status_code == 422
        assert "request_id" in response.json()

    def test_forecast_defaults(self, client):
        data = client.post("/api/insights/forecast").json()
        assert data["baselineWeeklyRevenue"] == 10000
        assert data["marketingSpend"] == 1500

    def test_paywall_after_free_calls(self, client):
        """Call 41 returns 402 with {error, message, packages}."""
        for _ in range(FREE_CALL_LIMIT):
            assert client.post("/api/insights/weekly", json=GLOW).status_code == 200
        response = client.post("/api/insights/weekly", json=GLOW)
        assert response.status_code == 402
        body = response.json()
        assert set(body) == {"error", "message", "packages"}
        assert body["error"] == "Subscription required"
        assert body["message"] == PAYWALL_MESSAGE
        assert len(body["packages"]) == 6

        status = client.post("/api/billing/status", json=GLOW).json()
        assert status["freeCallsUsed"] == FREE_CALL_LIMIT + 1
        assert status["freeCallsRemaining"] == 0

    def test_basic_entitlement_lifts_paywall(self, client):
        for _ in range(FREE_CALL_LIMIT + 1):
            client.post("/api/insights/weekly", json=GLOW)
        token = stage(client, "basic")
        client.get("/api/admin/approve", params={"token": token, "key": KEY})
        assert client.post("/api/insights/weekly", json=GLOW).status_code == 200

    def test_pro_entitlement_does_not_lift_basic_paywall(self, client):
        """Package matching is exact."""
        for _ in range(FREE_CALL_LIMIT + 1):
            client.post("/api/insights/weekly", json=GLOW)
        token = stage(client, "pro")
        client.get("/api/admin/approve", params={"token": token, "key": KEY})
        assert client.post("/api/insights/weekly", json=GLOW).status_code == 402

    def test_validation_error_has_request_id(self, client):
        response = client.post("/api/insights/forecast", json={**GLOW, "marketingSpend": -1})
        assert response.status_code == 422
        assert "request_id" in response.json()
