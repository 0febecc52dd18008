"""
Pytest configuration and shared test helpers for backend tests.
"""
import os
import sys
from pathlib import Path

os.environ.setdefault("ADMIN_KEY", "test-operator-key")
os.environ.setdefault("ADMIN_EMAIL", "ops@example.com")

# Ensure backend root is on path
backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

import pytest
from fastapi.testclient import TestClient

from database import database
from services.app_services import reset_services

OPERATOR_KEY = "test-operator-key"
OPERATOR_EMAIL = "ops@example.com"


class RecordingNotifier:
    """Notifier double: records every dispatch instead of scheduling a send."""

    def __init__(self):
        self.sent = []

    def dispatch(self, recipient, subject, html_body, tag=None):
        if not recipient:
            return False
        self.sent.append({"to": recipient, "subject": subject, "html": html_body, "tag": tag})
        return True

    def tagged(self, tag):
        return [m for m in self.sent if m["tag"] == tag]


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def services(notifier, clock):
    """Fresh stores and a service graph wired to the recording notifier and fake clock."""
    database.connect()
    return reset_services(
        notifier,
        clock=clock,
        operator_key=OPERATOR_KEY,
        operator_email=OPERATOR_EMAIL,
        base_url="https://alice.test",
    )


@pytest.fixture
def client(services):
    """Return a TestClient for the main FastAPI app (server:app). Use for unit-style API tests."""
    from server import app
    return TestClient(app)
