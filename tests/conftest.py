"""Shared test fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from cursor_meter.cache import EventCache  # noqa: E402
from cursor_meter.client import CursorUsageClient  # noqa: E402
from cursor_meter.config import Settings  # noqa: E402
from cursor_meter.credentials import CredentialProvider, SecretStore  # noqa: E402


def summary_payload(plan=None, on_demand=None, **extra) -> dict:
    """A usage-summary response body shaped like the vendor's."""
    if plan is None:
        plan = {"enabled": True, "used": 595, "limit": 40000}
    individual = {"plan": {"remaining": 0, "breakdown": {"included": 0, "bonus": 0, "total": 0}, **plan}}
    if on_demand is not None:
        individual["onDemand"] = on_demand
    body = {
        "billingCycleStart": "2026-10-01T00:00:00.000Z",
        "billingCycleEnd": "2026-11-01T00:00:00.000Z",
        "membershipType": "pro",
        "limitType": "user",
        "isUnlimited": False,
        "individualUsage": individual,
        "teamUsage": {},
    }
    body.update(extra)
    return body


def event_payload(**overrides) -> dict:
    body = {
        "timestamp": "1760000000000",
        "model": "claude-4-sonnet",
        "kind": "USAGE_EVENT_KIND_INCLUDED_IN_PRO",
        "requestsCosts": 4,
        "usageBasedCosts": "$0.04",
        "isTokenBasedCall": True,
        "tokenUsage": {
            "inputTokens": 1200,
            "outputTokens": 3400,
            "cacheReadTokens": 56000,
            "totalCents": 12.5,
        },
        "owningUser": "user_1",
        "cursorTokenFee": 0,
        "isChargeable": False,
    }
    body.update(overrides)
    return body


def http_response(status_code: int = 200, body=None, text: str | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    if body is not None:
        resp.json.return_value = body
        resp.text = text if text is not None else str(body)
    else:
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        resp.text = text or ""
    return resp


class FakeView:
    """Records what the orchestrator pushes to the status widget."""

    def __init__(self):
        self.text = ""
        self.tooltip = ""
        self.warnings: list[str] = []
        self.infos: list[str] = []

    def set_text(self, text: str):
        self.text = text

    def set_tooltip(self, tooltip: str):
        self.tooltip = tooltip

    def warn(self, message: str):
        self.warnings.append(message)

    def inform(self, message: str):
        self.infos.append(message)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(secrets_path=tmp_path / "secrets.json", base_url="https://cursor.test")


@pytest.fixture
def store(settings) -> SecretStore:
    return SecretStore(settings.secrets_path)


@pytest.fixture
def prompt() -> MagicMock:
    return MagicMock(return_value=None)


@pytest.fixture
def credentials(store, prompt) -> CredentialProvider:
    store.store("cursor.workosToken", "tok-123")
    return CredentialProvider(store, prompt)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock(spec=CursorUsageClient)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(client, credentials, clock) -> EventCache:
    return EventCache(client, credentials, ttl=300, clock=clock)


@pytest.fixture
def view() -> FakeView:
    return FakeView()
