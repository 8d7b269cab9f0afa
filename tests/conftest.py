# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.notification.services import NotificationDispatcher
from tests.fakes import FakeSink


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'tickets.db'}",
        PARTNER_ORIGINS={"nss": "NSS", "hhovv": "HHOVV"},
        _env_file=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def sink(app):
    fake = FakeSink()
    app.state.dispatcher = NotificationDispatcher(fake, app.state.settings.PARTNER_ORIGINS)
    return fake


@pytest.fixture
def client(app, sink):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_ticket(client):
    def _make(**overrides):
        payload = {
            "title": "Printer down",
            "description": "urgent, office printer broken",
            "customerName": "Alice",
            "customerPhone": "555-0100",
            **overrides,
        }
        r = client.post("/tickets", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
