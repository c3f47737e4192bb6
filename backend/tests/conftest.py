from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from storefront.adapters.mock_payment import MockPaymentGateway
from storefront.config import Settings
from storefront.main import create_app
from storefront.repositories.durable_store import MemoryBackend


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def gateway():
    return MockPaymentGateway(delay_ms=0)


@pytest.fixture
def client(backend, gateway):
    settings = Settings(
        STORE_BACKEND="memory",
        STORE_POLL_INTERVAL_SECONDS=0,
        SITE_URL="https://shop.test",
        PAYMENT_PROVIDER="mock",
    )
    app = create_app(settings=settings, store=backend.context("server"), gateway=gateway)
    with TestClient(app) as c:
        yield c
