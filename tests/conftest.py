import os
from datetime import datetime

import pytest
import pytz
from fastapi.testclient import TestClient

# Must be set before main is imported, it reads settings at import time.
os.environ["ADMIN_KEY"] = "test-admin-key"
os.environ["BOOKING_STORE"] = "memory"

from main import app, get_service  # noqa: E402
from service import BookingService  # noqa: E402
from store import MemoryStore  # noqa: E402

ADMIN_KEY = "test-admin-key"
FIXED_NOW = datetime(2026, 1, 5, 9, 0, 0, 123456, tzinfo=pytz.UTC)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def service(store):
    return BookingService(store, ADMIN_KEY, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def booking_payload():
    def _make(email="ana@x.com", **overrides):
        payload = {
            "classId": "yoga-mon-9am",
            "className": "Hatha Yoga",
            "day": "Monday",
            "time": "09:00",
            "location": "Studio A",
            "maxSpots": 2,
            "name": "Ana",
            "email": email,
            "phone": "123",
        }
        payload.update(overrides)
        return payload
    return _make
