"""Shared fixtures for the webhook adapter tests"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from core.config import Location, Settings, get_settings
from core.dependencies import get_wati_service
from main import app
from services.wati_service import WatiService


class WatiRecorder:
    """Collects outbound WATI requests and answers with a canned response"""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {"result": True, "info": "Message sent"}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def settings():
    return Settings(
        wati_endpoint="https://wati.test/123",
        wati_access_token="test_token_12345",
        wati_template_name="appointment_confirmation",
        locations={
            "costa-del-este": Location(name="Costa del Este", address="Plaza Costa del Este, Local 45"),
            "san-francisco": Location(name="San Francisco", address="Calle 74, San Francisco"),
        },
        location_aliases={"2": "san-francisco"},
        default_location="costa-del-este",
    )


@pytest.fixture
def wati_recorder():
    return WatiRecorder()


@pytest.fixture
def client(settings, wati_recorder):
    """TestClient wired to the test settings and a mocked WATI transport"""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_wati_service] = lambda: WatiService(
        endpoint=settings.wati_endpoint,
        access_token=settings.wati_access_token,
        broadcast_name=settings.wati_broadcast_name,
        transport=httpx.MockTransport(wati_recorder),
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def booking_payload():
    """Nested Mindbody-style booking notification"""
    return {
        "eventId": "appointmentBooking.created",
        "eventData": {
            "appointment": {
                "StartDateTime": "2024-12-02T14:00:00",
                "ServiceName": "Masaje Relajante 60 min",
                "LocationId": 2,
                "Client": {
                    "FirstName": "María",
                    "MobilePhone": "6123-4567",
                },
            }
        },
    }
