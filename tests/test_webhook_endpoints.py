"""
Integration tests for the HTTP surface: Mindbody webhook, manual trigger,
debug echo and health checks.
"""

import httpx
from fastapi import status

from core.config import get_settings
from core.dependencies import get_wati_service
from core.security import compute_signature
from main import app
from services.wati_service import WatiService

WEBHOOK_PATH = "/webhook/mindbody/appointment"


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "Mindbody-WATI Webhook"
        assert data["timestamp"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.json() == {"status": "healthy"}

    def test_process_time_header(self, client):
        assert client.get("/health").headers["X-Process-Time"].endswith("ms")


class TestMindbodyWebhook:

    def test_head_verification(self, client):
        response = client.head(WEBHOOK_PATH)
        assert response.status_code == status.HTTP_200_OK
        assert response.content == b""

    def test_booking_sends_confirmation(self, client, wati_recorder, booking_payload):
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "processed": True, "whatsappSent": True}

        assert len(wati_recorder.requests) == 1
        request = wati_recorder.requests[0]
        assert request.url.params["whatsappNumber"] == "50761234567"
        assert request.headers["Authorization"] == "Bearer test_token_12345"

        payload = wati_recorder.payloads[0]
        assert payload["template_name"] == "appointment_confirmation"
        assert payload["broadcast_name"] == "appointment_confirmation"
        assert payload["parameters"] == [
            {"name": "1", "value": "María"},
            {"name": "2", "value": "San Francisco"},
            {"name": "3", "value": "Lunes, 2 de diciembre de 2024"},
            {"name": "4", "value": "2:00 p. m."},
            {"name": "5", "value": "Masaje Relajante 60 min"},
            {"name": "6", "value": "Calle 74, San Francisco"},
        ]

    def test_unknown_location_uses_default(self, client, wati_recorder, booking_payload):
        booking_payload["eventData"]["appointment"]["LocationId"] = 999
        client.post(WEBHOOK_PATH, json=booking_payload)

        values = [p["value"] for p in wati_recorder.payloads[0]["parameters"]]
        assert values[1] == "Costa del Este"
        assert values[5] == "Plaza Costa del Este, Local 45"

    def test_cancelled_appointment_is_skipped(self, client, wati_recorder, booking_payload):
        booking_payload["eventId"] = "appointmentBooking.cancelled"
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "processed": False, "reason": "Appointment cancelled"}
        assert wati_recorder.requests == []

    def test_cancelled_with_pascal_case_key(self, client, wati_recorder):
        response = client.post(WEBHOOK_PATH, json={"EventId": "appointmentBooking.cancelled"})
        assert response.json()["reason"] == "Appointment cancelled"
        assert wati_recorder.requests == []

    def test_non_appointment_event_is_skipped(self, client, wati_recorder, booking_payload):
        booking_payload["eventType"] = "client.updated"
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.json() == {"received": True, "processed": False, "reason": "Not an appointment event"}
        assert wati_recorder.requests == []

    def test_missing_phone_is_skipped(self, client, wati_recorder, booking_payload):
        del booking_payload["eventData"]["appointment"]["Client"]["MobilePhone"]
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "processed": False, "reason": "No phone number"}
        assert wati_recorder.requests == []

    def test_phone_without_digits_is_skipped(self, client, wati_recorder, booking_payload):
        booking_payload["eventData"]["appointment"]["Client"]["MobilePhone"] = "N/A"
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "processed": False, "reason": "No phone number"}
        assert wati_recorder.requests == []

    def test_missing_start_time_is_skipped(self, client, wati_recorder, booking_payload):
        del booking_payload["eventData"]["appointment"]["StartDateTime"]
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.json() == {"received": True, "processed": False, "reason": "No start time"}
        assert wati_recorder.requests == []

    def test_unparseable_start_time_is_skipped(self, client, wati_recorder, booking_payload):
        booking_payload["eventData"]["appointment"]["StartDateTime"] = "mañana a las 2"
        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "processed": False, "reason": "Invalid start time"}
        assert wati_recorder.requests == []

    def test_empty_body(self, client, wati_recorder):
        response = client.post(WEBHOOK_PATH, content=b"", headers={"Content-Type": "application/json"})
        assert response.json()["reason"] == "No phone number"

    def test_invalid_json(self, client, wati_recorder):
        response = client.post(WEBHOOK_PATH, content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Invalid JSON payload"}
        assert wati_recorder.requests == []

    def test_delivery_failure_still_returns_200(self, client, wati_recorder, booking_payload):
        wati_recorder.status_code = 400
        wati_recorder.body = {"message": "Template not approved"}

        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "received": True,
            "processed": True,
            "whatsappSent": False,
            "error": {"message": "Template not approved"},
        }

    def test_unexpected_error_returns_500(self, client, booking_payload):
        class ExplodingWati(WatiService):
            async def send_template_message(self, *args, **kwargs):
                raise RuntimeError("kaboom")

        app.dependency_overrides[get_wati_service] = lambda: ExplodingWati("https://wati.test", "t")

        response = client.post(WEBHOOK_PATH, json=booking_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Internal server error", "message": "kaboom"}

    def test_signature_enforced_when_enabled(self, client, settings, wati_recorder, booking_payload):
        strict = settings.model_copy(update={
            "mindbody_webhook_secret": "s3cret",
            "mindbody_verify_signature": True,
        })
        app.dependency_overrides[get_settings] = lambda: strict

        body = httpx.Request("POST", "http://x", json=booking_payload).content

        rejected = client.post(WEBHOOK_PATH, content=body, headers={"Content-Type": "application/json"})
        assert rejected.status_code == status.HTTP_401_UNAUTHORIZED
        assert wati_recorder.requests == []

        accepted = client.post(
            WEBHOOK_PATH,
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Mindbody-Signature": compute_signature("s3cret", body),
            },
        )
        assert accepted.status_code == status.HTTP_200_OK
        assert accepted.json()["whatsappSent"] is True

    def test_non_ascii_signature_is_rejected(self, client, settings, wati_recorder, booking_payload):
        strict = settings.model_copy(update={
            "mindbody_webhook_secret": "s3cret",
            "mindbody_verify_signature": True,
        })
        app.dependency_overrides[get_settings] = lambda: strict

        response = client.post(
            WEBHOOK_PATH,
            json=booking_payload,
            headers={"X-Mindbody-Signature": "sha256=é".encode("utf-8")},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Invalid signature"}
        assert wati_recorder.requests == []


class TestManualTrigger:

    def test_phone_required(self, client, wati_recorder):
        response = client.post("/test/send-confirmation", json={"name": "Ana"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Phone number required"}
        assert wati_recorder.requests == []

    def test_phone_without_digits_is_rejected(self, client, wati_recorder):
        response = client.post("/test/send-confirmation", json={"phone": "---"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Phone number required"}
        assert wati_recorder.requests == []

    def test_missing_body(self, client):
        response = client.post("/test/send-confirmation")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_defaults(self, client, wati_recorder):
        response = client.post("/test/send-confirmation", json={"phone": "61234567"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "data": {"result": True, "info": "Message sent"}}

        assert wati_recorder.requests[0].url.params["whatsappNumber"] == "50761234567"
        assert [p["value"] for p in wati_recorder.payloads[0]["parameters"]] == [
            "Test Cliente",
            "Costa del Este",
            "Lunes, 2 de diciembre 2024",
            "2:00 PM",
            "Masaje Relajante 60 min",
            "Plaza Costa del Este",
        ]

    def test_explicit_values(self, client, wati_recorder):
        client.post("/test/send-confirmation", json={
            "phone": 61234567,
            "name": "Ana",
            "service": "Facial",
            "date": "Martes, 3 de diciembre de 2024",
            "time": "10:00 a. m.",
            "location": "San Francisco",
        })
        values = [p["value"] for p in wati_recorder.payloads[0]["parameters"]]
        assert values[:5] == ["Ana", "San Francisco", "Martes, 3 de diciembre de 2024", "10:00 a. m.", "Facial"]

    def test_returns_raw_failure(self, client, wati_recorder):
        wati_recorder.status_code = 500
        wati_recorder.body = {"message": "down"}

        response = client.post("/test/send-confirmation", json={"phone": "61234567"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": False, "error": {"message": "down"}}


class TestDebugEcho:

    def test_echoes_body(self, client, wati_recorder):
        body = {"anything": ["goes", 1, None]}
        response = client.post("/debug/webhook", json=body)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"received": True, "body": body}
        assert wati_recorder.requests == []
