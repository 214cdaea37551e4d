"""
Field extraction for Mindbody webhook payloads.

Mindbody has sent the same appointment in more than one shape (flat
eventData, nested appointment/client objects, PascalCase vs camelCase keys).
Instead of chained conditionals per field, each logical field declares an
ordered list of (scope, path) candidates and the first present value wins.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from schemas.mindbody import AppointmentFacts
from services.formatters import format_phone_number

CANCELLATION_EVENT_ID = "appointmentBooking.cancelled"

REASON_CANCELLED = "Appointment cancelled"
REASON_NOT_APPOINTMENT = "Not an appointment event"
REASON_NO_PHONE = "No phone number"
REASON_NO_START = "No start time"
REASON_INVALID_START = "Invalid start time"


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _dig(source: Mapping[str, Any], path: str) -> Any:
    """Follows a dotted path ('SessionType.Name') through nested mappings."""
    current: Any = source
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _first_mapping(*candidates: Any) -> Mapping[str, Any]:
    for candidate in candidates:
        if isinstance(candidate, Mapping) and candidate:
            return candidate
    return {}


@dataclass(frozen=True)
class FieldCandidates:
    """Ordered (scope, dotted path) lookups for one logical field."""

    candidates: Tuple[Tuple[str, str], ...]
    default: Any = None

    def pick(self, scopes: Mapping[str, Mapping[str, Any]]) -> Any:
        for scope, path in self.candidates:
            value = _dig(scopes.get(scope, {}), path)
            if _is_present(value):
                return value
        return self.default


CLIENT_NAME = FieldCandidates(
    (
        ("client", "FirstName"),
        ("client", "firstName"),
        ("client", "name"),
        ("appointment", "clientFirstName"),
    ),
    default="Cliente",
)

CLIENT_PHONE = FieldCandidates(
    (
        ("client", "MobilePhone"),
        ("client", "mobilePhone"),
        ("client", "Phone"),
        ("client", "phone"),
        ("client", "HomePhone"),
        ("appointment", "clientPhone"),
    )
)

SERVICE_NAME = FieldCandidates(
    (
        ("appointment", "ServiceName"),
        ("appointment", "serviceName"),
        ("appointment", "SessionType.Name"),
        ("appointment", "sessionType.name"),
    ),
    default="Servicio",
)

START_DATE_TIME = FieldCandidates(
    (
        ("appointment", "StartDateTime"),
        ("appointment", "startDateTime"),
        ("appointment", "StartTime"),
        ("appointment", "startTime"),
    )
)

LOCATION_ID = FieldCandidates(
    (
        ("appointment", "LocationId"),
        ("appointment", "locationId"),
        ("appointment", "Location.Id"),
        ("appointment", "location.id"),
    )
)

EVENT_ID = FieldCandidates((("payload", "eventId"), ("payload", "EventId")))

EVENT_TYPE = FieldCandidates(
    (
        ("payload", "eventType"),
        ("payload", "EventType"),
        ("payload", "messageType"),
    )
)


def resolve_scopes(payload: Any) -> Dict[str, Mapping[str, Any]]:
    """Locates the payload / event / appointment / client objects once."""
    body = _as_mapping(payload)
    event = _first_mapping(body.get("eventData"), body.get("EventData"), body)
    appointment = _first_mapping(event.get("appointment"), event.get("Appointment"), event)
    client = _first_mapping(
        appointment.get("client"),
        appointment.get("Client"),
        event.get("client"),
        event.get("Client"),
    )
    return {
        "payload": body,
        "event": event,
        "appointment": appointment,
        "client": client,
    }


def event_skip_reason(payload: Any) -> Optional[str]:
    """Returns why this event should not be processed, or None to go ahead."""
    scopes = resolve_scopes(payload)

    event_id = EVENT_ID.pick(scopes)
    if event_id is not None and str(event_id).strip().lower() == CANCELLATION_EVENT_ID.lower():
        return REASON_CANCELLED

    event_type = EVENT_TYPE.pick(scopes)
    if event_type is not None and "appointment" not in str(event_type).lower():
        return REASON_NOT_APPOINTMENT

    return None


def extract_appointment_facts(payload: Any) -> AppointmentFacts:
    scopes = resolve_scopes(payload)

    phone = CLIENT_PHONE.pick(scopes)
    location_id = LOCATION_ID.pick(scopes)

    return AppointmentFacts(
        client_name=str(CLIENT_NAME.pick(scopes)),
        client_phone=str(phone) if phone is not None else None,
        service_name=str(SERVICE_NAME.pick(scopes)),
        start_date_time=START_DATE_TIME.pick(scopes),
        location_id=str(location_id) if location_id is not None else None,
    )


def missing_field_reason(facts: AppointmentFacts) -> Optional[str]:
    """Phone and start time are the only fields without a usable default."""
    # "N/A", "---" y similares no dejan ningún dígito
    if format_phone_number(facts.client_phone) is None:
        return REASON_NO_PHONE
    if facts.start_date_time is None:
        return REASON_NO_START
    return None
