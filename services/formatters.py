"""
Presentation helpers for the WhatsApp confirmation.

Everything here is pure: phone numbers are normalized for WATI, and the
appointment start is rendered as Spanish date/time strings in the clinic's
time zone (America/Panama unless configured otherwise).
"""

import re
from datetime import datetime
from typing import Any, Optional

import pytz

DEFAULT_TIMEZONE = "America/Panama"
DEFAULT_COUNTRY_CODE = "507"

DAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]

MONTHS_ES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

_NON_DIGITS = re.compile(r"\D")
# fromisoformat on 3.10 only takes 3 or 6 fractional digits (.NET sends 7)
_FRACTION = re.compile(r"\.(\d+)")


def _six_digit_fraction(match) -> str:
    return "." + (match.group(1) + "000000")[:6]


class InvalidStartTime(ValueError):
    """The appointment start could not be read as a timestamp."""


def format_phone_number(phone: Any, country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Keeps digits only. A bare 8-digit national number gets the country code,
    anything else is passed through untouched.

    "6123-4567" -> "50761234567"
    """
    if phone is None:
        return None

    cleaned = _NON_DIGITS.sub("", str(phone))
    if not cleaned:
        return None

    if len(cleaned) == 8:
        cleaned = country_code + cleaned

    return cleaned


def parse_start_datetime(value: Any, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """
    Returns an aware datetime in tz_name.

    Accepts ISO-8601 strings (naive, offset or trailing Z), datetime objects
    and epoch milliseconds. Naive values are taken as local time in tz_name.
    """
    local_tz = pytz.timezone(tz_name)

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value / 1000, tz=pytz.UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidStartTime(f"Invalid start time: {value!r}") from exc
    elif isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(_six_digit_fraction, text)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidStartTime(f"Invalid start time: {value!r}") from exc
    else:
        raise InvalidStartTime(f"Invalid start time: {value!r}")

    if dt.tzinfo is None:
        dt = local_tz.localize(dt)

    return dt.astimezone(local_tz)


def capitalize_first(text: str) -> str:
    if not text:
        return ""
    return text[0].upper() + text[1:]


def format_date_spanish(value: Any, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """'Lunes, 2 de diciembre de 2024'"""
    dt = parse_start_datetime(value, tz_name)
    weekday = DAYS_ES[dt.weekday()]
    month = MONTHS_ES[dt.month - 1]
    return capitalize_first(f"{weekday}, {dt.day} de {month} de {dt.year}")


def format_time(value: Any, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """12-hour clock with the Spanish marker, e.g. '2:00 p. m.'"""
    dt = parse_start_datetime(value, tz_name)
    hour = dt.hour % 12 or 12
    marker = "a. m." if dt.hour < 12 else "p. m."
    return f"{hour}:{dt.minute:02d} {marker}"
