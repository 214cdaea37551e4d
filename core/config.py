import os
import json
from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

load_dotenv()

# --- DIRECTORIO DE SEDES POR DEFECTO ---
# Keys are the location slugs; Mindbody numeric ids map onto them via LOCATION_ALIASES_JSON
DEFAULT_LOCATIONS = {
    "costa-del-este": {
        "name": "Costa del Este",
        "address": "Plaza Costa del Este, Local 45",
    },
    "san-francisco": {
        "name": "San Francisco",
        "address": "Calle 74, San Francisco",
    },
}


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    address: str


class Settings(BaseModel):
    """
    Process-wide configuration. Built once at startup and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    wati_endpoint: str = "https://live-mt-server.wati.io/1036696"
    wati_access_token: Optional[str] = None
    wati_template_name: str = "appointment_confirmation"
    wati_broadcast_name: str = "appointment_confirmation"
    wati_timeout_seconds: float = 10.0

    mindbody_webhook_secret: Optional[str] = None
    mindbody_verify_signature: bool = False

    locations: Dict[str, Location] = {
        key: Location(**entry) for key, entry in DEFAULT_LOCATIONS.items()
    }
    location_aliases: Dict[str, str] = {}
    default_location: Optional[str] = None

    timezone: str = "America/Panama"
    phone_country_code: str = "507"

    port: int = 3000
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"Invalid boolean value for {name}: {raw!r}")


def _env_json(name: str, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON value for {name}: {exc}") from exc


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid numeric value for {name}: {raw!r}") from exc


def _locations_from(raw) -> Dict[str, Location]:
    if not isinstance(raw, dict):
        raise RuntimeError("LOCATIONS_JSON must be an object of {key: {name, address}}")
    try:
        return {str(key): Location(**entry) for key, entry in raw.items()}
    except (TypeError, ValidationError) as exc:
        raise RuntimeError(f"Invalid entry in LOCATIONS_JSON: {exc}") from exc


def _aliases_from(raw) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raise RuntimeError("LOCATION_ALIASES_JSON must be an object of {mindbody_id: key}")
    return {str(k): str(v) for k, v in raw.items()}


def load_settings() -> Settings:
    """Reads the environment (and .env) into an immutable Settings object."""
    locations = _locations_from(_env_json("LOCATIONS_JSON", DEFAULT_LOCATIONS))
    aliases = _aliases_from(_env_json("LOCATION_ALIASES_JSON", {}))

    return Settings(
        wati_endpoint=os.getenv("WATI_ENDPOINT", "https://live-mt-server.wati.io/1036696").rstrip("/"),
        wati_access_token=_env_str("WATI_ACCESS_TOKEN"),
        wati_template_name=os.getenv("WATI_TEMPLATE_NAME", "appointment_confirmation"),
        wati_broadcast_name=os.getenv("WATI_BROADCAST_NAME", "appointment_confirmation"),
        wati_timeout_seconds=_env_number("WATI_TIMEOUT_SECONDS", "10", float),
        mindbody_webhook_secret=_env_str("MINDBODY_WEBHOOK_SECRET"),
        mindbody_verify_signature=_env_bool("MINDBODY_VERIFY_SIGNATURE", False),
        locations=locations,
        location_aliases=aliases,
        default_location=_env_str("DEFAULT_LOCATION"),
        timezone=os.getenv("APPOINTMENT_TIMEZONE", "America/Panama"),
        phone_country_code=os.getenv("PHONE_COUNTRY_CODE", "507"),
        port=_env_number("PORT", "3000", int),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency. Tests replace it through app.dependency_overrides."""
    return load_settings()
