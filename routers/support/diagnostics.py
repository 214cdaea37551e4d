import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from core.config import Settings, get_settings
from core.dependencies import get_wati_service
from schemas.mindbody import ManualConfirmationRequest
from services.confirmation import build_template_parameters
from services.formatters import format_phone_number
from services.wati_service import WatiService

logger = logging.getLogger(__name__)

router = APIRouter()

# Valores de prueba para el template (mismos que usa el equipo en Postman)
TEST_DEFAULTS = {
    "name": "Test Cliente",
    "location": "Costa del Este",
    "date": "Lunes, 2 de diciembre 2024",
    "time": "2:00 PM",
    "service": "Masaje Relajante 60 min",
    "address": "Plaza Costa del Este",
}


@router.post("/test/send-confirmation")
async def send_test_confirmation(
    data: Optional[ManualConfirmationRequest] = None,
    settings: Settings = Depends(get_settings),
    wati: WatiService = Depends(get_wati_service),
):
    """
    Manually triggers a confirmation with explicit values.
    Returns the raw delivery result, whatever WATI answered.
    """
    phone = format_phone_number(data.phone, settings.phone_country_code) if data else None
    if phone is None:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Phone number required"})

    parameters = build_template_parameters(
        client_name=data.name or TEST_DEFAULTS["name"],
        location_name=data.location or TEST_DEFAULTS["location"],
        formatted_date=data.date or TEST_DEFAULTS["date"],
        formatted_time=data.time or TEST_DEFAULTS["time"],
        service_name=data.service or TEST_DEFAULTS["service"],
        location_address=data.address or TEST_DEFAULTS["address"],
    )

    logger.info("🧪 Manual confirmation to %s", phone)

    result = await wati.send_template_message(phone, settings.wati_template_name, parameters)
    return result.to_response()


@router.post("/debug/webhook")
async def debug_webhook(request: Request):
    """Echoes whatever was posted. No business logic."""
    raw_body = await request.body()
    try:
        body = json.loads(raw_body) if raw_body.strip() else {}
    except ValueError:
        body = raw_body.decode("utf-8", errors="replace")

    logger.info("🔍 Debug webhook received")
    logger.info("Headers: %s", dict(request.headers))
    logger.info("Body: %s", json.dumps(body, ensure_ascii=False, indent=2))

    return {"received": True, "body": body}
