import json
import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from core.config import Settings, get_settings
from core.dependencies import get_location_directory, get_wati_service
from core.security import SIGNATURE_HEADER, verify_webhook_signature
from services.confirmation import send_appointment_confirmation
from services.extraction import (
    REASON_INVALID_START,
    event_skip_reason,
    extract_appointment_facts,
    missing_field_reason,
)
from services.formatters import InvalidStartTime
from services.locations import LocationDirectory
from services.wati_service import WatiService

logger = logging.getLogger(__name__)

router = APIRouter()


def _skipped(reason: str) -> dict:
    # Siempre 200: Mindbody reintenta los no-2xx y estos casos nunca se van a resolver
    return {"received": True, "processed": False, "reason": reason}


@router.head("/appointment")
async def verify_webhook_url():
    """Mindbody sends a HEAD request to check the URL before registering the webhook."""
    return Response(status_code=status.HTTP_200_OK)


@router.post("/appointment")
async def receive_appointment_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    directory: LocationDirectory = Depends(get_location_directory),
    wati: WatiService = Depends(get_wati_service),
):
    """
    Main entry point for Mindbody appointment events.

    Business skips (cancelled, missing phone, ...) answer 200 with
    processed=false. Delivery failures answer 200 with whatsappSent=false.
    Only unexpected errors produce a 500.
    """
    raw_body = await request.body()

    if not verify_webhook_signature(settings, raw_body, request.headers.get(SIGNATURE_HEADER)):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Invalid signature"})

    try:
        payload = json.loads(raw_body) if raw_body.strip() else {}
    except ValueError:
        logger.warning("⚠️ Mindbody webhook with invalid JSON body: %r", raw_body[:300])
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid JSON payload"})

    logger.info("📥 Received Mindbody webhook: %s", json.dumps(payload, ensure_ascii=False, indent=2))

    try:
        # 1. Filtro de eventos
        reason = event_skip_reason(payload)
        if reason:
            logger.info("⏭️ Skipping event: %s", reason)
            return _skipped(reason)

        # 2. Extracción y validación
        facts = extract_appointment_facts(payload)
        reason = missing_field_reason(facts)
        if reason:
            logger.info("⚠️ %s, nothing to send", reason)
            return _skipped(reason)

        # 3. Formato + envío
        try:
            result = await send_appointment_confirmation(facts, settings, directory, wati)
        except InvalidStartTime as exc:
            logger.warning("⚠️ %s", exc)
            return _skipped(REASON_INVALID_START)

        if result.success:
            logger.info("✅ Confirmation sent successfully")
            return {"received": True, "processed": True, "whatsappSent": True}

        logger.info("❌ Failed to send confirmation: %s", result.error)
        return {"received": True, "processed": True, "whatsappSent": False, "error": result.error}

    except Exception as e:
        logger.exception("❌ Webhook processing error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "message": str(e)},
        )
