import logging
import httpx
from typing import Any, Dict, Optional, Sequence

from core.config import Settings
from schemas.wati import DeliveryResult, TemplateMessage, TemplateParameter

logger = logging.getLogger(__name__)


class WatiService:
    """Thin client over WATI's sendTemplateMessage endpoint."""

    def __init__(
        self,
        endpoint: str,
        access_token: Optional[str],
        broadcast_name: str = "appointment_confirmation",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.base_url = f"{self.endpoint}/api/v1/sendTemplateMessage"
        self.broadcast_name = broadcast_name
        self.timeout = timeout
        self.transport = transport
        self.headers = {"Content-Type": "application/json"}
        if access_token:
            self.headers["Authorization"] = self._authorization(access_token)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WatiService":
        return cls(
            endpoint=settings.wati_endpoint,
            access_token=settings.wati_access_token,
            broadcast_name=settings.wati_broadcast_name,
            timeout=settings.wati_timeout_seconds,
        )

    @staticmethod
    def _authorization(token: str) -> str:
        # WATI hands out tokens both with and without the "Bearer " prefix
        if token.lower().startswith("bearer "):
            return token
        return f"Bearer {token}"

    async def _send(self, phone_number: str, payload: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            return await client.post(
                self.base_url,
                params={"whatsappNumber": phone_number},
                headers=self.headers,
                json=payload,
            )

    async def send_template_message(
        self,
        phone_number: str,
        template_name: str,
        parameters: Sequence[TemplateParameter],
    ) -> DeliveryResult:
        """
        Sends one template message. Never raises for provider or transport
        problems: they come back as DeliveryResult(success=False).
        """
        message = TemplateMessage(
            template_name=template_name,
            broadcast_name=self.broadcast_name,
            parameters=list(parameters),
        )

        try:
            response = await self._send(phone_number, message.model_dump())
        except httpx.HTTPError as exc:
            detail = str(exc) or type(exc).__name__
            logger.error("❌ WATI error: %s", detail)
            return DeliveryResult(success=False, error=detail)

        body = _response_body(response)

        if response.is_error:
            logger.error("❌ WATI error HTTP %s: %s", response.status_code, body)
            return DeliveryResult(success=False, error=body)

        # WATI answers 200 with {"result": false, "info": ...} when it rejects the message
        if isinstance(body, dict) and body.get("result") is False:
            logger.error("❌ WATI rejected message: %s", body)
            return DeliveryResult(success=False, error=body)

        logger.info("✅ WATI message sent: %s", body)
        return DeliveryResult(success=True, data=body)


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
