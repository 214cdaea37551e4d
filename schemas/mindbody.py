from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional


class AppointmentFacts(BaseModel):
    """
    Normalized view of a Mindbody appointment notification.
    Built by services.extraction and never modified afterwards.
    """
    model_config = ConfigDict(frozen=True)

    client_name: str = "Cliente"
    client_phone: Optional[str] = None
    service_name: str = "Servicio"
    start_date_time: Optional[Any] = None  # ISO string, datetime or epoch millis
    location_id: Optional[str] = None


# Cuerpo del endpoint /test/send-confirmation (todo opcional, el phone se valida a mano -> 400)
class ManualConfirmationRequest(BaseModel):
    phone: Optional[str] = Field(None, description="Customer phone number (e.g., 6123-4567 or 50761234567)")
    name: Optional[str] = None
    service: Optional[str] = None
    date: Optional[str] = Field(None, description="Already formatted date string")
    time: Optional[str] = Field(None, description="Already formatted time string")
    location: Optional[str] = None
    address: Optional[str] = None

    @field_validator("phone", mode="before")
    @classmethod
    def phone_as_text(cls, value):
        # n8n / Postman suelen mandar el número como entero
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value
