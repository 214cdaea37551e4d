import logging
from typing import List

from core.config import Location, Settings
from schemas.mindbody import AppointmentFacts
from schemas.wati import DeliveryResult, TemplateParameter
from services.formatters import format_date_spanish, format_phone_number, format_time
from services.locations import LocationDirectory
from services.wati_service import WatiService

logger = logging.getLogger(__name__)


def build_template_parameters(
    client_name: str,
    location_name: str,
    formatted_date: str,
    formatted_time: str,
    service_name: str,
    location_address: str,
) -> List[TemplateParameter]:
    """
    The WATI template renders {{1}}..{{6}} positionally, so this order is
    the contract with the approved template.
    """
    values = [
        client_name,
        location_name,
        formatted_date,
        formatted_time,
        service_name,
        location_address,
    ]
    return [TemplateParameter(name=str(i), value=value) for i, value in enumerate(values, start=1)]


async def send_appointment_confirmation(
    facts: AppointmentFacts,
    settings: Settings,
    directory: LocationDirectory,
    wati: WatiService,
) -> DeliveryResult:
    """
    Formats one appointment and sends it through WATI.

    Raises InvalidStartTime when the start cannot be parsed; callers decide
    how to report it. Phone and start time must already be present.
    """
    phone = format_phone_number(facts.client_phone, settings.phone_country_code)
    formatted_date = format_date_spanish(facts.start_date_time, settings.timezone)
    formatted_time = format_time(facts.start_date_time, settings.timezone)
    location: Location = directory.resolve(facts.location_id)

    logger.info(
        "📋 Appointment details: client=%s phone=%s service=%s date=%s time=%s location=%s",
        facts.client_name,
        phone,
        facts.service_name,
        formatted_date,
        formatted_time,
        location.name,
    )

    parameters = build_template_parameters(
        client_name=facts.client_name,
        location_name=location.name,
        formatted_date=formatted_date,
        formatted_time=formatted_time,
        service_name=facts.service_name,
        location_address=location.address,
    )

    return await wati.send_template_message(phone, settings.wati_template_name, parameters)
