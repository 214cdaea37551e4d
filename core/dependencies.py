from fastapi import Depends

from core.config import Settings, get_settings
from services.locations import LocationDirectory
from services.wati_service import WatiService


def get_location_directory(settings: Settings = Depends(get_settings)) -> LocationDirectory:
    """ Read-only directory built from the startup settings. """
    return LocationDirectory.from_settings(settings)


def get_wati_service(settings: Settings = Depends(get_settings)) -> WatiService:
    return WatiService.from_settings(settings)
