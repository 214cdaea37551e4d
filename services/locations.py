import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from core.config import Location, Settings

logger = logging.getLogger(__name__)

FALLBACK_LOCATION = Location(name="Costa del Este", address="Plaza Costa del Este, Local 45")


class LocationDirectory:
    """
    Read-only lookup of Mindbody location ids to display name and address.

    resolve() never fails: unknown ids fall back to the configured default
    location, then to the first configured one, then to FALLBACK_LOCATION.
    """

    def __init__(
        self,
        locations: Mapping[str, Location],
        aliases: Optional[Mapping[str, str]] = None,
        default_key: Optional[str] = None,
    ):
        self._locations = MappingProxyType(dict(locations))
        self._aliases = MappingProxyType(dict(aliases or {}))
        self._default_key = default_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocationDirectory":
        return cls(settings.locations, settings.location_aliases, settings.default_location)

    @property
    def default(self) -> Location:
        if self._default_key and self._default_key in self._locations:
            return self._locations[self._default_key]
        if self._locations:
            return next(iter(self._locations.values()))
        return FALLBACK_LOCATION

    def resolve(self, location_id: Any) -> Location:
        if location_id is None:
            return self.default

        raw = str(location_id).strip()
        key = self._aliases.get(raw, raw)
        found = self._locations.get(key)
        if found is None:
            logger.info("📍 Unknown location '%s', using default '%s'", raw, self.default.name)
            return self.default
        return found
