"""
Fill the profile form from the device's position.

The resolver asks a position source once, writes the coordinates into the
form, then tries to name the place. It never saves the profile.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from headache_tracker.services.forms import ProfileForm
from headache_tracker.services.geo import reverse_geocode
from headache_tracker.services.validators import format_number

logger = logging.getLogger(__name__)

# W3C GeolocationPositionError codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Location permission denied. Please allow location access and try again.",
    POSITION_UNAVAILABLE: "Location information is unavailable.",
    TIMEOUT: "The request to get your location timed out.",
}
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred while getting your location."
UNSUPPORTED_MESSAGE = "Geolocation is not supported by your browser."
REQUESTING_MESSAGE = "Getting your location..."
RESOLVED_MESSAGE = "Location detected. Click Save to update your profile."
MANUAL_ENTRY_MESSAGE = "Coordinates detected. Please enter your city, state and country manually."


class GeoState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class Coordinates:
    latitude: float
    longitude: float


class PositionError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"position error {code}")
        self.code = code


def error_message(code: Optional[int]) -> str:
    return ERROR_MESSAGES.get(code, UNKNOWN_ERROR_MESSAGE)


class BrowserPosition:
    """
    Position source for a fix the browser already took and posted with the form:
    either coordinates or a GeolocationPositionError code.
    """

    def __init__(self, latitude: Optional[float] = None, longitude: Optional[float] = None,
                 error_code: Optional[int] = None):
        self.latitude = latitude
        self.longitude = longitude
        self.error_code = error_code

    async def get_current_position(self) -> Coordinates:
        if self.error_code is not None or self.latitude is None or self.longitude is None:
            raise PositionError(self.error_code or 0)
        return Coordinates(self.latitude, self.longitude)


class GeolocationResolver:
    def __init__(self, reverse_geocoder: Callable[[float, float], Awaitable[Optional[dict]]] = reverse_geocode):
        self.reverse_geocoder = reverse_geocoder
        self.state = GeoState.IDLE
        self.status = ""

    async def resolve(self, form: ProfileForm, source) -> GeoState:
        if source is None:
            self.state = GeoState.FAILED
            self.status = UNSUPPORTED_MESSAGE
            return self.state

        self.state = GeoState.REQUESTING
        self.status = REQUESTING_MESSAGE
        try:
            coords = await source.get_current_position()
        except PositionError as e:
            logger.info("Position request failed with code %s", e.code)
            self.state = GeoState.FAILED
            self.status = error_message(e.code)
            return self.state

        form.latitude = format_number(coords.latitude)
        form.longitude = format_number(coords.longitude)

        place = await self.reverse_geocoder(coords.latitude, coords.longitude)
        if place:
            # Only overwrite what the lookup returned; never blank out a field.
            for key in ("city", "state", "country"):
                if place.get(key):
                    setattr(form, key, place[key])
            self.status = RESOLVED_MESSAGE
        else:
            self.status = MANUAL_ENTRY_MESSAGE

        self.state = GeoState.RESOLVED
        return self.state
