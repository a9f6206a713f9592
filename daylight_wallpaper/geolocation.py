"""IP-based geolocation through ip-api.com."""

import logging
from dataclasses import dataclass
from typing import Any

from daylight_wallpaper.exceptions import InvalidResponseError
from daylight_wallpaper.remote import DEFAULT_TIMEOUT, fetch_json, parse_field


logger = logging.getLogger(__name__)

GEO_API_URL = "http://ip-api.com/json/?fields=status,lat,lon,country,regionName,city"


@dataclass(frozen=True)
class GeoLocation:
    """Location resolved from the public IP address."""

    latitude: float
    longitude: float
    country: str = ""
    region: str = ""
    city: str = ""

    def __str__(self) -> str:
        place = ", ".join(part for part in (self.city, self.region, self.country) if part)
        return f"{place or 'unknown place'} ({self.latitude}, {self.longitude})"


class GeoLocationProvider:
    """Fetch and validate the location of the current public IP."""

    def __init__(self, url: str = GEO_API_URL, timeout: float = DEFAULT_TIMEOUT):
        self.url = url
        self.timeout = timeout

    def fetch(self) -> Any:
        """Fetch the raw geolocation response."""
        logger.debug("Fetching geolocation data from the API")
        return fetch_json(self.url, timeout=self.timeout)

    def parse(self, payload: Any) -> GeoLocation:
        """
        Validate a geolocation response.

        Args:
            payload: Decoded JSON response

        Returns:
            GeoLocation

        Raises:
            InvalidResponseError: If status is not "success" or coordinates are unusable
        """
        status = parse_field(payload, 'status')
        logger.debug(f"Geolocation API status: {status}")
        if status != 'success':
            raise InvalidResponseError(f"Geolocation API returned status {status!r}")

        latitude = _parse_coordinate(payload, 'lat', 90)
        longitude = _parse_coordinate(payload, 'lon', 180)

        return GeoLocation(
            latitude=latitude,
            longitude=longitude,
            country=_optional_field(payload, 'country'),
            region=_optional_field(payload, 'regionName'),
            city=_optional_field(payload, 'city'),
        )


def _parse_coordinate(payload: Any, key: str, limit: float) -> float:
    raw = parse_field(payload, key)
    try:
        value = float(raw)
    except ValueError as e:
        raise InvalidResponseError(f"Field {key} is not a number: {raw!r}") from e

    if not -limit <= value <= limit:
        raise InvalidResponseError(f"Field {key} out of range: {value}")
    return value


def _optional_field(payload: Any, key: str) -> str:
    try:
        return parse_field(payload, key)
    except InvalidResponseError:
        return ""
