"""Sunrise, sunset and twilight times from the sunrise-sunset.org API."""

import logging
from dataclasses import dataclass, fields
from datetime import date, datetime, tzinfo
from typing import Any, Optional

from daylight_wallpaper.cache_store import DayWindow
from daylight_wallpaper.exceptions import InvalidResponseError
from daylight_wallpaper.remote import DEFAULT_TIMEOUT, fetch_json, parse_field, parse_timestamp


logger = logging.getLogger(__name__)

SUN_API_URL = "https://api.sunrise-sunset.org/json"

# Share of the afternoon (solar noon to sunset) that counts as plain noon
# before late afternoon begins.
LATE_AFTERNOON_FRACTION = 0.5


@dataclass(frozen=True)
class SunTimes:
    """Boundaries of the solar day, in chronological order."""

    nautical_twilight_begin: datetime
    civil_twilight_begin: datetime
    sunrise: datetime
    solar_noon: datetime
    late_afternoon: datetime
    sunset: datetime
    civil_twilight_end: datetime
    nautical_twilight_end: datetime

    def as_dict(self) -> dict[str, datetime]:
        """Boundaries keyed by field name, in chronological order."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def is_ordered(self) -> bool:
        values = list(self.as_dict().values())
        return all(a < b for a, b in zip(values, values[1:]))


def late_afternoon_start(
    solar_noon: datetime,
    sunset: datetime,
    fraction: float = LATE_AFTERNOON_FRACTION
) -> datetime:
    """
    Calculate when late afternoon begins.

    Args:
        solar_noon: Solar noon
        sunset: Sunset
        fraction: Share of the noon-to-sunset span that precedes late afternoon

    Returns:
        solar_noon + fraction * (sunset - solar_noon)
    """
    return solar_noon + (sunset - solar_noon) * fraction


class SunDataProvider:
    """Fetch and validate sun times for a location."""

    def __init__(
        self,
        url: str = SUN_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        late_afternoon_fraction: float = LATE_AFTERNOON_FRACTION,
        tz: Optional[tzinfo] = None
    ):
        """
        Initialize sun data provider.

        Args:
            url: API endpoint
            timeout: Request timeout in seconds
            late_afternoon_fraction: See late_afternoon_start()
            tz: pytz timezone to express times in (None = system local zone)
        """
        self.url = url
        self.timeout = timeout
        self.late_afternoon_fraction = late_afternoon_fraction
        self.tz = tz

    def fetch(self, latitude: float, longitude: float, day: Optional[date] = None) -> Any:
        """
        Fetch the raw sun data response.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            day: Local date to fetch data for (default: API's today)
        """
        logger.debug(f"Fetching sun data for {latitude}, {longitude} from the API")
        params = {'lat': latitude, 'lng': longitude, 'formatted': 0}
        if day is not None:
            params['date'] = day.isoformat()
        return fetch_json(self.url, params=params, timeout=self.timeout)

    def parse(self, payload: Any, window: DayWindow) -> SunTimes:
        """
        Validate a sun data response.

        Args:
            payload: Decoded JSON response
            window: Current day window

        Returns:
            SunTimes for the current day

        Raises:
            InvalidResponseError: If status is not "OK", a field is missing or
                malformed, or the times do not belong to the current day
        """
        status = parse_field(payload, 'status')
        logger.debug(f"Sun data API status: {status}")
        if status != 'OK':
            raise InvalidResponseError(f"Sun data API returned status {status!r}")

        def timestamp(name: str) -> datetime:
            return parse_timestamp(parse_field(payload, 'results', name), self.tz)

        nautical_twilight_begin = timestamp('nautical_twilight_begin')
        if nautical_twilight_begin < window.begin:
            # Yesterday's data, or the 1970 placeholder used when the
            # twilight does not happen at all
            raise InvalidResponseError(
                f"Nautical twilight begins before the current day: "
                f"{nautical_twilight_begin.isoformat()}"
            )

        solar_noon = timestamp('solar_noon')
        sunset = timestamp('sunset')

        sun_times = SunTimes(
            nautical_twilight_begin=nautical_twilight_begin,
            civil_twilight_begin=timestamp('civil_twilight_begin'),
            sunrise=timestamp('sunrise'),
            solar_noon=solar_noon,
            late_afternoon=late_afternoon_start(solar_noon, sunset, self.late_afternoon_fraction),
            sunset=sunset,
            civil_twilight_end=timestamp('civil_twilight_end'),
            nautical_twilight_end=timestamp('nautical_twilight_end'),
        )

        if not sun_times.is_ordered():
            raise InvalidResponseError(f"Sun times are not in chronological order: {sun_times}")

        return sun_times
