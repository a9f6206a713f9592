"""Time period definitions and mapping logic."""

from enum import Enum
from datetime import datetime

from daylight_wallpaper.exceptions import PeriodResolutionError
from daylight_wallpaper.sun_data import SunTimes


class Period(Enum):
    """Periods of the solar day, valued by their wallpaper file stem."""

    NIGHT = "night"
    NAUTICAL_DAWN = "nautical_dawn"
    CIVIL_DAWN = "civil_dawn"
    MORNING = "morning"
    NOON = "noon"
    LATE_AFTERNOON = "late_afternoon"
    CIVIL_DUSK = "civil_dusk"
    NAUTICAL_DUSK = "nautical_dusk"


# Wall-clock approximation for a mid-latitude location, used only when no
# sun data could be obtained.
_GUESS_TABLE = (
    (range(4, 6), Period.NAUTICAL_DAWN),
    (range(6, 8), Period.CIVIL_DAWN),
    (range(8, 12), Period.MORNING),
    (range(12, 15), Period.NOON),
    (range(15, 18), Period.LATE_AFTERNOON),
    (range(18, 19), Period.CIVIL_DUSK),
    (range(19, 21), Period.NAUTICAL_DUSK),
)


def get_current_period(sun_times: SunTimes, current_time: datetime) -> Period:
    """
    Determine the current period based on the day's sun times.

    Every range is half-open and includes its lower bound, so the moment of
    sunrise is already morning and the moment of sunset is already civil dusk.

    Args:
        sun_times: Validated SunTimes for today
        current_time: Current datetime (timezone-aware)

    Returns:
        Period enum value

    Raises:
        PeriodResolutionError: If no range contains current_time
    """
    st = sun_times

    if current_time >= st.nautical_twilight_end or current_time < st.nautical_twilight_begin:
        return Period.NIGHT

    ranges = (
        (st.nautical_twilight_begin, st.civil_twilight_begin, Period.NAUTICAL_DAWN),
        (st.civil_twilight_begin, st.sunrise, Period.CIVIL_DAWN),
        (st.sunrise, st.solar_noon, Period.MORNING),
        (st.solar_noon, st.late_afternoon, Period.NOON),
        (st.late_afternoon, st.sunset, Period.LATE_AFTERNOON),
        (st.sunset, st.civil_twilight_end, Period.CIVIL_DUSK),
        (st.civil_twilight_end, st.nautical_twilight_end, Period.NAUTICAL_DUSK),
    )
    for start, end, period in ranges:
        if start <= current_time < end:
            return period

    raise PeriodResolutionError(
        f"Unable to determine period for {current_time.isoformat()}; "
        f"sun times are out of order: {st}"
    )


def take_a_guess(hour: int) -> Period:
    """
    Guess the period from the wall-clock hour alone.

    Args:
        hour: Hour of the day (0-23)

    Returns:
        Period enum value
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be between 0 and 23, got: {hour}")

    for hours, period in _GUESS_TABLE:
        if hour in hours:
            return period
    return Period.NIGHT
