from datetime import date, datetime, timedelta

import pytest
import pytz

from daylight_wallpaper.cache_store import CacheStore, DayWindow
from daylight_wallpaper.sun_data import SunTimes, late_afternoon_start
from daylight_wallpaper.time_period import Period


TZ = pytz.timezone("Europe/Stockholm")
DAY = date(2024, 3, 15)

# Hours after local midnight for a simple, symmetric day
SUN_HOURS = {
    "nautical_twilight_begin": 5.0,
    "civil_twilight_begin": 5.5,
    "sunrise": 6.0,
    "solar_noon": 12.0,
    "sunset": 18.0,
    "civil_twilight_end": 18.5,
    "nautical_twilight_end": 19.0,
}


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def window():
    return DayWindow.for_date(DAY, TZ)


@pytest.fixture
def at(window):
    """Datetime a number of hours after local midnight."""
    def _at(hours: float) -> datetime:
        return window.begin + timedelta(hours=hours)
    return _at


@pytest.fixture
def sun_times(at):
    """Build SunTimes from hour offsets, with late afternoon at the halfway point."""
    def _sun_times(fraction: float = 0.5, **hours) -> SunTimes:
        offsets = {**SUN_HOURS, **hours}
        values = {name: at(h) for name, h in offsets.items()}
        values["late_afternoon"] = late_afternoon_start(
            values["solar_noon"], values["sunset"], fraction
        )
        return SunTimes(**values)
    return _sun_times


@pytest.fixture
def sun_payload(at):
    """Build a sunrise-sunset.org style response from hour offsets."""
    def _payload(status: str = "OK", **hours) -> dict:
        offsets = {**SUN_HOURS, **hours}
        results = {
            name: at(h).astimezone(pytz.utc).isoformat()
            for name, h in offsets.items()
        }
        results["day_length"] = 43200
        return {"results": results, "status": status}
    return _payload


@pytest.fixture
def geo_payload():
    return {
        "status": "success",
        "country": "Sweden",
        "regionName": "Stockholm County",
        "city": "Stockholm",
        "lat": 59.3293,
        "lon": 18.0686,
    }


@pytest.fixture
def store(tmp_path):
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def wallpaper_folder(tmp_path):
    """Folder with an (empty) image file for every period."""
    folder = tmp_path / "wallpapers"
    folder.mkdir()
    for period in Period:
        (folder / f"{period.value}.jpg").write_bytes(b"")
    return folder
