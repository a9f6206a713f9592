"""Configuration loading and validation."""

import logging
import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import pytz
import yaml

from daylight_wallpaper.exceptions import ConfigurationError
from daylight_wallpaper.retry import MAX_ATTEMPTS, RETRY_DELAY
from daylight_wallpaper.remote import DEFAULT_TIMEOUT
from daylight_wallpaper.sun_data import LATE_AFTERNOON_FRACTION
from daylight_wallpaper.wallpaper_manager import DEFAULT_COMMAND

logger = logging.getLogger(__name__)


CONFIG_TEMPLATE = """# Daylight Wallpaper configuration

# Leave out the location section to look up your location from your IP address.
#location:
#  latitude: 59.3293       # Your latitude
#  longitude: 18.0686      # Your longitude
#  timezone: "Europe/Stockholm"  # IANA timezone (default: system timezone)

wallpapers:
  # Must contain night.jpg, nautical_dawn.jpg, civil_dawn.jpg, morning.jpg,
  # noon.jpg, late_afternoon.jpg, civil_dusk.jpg and nautical_dusk.jpg
  folder: ~/Pictures/daylight
  command: feh --bg-fill   # The image path is appended to this command

settings:
  cache_dir: /tmp                # Where fetched API data is kept for the day
  max_attempts: 3                # Fetch attempts before giving up
  retry_delay: 10                # Seconds between attempts
  late_afternoon_fraction: 0.5   # Share of noon-to-sunset that counts as noon
  request_timeout: 10            # HTTP timeout (seconds)
  verbose: false                 # Debug logging
"""


@dataclass(frozen=True)
class Config:
    """Daylight Wallpaper configuration."""

    folder: Path
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    command: Tuple[str, ...] = DEFAULT_COMMAND
    cache_dir: Optional[Path] = None
    purge: bool = False
    verbose: bool = False
    max_attempts: int = MAX_ATTEMPTS
    retry_delay: float = RETRY_DELAY
    late_afternoon_fraction: float = LATE_AFTERNOON_FRACTION
    request_timeout: float = DEFAULT_TIMEOUT

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def tz(self):
        """pytz timezone, or None to use the system timezone."""
        return pytz.timezone(self.timezone) if self.timezone else None

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        validate_paths: bool = True
    ) -> "Config":
        """
        Load configuration from an optional YAML file and command-line overrides.

        Args:
            config_path: Path to configuration file, or None to use overrides only
            overrides: Values from the command line; None values are ignored
            validate_paths: If True, validate that the wallpaper folder exists

        Returns:
            Config instance

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        data = {}
        if config_path is not None:
            data = _read_yaml(config_path)

        location = _section(data, 'location')
        wallpapers = _section(data, 'wallpapers')
        settings = _section(data, 'settings')

        values = {
            'folder': wallpapers.get('folder'),
            'command': wallpapers.get('command'),
            'latitude': location.get('latitude'),
            'longitude': location.get('longitude'),
            'timezone': location.get('timezone'),
            'cache_dir': settings.get('cache_dir'),
            'max_attempts': settings.get('max_attempts', MAX_ATTEMPTS),
            'retry_delay': settings.get('retry_delay', RETRY_DELAY),
            'late_afternoon_fraction': settings.get('late_afternoon_fraction', LATE_AFTERNOON_FRACTION),
            'request_timeout': settings.get('request_timeout', DEFAULT_TIMEOUT),
            'purge': False,
            'verbose': settings.get('verbose', False),
        }
        for key, value in (overrides or {}).items():
            if key not in values:
                raise ConfigurationError(f"Unknown option: {key}")
            if value is not None:
                values[key] = value

        return cls._validate(values, validate_paths)

    @classmethod
    def _validate(cls, values: dict, validate_paths: bool) -> "Config":
        # Folder
        folder_str = values['folder']
        if not folder_str:
            raise ConfigurationError("Missing required setting: wallpaper folder")
        folder = _expand_path(folder_str)
        if validate_paths and not folder.is_dir():
            raise ConfigurationError(f"Wallpaper folder not found: {folder}")

        # Location, both or neither
        latitude = _optional_float(values['latitude'], 'latitude')
        longitude = _optional_float(values['longitude'], 'longitude')
        if (latitude is None) != (longitude is None):
            raise ConfigurationError("Latitude and longitude must be given together")
        if latitude is not None and not (-90 <= latitude <= 90):
            raise ConfigurationError(f"Latitude must be between -90 and 90, got: {latitude}")
        if longitude is not None and not (-180 <= longitude <= 180):
            raise ConfigurationError(f"Longitude must be between -180 and 180, got: {longitude}")

        timezone = values['timezone']
        if timezone is not None and timezone not in pytz.all_timezones:
            raise ConfigurationError(
                f"Invalid timezone: {timezone}. "
                f"Must be a valid IANA timezone (e.g., 'US/Pacific', 'Europe/London')"
            )

        # Command
        command = values['command'] or DEFAULT_COMMAND
        if isinstance(command, str):
            command = shlex.split(command)
        command = tuple(str(part) for part in command)
        if not command:
            raise ConfigurationError("Wallpaper command must not be empty")

        cache_dir = _expand_path(values['cache_dir']) if values['cache_dir'] else None

        # Settings
        max_attempts = values['max_attempts']
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be a positive integer, got: {max_attempts}")

        retry_delay = values['retry_delay']
        if not _is_number(retry_delay) or retry_delay < 0:
            raise ConfigurationError(f"retry_delay must be a non-negative number, got: {retry_delay}")

        fraction = values['late_afternoon_fraction']
        if not _is_number(fraction) or not (0 < fraction < 1):
            raise ConfigurationError(
                f"late_afternoon_fraction must be between 0 and 1, got: {fraction}"
            )

        request_timeout = values['request_timeout']
        if not _is_number(request_timeout) or request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be a positive number, got: {request_timeout}")

        for flag in ('purge', 'verbose'):
            if not isinstance(values[flag], bool):
                raise ConfigurationError(f"{flag} must be true or false, got: {values[flag]!r}")

        return cls(
            folder=folder,
            latitude=latitude,
            longitude=longitude,
            timezone=timezone,
            command=command,
            cache_dir=cache_dir,
            purge=values['purge'],
            verbose=values['verbose'],
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            late_afternoon_fraction=fraction,
            request_timeout=request_timeout,
        )


def _read_yaml(config_path: Path) -> dict:
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    return data


def _section(data: dict, name: str) -> dict:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping, got: {section!r}")
    return section


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def load_cache_dir(config_path: Optional[Path] = None) -> Optional[Path]:
    """
    Read only the cache directory from a configuration file.

    Unlike Config.load this needs no wallpaper folder, so cached data can be
    purged from an incomplete configuration.

    Args:
        config_path: Path to configuration file, or None

    Returns:
        Configured cache directory, or None for the system temp directory

    Raises:
        ConfigurationError: If the file cannot be read
    """
    if config_path is None:
        return None
    cache_dir = _section(_read_yaml(config_path), 'settings').get('cache_dir')
    return _expand_path(cache_dir) if cache_dir else None


def _expand_path(path_str) -> Path:
    # Expand ~ and environment variables
    return Path(os.path.expanduser(os.path.expandvars(str(path_str))))


def _optional_float(value, name: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name.capitalize()} must be a number, got: {value!r}")


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    xdg_config_home = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
    return Path(xdg_config_home) / 'daylight-wallpaper' / 'config.yaml'


def create_default_config(config_path: Path) -> None:
    """Create a default configuration template file.

    Args:
        config_path: Path where the config file should be created
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(CONFIG_TEMPLATE)
    logger.info(f"Configuration template written to {config_path}")
