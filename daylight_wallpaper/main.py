"""Main entry point for Daylight Wallpaper."""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from daylight_wallpaper.cache_store import CacheKind, CacheStore, DayWindow
from daylight_wallpaper.config import (
    Config,
    create_default_config,
    get_default_config_path,
    load_cache_dir,
)
from daylight_wallpaper.exceptions import (
    DaylightWallpaperError,
    PeriodResolutionError,
    RetriesExhaustedError,
)
from daylight_wallpaper.geolocation import GeoLocationProvider
from daylight_wallpaper.retry import attempts, should_show_fallback
from daylight_wallpaper.sun_data import SunDataProvider, SunTimes
from daylight_wallpaper.time_period import Period, get_current_period, take_a_guess
from daylight_wallpaper.wallpaper_manager import WallpaperManager


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def setup_logging(verbose: bool = False):
    """Configure logging for stdout (cron and systemd compatible)."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def make_clock(config: Config) -> Clock:
    """Return a function giving the current aware datetime in the configured zone."""
    tz = config.tz
    if tz is None:
        return lambda: datetime.now().astimezone()
    return lambda: datetime.now(tz)


def obtain(
    kind: CacheKind,
    fetch: Callable[[], Any],
    parse: Callable[[Any], Any],
    store: CacheStore,
    window: DayWindow,
    config: Config,
    show_fallback: Optional[Callable[[], None]] = None,
    sleep: Callable[[float], None] = time.sleep
) -> Any:
    """
    Get validated data of one kind, from the cache or the API.

    A cached response from today is validated first; on failure the API is
    queried again until the attempt budget is spent. Freshly fetched valid
    responses replace the cache.

    Args:
        kind: Cache kind
        fetch: Fetches a raw response
        parse: Validates a raw response into a typed value
        store: Cache store
        window: Current day window
        config: Configuration (attempt budget and delay)
        show_fallback: Applies a guessed wallpaper while data is unavailable
        sleep: Sleep function

    Returns:
        The parsed value

    Raises:
        RetriesExhaustedError: If no attempt produced valid data; the cache
            for the kind has been purged
    """
    cached = store.load(kind, window)
    fallback_shown = False

    for attempt in attempts(
        fetch,
        parse,
        initial=cached,
        max_attempts=config.max_attempts,
        delay=config.retry_delay,
        sleep=sleep
    ):
        if attempt.ok:
            if cached is None or attempt.number > 1:
                store.store(kind, attempt.payload)
            return attempt.value

        logger.warning(
            f"Invalid {kind.value} data (attempt {attempt.number}/{config.max_attempts}): "
            f"{attempt.error}"
        )

        if show_fallback is not None and should_show_fallback(attempt, fallback_shown):
            show_fallback()
            fallback_shown = True

        if attempt.final:
            logger.error(f"Too many failed {kind.value} validation attempts")
            store.purge(kind)
            raise RetriesExhaustedError(kind.value, attempt.number, attempt.error)


def resolve_sun_times(
    config: Config,
    store: CacheStore,
    window: DayWindow,
    geo_provider: GeoLocationProvider,
    sun_provider: SunDataProvider,
    show_fallback: Optional[Callable[[], None]] = None,
    sleep: Callable[[float], None] = time.sleep
) -> SunTimes:
    """
    Find today's sun times for the configured or detected location.

    Returns:
        Validated SunTimes
    """
    if config.has_coordinates:
        latitude, longitude = config.latitude, config.longitude
        logger.debug(f"Using configured location: {latitude}, {longitude}")
    else:
        location = obtain(
            CacheKind.GEO, geo_provider.fetch, geo_provider.parse,
            store, window, config, show_fallback, sleep
        )
        latitude, longitude = location.latitude, location.longitude
        logger.info(f"Location: {location}")

    return obtain(
        CacheKind.SUN,
        lambda: sun_provider.fetch(latitude, longitude, window.date),
        lambda payload: sun_provider.parse(payload, window),
        store, window, config, show_fallback, sleep
    )


def log_summary(sun_times: SunTimes, now: datetime, period: Period):
    """Log the day's boundaries and the chosen period at debug level."""
    for name, moment in sun_times.as_dict().items():
        logger.debug(f"{name.replace('_', ' ').capitalize()}: {moment.strftime('%H:%M:%S')}")
    logger.debug(f"The time is now {now.strftime('%H:%M:%S')}")
    logger.debug(f"It's currently: {period.value}")


def run_once(
    config: Config,
    store: Optional[CacheStore] = None,
    manager: Optional[WallpaperManager] = None,
    geo_provider: Optional[GeoLocationProvider] = None,
    sun_provider: Optional[SunDataProvider] = None,
    clock: Optional[Clock] = None,
    sleep: Callable[[float], None] = time.sleep
) -> Period:
    """
    Set the wallpaper for the current period once.

    Args:
        config: Configuration object
        store: Cache store (default: from config)
        manager: Wallpaper manager (default: from config)
        geo_provider: Geolocation provider (default: from config)
        sun_provider: Sun data provider (default: from config)
        clock: Returns the current aware datetime (default: from config)
        sleep: Sleep function used between attempts

    Returns:
        The period whose wallpaper was applied

    Raises:
        DaylightWallpaperError: On any fatal condition
    """
    store = store or CacheStore(config.cache_dir)
    manager = manager or WallpaperManager(config.folder, config.command)
    geo_provider = geo_provider or GeoLocationProvider(timeout=config.request_timeout)
    sun_provider = sun_provider or SunDataProvider(
        timeout=config.request_timeout,
        late_afternoon_fraction=config.late_afternoon_fraction,
        tz=config.tz
    )
    clock = clock or make_clock(config)

    manager.check_command()

    if config.purge:
        purge_cache(store)

    now = clock()
    window = DayWindow.for_date(now.date(), config.tz)
    logger.debug(f"The day begins at {window.begin.isoformat()} and ends at {window.end.isoformat()}")

    def show_guess():
        guess = take_a_guess(clock().hour)
        logger.warning(f"Falling back to a guessed period: {guess.value}")
        manager.set_wallpaper(guess)

    sun_times = resolve_sun_times(
        config, store, window, geo_provider, sun_provider, show_guess, sleep
    )

    now = clock()
    period = get_current_period(sun_times, now)
    log_summary(sun_times, now, period)

    manager.set_wallpaper(period)
    return period


def purge_cache(store: CacheStore) -> int:
    """Delete cached data of every kind."""
    count = sum(store.purge(kind) for kind in CacheKind)
    logger.info(f"Purged {count} cached file(s) from {store.cache_dir}")
    return count


def run_test(config: Config):
    """
    Show today's sun times and the current period without changing the wallpaper.

    Args:
        config: Configuration object
    """
    store = CacheStore(config.cache_dir)
    manager = WallpaperManager(config.folder, config.command)
    clock = make_clock(config)

    now = clock()
    window = DayWindow.for_date(now.date(), config.tz)
    sun_times = resolve_sun_times(
        config,
        store,
        window,
        GeoLocationProvider(timeout=config.request_timeout),
        SunDataProvider(
            timeout=config.request_timeout,
            late_afternoon_fraction=config.late_afternoon_fraction,
            tz=config.tz
        ),
    )
    now = clock()
    period = get_current_period(sun_times, now)

    print(f"\nCurrent time: {now.strftime('%Y-%m-%d %H:%M:%S %Z')}")
    print("\nSun times for today:")
    for name, moment in sun_times.as_dict().items():
        label = name.replace('_', ' ').capitalize() + ':'
        print(f"  {label:<26}{moment.strftime('%H:%M:%S')}")
    print(f"\nCurrent period: {period.value}")
    print(f"Current wallpaper: {manager.get_wallpaper(period)}\n")


def run_check(config: Config) -> bool:
    """
    Check the wallpaper command and that every period has a readable image.

    Returns:
        True if everything is in place
    """
    manager = WallpaperManager(config.folder, config.command)
    manager.check_command()

    problems = manager.verify_wallpapers()
    for period in Period:
        status = problems.get(period, "ok")
        print(f"  {period.value + ':':<16}{status}")

    if problems:
        print(f"\n{len(problems)} of {len(Period)} wallpapers need attention")
        return False
    print(f"\nAll wallpapers found in {config.folder}")
    return True


def init_config(config_path: Path):
    """Generate a configuration template."""
    if config_path.exists():
        response = input(f"Config file already exists at {config_path}. Overwrite? [y/N] ")
        if response.lower() != 'y':
            print("Aborted.")
            return

    create_default_config(config_path)
    print(f"Configuration template created at: {config_path}")
    print("\nPlease edit this file with your wallpaper folder and, optionally, your location.")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog='daylight-wallpaper',
        description="Daylight Wallpaper - set the wallpaper to match the period of the solar day",
        epilog=(
            "The wallpaper folder must contain night.jpg, nautical_dawn.jpg, civil_dawn.jpg, "
            "morning.jpg, noon.jpg, late_afternoon.jpg, civil_dusk.jpg and nautical_dusk.jpg. "
            "Run it every 10-15 minutes from cron or a systemd timer."
        )
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to configuration file (default: ~/.config/daylight-wallpaper/config.yaml)'
    )
    parser.add_argument('--latitude', '-x', type=float, help='Latitude in degrees')
    parser.add_argument('--longitude', '-y', type=float, help='Longitude in degrees')
    parser.add_argument('--folder', '-f', help='Folder containing the wallpapers')
    parser.add_argument(
        '--command',
        help='Command that sets the wallpaper; the image path is appended (default: feh --bg-fill)'
    )
    parser.add_argument('--timezone', help='IANA timezone (default: system timezone)')
    parser.add_argument(
        '--purge',
        action='store_true',
        default=None,
        help='Delete cached location and sun data before running'
    )
    parser.add_argument(
        '--verbose', '-d',
        action='store_true',
        default=None,
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command_name', help='Commands')
    subparsers.add_parser('test', help="Show today's sun times and the current period")
    subparsers.add_parser('check', help='Verify that all wallpapers exist and are readable')
    subparsers.add_parser('purge', help='Delete cached location and sun data')
    subparsers.add_parser('init', help='Generate configuration template')

    return parser


def resolve_config_path(args: argparse.Namespace) -> Optional[Path]:
    """Return the explicit config path, or the default one if it exists."""
    if args.config is not None:
        return args.config
    default_path = get_default_config_path()
    return default_path if default_path.exists() else None


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration from the config file and command-line arguments."""
    overrides = {
        'latitude': args.latitude,
        'longitude': args.longitude,
        'folder': args.folder,
        'command': args.command,
        'timezone': args.timezone,
        'purge': args.purge,
        'verbose': args.verbose,
    }
    return Config.load(resolve_config_path(args), overrides)


def cli(argv: Optional[list[str]] = None):
    """Command-line interface entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command (doesn't need config)
    if args.command_name == 'init':
        init_config(args.config or get_default_config_path())
        return

    setup_logging(bool(args.verbose))

    try:
        if args.command_name == 'purge':
            # Needs no wallpaper folder, only the cache directory
            purge_cache(CacheStore(load_cache_dir(resolve_config_path(args))))
            return

        config = load_config(args)
        if config.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        if args.command_name == 'test':
            run_test(config)
        elif args.command_name == 'check':
            if not run_check(config):
                sys.exit(1)
        else:
            run_once(config)
    except PeriodResolutionError as e:
        print(f"Internal error: {e}", file=sys.stderr)
        sys.exit(e.exit_status)
    except DaylightWallpaperError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(e.exit_status)


if __name__ == '__main__':
    cli()
