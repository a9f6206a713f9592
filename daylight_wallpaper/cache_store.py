"""On-disk cache of API responses, valid for the current calendar day."""

import json
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, tzinfo
from enum import Enum
from pathlib import Path
from typing import Any, Optional


logger = logging.getLogger(__name__)


class CacheKind(Enum):
    """Kinds of cached data."""

    GEO = "geo"
    SUN = "sun"


def localize(naive: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Attach a timezone to a naive local datetime.

    Args:
        naive: Naive datetime expressed in local time
        tz: pytz timezone, or None for the system local zone

    Returns:
        Timezone-aware datetime
    """
    if tz is None:
        return naive.astimezone()
    return tz.localize(naive)


@dataclass(frozen=True)
class DayWindow:
    """Boundaries of the current local calendar day."""

    begin: datetime
    end: datetime

    @classmethod
    def for_date(cls, day: date, tz: Optional[tzinfo] = None) -> "DayWindow":
        """
        Build the window running from midnight to 23:59:59 of a day.

        Args:
            day: Calendar date
            tz: pytz timezone, or None for the system local zone
        """
        return cls(
            begin=localize(datetime.combine(day, dt_time(0, 0, 0)), tz),
            end=localize(datetime.combine(day, dt_time(23, 59, 59)), tz),
        )

    @property
    def date(self) -> date:
        return self.begin.date()

    def contains(self, timestamp: float) -> bool:
        """Check whether a Unix timestamp falls inside [begin, end)."""
        return self.begin.timestamp() <= timestamp < self.end.timestamp()


@dataclass(frozen=True)
class CacheEntry:
    """A cache file found on disk."""

    kind: CacheKind
    fetched_at: int
    path: Path

    def read(self) -> Any:
        with open(self.path, 'r', encoding='utf-8') as f:
            return json.load(f)


class CacheStore:
    """
    Stores one JSON response per kind as ``<kind>_data_<unix-time>.json``.

    Only files owned by the current user are considered, since the default
    directory is the shared system temp directory.
    """

    def __init__(self, cache_dir: Optional[Path] = None, uid: Optional[int] = None):
        """
        Initialize cache store.

        Args:
            cache_dir: Directory holding the cache files (default: system temp dir)
            uid: Owner whose files are considered (default: current user)
        """
        self.cache_dir = Path(cache_dir) if cache_dir else Path(tempfile.gettempdir())
        self.uid = os.getuid() if uid is None else uid

    def _filename_pattern(self, kind: CacheKind) -> re.Pattern:
        return re.compile(rf"^{kind.value}_data_(\d+)\.json$")

    def find(self, kind: CacheKind) -> list[CacheEntry]:
        """
        Find all cache entries of a kind owned by the current user.

        Args:
            kind: Cache kind

        Returns:
            Matching entries, oldest first
        """
        if not self.cache_dir.is_dir():
            return []

        pattern = self._filename_pattern(kind)
        entries = []
        for path in self.cache_dir.glob(f"{kind.value}_data_*.json"):
            match = pattern.match(path.name)
            if not match:
                continue
            try:
                if path.stat().st_uid != self.uid:
                    continue
            except FileNotFoundError:
                # Removed by an overlapping run
                continue
            entries.append(CacheEntry(kind, int(match.group(1)), path))

        return sorted(entries, key=lambda e: e.fetched_at)

    def load(self, kind: CacheKind, window: DayWindow) -> Optional[Any]:
        """
        Load the cached payload of a kind if it was fetched today.

        Args:
            kind: Cache kind
            window: Current day window

        Returns:
            Cached payload, or None if a fresh fetch is needed
        """
        entries = self.find(kind)

        if not entries:
            logger.debug(f"No cached {kind.value} data found")
            return None
        if len(entries) > 1:
            logger.debug(
                f"Found {len(entries)} cached {kind.value} files, ignoring them: "
                f"{', '.join(e.path.name for e in entries)}"
            )
            return None

        entry = entries[0]
        logger.debug(f"Cached {kind.value} data file: {entry.path} (fetched at {entry.fetched_at})")

        if not window.contains(entry.fetched_at):
            logger.debug(f"Cached {kind.value} data is not from the current day")
            return None

        try:
            payload = entry.read()
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to read cached {kind.value} data from {entry.path}: {e}")
            return None

        logger.debug(f"Using cached {kind.value} data fetched within the current day")
        return payload

    def store(self, kind: CacheKind, payload: Any, now: Optional[float] = None) -> Path:
        """
        Replace the cached payload of a kind.

        Args:
            kind: Cache kind
            payload: JSON-serializable response body
            now: Fetch time as Unix timestamp (default: current time)

        Returns:
            Path of the written file
        """
        self.purge(kind)

        fetched_at = int(time.time() if now is None else now)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.cache_dir / f"{kind.value}_data_{fetched_at}.json"

        # Write to a hidden file first so readers never see a partial file
        tmp_path = self.cache_dir / f".{path.name}.{os.getpid()}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f)
            os.replace(tmp_path, path)
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.debug(f"Saved {kind.value} data to {path}")
        return path

    def purge(self, kind: CacheKind) -> int:
        """
        Delete every cache entry of a kind.

        Args:
            kind: Cache kind

        Returns:
            Number of deleted files
        """
        count = 0
        for entry in self.find(kind):
            entry.path.unlink(missing_ok=True)
            count += 1

        if count:
            logger.debug(f"Deleted {count} cached {kind.value} file(s)")
        return count
