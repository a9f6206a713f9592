import os
from datetime import date

import pytest

from daylight_wallpaper.cache_store import CacheKind, CacheStore, DayWindow


class TestDayWindow:
    def test_boundaries(self, window, tz):
        assert window.begin == tz.localize(window.begin.replace(tzinfo=None))
        assert (window.begin.hour, window.begin.minute, window.begin.second) == (0, 0, 0)
        assert (window.end.hour, window.end.minute, window.end.second) == (23, 59, 59)
        assert window.date == date(2024, 3, 15)

    def test_contains_is_half_open(self, window):
        begin = window.begin.timestamp()
        end = window.end.timestamp()
        assert window.contains(begin)
        assert window.contains(end - 1)
        assert not window.contains(begin - 1)
        assert not window.contains(end)

    def test_dst_day(self, tz):
        # Clocks go forward on 2024-03-31 in Stockholm
        window = DayWindow.for_date(date(2024, 3, 31), tz)
        assert window.begin.utcoffset() != window.end.utcoffset()

    def test_system_timezone(self):
        window = DayWindow.for_date(date(2024, 3, 15))
        assert window.begin.tzinfo is not None
        assert window.end > window.begin


class TestStoreAndLoad:
    def test_round_trip(self, store, window, sun_payload):
        payload = sun_payload()
        store.store(CacheKind.SUN, payload, now=window.begin.timestamp() + 3600)
        assert store.load(CacheKind.SUN, window) == payload

    def test_file_name(self, store, window):
        fetched_at = int(window.begin.timestamp()) + 60
        path = store.store(CacheKind.GEO, {"status": "success"}, now=fetched_at)
        assert path.name == f"geo_data_{fetched_at}.json"
        assert path.parent == store.cache_dir

    def test_kinds_are_separate(self, store, window, geo_payload, sun_payload):
        now = window.begin.timestamp() + 60
        store.store(CacheKind.GEO, geo_payload, now=now)
        store.store(CacheKind.SUN, sun_payload(), now=now)

        assert store.load(CacheKind.GEO, window) == geo_payload
        assert store.load(CacheKind.SUN, window) == sun_payload()

    def test_stale_entry_ignored(self, store, window):
        store.store(CacheKind.SUN, {"status": "OK"}, now=window.begin.timestamp() - 1)
        assert len(store.find(CacheKind.SUN)) == 1
        assert store.load(CacheKind.SUN, window) is None

    def test_entry_after_day_ignored(self, store, window):
        store.store(CacheKind.SUN, {"status": "OK"}, now=window.end.timestamp())
        assert store.load(CacheKind.SUN, window) is None

    def test_no_entry(self, store, window):
        assert store.load(CacheKind.SUN, window) is None

    def test_missing_directory(self, tmp_path, window):
        store = CacheStore(tmp_path / "does-not-exist")
        assert store.find(CacheKind.SUN) == []
        assert store.load(CacheKind.SUN, window) is None

    def test_multiple_entries_ignored(self, store, window):
        store.cache_dir.mkdir(parents=True)
        begin = int(window.begin.timestamp())
        for offset in (10, 20):
            (store.cache_dir / f"sun_data_{begin + offset}.json").write_text('{"status": "OK"}')

        assert len(store.find(CacheKind.SUN)) == 2
        assert store.load(CacheKind.SUN, window) is None

    def test_store_replaces_previous(self, store, window):
        begin = window.begin.timestamp()
        store.store(CacheKind.SUN, {"n": 1}, now=begin + 10)
        store.store(CacheKind.SUN, {"n": 2}, now=begin + 20)

        entries = store.find(CacheKind.SUN)
        assert [e.fetched_at for e in entries] == [int(begin) + 20]
        assert store.load(CacheKind.SUN, window) == {"n": 2}

    def test_no_temp_files_left(self, store, window):
        store.store(CacheKind.SUN, {"n": 1}, now=window.begin.timestamp())
        assert [p.name for p in store.cache_dir.iterdir()] == [
            f"sun_data_{int(window.begin.timestamp())}.json"
        ]

    def test_corrupt_entry(self, store, window):
        store.cache_dir.mkdir(parents=True)
        (store.cache_dir / f"sun_data_{int(window.begin.timestamp()) + 5}.json").write_text("{not json")
        assert store.load(CacheKind.SUN, window) is None

    def test_unrelated_files_ignored(self, store, window):
        store.cache_dir.mkdir(parents=True)
        begin = int(window.begin.timestamp())
        (store.cache_dir / f"sun_data_{begin}.txt").write_text("{}")
        (store.cache_dir / "sun_data_latest.json").write_text("{}")
        (store.cache_dir / f"moon_data_{begin}.json").write_text("{}")
        assert store.find(CacheKind.SUN) == []

    def test_other_users_files_ignored(self, tmp_path, window):
        cache_dir = tmp_path / "cache"
        CacheStore(cache_dir).store(CacheKind.SUN, {"n": 1}, now=window.begin.timestamp())

        other = CacheStore(cache_dir, uid=os.getuid() + 1)
        assert other.find(CacheKind.SUN) == []
        assert other.load(CacheKind.SUN, window) is None
        assert other.purge(CacheKind.SUN) == 0


class TestPurge:
    def test_purge_kind(self, store, window):
        begin = window.begin.timestamp()
        store.store(CacheKind.SUN, {"n": 1}, now=begin)
        store.store(CacheKind.GEO, {"n": 2}, now=begin)

        assert store.purge(CacheKind.SUN) == 1
        assert store.find(CacheKind.SUN) == []
        assert len(store.find(CacheKind.GEO)) == 1

    def test_purge_empty(self, store):
        assert store.purge(CacheKind.GEO) == 0


def test_default_directory_is_temp_dir(monkeypatch, tmp_path):
    monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
    assert CacheStore().cache_dir == tmp_path


@pytest.mark.parametrize("kind,value", [(CacheKind.GEO, "geo"), (CacheKind.SUN, "sun")])
def test_kind_values(kind, value):
    assert kind.value == value
