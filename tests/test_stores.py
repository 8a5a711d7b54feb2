"""Tests for local persistence: JSON store, bundle cache, history, settings."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from daily_reading.cache import ReadingCache
from daily_reading.errors import PersistenceError
from daily_reading.history import ReadingHistory, calculate_streak
from daily_reading.models import (
    FontSize,
    HistoryRecord,
    NewsItem,
    ReadingBundle,
    Section,
    SourceKind,
    UserSettings,
    WikipediaItem,
)
from daily_reading.preferences import SETTINGS_KEY, SettingsStore
from daily_reading.storage import CACHE_STORE, HISTORY_STORE, SETTINGS_STORE, JsonStore, clear_all

NOW = datetime(2025, 10, 5, 6, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _make_bundle(day: date = date(2025, 10, 5)) -> ReadingBundle:
    return ReadingBundle(
        date=day,
        sections=[
            Section(kind=SourceKind.WIKIPEDIA, title="今日は何の日", items=[WikipediaItem(text="あいうえお", year=1900)]),
            Section(kind=SourceKind.NEWS, title="今日のニュース", items=[NewsItem(text="かきく"), NewsItem(text="けこ")]),
        ],
    )


def _record(day: str, completed: bool = True) -> HistoryRecord:
    return HistoryRecord(date=date.fromisoformat(day), char_count=100, completed=completed)


# ── Models ───────────────────────────────────────────────────────────────


class TestModels:

    def test_section_char_count_from_items(self):
        section = Section(kind=SourceKind.NEWS, title="t", items=[NewsItem(text="あい"), NewsItem(text="うえお")])
        assert section.char_count == 5

    def test_section_char_count_ignores_given_value(self):
        section = Section(kind=SourceKind.NEWS, title="t", items=[NewsItem(text="あい")], char_count=99)
        assert section.char_count == 2

    def test_bundle_total(self):
        assert _make_bundle().total_char_count == 10

    def test_items_round_trip_by_kind(self):
        restored = ReadingBundle.model_validate(_make_bundle().model_dump(mode="json"))
        assert isinstance(restored.sections[0].items[0], WikipediaItem)
        assert isinstance(restored.sections[1].items[0], NewsItem)

    def test_default_enabled_kinds(self):
        assert UserSettings().enabled_kinds() == [SourceKind.WIKIPEDIA, SourceKind.NEWS, SourceKind.WEATHER]


# ── JsonStore ────────────────────────────────────────────────────────────


class TestJsonStore:

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonStore("things", tmp_path)
        assert store.get("a") is None
        assert store.all() == {}

    def test_put_get_delete(self, tmp_path):
        store = JsonStore("things", tmp_path)
        store.put("a", {"x": 1})
        assert store.get("a") == {"x": 1}
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None

    def test_visible_to_other_instances(self, tmp_path):
        JsonStore("things", tmp_path).put("a", "日本語")
        assert JsonStore("things", tmp_path).get("a") == "日本語"

    def test_clear(self, tmp_path):
        store = JsonStore("things", tmp_path)
        store.put("a", 1)
        store.put("b", 2)
        store.clear()
        assert store.all() == {}

    def test_clear_all(self, tmp_path):
        for name in (CACHE_STORE, HISTORY_STORE, SETTINGS_STORE):
            JsonStore(name, tmp_path).put("k", 1)
        clear_all(tmp_path)
        assert all(JsonStore(n, tmp_path).all() == {} for n in (CACHE_STORE, HISTORY_STORE, SETTINGS_STORE))

    def test_no_temp_files_left(self, tmp_path):
        JsonStore("things", tmp_path).put("a", 1)
        assert [p.name for p in tmp_path.iterdir()] == ["things.json"]

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "things.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonStore("things", tmp_path).get("a")

    def test_non_object_file(self, tmp_path):
        (tmp_path / "things.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(PersistenceError, match="not a JSON object"):
            JsonStore("things", tmp_path).all()


# ── ReadingCache ─────────────────────────────────────────────────────────


class TestReadingCache:

    def _cache(self, tmp_path, clock):
        return ReadingCache(JsonStore(CACHE_STORE, tmp_path), clock=clock)

    def test_put_then_get(self, tmp_path):
        cache = self._cache(tmp_path, FakeClock(NOW))
        entry = cache.put(date(2025, 10, 5), _make_bundle())
        assert entry.expires_at == NOW + timedelta(hours=24)

        hit = cache.get(date(2025, 10, 5))
        assert hit is not None
        assert hit.bundle.total_char_count == 10
        assert hit.bundle.source_kinds == [SourceKind.WIKIPEDIA, SourceKind.NEWS]

    def test_miss(self, tmp_path):
        assert self._cache(tmp_path, FakeClock(NOW)).get(date(2025, 10, 5)) is None

    def test_still_valid_at_expiry(self, tmp_path):
        clock = FakeClock(NOW)
        cache = self._cache(tmp_path, clock)
        cache.put(date(2025, 10, 5), _make_bundle())
        clock.now = NOW + timedelta(hours=24)
        assert cache.get(date(2025, 10, 5)) is not None

    def test_expired_entry_removed_on_read(self, tmp_path):
        clock = FakeClock(NOW)
        cache = self._cache(tmp_path, clock)
        cache.put(date(2025, 10, 5), _make_bundle())
        clock.now = NOW + timedelta(hours=24, seconds=1)
        assert cache.get(date(2025, 10, 5)) is None
        assert JsonStore(CACHE_STORE, tmp_path).all() == {}

    def test_last_write_wins(self, tmp_path):
        cache = self._cache(tmp_path, FakeClock(NOW))
        cache.put(date(2025, 10, 5), _make_bundle())
        smaller = ReadingBundle(date=date(2025, 10, 5), sections=_make_bundle().sections[:1])
        cache.put(date(2025, 10, 5), smaller)
        assert cache.get(date(2025, 10, 5)).bundle.total_char_count == 5

    def test_prune(self, tmp_path):
        clock = FakeClock(NOW - timedelta(days=10))
        cache = self._cache(tmp_path, clock)
        cache.put(date(2025, 9, 25), _make_bundle(date(2025, 9, 25)))
        clock.now = NOW
        cache.put(date(2025, 10, 5), _make_bundle())

        assert cache.prune(7) == 1
        assert set(JsonStore(CACHE_STORE, tmp_path).all()) == {"2025-10-05"}

    def test_corrupt_entry(self, tmp_path):
        JsonStore(CACHE_STORE, tmp_path).put("2025-10-05", {"bundle": "nope"})
        with pytest.raises(PersistenceError):
            self._cache(tmp_path, FakeClock(NOW)).get(date(2025, 10, 5))


# ── History and streaks ──────────────────────────────────────────────────


class TestStreak:

    def test_gap_stops_streak(self):
        records = [_record("2025-10-05"), _record("2025-10-04"), _record("2025-10-02")]
        assert calculate_streak(records, date(2025, 10, 5)) == 2

    def test_empty(self):
        assert calculate_streak([], date(2025, 10, 5)) == 0

    def test_not_read_today(self):
        records = [_record("2025-10-04"), _record("2025-10-03")]
        assert calculate_streak(records, date(2025, 10, 5)) == 0

    def test_incomplete_day_breaks_streak(self):
        records = [_record("2025-10-05"), _record("2025-10-04", completed=False), _record("2025-10-03")]
        assert calculate_streak(records, date(2025, 10, 5)) == 1

    def test_order_does_not_matter(self):
        records = [_record("2025-10-03"), _record("2025-10-05"), _record("2025-10-04")]
        assert calculate_streak(records, date(2025, 10, 5)) == 3

    def test_across_month_boundary(self):
        records = [_record("2025-10-01"), _record("2025-09-30"), _record("2025-09-29")]
        assert calculate_streak(records, date(2025, 10, 1)) == 3


class TestReadingHistory:

    def test_append_and_list_newest_first(self, tmp_path):
        history = ReadingHistory.open(tmp_path)
        history.append(_record("2025-10-03"))
        history.append(_record("2025-10-05"))
        history.append(_record("2025-10-04"))
        assert [r.date.isoformat() for r in history.list_all()] == ["2025-10-05", "2025-10-04", "2025-10-03"]

    def test_same_date_replaces(self, tmp_path):
        history = ReadingHistory.open(tmp_path)
        history.append(_record("2025-10-05"))
        history.append(HistoryRecord(date=date(2025, 10, 5), char_count=321, sources=["news"]))
        records = history.list_all()
        assert len(records) == 1
        assert records[0].char_count == 321

    def test_streak_and_has_read(self, tmp_path):
        history = ReadingHistory.open(tmp_path)
        for day in ("2025-10-05", "2025-10-04", "2025-10-02"):
            history.append(_record(day))
        assert history.streak(date(2025, 10, 5)) == 2
        assert history.has_read(date(2025, 10, 4))
        assert not history.has_read(date(2025, 10, 3))

    def test_delete(self, tmp_path):
        history = ReadingHistory.open(tmp_path)
        history.append(_record("2025-10-05"))
        assert history.delete(date(2025, 10, 5)) is True
        assert history.get(date(2025, 10, 5)) is None

    def test_persists_across_instances(self, tmp_path):
        ReadingHistory.open(tmp_path).append(_record("2025-10-05"))
        assert ReadingHistory.open(tmp_path).get(date(2025, 10, 5)).char_count == 100


# ── Settings ─────────────────────────────────────────────────────────────


class TestSettingsStore:

    def test_defaults_when_empty(self, tmp_path):
        settings = SettingsStore.open(tmp_path).get()
        assert settings == UserSettings()
        assert settings.font_size is FontSize.MEDIUM
        assert settings.max_char_count == 500

    def test_update_keeps_other_fields(self, tmp_path):
        store = SettingsStore.open(tmp_path)
        store.update({"font_size": "large"})
        updated = store.update({"dark_mode": True})
        assert updated.dark_mode is True
        assert updated.font_size is FontSize.LARGE
        assert updated.enabled_sources == UserSettings().enabled_sources

    def test_update_persists(self, tmp_path):
        SettingsStore.open(tmp_path).update({"dark_mode": True})
        assert SettingsStore.open(tmp_path).get().dark_mode is True

    def test_stored_partial_merged_with_defaults(self, tmp_path):
        JsonStore(SETTINGS_STORE, tmp_path).put(SETTINGS_KEY, {"dark_mode": True})
        settings = SettingsStore.open(tmp_path).get()
        assert settings.dark_mode is True
        assert settings.max_char_count == 500

    def test_invalid_update_rejected(self, tmp_path):
        store = SettingsStore.open(tmp_path)
        with pytest.raises(ValidationError):
            store.update({"max_char_count": "lots"})
        assert store.get().max_char_count == 500

    def test_corrupt_stored_settings(self, tmp_path):
        JsonStore(SETTINGS_STORE, tmp_path).put(SETTINGS_KEY, {"font_size": "gigantic"})
        with pytest.raises(PersistenceError):
            SettingsStore.open(tmp_path).get()

    def test_reset(self, tmp_path):
        store = SettingsStore.open(tmp_path)
        store.update({"dark_mode": True})
        assert store.reset() == UserSettings()
        assert SettingsStore.open(tmp_path).get().dark_mode is False
