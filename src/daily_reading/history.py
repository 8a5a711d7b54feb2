"""Reading history and streaks."""

import logging
from datetime import date, timedelta

from pydantic import ValidationError

from .errors import PersistenceError
from .models import HistoryRecord
from .storage import HISTORY_STORE, JsonStore

logger = logging.getLogger(__name__)


def calculate_streak(records: list[HistoryRecord], today: date) -> int:
    """Count consecutive completed days ending at ``today``.

    Walks back one calendar day at a time over the completed records in
    descending date order and stops at the first missing day.
    """
    days = sorted({r.date for r in records if r.completed}, reverse=True)

    streak = 0
    expected = today
    for day in days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


class ReadingHistory:
    """Completed reading days, one record per date.

    Appending a record for a date that already has one replaces it.
    """

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    @classmethod
    def open(cls, data_dir: str) -> "ReadingHistory":
        return cls(JsonStore(HISTORY_STORE, data_dir))

    def append(self, record: HistoryRecord) -> None:
        key = record.date.isoformat()
        if self.store.get(key) is not None:
            logger.info("History already has %s, replacing", key)
        self.store.put(key, record.model_dump(mode="json"))
        logger.info("Recorded reading for %s (%d chars)", key, record.char_count)

    def get(self, day: date) -> HistoryRecord | None:
        raw = self.store.get(day.isoformat())
        return self._parse(raw) if raw is not None else None

    def delete(self, day: date) -> bool:
        return self.store.delete(day.isoformat())

    def list_all(self) -> list[HistoryRecord]:
        """All records, newest date first."""
        records = [self._parse(raw) for raw in self.store.all().values()]
        return sorted(records, key=lambda r: r.date, reverse=True)

    def has_read(self, day: date) -> bool:
        record = self.get(day)
        return record is not None and record.completed

    def streak(self, today: date | None = None) -> int:
        return calculate_streak(self.list_all(), today or date.today())

    @staticmethod
    def _parse(raw: dict) -> HistoryRecord:
        try:
            return HistoryRecord.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceError(f"corrupt history record: {exc}") from exc
