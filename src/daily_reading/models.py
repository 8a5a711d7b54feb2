"""Data models for Daily Reading."""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):
    """Where a section's text came from."""

    WIKIPEDIA = "wikipedia"
    NEWS = "news"
    WEATHER = "weather"
    FALLBACK = "fallback"


# Invocation order for the aggregator; sections keep this order in a bundle.
SOURCE_ORDER: tuple[SourceKind, ...] = (
    SourceKind.WIKIPEDIA,
    SourceKind.NEWS,
    SourceKind.WEATHER,
    SourceKind.FALLBACK,
)


class FontSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"


# ---------------------------------------------------------------------------
# Items (tagged by ``kind``)
# ---------------------------------------------------------------------------

class WikipediaItem(BaseModel):
    """A "this day in history" event."""

    kind: Literal["wikipedia"] = "wikipedia"
    text: str
    year: int | None = None
    url: str | None = None


class NewsItem(BaseModel):
    """A single news headline."""

    kind: Literal["news"] = "news"
    text: str
    url: str | None = None
    published_at: str | None = None  # as given by the feed


class WeatherItem(BaseModel):
    kind: Literal["weather"] = "weather"
    text: str
    agency: str
    type: str = "weather"


class FallbackItem(BaseModel):
    """A passage from the offline literary collection."""

    kind: Literal["fallback"] = "fallback"
    text: str
    author: str
    work: str | None = None


Item = Annotated[
    Union[WikipediaItem, NewsItem, WeatherItem, FallbackItem],
    Field(discriminator="kind"),
]


def count_chars(items: list) -> int:
    """Character count of all item texts concatenated without separators."""
    return len("".join(item.text for item in items))


# ---------------------------------------------------------------------------
# Sections and bundles
# ---------------------------------------------------------------------------

class Section(BaseModel):
    """One source's contribution to a daily bundle.

    ``char_count`` is always recomputed from the items, so it cannot drift
    from the text actually shown.
    """

    kind: SourceKind
    title: str
    items: list[Item] = []
    char_count: int = 0
    attribution: str = ""
    fetched_at: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def _sync_char_count(self) -> "Section":
        self.char_count = count_chars(self.items)
        return self


class ReadingBundle(BaseModel):
    """The full reading material for one calendar day."""

    date: date
    sections: list[Section]
    total_char_count: int = 0
    generated_at: datetime = Field(default_factory=_now)
    errors: dict[str, str] | None = None  # source -> reason, partial failures only
    cached: bool = False

    @model_validator(mode="after")
    def _sync_total(self) -> "ReadingBundle":
        self.total_char_count = sum(s.char_count for s in self.sections)
        return self

    @property
    def source_kinds(self) -> list[SourceKind]:
        return [s.kind for s in self.sections]


# ---------------------------------------------------------------------------
# Persistence records
# ---------------------------------------------------------------------------

CACHE_TTL = timedelta(hours=24)


class CacheEntry(BaseModel):
    key: date
    bundle: ReadingBundle
    stored_at: datetime
    expires_at: datetime

    @classmethod
    def create(
        cls,
        key: date,
        bundle: ReadingBundle,
        stored_at: datetime,
        ttl: timedelta = CACHE_TTL,
    ) -> "CacheEntry":
        return cls(key=key, bundle=bundle, stored_at=stored_at, expires_at=stored_at + ttl)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class HistoryRecord(BaseModel):
    """A finished (or attempted) reading day."""

    date: date
    char_count: int
    sources: list[str] | None = None
    recorded_at: datetime = Field(default_factory=_now)
    completed: bool = True


def _default_enabled_sources() -> dict[str, bool]:
    return {
        SourceKind.WIKIPEDIA.value: True,
        SourceKind.NEWS.value: True,
        SourceKind.WEATHER.value: True,
        SourceKind.FALLBACK.value: False,
    }


class UserSettings(BaseModel):
    """Per-device reading preferences."""

    font_size: FontSize = FontSize.MEDIUM
    dark_mode: bool = False
    enabled_sources: dict[str, bool] = Field(default_factory=_default_enabled_sources)
    max_char_count: int = 500
    notification_enabled: bool = False
    notification_time: str | None = None  # "HH:MM"

    def enabled_kinds(self) -> list[SourceKind]:
        """Enabled sources in aggregation order."""
        return [k for k in SOURCE_ORDER if self.enabled_sources.get(k.value, False)]
