"""News headline source.

Reads the NHK main-news RSS feed and keeps a few headlines of readable
length. Fetched with httpx, parsed with feedparser.
"""

import logging
from datetime import date

import feedparser
import httpx

from ..config import NewsConfig
from ..errors import NoCandidatesError, ProviderParseError
from ..models import NewsItem, Section, SourceKind
from ..text import within
from .base import BaseSource

logger = logging.getLogger(__name__)

MIN_HEADLINE_LENGTH = 10
MAX_HEADLINE_LENGTH = 60
TARGET_COUNT = 5
MAX_COUNT = 7
# How far down the feed each pass looks
STRICT_SCAN = 7
RELAXED_SCAN = 10


def _to_item(entry: dict) -> NewsItem:
    return NewsItem(
        text=entry.get("title", "").strip(),
        url=entry.get("link") or None,
        published_at=entry.get("published") or None,
    )


def select_headlines(entries: list[dict]) -> list[NewsItem]:
    """Pick 5 well-sized headlines, relaxing the length window up to 7 if short."""
    items: list[NewsItem] = []

    for entry in entries[:STRICT_SCAN]:
        item = _to_item(entry)
        if within(item.text, MIN_HEADLINE_LENGTH, MAX_HEADLINE_LENGTH):
            items.append(item)
        if len(items) >= TARGET_COUNT:
            break

    if len(items) < TARGET_COUNT:
        seen = {item.text for item in items}
        for entry in entries[:RELAXED_SCAN]:
            item = _to_item(entry)
            if item.text and item.text not in seen:
                items.append(item)
                seen.add(item.text)
            if len(items) >= MAX_COUNT:
                break

    return items


class NewsSource(BaseSource):
    """NHK news headlines."""

    kind = SourceKind.NEWS
    name = "news"

    def __init__(self, config: NewsConfig | None = None) -> None:
        self.config = config or NewsConfig()

    async def fetch(self, client: httpx.AsyncClient, target_date: date) -> Section:
        # The feed only ever has today's headlines; target_date is not used
        logger.info("Fetching RSS: %s", self.config.feed_url)
        resp = await self._get(client, self.config.feed_url)
        feed = feedparser.parse(resp.content)

        if feed.bozo and not feed.entries:
            raise ProviderParseError(
                self.name, f"invalid feed: {feed.get('bozo_exception')}"
            )

        items = select_headlines(feed.entries)
        if not items:
            raise NoCandidatesError(self.name, "no headlines in feed")

        section = Section(
            kind=self.kind,
            title=self.config.title,
            items=items,
            attribution=self.config.attribution,
        )
        logger.info("News: %d headlines, %d chars", len(items), section.char_count)
        return section
