"""Wikipedia "this day in history" source.

Reads the events section of the Japanese Wikipedia date article
(e.g. ``10月5日``) through the MediaWiki parse API and picks a handful of
short events, preferring ones about Japan.

API docs: https://www.mediawiki.org/wiki/API:Parsing_wikitext
"""

import logging
from datetime import date
from urllib.parse import quote

import httpx

from ..config import WikipediaConfig
from ..errors import NoCandidatesError, ProviderParseError
from ..models import Section, SourceKind, WikipediaItem
from ..text import Candidate, extract_candidates, within
from .base import BaseSource

logger = logging.getLogger(__name__)

MIN_EVENT_LENGTH = 15
MAX_EVENT_LENGTH = 150
DOMESTIC_COUNT = 3
OTHER_COUNT = 2
TARGET_COUNT = 5
MIN_COUNT = 3


def _matches_keywords(text: str, keywords: list[str]) -> bool:
    return any(kw in text for kw in keywords)


def select_events(candidates: list[Candidate], keywords: list[str]) -> list[Candidate]:
    """Pick up to five events, domestic ones first.

    Takes 3 keyword matches and 2 others from the length window, backfills
    from the remaining others, and falls back to the first five raw
    candidates if that still leaves fewer than three.
    """
    in_window = [
        c for c in candidates if within(c.text, MIN_EVENT_LENGTH, MAX_EVENT_LENGTH)
    ]
    domestic = [c for c in in_window if _matches_keywords(c.text, keywords)]
    other = [c for c in in_window if not _matches_keywords(c.text, keywords)]

    selected = domestic[:DOMESTIC_COUNT] + other[:OTHER_COUNT]
    if len(selected) < TARGET_COUNT:
        needed = TARGET_COUNT - len(selected)
        selected += other[OTHER_COUNT:OTHER_COUNT + needed]

    if len(selected) < MIN_COUNT:
        selected = candidates[:TARGET_COUNT]

    logger.debug(
        "Wikipedia: %d candidates, %d domestic, %d other -> %d selected",
        len(candidates), len(domestic), len(other), len(selected),
    )
    return selected


class WikipediaSource(BaseSource):
    """Japanese Wikipedia date-article events."""

    kind = SourceKind.WIKIPEDIA
    name = "wikipedia"

    def __init__(self, config: WikipediaConfig | None = None) -> None:
        self.config = config or WikipediaConfig()

    @staticmethod
    def page_title(target_date: date) -> str:
        return f"{target_date.month}月{target_date.day}日"

    async def fetch(self, client: httpx.AsyncClient, target_date: date) -> Section:
        title = self.page_title(target_date)
        params = {
            "action": "parse",
            "page": title,
            "format": "json",
            "prop": "text",
            "section": "1",  # できごと
            "origin": "*",
        }
        logger.info("Fetching Wikipedia events: %s", title)
        resp = await self._get(client, self.config.api_url, params=params)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderParseError(self.name, "response is not JSON") from exc

        if not isinstance(data, dict):
            raise ProviderParseError(self.name, "unexpected payload")
        error = data.get("error")
        if error:
            info = error.get("info", "unknown") if isinstance(error, dict) else error
            raise ProviderParseError(self.name, f"API error: {info}")

        parsed = data.get("parse")
        text = parsed.get("text") if isinstance(parsed, dict) else None
        # formatversion=1 wraps the HTML as {"*": html}; formatversion=2 gives it bare
        markup = text.get("*") if isinstance(text, dict) else text
        if not markup or not isinstance(markup, str):
            raise ProviderParseError(self.name, "no content found")

        candidates = extract_candidates(markup)
        if not candidates:
            raise NoCandidatesError(self.name, f"no events found for {title}")

        page_url = self.config.page_url + quote(title)
        items = [
            WikipediaItem(text=c.text, year=c.year, url=page_url)
            for c in select_events(candidates, self.config.keywords)
        ]

        section = Section(
            kind=self.kind,
            title=f"今日は何の日（{title}）",
            items=items,
            attribution="Wikipedia日本語版（CC-BY-SA）",
        )
        logger.info("Wikipedia: %d events, %d chars", len(items), section.char_count)
        return section
