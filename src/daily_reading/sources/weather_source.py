"""Weather overview source.

Fetches the JMA (Japan Meteorological Agency) forecast overview for a
region and trims it to a single readable paragraph. Free, no API key.

Region codes: https://www.jma.go.jp/bosai/common/const/area.json
(130000 Tokyo, 270000 Osaka, 016000 Sapporo, 471000 Okinawa, ...)
"""

import logging
from datetime import date

import httpx

from ..config import WeatherConfig
from ..errors import ProviderFetchError, ProviderParseError
from ..models import Section, SourceKind, WeatherItem
from ..text import trim_overview
from .base import BaseSource

logger = logging.getLogger(__name__)

AGENCY = "気象庁"
DEFAULT_AREA = "関東地方"
SUPPORTED_TYPES = ("weather",)


class WeatherSource(BaseSource):
    """JMA forecast overview for one region."""

    kind = SourceKind.WEATHER
    name = "weather"

    def __init__(
        self,
        config: WeatherConfig | None = None,
        region: str | None = None,
        type: str | None = None,
    ) -> None:
        self.config = config or WeatherConfig()
        self.region = region or self.config.region
        self.type = type or self.config.type

    async def fetch(self, client: httpx.AsyncClient, target_date: date) -> Section:
        if self.type not in SUPPORTED_TYPES:
            raise ProviderParseError(
                self.name,
                f"unsupported type {self.type!r}; only {', '.join(SUPPORTED_TYPES)}",
            )

        url = f"{self.config.api_url.rstrip('/')}/{self.region}.json"
        logger.info("Fetching weather overview: region=%s", self.region)
        resp = await self._get(client, url)

        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderParseError(self.name, "response is not JSON") from exc
        if not isinstance(data, dict):
            raise ProviderParseError(self.name, "unexpected payload")

        overview = data.get("text") or ""
        if not overview.strip():
            raise ProviderFetchError(self.name, "forecast overview is empty")

        text = trim_overview(overview)
        area = data.get("publishingOffice") or data.get("targetArea") or DEFAULT_AREA

        section = Section(
            kind=self.kind,
            title=f"今日の天気（{area}）",
            items=[WeatherItem(text=text, agency=AGENCY, type=self.type)],
            attribution=AGENCY,
        )
        logger.info(
            "Weather: %d -> %d chars (%s)", len(overview), section.char_count, area
        )
        return section
