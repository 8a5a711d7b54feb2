"""Request handlers.

Framework-free equivalents of the reading endpoints: each takes plain
query values and returns ``(status, payload)`` ready to be serialized as
JSON by whatever HTTP layer sits in front.

  daily reading:  ?date=YYYY-MM-DD&sources=wiki,news,gov&force=true
  single source:  ?date=... (wikipedia), ?region=130000&type=weather (weather)
"""

import asyncio
import logging
import re
from datetime import date
from typing import Any

from .aggregator import Aggregator
from .errors import NoCandidatesError, ProviderError, SystemicFailure
from .models import Section, SourceKind
from .sources import WeatherSource
from .sources.weather_source import SUPPORTED_TYPES

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, Any]]

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Short names accepted in the ``sources`` query value
SOURCE_ALIASES: dict[str, SourceKind] = {
    "wiki": SourceKind.WIKIPEDIA,
    "gov": SourceKind.WEATHER,
    "government": SourceKind.WEATHER,
    **{k.value: k for k in SourceKind},
}


class BadRequest(ValueError):
    pass


def parse_date(value: str | None) -> date:
    """Parse a ``YYYY-MM-DD`` query value; empty means today."""
    if not value:
        return date.today()
    if not _DATE_RE.match(value):
        raise BadRequest("invalid date format, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise BadRequest(f"invalid date: {value}") from exc


def parse_sources(value: str | None) -> list[SourceKind] | None:
    """Parse a comma-separated source list; None means the default set."""
    if value is None:
        return None
    kinds: list[SourceKind] = []
    for name in (part.strip().lower() for part in value.split(",")):
        if not name:
            continue
        if name not in SOURCE_ALIASES:
            raise BadRequest(f"unknown source: {name}")
        kinds.append(SOURCE_ALIASES[name])
    if not kinds:
        raise BadRequest("no sources requested")
    return kinds


def _error(status: int, error: str, **extra: Any) -> Response:
    return status, {"error": error, **extra}


def handle_daily_reading(
    aggregator: Aggregator,
    date_value: str | None = None,
    sources: str | None = None,
    force: bool = False,
) -> Response:
    """Build today's (or the given day's) bundle.

    200 with the bundle; 400 for bad parameters; 503 when every source
    failed (with per-source ``errors``); 500 for anything unexpected.
    """
    try:
        day = parse_date(date_value)
        kinds = parse_sources(sources)
        logger.info("Daily reading request: date=%s sources=%s force=%s", day, sources, force)
        bundle = asyncio.run(aggregator.get_daily_bundle(day, kinds, force_refresh=force))
    except BadRequest as exc:
        return _error(400, str(exc))
    except SystemicFailure as exc:
        return _error(
            503,
            "all sources failed",
            details="retry later or read the fallback text",
            errors=exc.reasons,
        )
    except Exception as exc:
        logger.exception("Daily reading request failed")
        return _error(500, "could not build the daily reading", details=str(exc))

    return 200, bundle.model_dump(mode="json", exclude_none=True)


async def _fetch_one(
    aggregator: Aggregator,
    kind: SourceKind,
    day: date,
    region: str | None,
    type: str | None,
) -> Section:
    source = aggregator.sources[kind]
    if isinstance(source, WeatherSource) and (region or type):
        source = WeatherSource(source.config, region=region, type=type)
    async with aggregator.client() as client:
        return await asyncio.wait_for(source.fetch(client, day), aggregator.timeout)


def handle_source(
    aggregator: Aggregator,
    kind: str,
    date_value: str | None = None,
    region: str | None = None,
    type: str | None = None,
) -> Response:
    """Run a single source as its own request.

    200 with the section; 400 for bad parameters; 404 when the provider had
    nothing usable; 500 on fetch or parse failures.
    """
    try:
        source_kind = SOURCE_ALIASES.get(kind.lower())
        if source_kind is None or source_kind not in aggregator.sources:
            raise BadRequest(f"unknown source: {kind}")
        if type is not None and type not in SUPPORTED_TYPES:
            raise BadRequest(f"unsupported type {type!r}; only {', '.join(SUPPORTED_TYPES)}")
        day = parse_date(date_value)
        section = asyncio.run(_fetch_one(aggregator, source_kind, day, region, type))
    except BadRequest as exc:
        return _error(400, str(exc))
    except NoCandidatesError as exc:
        return _error(404, "no data found", details=exc.message)
    except ProviderError as exc:
        return _error(500, f"could not fetch {exc.source}", details=exc.message)
    except asyncio.TimeoutError:
        return _error(500, f"could not fetch {kind}", details="timed out")
    except Exception as exc:
        logger.exception("Source request failed: %s", kind)
        return _error(500, f"could not fetch {kind}", details=str(exc))

    return 200, section.model_dump(mode="json", exclude_none=True)
