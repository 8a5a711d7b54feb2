"""Daily bundle aggregation.

Runs every enabled source concurrently on one event loop, waits for all of
them to settle, and merges whatever succeeded into a ReadingBundle:

  1. Cache lookup → 2. Fan out → 3. Collect sections in source order
  → 4. Cache complete bundles
"""

import asyncio
import logging
from datetime import date
from typing import Iterable

import httpx

from .cache import ReadingCache
from .config import AppConfig, Settings
from .errors import ProviderError, SystemicFailure
from .models import SOURCE_ORDER, ReadingBundle, Section, SourceKind
from .sources import REGISTRY, BaseSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0

# Used when the caller does not say; the fallback text is opt-in
DEFAULT_SOURCES: tuple[SourceKind, ...] = (
    SourceKind.WIKIPEDIA,
    SourceKind.NEWS,
    SourceKind.WEATHER,
)


def parse_kinds(names: Iterable[str | SourceKind]) -> list[SourceKind]:
    """Normalize source names into kinds, in aggregation order."""
    wanted = {SourceKind(n) for n in names}
    return [k for k in SOURCE_ORDER if k in wanted]


def build_sources(config: AppConfig) -> dict[SourceKind, BaseSource]:
    """Instantiate every registered source from config."""
    # Map config sections to source init kwargs
    source_kwargs: dict[SourceKind, dict] = {
        SourceKind.WIKIPEDIA: {"config": config.wikipedia},
        SourceKind.NEWS: {"config": config.news},
        SourceKind.WEATHER: {"config": config.weather},
    }
    return {
        kind: cls(**source_kwargs.get(kind, {}))
        for kind, cls in REGISTRY.items()
    }


class Aggregator:
    """Builds the daily bundle from the configured sources."""

    def __init__(
        self,
        sources: dict[SourceKind, BaseSource],
        cache: ReadingCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = "DailyReading/1.0",
        prune_days: int = 7,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.sources = sources
        self.cache = cache
        self.timeout = timeout
        self.user_agent = user_agent
        self.prune_days = prune_days
        self.transport = transport

    @classmethod
    def from_config(cls, config: AppConfig, settings: Settings) -> "Aggregator":
        return cls(
            sources=build_sources(config),
            cache=ReadingCache.open(settings.data_dir, ttl_hours=config.cache.ttl_hours),
            timeout=config.aggregator.timeout,
            user_agent=settings.user_agent,
            prune_days=config.cache.prune_days,
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=self.transport,
        )

    async def _run_source(
        self,
        client: httpx.AsyncClient,
        source: BaseSource,
        day: date,
    ) -> tuple[Section | None, str | None]:
        """Run one source; returns (section, None) or (None, reason). Never raises."""
        try:
            section = await asyncio.wait_for(source.fetch(client, day), self.timeout)
            return section, None
        except ProviderError as exc:
            logger.warning("✗ %s: %s", source.name, exc.message)
            return None, exc.message
        except asyncio.TimeoutError:
            logger.warning("✗ %s: timed out after %.1fs", source.name, self.timeout)
            return None, f"timed out after {self.timeout:g}s"
        except Exception as exc:
            logger.exception("✗ %s: source failed unexpectedly", source.name)
            return None, f"unexpected error: {exc!r}"

    def _cached(self, day: date, kinds: list[SourceKind]) -> ReadingBundle | None:
        if self.cache is None:
            return None
        entry = self.cache.get(day)
        if entry is None:
            return None
        if set(entry.bundle.source_kinds) != set(kinds):
            logger.info("Cached bundle for %s covers other sources, refetching", day)
            return None
        return entry.bundle.model_copy(update={"cached": True})

    async def get_daily_bundle(
        self,
        day: date | None = None,
        enabled: Iterable[str | SourceKind] | None = None,
        force_refresh: bool = False,
    ) -> ReadingBundle:
        """Build the bundle for ``day`` from the enabled sources.

        Args:
            day: Calendar day to read (default: today).
            enabled: Source kinds to use (default: wikipedia, news, weather).
            force_refresh: Skip the cache lookup.

        Returns:
            A bundle with at least one section. ``errors`` lists the sources
            that failed when only some of them did.

        Raises:
            SystemicFailure: every enabled source failed.
            ValueError: no known source is enabled.
        """
        day = day or date.today()
        kinds = parse_kinds(enabled if enabled is not None else DEFAULT_SOURCES)
        kinds = [k for k in kinds if k in self.sources]
        if not kinds:
            raise ValueError("no sources enabled")

        if not force_refresh:
            cached = self._cached(day, kinds)
            if cached is not None:
                logger.info("Using cached bundle for %s", day)
                return cached

        logger.info(
            "Aggregating %s from %d sources: %s",
            day, len(kinds), ", ".join(k.value for k in kinds),
        )
        async with self.client() as client:
            results = await asyncio.gather(
                *(self._run_source(client, self.sources[k], day) for k in kinds)
            )

        sections: list[Section] = []
        errors: dict[str, str] = {}
        for kind, (section, reason) in zip(kinds, results):
            if section is not None and section.items:
                sections.append(section)
                logger.info("✓ %s: %d items", kind.value, len(section.items))
            else:
                errors[kind.value] = reason or "no data"

        if not sections:
            logger.error("All %d sources failed for %s", len(kinds), day)
            raise SystemicFailure(errors)

        bundle = ReadingBundle(date=day, sections=sections, errors=errors or None)
        logger.info(
            "Bundle for %s: %d sections, %d chars, %d errors",
            day, len(sections), bundle.total_char_count, len(errors),
        )

        if self.cache is not None and not errors:
            self.cache.put(day, bundle)
            self.cache.prune(self.prune_days)

        return bundle


def fetch_daily_bundle(
    aggregator: Aggregator,
    day: date | None = None,
    enabled: Iterable[str | SourceKind] | None = None,
    force_refresh: bool = False,
) -> ReadingBundle:
    """Synchronous wrapper around ``Aggregator.get_daily_bundle``."""
    return asyncio.run(aggregator.get_daily_bundle(day, enabled, force_refresh))
