"""Reading sources.

Source registry: maps source kinds to their adapter classes.
Adding a source: 1) write the adapter  2) register it here  3) add it to
``models.SOURCE_ORDER``.
"""

from ..models import SourceKind
from .base import BaseSource
from .fallback_source import FallbackSource
from .news_source import NewsSource
from .weather_source import WeatherSource
from .wikipedia_source import WikipediaSource

# Source registry: kind -> class
REGISTRY: dict[SourceKind, type[BaseSource]] = {
    SourceKind.WIKIPEDIA: WikipediaSource,
    SourceKind.NEWS: NewsSource,
    SourceKind.WEATHER: WeatherSource,
    SourceKind.FALLBACK: FallbackSource,
}

__all__ = [
    "BaseSource",
    "REGISTRY",
    "FallbackSource",
    "NewsSource",
    "WeatherSource",
    "WikipediaSource",
]
