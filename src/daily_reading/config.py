"""Configuration loading from config.yaml + .env."""

from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Config sub-models (loaded from config.yaml)
# ---------------------------------------------------------------------------

DEFAULT_KEYWORDS: list[str] = [
    "日本", "天皇", "将軍", "幕府", "江戸", "東京", "京都", "大阪",
    "明治", "大正", "昭和", "平成", "令和",
    "戦国", "鎌倉", "室町", "安土", "桃山",
]


class WikipediaConfig(BaseModel):
    api_url: str = "https://ja.wikipedia.org/w/api.php"
    page_url: str = "https://ja.wikipedia.org/wiki/"
    # Events mentioning any of these are preferred over the rest
    keywords: list[str] = DEFAULT_KEYWORDS


class NewsConfig(BaseModel):
    feed_url: str = "https://www.nhk.or.jp/rss/news/cat0.xml"
    title: str = "今日のニュース"
    attribution: str = "NHKニュース"


class WeatherConfig(BaseModel):
    api_url: str = "https://www.jma.go.jp/bosai/forecast/data/overview_forecast"
    region: str = "130000"  # Tokyo
    type: str = "weather"


class AggregatorConfig(BaseModel):
    timeout: float = 15.0  # seconds, per source call


class CacheConfig(BaseModel):
    ttl_hours: int = 24
    prune_days: int = 7


class AppConfig(BaseModel):
    """Application config loaded from config.yaml."""

    wikipedia: WikipediaConfig = WikipediaConfig()
    news: NewsConfig = NewsConfig()
    weather: WeatherConfig = WeatherConfig()
    aggregator: AggregatorConfig = AggregatorConfig()
    cache: CacheConfig = CacheConfig()


# ---------------------------------------------------------------------------
# Environment settings (loaded from .env / environment variables)
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Runtime settings loaded from environment / .env file."""

    data_dir: str = "data"
    user_agent: str = "DailyReading/1.0 (+https://github.com/daily-reading)"
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DAILY_READING_",
    }


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(config_path: str = "config.yaml") -> tuple[AppConfig, Settings]:
    """Load app config from YAML and runtime settings from .env."""
    path = Path(config_path)
    if path.exists():
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        app_config = AppConfig(**data)
    else:
        app_config = AppConfig()

    settings = Settings()
    return app_config, settings
