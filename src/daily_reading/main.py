"""Main entry point for Daily Reading.

Subcommands:
  today     build and print the day's reading bundle
  done      record the day as read
  history   list recorded days
  streak    show the current streak
  settings  show or change preferences
  prune     drop old cache entries
"""

import argparse
import logging
import sys
from datetime import date

import yaml
from pydantic import ValidationError

from .aggregator import Aggregator, fetch_daily_bundle
from .api import BadRequest, parse_date, parse_sources
from .cache import ReadingCache
from .config import AppConfig, Settings, load_config
from .errors import PersistenceError, SystemicFailure
from .history import ReadingHistory
from .models import HistoryRecord, ReadingBundle
from .output import render_markdown, save_bundle
from .preferences import SettingsStore
from .sources.fallback_source import build_section, group_for_date

logger = logging.getLogger(__name__)


def _setup_logging(level: str = "INFO") -> None:
    """Configure logging to stderr, keeping stdout for the reading itself."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _load_bundle(
    config: AppConfig,
    settings: Settings,
    day: date,
    sources: str | None,
    force: bool,
) -> ReadingBundle:
    kinds = parse_sources(sources)
    if kinds is None:
        kinds = SettingsStore.open(settings.data_dir).get().enabled_kinds()
    aggregator = Aggregator.from_config(config, settings)
    return fetch_daily_bundle(aggregator, day, kinds, force_refresh=force)


def cmd_today(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    day = parse_date(args.date)
    try:
        bundle = _load_bundle(config, settings, day, args.sources, args.force)
    except SystemicFailure as exc:
        logger.error("No reading available for %s: %s", day, exc)
        print(f"Could not fetch any source for {day}:", file=sys.stderr)
        for source, reason in exc.reasons.items():
            print(f"  - {source}: {reason}", file=sys.stderr)
        print("Run again later, or use --fallback for offline text.", file=sys.stderr)
        if not args.fallback:
            return 1
        section = build_section(group_for_date(day))
        bundle = ReadingBundle(date=day, sections=[section], errors=exc.reasons)

    print(render_markdown(bundle, show_errors=args.show_errors))
    if args.save:
        save_bundle(bundle, output_dir=args.save)
    return 0


def cmd_done(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    day = parse_date(args.date)
    entry = ReadingCache.open(settings.data_dir, config.cache.ttl_hours).get(day)
    if entry is not None:
        bundle = entry.bundle
    else:
        logger.info("No cached bundle for %s, fetching", day)
        bundle = _load_bundle(config, settings, day, None, False)

    history = ReadingHistory.open(settings.data_dir)
    history.append(
        HistoryRecord(
            date=day,
            char_count=bundle.total_char_count,
            sources=[k.value for k in bundle.source_kinds],
        )
    )
    print(f"Recorded {day}: {bundle.total_char_count} characters")
    print(f"Streak: {history.streak()} days")
    return 0


def cmd_history(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    records = ReadingHistory.open(settings.data_dir).list_all()
    if not records:
        print("No reading history yet.")
        return 0
    for record in records[: args.limit]:
        mark = "✓" if record.completed else " "
        sources = ",".join(record.sources or [])
        print(f"{mark} {record.date}  {record.char_count:>5} chars  {sources}")
    return 0


def cmd_streak(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    history = ReadingHistory.open(settings.data_dir)
    today = date.today()
    print(f"{history.streak(today)} days in a row")
    if not history.has_read(today):
        print("Not read yet today.")
    return 0


def _parse_assignments(pairs: list[str], current: dict) -> dict:
    """Turn ``key=value`` strings into a partial settings dict.

    Values are read as YAML scalars (``true``, ``18``, ``large``).
    ``enabled_sources.<kind>=<bool>`` updates one entry of that mapping.
    """
    partial: dict = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise BadRequest(f"expected key=value, got {pair!r}")
        value = yaml.safe_load(raw)
        if key.startswith("enabled_sources."):
            sources = partial.setdefault("enabled_sources", dict(current["enabled_sources"]))
            sources[key.split(".", 1)[1]] = value
        else:
            partial[key] = value
    return partial


def cmd_settings(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    store = SettingsStore.open(settings.data_dir)
    if args.reset:
        current = store.reset()
    elif args.set:
        partial = _parse_assignments(args.set, store.get().model_dump(mode="json"))
        try:
            current = store.update(partial)
        except ValidationError as exc:
            raise BadRequest(f"invalid setting: {exc}") from exc
    else:
        current = store.get()
    print(yaml.safe_dump(current.model_dump(mode="json"), allow_unicode=True, sort_keys=False), end="")
    return 0


def cmd_prune(args: argparse.Namespace, config: AppConfig, settings: Settings) -> int:
    days = args.days if args.days is not None else config.cache.prune_days
    removed = ReadingCache.open(settings.data_dir, config.cache.ttl_hours).prune(days)
    print(f"Removed {removed} cache entries")
    return 0


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daily Reading - daily read-aloud material")
    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to config.yaml (default: config.yaml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    today = sub.add_parser("today", help="Show the reading for a day")
    today.add_argument("--date", help="YYYY-MM-DD (default: today)")
    today.add_argument("--sources", help="Comma-separated, e.g. wiki,news,gov")
    today.add_argument("--force", action="store_true", help="Ignore the cache")
    today.add_argument("--fallback", action="store_true", help="Use offline text if every source fails")
    today.add_argument("--show-errors", action="store_true", help="List sources that failed")
    today.add_argument("--save", metavar="DIR", help="Also save Markdown + JSON under DIR")
    today.set_defaults(func=cmd_today)

    done = sub.add_parser("done", help="Mark a day as read")
    done.add_argument("--date", help="YYYY-MM-DD (default: today)")
    done.set_defaults(func=cmd_done)

    history = sub.add_parser("history", help="List reading history")
    history.add_argument("--limit", type=int, default=30)
    history.set_defaults(func=cmd_history)

    streak = sub.add_parser("streak", help="Show the current streak")
    streak.set_defaults(func=cmd_streak)

    prefs = sub.add_parser("settings", help="Show or change settings")
    prefs.add_argument("--set", nargs="+", metavar="KEY=VALUE")
    prefs.add_argument("--reset", action="store_true")
    prefs.set_defaults(func=cmd_settings)

    prune = sub.add_parser("prune", help="Drop old cache entries")
    prune.add_argument("--days", type=int)
    prune.set_defaults(func=cmd_prune)

    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config, settings = load_config(args.config)
    _setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        return args.func(args, config, settings)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except SystemicFailure as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except PersistenceError:
        logger.exception("Local data could not be read or written")
        return 1


def cli() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    cli()
