"""Local output module.

Renders a daily bundle as Markdown and saves it (with the raw bundle JSON)
to output/YYYY-MM-DD/.
"""

import json
import logging
from pathlib import Path

from .models import (
    FallbackItem,
    NewsItem,
    ReadingBundle,
    Section,
    WeatherItem,
    WikipediaItem,
)

logger = logging.getLogger(__name__)


def _render_item(item, index: int) -> str:
    if isinstance(item, WikipediaItem):
        prefix = f"**{item.year}年** " if item.year is not None else ""
        return f"- {prefix}{item.text}"
    if isinstance(item, NewsItem):
        return f"{index}. {item.text}"
    if isinstance(item, WeatherItem):
        return f"{item.text}\n\n*— {item.agency}*"
    if isinstance(item, FallbackItem):
        source = f"『{item.work}』" if item.work else ""
        return f"> {item.text}\n>\n> — {item.author}{source}"
    raise TypeError(f"unknown item type: {type(item).__name__}")


def render_section(section: Section) -> str:
    lines: list[str] = [f"## {section.title}", ""]
    for i, item in enumerate(section.items, 1):
        lines.append(_render_item(item, i))
        if not isinstance(item, (WikipediaItem, NewsItem)):
            lines.append("")
    lines.append("")
    lines.append(f"<sub>{section.attribution} · {section.char_count}字</sub>")
    lines.append("")
    return "\n".join(lines)


def render_markdown(bundle: ReadingBundle, show_errors: bool = False) -> str:
    """Render a bundle as Markdown.

    Partial-failure details are only included with ``show_errors``.
    """
    lines: list[str] = [
        f"# 音読日和 - {bundle.date.isoformat()}",
        "",
        f"> {len(bundle.sections)} sections, {bundle.total_char_count} characters"
        + (" (cached)" if bundle.cached else ""),
        "",
    ]
    for section in bundle.sections:
        lines.append(render_section(section))
        lines.append("---")
        lines.append("")

    if show_errors and bundle.errors:
        lines.append("### Unavailable sources")
        lines.append("")
        for source, reason in bundle.errors.items():
            lines.append(f"- `{source}`: {reason}")
        lines.append("")

    return "\n".join(lines)


def save_bundle(bundle: ReadingBundle, output_dir: str = "output") -> Path:
    """Save a bundle to local files.

    Creates:
        output/YYYY-MM-DD/daily_reading.md   - Markdown rendering
        output/YYYY-MM-DD/bundle.json        - Raw bundle data

    Returns:
        Path to the day's output directory.
    """
    day_dir = Path(output_dir) / bundle.date.isoformat()
    day_dir.mkdir(parents=True, exist_ok=True)

    md_path = day_dir / "daily_reading.md"
    md_path.write_text(render_markdown(bundle), encoding="utf-8")
    logger.info("Saved Markdown: %s", md_path)

    json_path = day_dir / "bundle.json"
    json_path.write_text(
        json.dumps(bundle.model_dump(mode="json"), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Saved bundle: %s", json_path)

    return day_dir
