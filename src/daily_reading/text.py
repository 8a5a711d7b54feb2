"""Text normalization for provider payloads.

Turns marked-up provider text into short, clean reading snippets:
HTML list items become event candidates, and long weather overviews are
cut down to a sentence or two.
"""

import html
import re
from typing import NamedTuple

MIN_CANDIDATE_LENGTH = 5

_LI_RE = re.compile(r"<li(?:\s[^>]*)?>(.*?)</li>", re.DOTALL | re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_FOOTNOTE_RE = re.compile(r"\[\d+\]")
# "1582年 - 本能寺の変"; a bare number before a dash is part of the text
_YEAR_RE = re.compile(r"^(\d+)年\s*[-–—]\s*(.+)$", re.DOTALL)
_SENTENCE_END_RE = re.compile(r"[。．]")
_WS_RE = re.compile(r"\s+")


class Candidate(NamedTuple):
    """An event snippet extracted from a list item."""

    text: str
    year: int | None = None


def clean_markup(raw: str) -> str:
    """Strip tags, decode entities and drop footnote markers like ``[3]``."""
    text = _TAG_RE.sub("", raw)
    text = html.unescape(text).replace("\xa0", " ")
    # Footnotes often arrive as &#91;1&#93;, so this runs after decoding
    text = _FOOTNOTE_RE.sub("", text)
    return text.strip()


def split_year(text: str) -> Candidate:
    """Split a leading ``<year> - `` prefix off, if there is one."""
    match = _YEAR_RE.match(text)
    if match:
        return Candidate(text=match.group(2).strip(), year=int(match.group(1)))
    return Candidate(text=text)


def extract_candidates(markup: str) -> list[Candidate]:
    """Extract event candidates from the ``<li>`` items of an HTML fragment.

    Candidates shorter than ``MIN_CANDIDATE_LENGTH`` after cleaning are
    discarded. Items without a recognizable year keep their full text and
    ``year=None``.
    """
    candidates: list[Candidate] = []
    for match in _LI_RE.finditer(markup):
        candidate = split_year(clean_markup(match.group(1)))
        if len(candidate.text) >= MIN_CANDIDATE_LENGTH:
            candidates.append(candidate)
    return candidates


def within(text: str, low: int, high: int) -> bool:
    return low <= len(text) <= high


def _squash(text: str) -> str:
    return _WS_RE.sub("", text.strip())


def _end_sentence(text: str, max_len: int) -> str:
    """Close ``text`` with 。, cutting it so the result fits in ``max_len``."""
    if len(text) + 1 > max_len:
        text = text[: max_len - 1]
    return text + "。"


def trim_overview(overview: str, max_len: int = 150, min_len: int = 50) -> str:
    """Cut a free-text forecast overview down to reading length.

    Whitespace is removed entirely (the overviews are Japanese prose). Text
    longer than ``max_len`` is reduced to its first sentence, itself capped
    at ``max_len``. Text that ends up shorter than ``min_len`` is rebuilt
    from the first two sentences of the original, under the same cap.
    """
    text = _squash(overview)

    if len(text) > max_len:
        text = _end_sentence(_SENTENCE_END_RE.split(text)[0], max_len)

    if len(text) < min_len and len(text) < len(overview):
        sentences = [s for s in _SENTENCE_END_RE.split(_squash(overview)) if s]
        text = _end_sentence("。".join(sentences[:2]), max_len)

    return text
