"""Cue extractor: timed blocks to raw (start, end, text) candidates.

WHY: YouTube auto-captions wrap every word in timing and class tags
(``<00:00:01.234><c> word</c>``), escape punctuation as HTML entities and
often carry unusable end times. The normalizer needs plain text and a
sane interval for every block before it can compare them.

HOW: For each TimedBlock the range line is split on the arrow and both
sides go through the timestamp codec. Text lines are joined, tags are
stripped, the five standard entities decoded and whitespace collapsed.

RULES:
- end <= start (missing/zero end) is replaced by start + FALLBACK_CUE_DURATION
- Cue settings after the end timestamp are ignored
- "&amp;" is decoded last, so "&amp;lt;" becomes the literal text "&lt;"
- Blocks whose cleaned text is empty produce no candidate
- start and end are rounded to millisecond precision
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional, Tuple

from caption_normalizer.config import FALLBACK_CUE_DURATION, TIME_PRECISION
from caption_normalizer.core.ir import Block, RawCandidate, TimedBlock
from caption_normalizer.core.timecode import parse_time
from caption_normalizer.core.tokenizer import ARROW_RE

TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"\s+")

# Order matters: "&amp;" must come last.
_ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&apos;", "'"),
    ("&amp;", "&"),
)


def strip_tags(s: str) -> str:
    """Remove HTML-like tags, including per-word timing tags."""
    return TAG_RE.sub("", s)


def decode_entities(s: str) -> str:
    """Decode the five standard HTML entities."""
    for entity, char in _ENTITIES:
        s = s.replace(entity, char)
    return s


def clean_text(text: str) -> str:
    """Strip tags, decode entities and collapse whitespace.

    Tags are removed before entities are decoded, so an escaped "&lt;b&gt;"
    survives as the visible text "<b>".
    """
    text = decode_entities(strip_tags(text))
    return WHITESPACE_RE.sub(" ", text).strip()


def parse_range_line(range_line: str) -> Optional[Tuple[float, float]]:
    """Split a timing line into (start, end) seconds with the fallback policy.

    Returns:
        (start, end) rounded to milliseconds, or None if the line has no arrow.
    """
    parts = ARROW_RE.split(range_line.strip(), maxsplit=1)
    if len(parts) < 2:
        return None

    start_text = parts[0].strip()
    end_fields = parts[1].split()
    end_text = end_fields[0] if end_fields else ""

    start = parse_time(start_text)
    end = parse_time(end_text)
    if end <= start:
        end = start + FALLBACK_CUE_DURATION

    return round(start, TIME_PRECISION), round(end, TIME_PRECISION)


def extract_candidate(block: TimedBlock) -> Optional[RawCandidate]:
    """Build one RawCandidate from a TimedBlock, or None if it has no text."""
    times = parse_range_line(block.range_line)
    if times is None:
        return None

    text = clean_text(" ".join(block.text_lines))
    if not text:
        return None

    start, end = times
    return RawCandidate(start=start, end=end, text=text)


def extract_candidates(blocks: Iterable[Block]) -> Iterator[RawCandidate]:
    """Yield a RawCandidate for every TimedBlock that carries text.

    Args:
        blocks: Tokenizer output; SkipBlock items are ignored.

    Yields:
        Candidates in input order.
    """
    for block in blocks:
        if not isinstance(block, TimedBlock):
            continue
        candidate = extract_candidate(block)
        if candidate is not None:
            yield candidate
