"""Caption tokenizer: raw WebVTT-like text to a lazy sequence of blocks.

WHY: Caption tracks mix cue blocks with headers, comments, style sheets,
region definitions and optional cue identifiers. The extractor only cares
about timing lines and the text under them, so this module separates the
two without interpreting any text.

HOW: Line endings are normalized, then lines are walked once. A line that
matches the timing-range pattern opens a TimedBlock which swallows every
following non-blank line. Every other line becomes a SkipBlock.

RULES:
- "\\r\\n" and bare "\\r" both become "\\n" before splitting
- Hours may have 1–3 digits; fractions use "." or ","; the arrow is one or
  more dashes followed by ">"
- Cue settings after the second timestamp are kept in range_line
- Text lines are stripped; the block ends at the first blank line
- The tokenizer is a generator; nothing is read ahead beyond one block
"""

from __future__ import annotations

import re
from typing import Iterator, List

from caption_normalizer.config import SKIP_LINE_PREFIXES
from caption_normalizer.core.ir import Block, SkipBlock, TimedBlock

_TIMESTAMP = r"(?:\d+:)?\d{1,2}:\d{2}(?:[.,]\d{1,3})?"

TIMING_RANGE_RE = re.compile(r"^{ts}\s*-+>\s*{ts}".format(ts=_TIMESTAMP))
"""Matches the start of a timing line such as ``00:00:01.000 --> 00:00:02.500``."""

ARROW_RE = re.compile(r"\s*-+>\s*")


def normalize_line_endings(text: str) -> str:
    """Collapse CRLF and bare CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def is_timing_line(line: str) -> bool:
    """True if the stripped line starts with a timing range."""
    return bool(TIMING_RANGE_RE.match(line.strip()))


def is_skip_line(line: str) -> bool:
    """True for blank lines and lines opening a NOTE, STYLE or REGION section."""
    stripped = line.strip()
    return not stripped or stripped.startswith(SKIP_LINE_PREFIXES)


def tokenize(text: str) -> Iterator[Block]:
    """Split caption text into SkipBlock and TimedBlock items.

    Args:
        text: Full caption-track text.

    Yields:
        One SkipBlock per ignored line, one TimedBlock per cue block.
    """
    if not isinstance(text, str):
        return

    lines = normalize_line_endings(text).split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].strip()

        if is_skip_line(line) or not is_timing_line(line):
            yield SkipBlock(line=line)
            i += 1
            continue

        i += 1
        text_lines: List[str] = []
        while i < len(lines) and lines[i].strip():
            text_lines.append(lines[i].strip())
            i += 1

        yield TimedBlock(range_line=line, text_lines=text_lines)
