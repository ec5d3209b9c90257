"""Intermediate representation dataclasses for the caption pipeline.

WHY: Every stage of the pipeline hands data to the next one: blocks from
the tokenizer, raw candidates from the extractor, cues from the normalizer,
records for the cache. Typed dataclasses make those hand-offs explicit and
keep cache entries and transcript records out of open-ended dicts.

HOW: The dataclasses form a simple chain:
  SkipBlock / TimedBlock — tokenizer output, one per input line or cue block
  RawCandidate           — one extracted (start, end, text) triple
  Cue                    — one normalized, non-overlapping caption unit
  TranscriptRecord       — the normalized cues for one identifier
  TranscriptResult       — Found / NotAvailable / TransientFailure

RULES:
- All times are float seconds rounded to millisecond precision
- RawCandidate may be malformed or overlapping; Cue never is (within one output)
- TranscriptRecord.produced_at is a timezone-aware UTC datetime
- Records are replaced wholesale, never mutated after creation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, Union

TimeKey = Tuple[float, float]
"""Coarse identity of a candidate interval: (start, end) rounded to milliseconds."""


# ---------------------------------------------------------------------------
# Tokenizer blocks
# ---------------------------------------------------------------------------


@dataclass
class SkipBlock:
    """A line the tokenizer ignores (blank, header, NOTE/STYLE/REGION, cue id)."""

    line: str


@dataclass
class TimedBlock:
    """A timing-range line plus the text lines that follow it.

    RULES:
    - range_line matches the timing-range pattern (two timestamps and an arrow)
    - text_lines are the non-blank lines up to the next blank line, stripped
    - text_lines may be empty (the extractor drops such blocks)
    """

    range_line: str
    text_lines: List[str] = field(default_factory=list)


Block = Union[SkipBlock, TimedBlock]


# ---------------------------------------------------------------------------
# Cues
# ---------------------------------------------------------------------------


@dataclass
class RawCandidate:
    """A pre-normalization cue extracted from one timing block.

    WHY: Auto-caption tracks emit the same sentence several times as the
    recognizer revises it. Candidates carry that noise into the normalizer,
    which is the only stage allowed to decide what survives.

    RULES:
    - text is cleaned (no tags, entities decoded) and non-empty
    - start/end are rounded to millisecond precision
    - candidates are consumed by normalization and never persisted
    """

    start: float
    end: float
    text: str

    @property
    def time_key(self) -> TimeKey:
        return (round(self.start, 3), round(self.end, 3))


@dataclass
class Cue:
    """A single timed unit of caption text.

    RULES:
    - start >= 0 and end > start
    - text is non-empty, printable, whitespace-normalized
    - within one normalized sequence cues are sorted and non-overlapping
    """

    start: float
    end: float
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cue":
        return cls(
            start=float(data["start"]),
            end=float(data["end"]),
            text=str(data["text"]),
        )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class TranscriptRecord:
    """The normalized transcript for one identifier.

    WHY: The durable tier persists exactly one record per identifier and
    returns it verbatim on a hit, so the record must round-trip through JSON
    without losing the cue timeline or when it was produced.

    RULES:
    - identifier is an opaque stable key (an 11-character video id in practice)
    - cues is the full normalized sequence (may be empty for a miss)
    - produced_at is set once when the record is created
    """

    identifier: str
    cues: List[Cue] = field(default_factory=list)
    produced_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "cues": [cue.to_dict() for cue in self.cues],
            "produced_at": self.produced_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptRecord":
        produced_at = datetime.fromisoformat(data["produced_at"])
        if produced_at.tzinfo is None:
            produced_at = produced_at.replace(tzinfo=timezone.utc)
        return cls(
            identifier=str(data["identifier"]),
            cues=[Cue.from_dict(item) for item in data["cues"]],
            produced_at=produced_at,
        )


# ---------------------------------------------------------------------------
# Tagged lookup results
# ---------------------------------------------------------------------------


@dataclass
class Found:
    """A usable transcript was produced or loaded.

    RULES:
    - record.cues is never empty
    - source is "cache" (durable read) or "fresh" (just normalized)
    - persisted is False when a fresh record could not be written to disk
    """

    record: TranscriptRecord
    source: str
    persisted: bool = True


@dataclass
class NotAvailable:
    """No usable captions exist for the identifier (a 404, not a 500)."""

    identifier: str
    reason: str


@dataclass
class TransientFailure:
    """The lookup failed for a reason that may go away (e.g. unreadable store)."""

    identifier: str
    reason: str


TranscriptResult = Union[Found, NotAvailable, TransientFailure]
