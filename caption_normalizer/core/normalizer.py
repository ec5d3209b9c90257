"""Cue normalizer: raw candidates to a clean, non-overlapping timeline.

WHY: Auto-generated caption tracks emit the same sentence fragment by
fragment as timing advances, repeat whole blocks, and overlap their
neighbours. Sentence-by-sentence playback looping needs the opposite: one
cue per stretch of speech, sorted, with no two cues sharing a moment.

HOW: Five passes run in a fixed order:
  1. suppress_duplicates()   — identical text kept once; touching re-emissions
                               widen the kept interval, distant ones are dropped
  2. coalesce_time_keys()    — one candidate per (start, end), longest text wins
  3. merge_intervals()       — sorted sweep merging anything within 0.5 s
  4. resolve_overlaps()      — clamp any residual overlap
  5. finalize()              — text cleanup, abutting-equal merge, final dedupe

RULES:
- Output is sorted by start and end[i] <= start[i+1] for every pair
- No text is ever dropped by overlap resolution (only by duplicate rules)
- Interval comparisons use integer milliseconds so re-runs are exact
- normalize(render_webvtt(normalize(x))) == normalize(x)
- normalize() never raises on malformed input; it returns [] instead
"""

from __future__ import annotations

import logging
import re
import string
from typing import Dict, Iterable, List, Sequence

from caption_normalizer.config import ADJACENCY_TOLERANCE
from caption_normalizer.core.extractor import extract_candidates
from caption_normalizer.core.ir import Cue, RawCandidate, TimeKey
from caption_normalizer.core.tokenizer import tokenize

logger = logging.getLogger(__name__)

TOLERANCE_MS = int(round(ADJACENCY_TOLERANCE * 1000))

MIN_OVERLAP_WORDS = 2
"""Shortest word run treated as an auto-caption rollover when joining texts."""

_WORD_PUNCT = string.punctuation + "…–—“”‘’"

WHITESPACE_RE = re.compile(r"\s+")
SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,;:!?])")
REPEATED_PUNCT_RE = re.compile(r"([.,;:!?])\1+")
MISSING_SPACE_AFTER_PUNCT_RE = re.compile(r"([,;:!?])(?=[^\W\d_])")


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


# =============================================================================
# Text helpers
# =============================================================================


def _word_keys(text: str) -> List[str]:
    """Lowercased words with surrounding punctuation removed, for comparison."""
    return [word.strip(_WORD_PUNCT).lower() for word in text.split()]


def _contains_run(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    """True if needle occurs as a contiguous run inside haystack."""
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(
        list(haystack[i:i + width]) == list(needle)
        for i in range(len(haystack) - width + 1)
    )


def _rollover_length(head: Sequence[str], tail: Sequence[str]) -> int:
    """Length of the longest run ending head that also starts tail."""
    longest = min(len(head), len(tail)) - 1
    for k in range(longest, MIN_OVERLAP_WORDS - 1, -1):
        if list(head[-k:]) == list(tail[:k]):
            return k
    return 0


def join_fragments(current: str, fragment: str) -> str:
    """Concatenate two cue texts without repeating the same words twice.

    WHY: Incremental auto-captions re-send the words already shown, so a
    plain "a + ' ' + b" join would read "Hello there Hello there, friend".

    HOW: Compares word sequences (case- and punctuation-insensitive):
      - fragment already inside current → current unchanged
      - current inside fragment → fragment (the fuller transcription)
      - fragment starts with current's last words → append only the new words
      - otherwise → join with a single space

    RULES:
    - Rollover detection needs at least MIN_OVERLAP_WORDS shared words
    - Original spelling and punctuation of the kept words are preserved
    """
    if not current:
        return fragment
    if not fragment:
        return current

    current_keys = _word_keys(current)
    fragment_keys = _word_keys(fragment)

    if _contains_run(current_keys, fragment_keys):
        return current
    if _contains_run(fragment_keys, current_keys):
        return fragment

    overlap = _rollover_length(current_keys, fragment_keys)
    if overlap:
        new_words = fragment.split()[overlap:]
        return " ".join(current.split() + new_words)

    return "{} {}".format(current, fragment)


def finalize_text(text: str) -> str:
    """Normalize whitespace and punctuation spacing in a final cue text.

    RULES:
    - Runs of whitespace become one space; result is trimmed
    - No space before . , ; : ! ?
    - Repeated marks collapse ("..." → ".", ",," → ",")
    - One space after , ; : ! ? when a letter follows directly
    - Idempotent: finalize_text(finalize_text(s)) == finalize_text(s)
    """
    text = WHITESPACE_RE.sub(" ", text).strip()
    text = SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = REPEATED_PUNCT_RE.sub(r"\1", text)
    text = MISSING_SPACE_AFTER_PUNCT_RE.sub(r"\1 ", text)
    return text.strip()


# =============================================================================
# Passes
# =============================================================================


def _touches(a: RawCandidate, b: RawCandidate) -> bool:
    """True if the intervals overlap or sit within the adjacency tolerance."""
    return (
        _ms(b.start) <= _ms(a.end) + TOLERANCE_MS
        and _ms(a.start) <= _ms(b.end) + TOLERANCE_MS
    )


def suppress_duplicates(candidates: Iterable[RawCandidate]) -> List[RawCandidate]:
    """Pass 1: keep each distinct text once, at its first occurrence.

    A repeat that touches the kept occurrence's interval widens it to the
    union of both; a repeat in a distant time window is dropped as an
    auto-caption artifact. Input candidates are not modified.
    """
    kept: Dict[str, RawCandidate] = {}
    ordered: List[RawCandidate] = []

    for candidate in candidates:
        existing = kept.get(candidate.text)
        if existing is None:
            copy = RawCandidate(start=candidate.start, end=candidate.end, text=candidate.text)
            kept[candidate.text] = copy
            ordered.append(copy)
        elif _touches(existing, candidate):
            existing.start = min(existing.start, candidate.start)
            existing.end = max(existing.end, candidate.end)

    return ordered


def coalesce_time_keys(candidates: Iterable[RawCandidate]) -> List[RawCandidate]:
    """Pass 2: one candidate per time key; the longest text wins, ties keep the first."""
    by_key: Dict[TimeKey, RawCandidate] = {}
    for candidate in candidates:
        key = candidate.time_key
        existing = by_key.get(key)
        if existing is None or len(candidate.text) > len(existing.text):
            by_key[key] = candidate
    # dict preserves first-insertion order of each key
    return list(by_key.values())


def merge_intervals(candidates: Iterable[RawCandidate]) -> List[Cue]:
    """Pass 3: sweep sorted candidates, merging within the adjacency tolerance.

    RULES:
    - Sort key is (start, end); the sort is stable so ties keep input order
    - A candidate merges when start <= current.end + tolerance
    - Merged end is the max of both ends; texts go through join_fragments()
    """
    ordered = sorted(candidates, key=lambda c: (c.start, c.end))
    merged: List[Cue] = []
    current = None

    for candidate in ordered:
        if current is not None and _ms(candidate.start) <= _ms(current.end) + TOLERANCE_MS:
            current.end = max(current.end, candidate.end)
            current.text = join_fragments(current.text, candidate.text)
            continue
        if current is not None:
            merged.append(current)
        current = Cue(start=candidate.start, end=candidate.end, text=candidate.text)

    if current is not None:
        merged.append(current)
    return merged


def resolve_overlaps(cues: List[Cue]) -> List[Cue]:
    """Pass 4: clamp a cue's end to the next cue's start wherever they overlap."""
    for prev, nxt in zip(cues, cues[1:]):
        if _ms(nxt.start) < _ms(prev.end):
            logger.debug(
                "Clamping cue end %.3f to %.3f to remove overlap", prev.end, nxt.start
            )
            prev.end = nxt.start
    return cues


def finalize(cues: Iterable[Cue]) -> List[Cue]:
    """Pass 5: clean texts, merge abutting equal cues, drop repeated texts.

    RULES:
    - Neighbours with equal text and end == start become one cue
    - A later cue whose text equals an earlier final cue is dropped, which
      keeps a second normalization pass from removing anything
    """
    result: List[Cue] = []
    seen: Dict[str, Cue] = {}

    for cue in cues:
        text = finalize_text(cue.text)
        if not text:
            continue

        last = result[-1] if result else None
        if last is not None and last.text == text and _ms(last.end) == _ms(cue.start):
            last.end = cue.end
            continue
        if text in seen:
            logger.debug("Dropping repeated cue text at %.3f: %r", cue.start, text)
            continue

        final = Cue(start=cue.start, end=cue.end, text=text)
        seen[text] = final
        result.append(final)

    return result


# =============================================================================
# Public API
# =============================================================================


def normalize_candidates(candidates: Iterable[RawCandidate]) -> List[Cue]:
    """Run the five normalization passes over extracted candidates.

    Args:
        candidates: Raw candidates in input order.

    Returns:
        Sorted, non-overlapping cues with cleaned text.
    """
    unique = suppress_duplicates(candidates)
    coalesced = coalesce_time_keys(unique)
    merged = merge_intervals(coalesced)
    resolved = resolve_overlaps(merged)
    return finalize(resolved)


def normalize(raw_text: str) -> List[Cue]:
    """Parse and normalize a caption track.

    WHY: This is the single public entry point of the pipeline. The HTTP
    API, CLI, service layer and durable store all call it instead of
    reaching into the individual stages.

    HOW: tokenize() → extract_candidates() → normalize_candidates().

    RULES:
    - Pure: no I/O, no shared state
    - Non-string input logs a warning and returns []
    - An empty result means "no usable captions"; the caller decides what
      that means for the user

    Args:
        raw_text: Full WebVTT-like caption text.

    Returns:
        Ordered, non-overlapping list of Cue objects.
    """
    if not isinstance(raw_text, str):
        logger.warning(
            "Ignoring caption payload of type %s (expected str)", type(raw_text).__name__
        )
        return []

    candidates = list(extract_candidates(tokenize(raw_text)))
    cues = normalize_candidates(candidates)
    logger.debug("Normalized %d candidates into %d cues", len(candidates), len(cues))
    return cues
