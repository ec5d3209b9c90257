"""Timestamp codec: caption time strings to float seconds and back.

WHY: Caption tracks write times as ``HH:MM:SS.mmm``, or ``MM:SS.mmm``, or
bare seconds, with a comma instead of a dot in SRT-flavoured files. The
pipeline works in float seconds; renderers need the text form back.

HOW: parse_time() splits on colons and combines 1–3 numeric groups.
format_time() rounds to whole milliseconds and formats zero-padded groups.

RULES:
- parse_time() never raises; malformed input yields 0.0
- Negative, NaN and infinite results are clamped to 0.0
- A 0.0 from a non-zero-looking input is a soft-failure signal for callers
- format_time() always emits hours, even when they exceed 99
"""

from __future__ import annotations

import math

_DIGITS = frozenset("0123456789")


def _parse_int_group(group: str) -> int:
    group = group.strip()
    if not group or not set(group) <= _DIGITS:
        raise ValueError("not an integer group: {!r}".format(group))
    return int(group)


def _parse_seconds_group(group: str) -> float:
    group = group.strip().replace(",", ".")
    whole, _, frac = group.partition(".")
    if not whole and not frac:
        raise ValueError("empty seconds group")
    if (whole and not set(whole) <= _DIGITS) or (frac and not set(frac) <= _DIGITS):
        raise ValueError("not a seconds group: {!r}".format(group))
    return float(group if whole else "0" + group)


def parse_time(value: str) -> float:
    """Convert a caption timestamp to seconds.

    WHY: Auto-caption files are noisy; a single bad timestamp must not
    abort the whole track, so the codec degrades to 0.0 instead of raising.

    HOW: Normalizes the decimal separator, splits on ":" and reads the
    groups right-to-left as seconds, minutes, hours.

    RULES:
    - Accepts "H:M:S[.fff]", "M:S[.fff]" and "S[.fff]"; "," works like "."
    - More than three groups, empty groups or non-digits → 0.0
    - Non-string input → 0.0

    Args:
        value: Timestamp text such as "00:01:02.345" or "1:02,5".

    Returns:
        Seconds as a float, never negative.
    """
    if not isinstance(value, str):
        return 0.0

    parts = value.strip().split(":")
    if not 1 <= len(parts) <= 3:
        return 0.0

    try:
        seconds = _parse_seconds_group(parts[-1])
        multiplier = 60
        for group in reversed(parts[:-1]):
            seconds += _parse_int_group(group) * multiplier
            multiplier *= 60
    except ValueError:
        return 0.0

    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return 0.0
    return seconds


def format_time(seconds: float, separator: str = ".") -> str:
    """Format seconds as ``HH:MM:SS.mmm`` (or ``HH:MM:SS,mmm`` for SRT).

    Args:
        seconds: Time in seconds; negative values are clamped to zero.
        separator: Decimal separator, "." for WebVTT and "," for SRT.

    Returns:
        Zero-padded timestamp string with millisecond precision.
    """
    if not isinstance(seconds, (int, float)) or not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, secs, separator, ms)
