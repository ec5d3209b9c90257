"""SRT formatter — normalized cues as a SubRip file.

RULES:
- Sequence numbers start at 1
- Timecodes use "HH:MM:SS,mmm" (comma decimal separator)
- Text is written as-is (SRT has no entity escaping)
- Media type: "application/x-subrip"
"""

from __future__ import annotations

from typing import Iterable, List

from caption_normalizer.core.ir import Cue, TranscriptRecord
from caption_normalizer.core.timecode import format_time
from caption_normalizer.formatters.base import BaseFormatter, FormatterOutput


def render_srt(cues: Iterable[Cue]) -> str:
    """Render cues as SRT text; empty input gives an empty string."""
    blocks = [
        "{}\n{} --> {}\n{}".format(
            index,
            format_time(cue.start, separator=","),
            format_time(cue.end, separator=","),
            cue.text,
        )
        for index, cue in enumerate(cues, start=1)
    ]
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"


class SRTFormatter(BaseFormatter):
    """Formatter that produces a SubRip (.srt) caption file."""

    @property
    def name(self) -> str:
        return "SRT"

    def format(self, record: TranscriptRecord) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=".srt",
                content=render_srt(record.cues),
                media_type="application/x-subrip",
            )
        ]
