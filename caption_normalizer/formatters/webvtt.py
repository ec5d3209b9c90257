"""WebVTT formatter — re-serializes normalized cues as a caption track.

WHY: Players consume WebVTT directly, and the normalizer's idempotence
guarantee is stated against this renderer: feeding its output back into
normalize() must give the same cues.

HOW: Writes the "WEBVTT" header, then one numbered block per cue with
``HH:MM:SS.mmm --> HH:MM:SS.mmm`` and the escaped text.

RULES:
- "&", "<" and ">" are escaped so the extractor decodes them back exactly
- Cue identifiers are 1-based sequence numbers
- Blocks are separated by one blank line; output ends with a newline
- Media type: "text/vtt"
"""

from __future__ import annotations

from typing import Iterable, List

from caption_normalizer.core.ir import Cue, TranscriptRecord
from caption_normalizer.core.timecode import format_time
from caption_normalizer.formatters.base import BaseFormatter, FormatterOutput


def escape_cue_text(text: str) -> str:
    """Escape the characters WebVTT cue text cannot carry literally."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_webvtt(cues: Iterable[Cue]) -> str:
    """Render cues as a WebVTT document."""
    blocks: List[str] = ["WEBVTT"]
    for index, cue in enumerate(cues, start=1):
        blocks.append("{}\n{} --> {}\n{}".format(
            index,
            format_time(cue.start),
            format_time(cue.end),
            escape_cue_text(cue.text),
        ))
    return "\n\n".join(blocks) + "\n"


class WebVTTFormatter(BaseFormatter):
    """Formatter that produces a WebVTT caption file."""

    @property
    def name(self) -> str:
        return "WebVTT"

    def format(self, record: TranscriptRecord) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=".vtt",
                content=render_webvtt(record.cues),
                media_type="text/vtt",
            )
        ]
