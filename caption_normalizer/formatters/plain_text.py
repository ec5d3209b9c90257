"""Plain text formatter — one cue per line, no timecodes.

WHY: Readers want the transcript as text for review, search and quoting.
Because cues are already sentence-sized and deduplicated, one line per
cue reads naturally.

RULES:
- One line per cue, in timeline order
- No trailing whitespace; output ends with a newline unless empty
- Output suffix: "-transcript.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from caption_normalizer.core.ir import TranscriptRecord
from caption_normalizer.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces a plain text transcript."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, record: TranscriptRecord) -> List[FormatterOutput]:
        content = "\n".join(cue.text.strip() for cue in record.cues)
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=content,
                media_type="text/plain",
            )
        ]
