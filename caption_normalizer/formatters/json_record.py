"""JSON formatter — the transcript record as schema-validated JSON.

WHY: Other tools (players, loopers, notebooks) consume the normalized
timeline programmatically. The JSON is exactly what the durable store
writes, so an export can be dropped into a cache directory as-is.

HOW: Serializes TranscriptRecord.to_dict() and validates it against the
bundled transcript-record schema with jsonschema before returning.

RULES:
- Output suffix: "-transcript.json"
- Media type: "application/json"
- Invalid output raises jsonschema.ValidationError instead of being written
"""

from __future__ import annotations

import json
from typing import List

import jsonschema

from caption_normalizer.core.ir import TranscriptRecord
from caption_normalizer.formatters.base import BaseFormatter, FormatterOutput
from caption_normalizer.schemas import load_schema


class JSONRecordFormatter(BaseFormatter):
    """Formatter that produces the transcript record as JSON."""

    @property
    def name(self) -> str:
        return "Transcript JSON"

    def format(self, record: TranscriptRecord) -> List[FormatterOutput]:
        """Serialize and validate the record.

        Raises:
            jsonschema.ValidationError: If the generated JSON does not match
                the transcript-record schema.
        """
        output = record.to_dict()
        jsonschema.validate(instance=output, schema=load_schema())
        return [
            FormatterOutput(
                suffix="-transcript.json",
                content=json.dumps(output, ensure_ascii=False, indent=2) + "\n",
                media_type="application/json",
            )
        ]
