"""Unit tests for all formatter modules.

WHY: Each formatter turns a transcript record into a file a player, editor
or script consumes. A malformed WebVTT breaks playback; an unescaped "&"
breaks re-normalization; invalid JSON breaks the cache import path.

HOW: Tests validate each formatter against the normalized sample tracks:
  - WebVTT: header, numbering, escaping, re-normalization
  - SRT: comma timecodes, numbering, empty input
  - Plain text: one line per cue
  - JSON: schema validation and record round trip

RULES:
- Schema validation uses the bundled transcript-record schema
"""

import json
from datetime import datetime, timezone

import jsonschema
import pytest

from caption_normalizer.core.ir import Cue, TranscriptRecord
from caption_normalizer.core.normalizer import normalize
from caption_normalizer.formatters import FORMATTERS
from caption_normalizer.formatters.base import BaseFormatter
from caption_normalizer.formatters.json_record import JSONRecordFormatter
from caption_normalizer.formatters.plain_text import PlainTextFormatter
from caption_normalizer.formatters.srt import SRTFormatter, render_srt
from caption_normalizer.formatters.webvtt import WebVTTFormatter, escape_cue_text, render_webvtt
from caption_normalizer.schemas import SCHEMA_DIR, TRANSCRIPT_RECORD_SCHEMA, load_schema

from samples import VIDEO_ID, YOUTUBE_CUES


@pytest.fixture
def record():
    return TranscriptRecord(
        identifier=VIDEO_ID,
        cues=[
            Cue(start=0.0, end=2.5, text="Fish & chips <3"),
            Cue(start=3725.5, end=3727.0, text="Second cue"),
        ],
        produced_at=datetime(2025, 8, 15, 11, 4, 28, tzinfo=timezone.utc),
    )


class TestRegistry:

    def test_all_formats_registered(self):
        assert set(FORMATTERS) == {"webvtt", "srt", "plain_text", "json"}

    @pytest.mark.parametrize("key", sorted(FORMATTERS))
    def test_each_formatter_produces_one_output(self, key, record):
        formatter = FORMATTERS[key]()
        assert isinstance(formatter, BaseFormatter)
        assert formatter.name
        outputs = formatter.format(record)
        assert len(outputs) == 1
        assert outputs[0].suffix[0] in ".-"
        assert outputs[0].media_type


class TestWebVTT:

    def test_render(self, record):
        output = WebVTTFormatter().format(record)[0]
        assert output.suffix == ".vtt"
        assert output.media_type == "text/vtt"
        assert output.content == (
            "WEBVTT\n"
            "\n"
            "1\n"
            "00:00:00.000 --> 00:00:02.500\n"
            "Fish &amp; chips &lt;3\n"
            "\n"
            "2\n"
            "01:02:05.500 --> 01:02:07.000\n"
            "Second cue\n"
        )

    def test_empty_record(self):
        assert render_webvtt([]) == "WEBVTT\n"

    def test_escape(self):
        assert escape_cue_text("a < b > c & d") == "a &lt; b &gt; c &amp; d"

    def test_output_normalizes_to_same_cues(self, record):
        assert normalize(render_webvtt(record.cues)) == record.cues

    def test_youtube_cues_survive_re_rendering(self):
        assert normalize(render_webvtt(YOUTUBE_CUES)) == YOUTUBE_CUES


class TestSRT:

    def test_render(self, record):
        output = SRTFormatter().format(record)[0]
        assert output.suffix == ".srt"
        assert output.media_type == "application/x-subrip"
        assert output.content == (
            "1\n"
            "00:00:00,000 --> 00:00:02,500\n"
            "Fish & chips <3\n"
            "\n"
            "2\n"
            "01:02:05,500 --> 01:02:07,000\n"
            "Second cue\n"
        )

    def test_empty(self):
        assert render_srt([]) == ""


class TestPlainText:

    def test_one_line_per_cue(self, record):
        output = PlainTextFormatter().format(record)[0]
        assert output.suffix == "-transcript.txt"
        assert output.content == "Fish & chips <3\nSecond cue\n"

    def test_empty(self):
        output = PlainTextFormatter().format(TranscriptRecord(identifier=VIDEO_ID))[0]
        assert output.content == ""


class TestJSONRecord:

    def test_valid_against_schema(self, record):
        output = JSONRecordFormatter().format(record)[0]
        assert output.suffix == "-transcript.json"
        assert output.media_type == "application/json"
        data = json.loads(output.content)
        jsonschema.validate(instance=data, schema=load_schema())

    def test_round_trips_to_record(self, record):
        data = json.loads(JSONRecordFormatter().format(record)[0].content)
        assert TranscriptRecord.from_dict(data) == record

    def test_invalid_record_raises(self):
        bad = TranscriptRecord(identifier=VIDEO_ID, cues=[Cue(start=0.0, end=1.0, text="")])
        with pytest.raises(jsonschema.ValidationError):
            JSONRecordFormatter().format(bad)

    def test_schema_file_is_bundled(self):
        assert (SCHEMA_DIR / TRANSCRIPT_RECORD_SCHEMA).is_file()
        assert load_schema()["title"] == "TranscriptRecord"
