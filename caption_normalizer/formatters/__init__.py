"""Output formatter registry.

WHY: The CLI and HTTP layers look formatters up by key. A central dict
makes adding a format one import and one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["webvtt"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and query params)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from caption_normalizer.formatters.json_record import JSONRecordFormatter
from caption_normalizer.formatters.plain_text import PlainTextFormatter
from caption_normalizer.formatters.srt import SRTFormatter
from caption_normalizer.formatters.webvtt import WebVTTFormatter

if TYPE_CHECKING:
    from caption_normalizer.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "webvtt": WebVTTFormatter,
    "srt": SRTFormatter,
    "plain_text": PlainTextFormatter,
    "json": JSONRecordFormatter,
}
