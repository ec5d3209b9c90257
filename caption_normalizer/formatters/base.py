"""Abstract base formatter and output container.

WHY: A normalized transcript is exported as WebVTT for players, SRT for
editors, plain text for reading and JSON for other tools. One base class
keeps the CLI and HTTP layers format-agnostic.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type.

RULES:
- Subclasses MUST implement ``name`` and ``format()``
- ``format()`` returns a list of outputs (one item for every current format)
- ``suffix`` starts with a dot or hyphen, e.g. ``".vtt"``
- The caller prepends the identifier or source stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from caption_normalizer.core.ir import TranscriptRecord


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the stem, e.g. ``".vtt"``.
        content: The file content as text.
        media_type: MIME type for the content, e.g. ``"text/vtt"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'WebVTT'."""

    @abstractmethod
    def format(self, record: TranscriptRecord) -> list[FormatterOutput]:
        """Convert a transcript record into one or more output files."""
