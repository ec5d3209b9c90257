"""Core caption pipeline: IR, timestamp codec, tokenizer, extractor, normalizer.

WHY: The core package is the only part of the project with real
algorithmic content. Everything else (cache, service, HTTP, CLI) calls
normalize() and works with the Cue and TranscriptRecord dataclasses.

HOW: ir.py defines the data structures, timecode.py converts timestamps,
tokenizer.py splits caption text into blocks, extractor.py turns blocks
into raw candidates and normalizer.py merges candidates into cues.

RULES:
- IR dataclasses are the contract between stages
- The pipeline is pure: no I/O, no global mutable state
- normalize() is the public entry point
"""

from caption_normalizer.core.ir import Cue, RawCandidate, TranscriptRecord
from caption_normalizer.core.normalizer import normalize, normalize_candidates

__all__ = [
    "Cue",
    "RawCandidate",
    "TranscriptRecord",
    "normalize",
    "normalize_candidates",
]
