"""Caption normalizer — clean, non-overlapping timelines from WebVTT captions.

WHY: Auto-generated caption tracks repeat every sentence several times as
the recognizer revises itself, wrap words in per-word timing tags, and
overlap neighbouring cues. Sentence-by-sentence playback needs one clean
cue per sentence instead. This package turns raw caption text into that
timeline and caches the result per video.

HOW: Four-stage pipeline: tokenize (blocks), extract (raw candidates),
normalize (dedupe + merge), cache (volatile and durable tiers). A thin
service, HTTP API and CLI sit on top. Each stage is independently testable.

RULES:
- The pipeline never raises on malformed caption input
- Normalized cues are sorted by start and never overlap
- Re-normalizing rendered output yields the same cues (idempotence)
"""

__version__ = "0.1.0"
