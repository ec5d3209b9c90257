"""Two-tier transcript cache: volatile (memory.py) and durable (durable.py).

WHY: Playback paths want cues from memory in microseconds; server paths
want normalized records that survive restarts. The two tiers serve those
different call paths and are deliberately not layered on each other.

HOW: SubtitleCache is a lock-protected, TTL- and size-bounded dict of cue
lists. TranscriptStore is a directory of one JSON file per identifier.

RULES:
- The tiers may disagree; nothing reads them together as one source
- Both tiers are explicitly constructed and injected, never module globals
"""

from caption_normalizer.cache.durable import TranscriptStore, TranscriptStoreError
from caption_normalizer.cache.memory import CacheEntry, CacheStats, SubtitleCache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "SubtitleCache",
    "TranscriptStore",
    "TranscriptStoreError",
]
