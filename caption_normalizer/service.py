"""Transcript service: owns the cache tiers and returns tagged results.

WHY: The HTTP API and CLI both need the same decisions: read the durable
record or rebuild it from fresh caption text, tell "no captions" apart
from "storage is broken", and warm the volatile tier. Putting those in
one explicitly constructed object replaces the module-level singleton
caches and exception-string matching of earlier designs.

HOW: TranscriptService receives a TranscriptStore and a SubtitleCache
(dependency injection). init()/shutdown() bracket their lifecycle.
lookup() and refresh() return Found / NotAvailable / TransientFailure so
callers pattern-match on the result type instead of catching exceptions.

RULES:
- lookup() never normalizes; it only reads the durable tier
- refresh() always normalizes and replaces the durable record
- An empty cue list is NotAvailable (404-like), never an error
- A failed save is reported via Found.persisted=False, not raised
- Concurrent refreshes of one identifier are not deduplicated
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from caption_normalizer.cache.durable import TranscriptStore, TranscriptStoreError
from caption_normalizer.cache.memory import SubtitleCache
from caption_normalizer.core.ir import (
    Cue,
    Found,
    NotAvailable,
    TranscriptRecord,
    TranscriptResult,
    TransientFailure,
)
from caption_normalizer.core.normalizer import normalize

logger = logging.getLogger(__name__)


class TranscriptService:
    """Facade over the normalization pipeline and both cache tiers."""

    def __init__(
        self,
        store: Optional[TranscriptStore] = None,
        cache: Optional[SubtitleCache] = None,
    ) -> None:
        self.store = store if store is not None else TranscriptStore()
        self.cache = cache if cache is not None else SubtitleCache()
        self._started = False

    # -- lifecycle ----------------------------------------------------------

    def init(self) -> None:
        """Create the durable directory and reset the volatile tier.

        An uncreatable cache directory is logged, not raised: lookups then
        report TransientFailure and refreshes report persisted=False.
        """
        try:
            self.store.ensure_dir()
        except OSError:
            logger.exception("Cannot create transcript cache dir %s", self.store.cache_dir)
        self.cache.init()
        self._started = True
        logger.info("Transcript service started (cache dir %s)", self.store.cache_dir)

    def shutdown(self) -> None:
        self.cache.shutdown()
        self._started = False
        logger.info("Transcript service stopped")

    @property
    def started(self) -> bool:
        return self._started

    # -- pipeline -----------------------------------------------------------

    def normalize(self, raw_text: str) -> List[Cue]:
        """Run the pure pipeline without touching either cache tier."""
        return normalize(raw_text)

    def lookup(self, identifier: str) -> TranscriptResult:
        """Return the stored transcript for identifier.

        Returns:
            Found(source="cache") on a hit with cues, NotAvailable on a miss
            or an empty record, TransientFailure if the record is unreadable.
        """
        try:
            record = self.store.load(identifier)
        except TranscriptStoreError as exc:
            logger.warning("Transcript lookup failed for %s: %s", identifier, exc)
            return TransientFailure(identifier=identifier, reason=str(exc))

        if record is None:
            return NotAvailable(identifier=identifier, reason="No stored transcript")
        if not record.cues:
            return NotAvailable(identifier=identifier, reason="Stored transcript has no cues")
        return Found(record=record, source="cache")

    def refresh(self, identifier: str, raw_text: str) -> TranscriptResult:
        """Rebuild the transcript from fresh caption text and store it.

        Returns:
            Found(source="fresh") with persisted reflecting the write, or
            NotAvailable when the caption text yields no usable cues.
        """
        cues = normalize(raw_text)
        if not cues:
            logger.info("No usable captions for %s", identifier)
            return NotAvailable(identifier=identifier, reason="No usable captions")

        record = TranscriptRecord(identifier=identifier, cues=cues)
        persisted = self.store.save(identifier, record)
        if not persisted:
            logger.warning("Returning unsaved transcript for %s", identifier)
        return Found(record=record, source="fresh", persisted=persisted)

    def delete(self, identifier: str) -> bool:
        """Remove the identifier from both tiers; True if a durable record existed."""
        self.cache.delete(identifier)
        return self.store.delete(identifier)

    # -- volatile tier ------------------------------------------------------

    def _load_cues(self, identifier: str) -> Optional[List[Cue]]:
        result = self.lookup(identifier)
        if isinstance(result, Found):
            return result.record.cues
        return None

    def cached_cues(self, identifier: str) -> Optional[List[Cue]]:
        """Cues from the volatile tier only (None on a miss)."""
        return self.cache.get(identifier)

    def preload(self, identifiers: Iterable[str]) -> int:
        """Warm the volatile tier from durable records; returns how many are cached."""
        return self.cache.preload_batch(identifiers, self._load_cues)
