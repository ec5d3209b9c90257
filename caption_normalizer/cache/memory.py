"""Volatile subtitle cache: bounded, TTL-evicting, in-process cue storage.

WHY: Playback wants a video's cues instantly when the user switches back
to a video watched a minute ago. Re-reading and re-parsing the durable
record every time is wasteful; a small in-memory map is enough, as long
as it stays bounded in both size and age.

HOW: Three pieces work together:
  CacheEntry    — cues plus insertion time and TTL
  CacheStats    — snapshot of size and per-entry age for monitoring
  SubtitleCache — lock-protected dict with lazy expiry, sweep-on-write,
                  oldest-insertion eviction and loader-based preloading

RULES:
- All public methods that touch the map acquire self._lock
- Expired entries are misses even before the sweep physically removes them
- set() evicts exactly the oldest-inserted entry when the map is full
- Re-setting an existing key moves it to the newest position
- Cue lists are deep-copied on the way in and on the way out
- Default TTL is 30 minutes, default capacity 50 entries
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from caption_normalizer.config import SUBTITLE_CACHE_MAX_SIZE, SUBTITLE_CACHE_TTL_SECONDS
from caption_normalizer.core.ir import Cue

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = SUBTITLE_CACHE_TTL_SECONDS
DEFAULT_MAX_SIZE = SUBTITLE_CACHE_MAX_SIZE

CueLoader = Callable[[str], Optional[List[Cue]]]
"""Callable that produces cues for a key, or None when there are none."""


@dataclass
class CacheEntry:
    """One cached cue list.

    RULES:
    - cues: private copy, never handed out directly
    - inserted_at: epoch seconds when the entry was stored
    - ttl: lifetime in seconds; expired when now - inserted_at > ttl
    """

    cues: List[Cue]
    inserted_at: float
    ttl: float

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now - self.inserted_at > self.ttl


@dataclass
class CacheEntryStats:
    """Monitoring view of one entry."""

    key: str
    count: int
    age: float
    ttl: float


@dataclass
class CacheStats:
    """Monitoring view of the whole cache."""

    size: int
    max_size: int
    entries: List[CacheEntryStats] = field(default_factory=list)


class SubtitleCache:
    """Thread-safe, size- and time-bounded map from key to cue list.

    WHY: Request handlers, the periodic sweep and preloading can all touch
    the cache at once, and set/get/cleanup each read-then-write the same
    dict. A single lock around every operation keeps it consistent.

    HOW: Entries live in a plain dict, which preserves insertion order;
    the first key is always the oldest insertion. Expiry is checked lazily
    on read and eagerly on write and on stats().

    RULES:
    - get()/has() return a miss for expired entries and remove them
    - set() sweeps expired entries before inserting
    - stats() sweeps first so it never reports expired entries
    - preload() never raises; loader failures are logged
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1, got {}".format(max_size))
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive, got {}".format(default_ttl))
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.default_ttl = default_ttl
        self.max_size = max_size

    # -- lifecycle ----------------------------------------------------------

    def init(self) -> None:
        """Prepare the cache for use (starts empty)."""
        self.clear()
        logger.info(
            "Subtitle cache ready (max_size=%d, default_ttl=%.0fs)",
            self.max_size, self.default_ttl,
        )

    def shutdown(self) -> None:
        """Drop all entries; the cache is volatile by definition."""
        self.clear()
        logger.info("Subtitle cache shut down")

    # -- core operations ----------------------------------------------------

    def set(self, key: str, cues: List[Cue], ttl: Optional[float] = None) -> None:
        """Store a copy of cues under key.

        RULES:
        - ttl=None uses default_ttl; an explicit ttl must be positive
        - Expired entries are swept first
        - When full, exactly the oldest-inserted entry is evicted
        """
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive, got {}".format(ttl))
        entry = CacheEntry(
            cues=copy.deepcopy(list(cues)),
            inserted_at=time.time(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

        with self._lock:
            self._sweep_locked(entry.inserted_at)
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_size:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                logger.debug("Evicted oldest subtitle cache entry %s", oldest_key)
            self._entries[key] = entry

    def get(self, key: str) -> Optional[List[Cue]]:
        """Return a copy of the cues for key, or None if missing or expired."""
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                return None
            return copy.deepcopy(entry.cues)

    def has(self, key: str) -> bool:
        """True if key holds a live (non-expired) entry."""
        with self._lock:
            return self._live_entry_locked(key) is not None

    def delete(self, key: str) -> bool:
        """Remove key; returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries and return how many were removed."""
        with self._lock:
            removed = self._sweep_locked(time.time())
        if removed:
            logger.info("Swept %d expired subtitle cache entries", removed)
        return removed

    def stats(self) -> CacheStats:
        """Snapshot of the live entries, oldest insertion first."""
        now = time.time()
        with self._lock:
            self._sweep_locked(now)
            entries = [
                CacheEntryStats(
                    key=key,
                    count=len(entry.cues),
                    age=now - entry.inserted_at,
                    ttl=entry.ttl,
                )
                for key, entry in self._entries.items()
            ]
            return CacheStats(size=len(self._entries), max_size=self.max_size, entries=entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # -- preloading ---------------------------------------------------------

    def preload(self, key: str, loader: CueLoader) -> bool:
        """Warm the cache for key using loader, unless it is already cached.

        WHY: Loading the next likely video ahead of time makes switching
        instant, but a failed preload must never break the caller.

        RULES:
        - Returns True if the key is cached afterwards
        - Loader exceptions are logged and swallowed (returns False)
        - A loader returning None or [] caches nothing
        """
        if self.has(key):
            return True
        try:
            cues = loader(key)
        except Exception:
            logger.warning("Preloading subtitles for %s failed", key, exc_info=True)
            return False
        if not cues:
            return False
        self.set(key, cues)
        return True

    def preload_batch(self, keys: Iterable[str], loader: CueLoader) -> int:
        """Preload several keys; returns how many are cached afterwards.

        Partial failures do not stop the remaining keys.
        """
        return sum(1 for key in keys if self.preload(key, loader))

    # -- internals (caller holds the lock) -----------------------------------

    def _live_entry_locked(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._entries[key]
            return None
        return entry

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)
