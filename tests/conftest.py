"""Shared test fixtures for the caption_normalizer test suite.

WHY: Many test modules need the same caption tracks and the same
tmp_path-backed caches. Centralizing them here keeps every test
independent of the real TRANSCRIPT_CACHE_DIR.

HOW: Caption texts live in samples.py (so parametrized tests can use
them at collection time) and are exposed here as fixtures. Cache
fixtures build fresh instances for every test.

RULES:
- Durable-store fixtures always live under tmp_path
- The service fixture is started and shut down around each test
"""

from __future__ import annotations

import pytest

from caption_normalizer.cache.durable import TranscriptStore
from caption_normalizer.cache.memory import SubtitleCache
from caption_normalizer.service import TranscriptService

from samples import HELLO_VTT, NOISY_VTT, VIDEO_ID, YOUTUBE_VTT


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hello_vtt() -> str:
    return HELLO_VTT


@pytest.fixture
def youtube_vtt() -> str:
    return YOUTUBE_VTT


@pytest.fixture
def noisy_vtt() -> str:
    return NOISY_VTT


@pytest.fixture
def video_id() -> str:
    return VIDEO_ID


@pytest.fixture
def store(tmp_path) -> TranscriptStore:
    """Durable store rooted in a per-test temp directory."""
    return TranscriptStore(tmp_path / "transcripts")


@pytest.fixture
def cache() -> SubtitleCache:
    return SubtitleCache(default_ttl=60.0, max_size=3)


@pytest.fixture
def service(store, cache) -> TranscriptService:
    svc = TranscriptService(store=store, cache=cache)
    svc.init()
    yield svc
    svc.shutdown()
