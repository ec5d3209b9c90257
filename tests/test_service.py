"""Tests for TranscriptService: tagged results and cache-tier wiring."""

from __future__ import annotations

from unittest.mock import patch

from caption_normalizer.cache.durable import TranscriptStore
from caption_normalizer.cache.memory import SubtitleCache
from caption_normalizer.core.ir import Found, NotAvailable, TranscriptRecord, TransientFailure
from caption_normalizer.service import TranscriptService

from samples import HELLO_CUES, HELLO_VTT, VIDEO_ID, YOUTUBE_CUES, YOUTUBE_VTT


class TestLifecycle:

    def test_init_creates_cache_dir(self, tmp_path):
        svc = TranscriptService(store=TranscriptStore(tmp_path / "t"), cache=SubtitleCache())
        assert not svc.started
        svc.init()
        assert svc.started
        assert (tmp_path / "t").is_dir()
        svc.shutdown()
        assert not svc.started

    def test_init_survives_uncreatable_dir(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        svc = TranscriptService(store=TranscriptStore(blocker / "t"), cache=SubtitleCache())
        svc.init()
        assert svc.started

    def test_shutdown_clears_volatile_tier(self, service):
        service.cache.set(VIDEO_ID, HELLO_CUES)
        service.shutdown()
        assert len(service.cache) == 0


class TestLookupAndRefresh:

    def test_refresh_returns_fresh_found(self, service):
        result = service.refresh(VIDEO_ID, HELLO_VTT)
        assert isinstance(result, Found)
        assert result.source == "fresh"
        assert result.persisted is True
        assert result.record.cues == HELLO_CUES

    def test_lookup_after_refresh(self, service):
        service.refresh(VIDEO_ID, HELLO_VTT)
        result = service.lookup(VIDEO_ID)
        assert isinstance(result, Found)
        assert result.source == "cache"
        assert result.record.cues == HELLO_CUES

    def test_lookup_miss(self, service):
        result = service.lookup(VIDEO_ID)
        assert isinstance(result, NotAvailable)
        assert result.identifier == VIDEO_ID

    def test_lookup_empty_record(self, service):
        service.store.save(VIDEO_ID, TranscriptRecord(identifier=VIDEO_ID, cues=[]))
        assert isinstance(service.lookup(VIDEO_ID), NotAvailable)

    def test_lookup_corrupt_record_is_transient(self, service):
        service.store.path_for(VIDEO_ID).write_text("{broken", encoding="utf-8")
        result = service.lookup(VIDEO_ID)
        assert isinstance(result, TransientFailure)
        assert "invalid" in result.reason

    def test_refresh_without_captions(self, service):
        result = service.refresh(VIDEO_ID, "WEBVTT\n\nNOTE nothing here\n")
        assert isinstance(result, NotAvailable)
        assert not service.store.exists(VIDEO_ID)

    def test_refresh_replaces_record(self, service):
        service.refresh(VIDEO_ID, HELLO_VTT)
        service.refresh(VIDEO_ID, YOUTUBE_VTT)
        assert service.lookup(VIDEO_ID).record.cues == YOUTUBE_CUES

    def test_refresh_with_failed_save(self, service):
        with patch.object(service.store, "save", return_value=False):
            result = service.refresh(VIDEO_ID, HELLO_VTT)
        assert isinstance(result, Found)
        assert result.persisted is False
        assert result.record.cues == HELLO_CUES

    def test_normalize_touches_no_tier(self, service):
        assert service.normalize(HELLO_VTT) == HELLO_CUES
        assert not service.store.exists(VIDEO_ID)
        assert len(service.cache) == 0

    def test_delete_clears_both_tiers(self, service):
        service.refresh(VIDEO_ID, HELLO_VTT)
        service.preload([VIDEO_ID])
        assert service.delete(VIDEO_ID) is True
        assert service.cached_cues(VIDEO_ID) is None
        assert isinstance(service.lookup(VIDEO_ID), NotAvailable)
        assert service.delete(VIDEO_ID) is False


class TestPreload:

    def test_preload_from_durable_tier(self, service):
        service.refresh(VIDEO_ID, HELLO_VTT)
        assert service.cached_cues(VIDEO_ID) is None
        assert service.preload([VIDEO_ID]) == 1
        assert service.cached_cues(VIDEO_ID) == HELLO_CUES

    def test_preload_skips_missing_and_corrupt(self, service):
        service.refresh("aaaaaaaaaaa", HELLO_VTT)
        service.store.path_for("ccccccccccc").write_text("garbage", encoding="utf-8")
        assert service.preload(["aaaaaaaaaaa", "bbbbbbbbbbb", "ccccccccccc"]) == 1
        assert service.cache.has("aaaaaaaaaaa")
        assert not service.cache.has("bbbbbbbbbbb")
        assert not service.cache.has("ccccccccccc")
