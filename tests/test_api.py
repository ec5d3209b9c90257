"""Tests for the FastAPI caption normalization API.

WHY: Validates that every endpoint behaves correctly (happy paths,
error cases, and edge cases) and that "no captions" (404) stays distinct
from "storage is broken" (503).

HOW: Each test exercises one endpoint behavior through the FastAPI
TestClient. Every test gets its own app built by create_app() around a
TranscriptService whose durable tier lives under tmp_path, so tests
never share state or touch the real cache directory.

RULES:
- All tests use the FastAPI TestClient inside a ``with`` block (runs lifespan)
- Tests cover: happy paths, 400 bad request, 404 not found, 503 unavailable
"""

from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient

from caption_normalizer.server.app import create_app

from samples import HELLO_VTT, VIDEO_ID, YOUTUBE_VTT


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(service):
    app = create_app(service=service)
    with TestClient(app) as test_client:
        yield test_client


def _caption_file(name="captions.vtt", content=HELLO_VTT):
    data = content.encode("utf-8") if isinstance(content, str) else content
    return {"file": (name, io.BytesIO(data), "text/vtt")}


def _upload(client, video_id=VIDEO_ID, **kwargs):
    return client.post("/transcripts/{}".format(video_id), files=_caption_file(**kwargs))


# ---------------------------------------------------------------------------
# POST /transcripts/{video_id}
# ---------------------------------------------------------------------------


class TestUploadTranscript:
    """Tests for POST /transcripts/{video_id}."""

    def test_upload_returns_201(self, client):
        resp = _upload(client)
        assert resp.status_code == 201
        body = resp.json()
        assert body["video_id"] == VIDEO_ID
        assert body["source"] == "upload"
        assert body["persisted"] is True
        assert body["warning"] is None
        assert body["cues"] == [{"start": 0.0, "end": 3.0, "text": "Hello there, friend"}]

    def test_upload_persists_record(self, client, service):
        _upload(client)
        assert service.store.exists(VIDEO_ID)

    def test_upload_with_bom(self, client):
        resp = _upload(client, content=b"\xef\xbb\xbf" + HELLO_VTT.encode("utf-8"))
        assert resp.status_code == 201

    def test_reject_invalid_video_id(self, client):
        resp = _upload(client, video_id="short")
        assert resp.status_code == 400
        assert "Invalid video id" in resp.json()["detail"]

    def test_reject_unsupported_file_type(self, client):
        resp = _upload(client, name="movie.mp4")
        assert resp.status_code == 400
        assert "Unsupported file type" in resp.json()["detail"]

    def test_reject_non_utf8(self, client):
        resp = _upload(client, content=b"\xff\xfe\x00W\x00E")
        assert resp.status_code == 400

    def test_no_usable_captions(self, client, service):
        resp = _upload(client, content="WEBVTT\n\nNOTE nothing\n")
        assert resp.status_code == 404
        assert not service.store.exists(VIDEO_ID)

    def test_upload_replaces_previous(self, client):
        _upload(client)
        resp = _upload(client, content=YOUTUBE_VTT)
        assert resp.status_code == 201
        assert len(client.get("/transcripts/{}".format(VIDEO_ID)).json()["cues"]) == 2


# ---------------------------------------------------------------------------
# GET /transcripts/{video_id}
# ---------------------------------------------------------------------------


class TestGetTranscript:
    """Tests for GET /transcripts/{video_id}."""

    def test_get_after_upload(self, client):
        _upload(client)
        resp = client.get("/transcripts/{}".format(VIDEO_ID))
        assert resp.status_code == 200
        body = resp.json()
        assert body["source"] == "cache"
        assert body["cues"][0]["text"] == "Hello there, friend"
        assert body["produced_at"].endswith("+00:00")

    def test_get_missing(self, client):
        resp = client.get("/transcripts/{}".format(VIDEO_ID))
        assert resp.status_code == 404

    def test_get_corrupt_record(self, client, service):
        service.store.path_for(VIDEO_ID).write_text("{broken", encoding="utf-8")
        resp = client.get("/transcripts/{}".format(VIDEO_ID))
        assert resp.status_code == 503

    def test_get_invalid_id(self, client):
        resp = client.get("/transcripts/not-a-valid-id!")
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# GET /transcripts/{video_id}/export
# ---------------------------------------------------------------------------


class TestExportTranscript:
    """Tests for GET /transcripts/{video_id}/export."""

    def test_export_webvtt_default(self, client):
        _upload(client)
        resp = client.get("/transcripts/{}/export".format(VIDEO_ID))
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/vtt")
        assert "{}.vtt".format(VIDEO_ID) in resp.headers["content-disposition"]
        assert resp.text.startswith("WEBVTT\n")
        assert "Hello there, friend" in resp.text

    def test_export_srt(self, client):
        _upload(client)
        resp = client.get("/transcripts/{}/export".format(VIDEO_ID), params={"format": "srt"})
        assert resp.status_code == 200
        assert "00:00:00,000 --> 00:00:03,000" in resp.text

    def test_export_json(self, client):
        _upload(client)
        resp = client.get("/transcripts/{}/export".format(VIDEO_ID), params={"format": "json"})
        assert resp.status_code == 200
        assert resp.json()["identifier"] == VIDEO_ID

    def test_export_unknown_format(self, client):
        _upload(client)
        resp = client.get("/transcripts/{}/export".format(VIDEO_ID), params={"format": "docx"})
        assert resp.status_code == 400
        assert "Unknown export format" in resp.json()["detail"]

    def test_export_missing(self, client):
        resp = client.get("/transcripts/{}/export".format(VIDEO_ID))
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# DELETE /transcripts/{video_id}
# ---------------------------------------------------------------------------


class TestDeleteTranscript:
    """Tests for DELETE /transcripts/{video_id}."""

    def test_delete(self, client):
        _upload(client)
        resp = client.delete("/transcripts/{}".format(VIDEO_ID))
        assert resp.status_code == 204
        assert client.get("/transcripts/{}".format(VIDEO_ID)).status_code == 404

    def test_delete_missing(self, client):
        resp = client.delete("/transcripts/{}".format(VIDEO_ID))
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# POST /normalize
# ---------------------------------------------------------------------------


class TestNormalize:
    """Tests for POST /normalize."""

    def test_normalize(self, client, service):
        resp = client.post("/normalize", json={"vtt": HELLO_VTT})
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 1
        assert body["cues"][0] == {"start": 0.0, "end": 3.0, "text": "Hello there, friend"}
        assert not service.store.exists(VIDEO_ID)

    def test_normalize_no_captions(self, client):
        resp = client.post("/normalize", json={"vtt": "WEBVTT\n"})
        assert resp.status_code == 404

    def test_normalize_missing_field(self, client):
        resp = client.post("/normalize", json={"text": HELLO_VTT})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Volatile cache endpoints
# ---------------------------------------------------------------------------


class TestCacheEndpoints:
    """Tests for /cache/stats, /cache/preload, /cache/{video_id} and DELETE /cache."""

    def test_stats_empty(self, client):
        resp = client.get("/cache/stats")
        assert resp.status_code == 200
        assert resp.json() == {"size": 0, "max_size": 3, "entries": []}

    def test_preload_then_read(self, client):
        _upload(client)
        resp = client.post("/cache/preload", json={"video_ids": [VIDEO_ID, "aaaaaaaaaaa"]})
        assert resp.status_code == 200
        assert resp.json() == {"requested": 2, "cached": 1}

        resp = client.get("/cache/{}".format(VIDEO_ID))
        assert resp.status_code == 200
        assert resp.json()[0]["text"] == "Hello there, friend"

        stats = client.get("/cache/stats").json()
        assert stats["size"] == 1
        assert stats["entries"][0]["key"] == VIDEO_ID
        assert stats["entries"][0]["count"] == 1

    def test_preload_invalid_id(self, client):
        resp = client.post("/cache/preload", json={"video_ids": ["bad id"]})
        assert resp.status_code == 400

    def test_cached_cues_miss(self, client):
        resp = client.get("/cache/{}".format(VIDEO_ID))
        assert resp.status_code == 404

    def test_clear_cache_keeps_durable_record(self, client):
        _upload(client)
        client.post("/cache/preload", json={"video_ids": [VIDEO_ID]})
        resp = client.delete("/cache")
        assert resp.status_code == 204
        assert client.get("/cache/stats").json()["size"] == 0
        assert client.get("/transcripts/{}".format(VIDEO_ID)).status_code == 200

    def test_delete_transcript_evicts_cache(self, client):
        _upload(client)
        client.post("/cache/preload", json={"video_ids": [VIDEO_ID]})
        client.delete("/transcripts/{}".format(VIDEO_ID))
        assert client.get("/cache/{}".format(VIDEO_ID)).status_code == 404


# ---------------------------------------------------------------------------
# GET /formats, GET /health
# ---------------------------------------------------------------------------


class TestListFormats:
    """Tests for GET /formats endpoint."""

    def test_list_formats_returns_all(self, client):
        resp = client.get("/formats")
        assert resp.status_code == 200
        keys = {f["key"] for f in resp.json()}
        assert keys == {"webvtt", "srt", "plain_text", "json"}

    def test_format_info_structure(self, client):
        by_key = {f["key"]: f for f in client.get("/formats").json()}
        assert by_key["webvtt"]["suffix"] == ".vtt"
        assert by_key["srt"]["suffix"] == ".srt"
        assert by_key["webvtt"]["name"] == "WebVTT"


class TestHealthCheck:
    """Tests for GET /health endpoint."""

    def test_health_returns_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": "0.1.0"}


# ---------------------------------------------------------------------------
# OpenAPI schema validation
# ---------------------------------------------------------------------------


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_schema_generates(self, client):
        resp = client.get("/openapi.json")
        assert resp.status_code == 200
        schema = resp.json()
        assert schema["info"]["title"] == "Caption Normalizer API"
        assert schema["info"]["version"] == "0.1.0"

    def test_all_endpoints_in_schema(self, client):
        paths = client.get("/openapi.json").json()["paths"]

        assert "post" in paths["/transcripts/{video_id}"]
        assert "get" in paths["/transcripts/{video_id}"]
        assert "delete" in paths["/transcripts/{video_id}"]
        assert "/transcripts/{video_id}/export" in paths
        assert "/normalize" in paths
        assert "/cache/stats" in paths
        assert "/cache/preload" in paths
        assert "/cache/{video_id}" in paths
        assert "delete" in paths["/cache"]
        assert "/formats" in paths
        assert "/health" in paths

    def test_endpoints_have_descriptions_and_tags(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        for path, methods in paths.items():
            for method, spec in methods.items():
                if method in ("get", "post", "put", "delete", "patch"):
                    assert "summary" in spec, "Missing summary for {} {}".format(
                        method.upper(), path
                    )
                    assert "description" in spec, "Missing description for {} {}".format(
                        method.upper(), path
                    )
                    assert "tags" in spec, "Missing tags for {} {}".format(
                        method.upper(), path
                    )
