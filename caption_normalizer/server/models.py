"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Each endpoint has its own response model; conversion helpers turn
the core dataclasses (Cue, TranscriptRecord, CacheStats) into them.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details (paths, locks)
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from caption_normalizer.cache.memory import CacheStats
from caption_normalizer.core.ir import Cue, TranscriptRecord


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class NormalizeRequest(BaseModel):
    """Raw caption text to normalize without storing anything."""

    vtt: str = Field(description="Full WebVTT caption text, header included.")


class PreloadRequest(BaseModel):
    """Identifiers whose stored transcripts should be loaded into memory."""

    video_ids: List[str] = Field(
        description="Video ids to preload into the volatile cache.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CueModel(BaseModel):
    """One normalized caption cue."""

    start: float = Field(description="Start offset in seconds.")
    end: float = Field(description="End offset in seconds (always after start).")
    text: str = Field(description="Cleaned caption text.")

    @classmethod
    def from_cue(cls, cue: Cue) -> "CueModel":
        return cls(start=cue.start, end=cue.end, text=cue.text)


class NormalizeResponse(BaseModel):
    """Result of a stateless normalization request."""

    count: int = Field(description="Number of cues produced.")
    cues: List[CueModel] = Field(description="Ordered, non-overlapping cues.")


class TranscriptResponse(BaseModel):
    """A stored or freshly computed transcript.

    RULES:
    - source is "cache" for durable reads, "upload" for fresh uploads
    - persisted is False if a fresh transcript could not be saved
    """

    video_id: str = Field(description="Video identifier.")
    cues: List[CueModel] = Field(description="Ordered, non-overlapping cues.")
    produced_at: str = Field(description="When the transcript was normalized (ISO-8601, UTC).")
    source: str = Field(description="Where the transcript came from: 'cache' or 'upload'.")
    persisted: bool = Field(
        default=True,
        description="Whether the transcript is stored in the durable cache.",
    )
    warning: Optional[str] = Field(
        default=None,
        description="Non-fatal problem, e.g. the durable cache could not be written.",
    )

    @classmethod
    def from_record(
        cls,
        record: TranscriptRecord,
        source: str,
        persisted: bool = True,
    ) -> "TranscriptResponse":
        return cls(
            video_id=record.identifier,
            cues=[CueModel.from_cue(cue) for cue in record.cues],
            produced_at=record.produced_at.isoformat(),
            source=source,
            persisted=persisted,
            warning=None if persisted else "Transcript could not be saved to the durable cache.",
        )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "video_id": "dQw4w9WgXcQ",
                "cues": [{"start": 0.0, "end": 3.0, "text": "Hello there, friend"}],
                "produced_at": "2025-08-15T11:04:28+00:00",
                "source": "cache",
                "persisted": True,
                "warning": None,
            }
        ]
    }}


class CacheEntryModel(BaseModel):
    """Monitoring view of one volatile cache entry."""

    key: str = Field(description="Cache key (video id).")
    count: int = Field(description="Number of cached cues.")
    age: float = Field(description="Seconds since the entry was stored.")
    ttl: float = Field(description="Entry lifetime in seconds.")


class CacheStatsResponse(BaseModel):
    """Volatile cache statistics."""

    size: int = Field(description="Number of live entries.")
    max_size: int = Field(description="Maximum number of entries.")
    entries: List[CacheEntryModel] = Field(description="Live entries, oldest first.")

    @classmethod
    def from_stats(cls, stats: CacheStats) -> "CacheStatsResponse":
        return cls(
            size=stats.size,
            max_size=stats.max_size,
            entries=[
                CacheEntryModel(key=e.key, count=e.count, age=e.age, ttl=e.ttl)
                for e in stats.entries
            ],
        )


class PreloadResponse(BaseModel):
    """Outcome of a preload request."""

    requested: int = Field(description="Number of ids requested.")
    cached: int = Field(description="Number of ids now held in the volatile cache.")


class FormatInfo(BaseModel):
    """Description of an available export format."""

    key: str = Field(description="Format identifier used in export requests.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '.vtt').")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
