"""FastAPI application exposing caption normalization and the transcript caches.

WHY: The video player front end, scripts and other services need an HTTP
surface to upload a caption track for a video, read the normalized
transcript back, export it, and inspect or warm the volatile cache.
FastAPI provides request validation and automatic OpenAPI documentation.

HOW: create_app() builds a FastAPI app around one TranscriptService
(injected, or built from config defaults). The lifespan hook runs
service.init(), a periodic volatile-cache sweep, and service.shutdown().
Routes live on an APIRouter and reach the service through a dependency.

RULES:
- Every endpoint has a summary, description and tags for OpenAPI
- Error responses use the ErrorResponse schema
- video_id must be an 11-character YouTube id (400 otherwise)
- "No usable captions" is a 404; an unreadable durable record is a 503
- Fetching captions from YouTube is NOT done here; clients upload them
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from caption_normalizer import __version__
from caption_normalizer.cache.durable import TranscriptStore
from caption_normalizer.cache.memory import SubtitleCache
from caption_normalizer.config import (
    API_HOST,
    API_PORT,
    CACHE_CLEANUP_INTERVAL_SECONDS,
    SUPPORTED_CAPTION_EXTENSIONS,
    TRANSCRIPT_CACHE_DIR,
    is_valid_video_id,
)
from caption_normalizer.core.ir import Found, NotAvailable, TranscriptRecord
from caption_normalizer.formatters import FORMATTERS
from caption_normalizer.server.models import (
    CacheStatsResponse,
    CueModel,
    ErrorResponse,
    FormatInfo,
    HealthResponse,
    NormalizeRequest,
    NormalizeResponse,
    PreloadRequest,
    PreloadResponse,
    TranscriptResponse,
)
from caption_normalizer.service import TranscriptService

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_service(request: Request) -> TranscriptService:
    """Return the TranscriptService attached to the running app."""
    return request.app.state.service


ServiceDep = Annotated[TranscriptService, Depends(get_service)]


def _validate_video_id(video_id: str) -> None:
    """Raise HTTPException(400) unless video_id is an 11-character YouTube id."""
    if not is_valid_video_id(video_id):
        raise HTTPException(
            status_code=400,
            detail="Invalid video id '{}': expected 11 characters [A-Za-z0-9_-]".format(video_id),
        )


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException(400) if the caption file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_CAPTION_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_CAPTION_EXTENSIONS))
            ),
        )


def _lookup_record(service: TranscriptService, video_id: str) -> TranscriptRecord:
    """Durable read mapped onto HTTP errors (404 not available, 503 transient)."""
    result = service.lookup(video_id)
    if isinstance(result, Found):
        return result.record
    if isinstance(result, NotAvailable):
        raise HTTPException(status_code=404, detail="No transcript for {}: {}".format(
            video_id, result.reason
        ))
    raise HTTPException(status_code=503, detail="Transcript temporarily unavailable: {}".format(
        result.reason
    ))


async def _periodic_cleanup(cache: SubtitleCache, interval: float) -> None:
    """Sweep expired volatile-cache entries every interval seconds."""
    while True:
        await asyncio.sleep(interval)
        cache.cleanup_expired()


# ---------------------------------------------------------------------------
# Endpoints: Transcripts
# ---------------------------------------------------------------------------


@router.post(
    "/transcripts/{video_id}",
    response_model=TranscriptResponse,
    status_code=201,
    tags=["transcripts"],
    summary="Upload a caption track and rebuild the transcript",
    description=(
        "Upload a WebVTT caption file for a video. The file is normalized into "
        "a clean, non-overlapping cue timeline that replaces any stored "
        "transcript for the video."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id, file type or encoding"},
        404: {"model": ErrorResponse, "description": "The caption file contains no usable captions"},
    },
)
def upload_transcript(
    video_id: str,
    service: ServiceDep,
    file: Annotated[UploadFile, File(description="WebVTT caption file (.vtt)")],
) -> TranscriptResponse:
    _validate_video_id(video_id)
    _validate_file_extension(Path(file.filename or "captions.vtt").name)

    try:
        raw_text = file.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Caption file must be UTF-8 text")

    result = service.refresh(video_id, raw_text)
    if not isinstance(result, Found):
        raise HTTPException(status_code=404, detail="No usable captions for {}".format(video_id))

    return TranscriptResponse.from_record(result.record, source="upload", persisted=result.persisted)


@router.get(
    "/transcripts/{video_id}",
    response_model=TranscriptResponse,
    tags=["transcripts"],
    summary="Get the stored transcript for a video",
    description="Returns the normalized transcript from the durable cache without reprocessing.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id"},
        404: {"model": ErrorResponse, "description": "No transcript stored for the video"},
        503: {"model": ErrorResponse, "description": "Stored transcript could not be read"},
    },
)
def get_transcript(video_id: str, service: ServiceDep) -> TranscriptResponse:
    _validate_video_id(video_id)
    record = _lookup_record(service, video_id)
    return TranscriptResponse.from_record(record, source="cache")


@router.get(
    "/transcripts/{video_id}/export",
    tags=["transcripts"],
    summary="Export the stored transcript",
    description=(
        "Download the stored transcript in one of the formats listed by GET /formats "
        "(WebVTT, SRT, plain text or JSON)."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id or unknown format"},
        404: {"model": ErrorResponse, "description": "No transcript stored for the video"},
        503: {"model": ErrorResponse, "description": "Stored transcript could not be read"},
    },
)
def export_transcript(
    video_id: str,
    service: ServiceDep,
    format: Annotated[str, Query(description="Export format key, e.g. 'webvtt' or 'srt'.")] = "webvtt",
) -> Response:
    _validate_video_id(video_id)
    if format not in FORMATTERS:
        raise HTTPException(
            status_code=400,
            detail="Unknown export format '{}'. Available: {}".format(
                format, ", ".join(sorted(FORMATTERS.keys()))
            ),
        )

    record = _lookup_record(service, video_id)
    output = FORMATTERS[format]().format(record)[0]
    filename = "{}{}".format(video_id, output.suffix)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


@router.delete(
    "/transcripts/{video_id}",
    status_code=204,
    tags=["transcripts"],
    summary="Delete a stored transcript",
    description="Remove the video's transcript from the durable cache and the volatile cache.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id"},
        404: {"model": ErrorResponse, "description": "No transcript stored for the video"},
    },
)
def delete_transcript(video_id: str, service: ServiceDep) -> Response:
    _validate_video_id(video_id)
    if not service.delete(video_id):
        raise HTTPException(status_code=404, detail="No transcript for {}".format(video_id))
    return Response(status_code=204)


@router.post(
    "/normalize",
    response_model=NormalizeResponse,
    tags=["transcripts"],
    summary="Normalize caption text without storing it",
    description="Runs the normalization pipeline on the posted WebVTT text and returns the cues.",
    responses={
        404: {"model": ErrorResponse, "description": "The text contains no usable captions"},
    },
)
def normalize_captions(body: NormalizeRequest, service: ServiceDep) -> NormalizeResponse:
    cues = service.normalize(body.vtt)
    if not cues:
        raise HTTPException(status_code=404, detail="No usable captions in the posted text")
    return NormalizeResponse(count=len(cues), cues=[CueModel.from_cue(c) for c in cues])


# ---------------------------------------------------------------------------
# Endpoints: Volatile cache
# ---------------------------------------------------------------------------


@router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
    tags=["cache"],
    summary="Volatile cache statistics",
    description="Size, capacity and per-entry age of the in-memory subtitle cache.",
)
def cache_stats(service: ServiceDep) -> CacheStatsResponse:
    return CacheStatsResponse.from_stats(service.cache.stats())


@router.post(
    "/cache/preload",
    response_model=PreloadResponse,
    tags=["cache"],
    summary="Preload transcripts into the volatile cache",
    description=(
        "Loads stored transcripts for the given video ids into the in-memory cache. "
        "Ids without a stored transcript are skipped; failures never fail the request."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id"},
    },
)
def preload_cache(body: PreloadRequest, service: ServiceDep) -> PreloadResponse:
    for video_id in body.video_ids:
        _validate_video_id(video_id)
    cached = service.preload(body.video_ids)
    return PreloadResponse(requested=len(body.video_ids), cached=cached)


@router.get(
    "/cache/{video_id}",
    response_model=List[CueModel],
    tags=["cache"],
    summary="Get cues from the volatile cache",
    description="Returns the cached cues for a video without touching the durable cache.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid video id"},
        404: {"model": ErrorResponse, "description": "Not in the volatile cache (or expired)"},
    },
)
def get_cached_cues(video_id: str, service: ServiceDep) -> List[CueModel]:
    _validate_video_id(video_id)
    cues = service.cached_cues(video_id)
    if cues is None:
        raise HTTPException(status_code=404, detail="{} is not cached".format(video_id))
    return [CueModel.from_cue(c) for c in cues]


@router.delete(
    "/cache",
    status_code=204,
    tags=["cache"],
    summary="Clear the volatile cache",
    description="Removes every entry from the in-memory subtitle cache. Stored transcripts are kept.",
)
def clear_cache(service: ServiceDep) -> Response:
    service.cache.clear()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@router.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available export formats",
    description="Returns all export formats with their identifiers, names and file suffixes.",
)
def list_formats() -> List[FormatInfo]:
    empty = TranscriptRecord(identifier="formats")
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        outputs = formatter.format(empty)
        result.append(FormatInfo(
            key=key,
            name=formatter.name,
            suffix=outputs[0].suffix if outputs else "",
        ))
    return result


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(
    service: Optional[TranscriptService] = None,
    cleanup_interval: float = CACHE_CLEANUP_INTERVAL_SECONDS,
) -> FastAPI:
    """Build the FastAPI app around a TranscriptService.

    WHY: Tests and embedding applications need their own service (e.g. a
    temp cache directory) instead of a process-wide singleton.

    HOW: The service is stored on app.state and reached by routes through
    get_service(). The lifespan hook owns its init()/shutdown() and the
    periodic sweep task.

    Args:
        service: Service to expose; defaults to one built from config.
        cleanup_interval: Seconds between volatile-cache sweeps.
    """
    if service is None:
        service = TranscriptService(
            store=TranscriptStore(TRANSCRIPT_CACHE_DIR),
            cache=SubtitleCache(),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.init()
        task = asyncio.create_task(_periodic_cleanup(service.cache, cleanup_interval))
        yield
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        service.shutdown()

    app = FastAPI(
        lifespan=lifespan,
        title="Caption Normalizer API",
        description=(
            "REST API for normalizing WebVTT caption tracks (including auto-generated "
            "captions) into clean, non-overlapping cue timelines, with a durable "
            "per-video transcript cache and an in-memory subtitle cache."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.service = service
    app.include_router(router)
    return app


def run_api():
    """Entry point for the caption-normalizer-api console script.

    The app is built by uvicorn through create_app, so importing this module
    never creates a service.
    """
    import uvicorn
    uvicorn.run(
        "caption_normalizer.server.app:create_app",
        factory=True,
        host=API_HOST,
        port=API_PORT,
    )
