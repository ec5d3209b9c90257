"""Configuration constants and .env loading.

WHY: Cache locations, TTLs, size bounds and the pipeline's timing policy
values are tuned per deployment. Keeping them in one module makes them
easy to find and to override without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values; deployment-specific ones read os.environ first.

RULES:
- Pipeline policy values (tolerances, fallback duration) are constants
- Cache and server settings can be overridden via environment variables
- Invalid numeric overrides raise ValueError at import time
"""

from __future__ import annotations

import os
import re

from dotenv import load_dotenv

# Load .env from the project root (where the process is started)
load_dotenv()

# ---------------------------------------------------------------------------
# Pipeline policy
# ---------------------------------------------------------------------------

FALLBACK_CUE_DURATION = 2.0
"""Seconds added to start when a cue's end is missing, zero or not after start."""

ADJACENCY_TOLERANCE = 0.5
"""Gap in seconds under which neighbouring candidates merge into one cue."""

TIME_PRECISION = 3
"""Decimal digits kept on cue timestamps (millisecond precision)."""

SKIP_LINE_PREFIXES = ("NOTE", "STYLE", "REGION")
"""Reserved WebVTT keywords whose lines are ignored by the tokenizer."""

# ---------------------------------------------------------------------------
# Cache defaults
# ---------------------------------------------------------------------------

TRANSCRIPT_CACHE_DIR = os.getenv("TRANSCRIPT_CACHE_DIR", os.path.join(".cache", "transcripts"))
SUBTITLE_CACHE_TTL_SECONDS = float(os.getenv("SUBTITLE_CACHE_TTL_SECONDS", "1800"))
SUBTITLE_CACHE_MAX_SIZE = int(os.getenv("SUBTITLE_CACHE_MAX_SIZE", "50"))
CACHE_CLEANUP_INTERVAL_SECONDS = float(os.getenv("CACHE_CLEANUP_INTERVAL_SECONDS", "300"))

# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")
"""YouTube video ids: exactly 11 URL-safe characters."""

SUPPORTED_CAPTION_EXTENSIONS: set[str] = {".vtt", ".txt"}
"""Caption upload extensions accepted by the API (lowercase, with dot)."""


def is_valid_video_id(video_id: str) -> bool:
    """Return True if video_id looks like an 11-character YouTube id."""
    if not isinstance(video_id, str):
        return False
    return bool(VIDEO_ID_PATTERN.match(video_id))
