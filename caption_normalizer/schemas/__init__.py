"""JSON schemas shipped with the package.

WHY: The durable store and the JSON formatter both validate transcript
records before trusting or emitting them. One schema file keeps the two
in agreement.

HOW: load_schema() reads a schema file next to this module and caches it.

RULES:
- Schema files are read-only package data
- Callers get the same dict on every call; never mutate it
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

SCHEMA_DIR = Path(__file__).resolve().parent

TRANSCRIPT_RECORD_SCHEMA = "transcript_record.schema.json"


@lru_cache(maxsize=None)
def load_schema(name: str = TRANSCRIPT_RECORD_SCHEMA) -> Dict[str, Any]:
    """Load a bundled JSON schema by file name."""
    with open(SCHEMA_DIR / name, encoding="utf-8") as f:
        return json.load(f)
