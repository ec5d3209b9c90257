"""Durable transcript store: one JSON file per identifier on disk.

WHY: Normalizing a long auto-caption track is cheap but fetching it is
not, and the result should survive process restarts. The durable tier
keeps the last normalized record per video so later requests can skip
tokenizing, extracting and normalizing entirely.

HOW: Each record is serialized to ``<cache_dir>/<identifier>.json``.
Writes go to a temp file in the same directory and are moved into place
with os.replace(), so readers see either the old record or the new one.
Reads validate the JSON against the bundled transcript-record schema.

RULES:
- Identifiers outside [A-Za-z0-9_-]{1,128} are stored under a SHA-256 name
- load() returns None for a missing record and raises TranscriptStoreError
  for an unreadable or invalid one
- save() never raises for I/O problems; it logs and returns False
- get_or_compute() with non-empty raw text always recomputes and replaces wholesale
- Two records for one identifier are never merged; the last writer wins
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

import jsonschema

from caption_normalizer.config import TRANSCRIPT_CACHE_DIR
from caption_normalizer.core.ir import TranscriptRecord
from caption_normalizer.core.normalizer import normalize
from caption_normalizer.schemas import load_schema

logger = logging.getLogger(__name__)

_SAFE_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class TranscriptStoreError(Exception):
    """A stored record exists but cannot be read or trusted."""


class TranscriptStore:
    """File-backed mapping from identifier to TranscriptRecord.

    WHY: A directory of small JSON files is easy to inspect, back up and
    clear by hand, and needs no database for a single-host tool.

    HOW: Every public method maps the identifier to a file path and does
    one read, write or unlink. There is no in-memory state besides the
    directory path, so several processes can share one cache directory.

    RULES:
    - ensure_dir() creates the directory; save() also creates it on demand
    - Records are validated on read; invalid files are reported, not repaired
    - Empty recomputations are returned but not persisted, so an earlier
      good record is kept
    """

    def __init__(self, cache_dir: Union[str, Path] = TRANSCRIPT_CACHE_DIR) -> None:
        self.cache_dir = Path(cache_dir)

    # -- paths --------------------------------------------------------------

    def path_for(self, identifier: str) -> Path:
        """Return the JSON file path used for identifier."""
        if _SAFE_IDENTIFIER_RE.match(identifier):
            name = identifier
        else:
            name = hashlib.sha256(identifier.encode("utf-8")).hexdigest()
        return self.cache_dir / "{}.json".format(name)

    def ensure_dir(self) -> None:
        """Create the cache directory if needed (raises OSError on failure)."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    # -- read path ----------------------------------------------------------

    def exists(self, identifier: str) -> bool:
        return self.path_for(identifier).is_file()

    def load(self, identifier: str) -> Optional[TranscriptRecord]:
        """Read the stored record for identifier.

        Returns:
            The record exactly as stored, or None if there is none.

        Raises:
            TranscriptStoreError: If the file cannot be read, is not valid
                JSON, or does not match the transcript-record schema.
        """
        path = self.path_for(identifier)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise TranscriptStoreError(
                "Cannot read transcript for {}: {}".format(identifier, exc)
            ) from exc

        try:
            data = json.loads(raw)
            jsonschema.validate(instance=data, schema=load_schema())
            return TranscriptRecord.from_dict(data)
        except (ValueError, KeyError, jsonschema.ValidationError) as exc:
            raise TranscriptStoreError(
                "Stored transcript for {} is invalid: {}".format(identifier, exc)
            ) from exc

    # -- write path ---------------------------------------------------------

    def save(self, identifier: str, record: TranscriptRecord) -> bool:
        """Replace the stored record for identifier.

        HOW: Serializes to a uniquely named temp file in the cache directory,
        then os.replace() moves it over the target in one step.

        Returns:
            True on success, False if the record could not be written.
        """
        path = self.path_for(identifier)
        payload = json.dumps(record.to_dict(), ensure_ascii=False, indent=2) + "\n"
        tmp_name = None
        try:
            self.ensure_dir()
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.cache_dir), prefix=".{}.".format(path.stem), suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            logger.exception("Failed to write transcript cache for %s", identifier)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False

        logger.info("Saved %d cues for %s to %s", len(record.cues), identifier, path)
        return True

    def delete(self, identifier: str) -> bool:
        """Remove the stored record; returns True if one existed."""
        try:
            self.path_for(identifier).unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted transcript cache for %s", identifier)
        return True

    # -- combined -----------------------------------------------------------

    def get_or_compute(
        self,
        identifier: str,
        raw_text: Optional[str] = None,
    ) -> TranscriptRecord:
        """Return the record for identifier, computing it from raw_text if given.

        WHY: Callers either want "whatever we have" (no raw text) or "this is
        the fresh caption track, rebuild from it" (forced refresh). This is
        the one place that decides between the two.

        HOW:
          - raw_text None or "" → durable read; a hit is returned verbatim
          - raw_text non-empty → normalize(), build a new record, save() it

        RULES:
        - Read failures are logged and treated as a miss
        - A miss without raw text returns an empty record (not persisted)
        - Save failures are logged; the fresh record is still returned
        - Empty recomputations are not persisted
        """
        if not raw_text:
            try:
                cached = self.load(identifier)
            except TranscriptStoreError:
                logger.warning("Ignoring unreadable transcript cache for %s", identifier, exc_info=True)
                cached = None
            if cached is not None:
                return cached
            return TranscriptRecord(identifier=identifier, cues=[])

        record = TranscriptRecord(identifier=identifier, cues=normalize(raw_text))
        if record.cues:
            self.save(identifier, record)
        else:
            logger.info("No usable captions for %s; keeping any existing record", identifier)
        return record
