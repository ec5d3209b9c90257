"""Command-line interface for the caption normalizer.

WHY: Users need a simple way to clean up a downloaded caption file from
the terminal: turn a messy auto-generated WebVTT track into a tidy,
non-overlapping timeline and save it in the formats they need.

HOW: Uses argparse to accept an input caption file, an optional video id
(which routes the work through the durable transcript cache), output
format selection and an output directory. Status messages go to stderr;
output files are saved next to the source (or to --output-dir).

RULES:
- Positional argument: input caption file path (.vtt or .txt)
- --video-id stores the normalized record in the durable cache
  (--cache-dir overrides TRANSCRIPT_CACHE_DIR)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-transcript-2.json)
- Exit code 1 on a missing file, unknown format or no usable captions
- Status output goes to stderr (not stdout)
- --serve starts the HTTP API instead of normalizing a file
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from caption_normalizer.cache.durable import TranscriptStore
from caption_normalizer.config import (
    SUPPORTED_CAPTION_EXTENSIONS,
    TRANSCRIPT_CACHE_DIR,
    is_valid_video_id,
)
from caption_normalizer.core.ir import TranscriptRecord
from caption_normalizer.core.normalizer import normalize
from caption_normalizer.formatters import FORMATTERS
from caption_normalizer.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. lecture-transcript.txt)
    - Conflict: insert a counter before the extension
      (e.g. lecture-transcript-2.txt, lecture-2.vtt)
    - Counter starts at 2 and increments

    Args:
        stem: Output filename stem (source stem or video id).
        suffix: Formatter's suffix (e.g. "-transcript.json").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    # "-transcript.json" → ("-transcript", ".json"); ".vtt" → ("", ".vtt")
    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_formats(value: Optional[str]) -> List[str]:
    """Turn the --formats flag into formatter keys, failing on unknown ones."""
    if not value:
        return list(FORMATTERS.keys())

    format_keys = [f.strip() for f in value.split(",") if f.strip()]
    for key in format_keys:
        if key not in FORMATTERS:
            _fail("Unknown format '{}'. Available formats: {}".format(
                key, ", ".join(sorted(FORMATTERS.keys()))
            ))
    return format_keys


def _build_record(args: argparse.Namespace, raw_text: str, input_path: Path) -> TranscriptRecord:
    """Normalize the caption text, through the durable cache when a video id is given."""
    if args.video_id is None:
        return TranscriptRecord(identifier=input_path.stem, cues=normalize(raw_text))

    cache_dir = Path(args.cache_dir) if args.cache_dir else Path(TRANSCRIPT_CACHE_DIR)
    store = TranscriptStore(cache_dir)
    record = store.get_or_compute(args.video_id, raw_text)
    if record.cues:
        _status("  Cached transcript for {} in {}".format(args.video_id, cache_dir))
    return record


def run(args: argparse.Namespace) -> List[Path]:
    """Execute the normalize-and-export pipeline for parsed arguments.

    RULES:
    - Validate the input file and flags before reading anything
    - Output stem is the video id when given, else the input file stem

    Returns:
        Paths of the files written, in formatter order.
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_CAPTION_EXTENSIONS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_CAPTION_EXTENSIONS))
        ))

    if args.video_id is not None and not is_valid_video_id(args.video_id):
        _fail("Invalid video id '{}': expected 11 characters [A-Za-z0-9_-]".format(args.video_id))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_formats(args.formats)

    try:
        raw_text = input_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        _fail("Caption file must be UTF-8 text: {}".format(input_path))

    _status("Normalizing {}...".format(input_path.name))
    record = _build_record(args, raw_text, input_path)
    if not record.cues:
        _fail("No usable captions in {}".format(input_path.name))
    _status("  {} cues".format(len(record.cues)))

    stem = args.video_id or input_path.stem
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(record):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Kept separate from main() so tests can inspect the parser without
    running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="caption_normalizer",
        description="Normalize WebVTT caption tracks (including auto-generated "
                    "YouTube captions) into clean, non-overlapping cues and export "
                    "them as WebVTT, SRT, plain text or JSON. "
                    "Run with --serve to start the HTTP API instead.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the caption file to normalize (.vtt or .txt).",
    )

    parser.add_argument(
        "--video-id",
        default=None,
        help="11-character video id; stores the result in the durable transcript cache.",
    )

    parser.add_argument(
        "--cache-dir",
        default=None,
        help="Durable cache directory used with --video-id "
             "(default: {}).".format(TRANSCRIPT_CACHE_DIR),
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline and cache details to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - ``--serve`` anywhere in argv starts the HTTP API instead
    """
    if argv is None:
        argv = sys.argv[1:]
    if "--serve" in argv:
        from caption_normalizer.server.app import run_api
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
        run_api()
        return

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    run(args)


if __name__ == "__main__":
    main()
