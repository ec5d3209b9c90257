"""Package entry point for ``python -m caption_normalizer``.

WHY: Users run the normalizer as ``python -m caption_normalizer input.vtt``
for CLI mode, or ``python -m caption_normalizer --serve`` for the HTTP API.

HOW: Delegates to the CLI's main(), which handles ``--serve`` itself so the
``caption-normalizer`` console script behaves the same way.
"""

from caption_normalizer.cli import main

if __name__ == "__main__":
    main()
