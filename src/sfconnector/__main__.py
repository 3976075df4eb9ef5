"""Console entry point: ``python -m sfconnector`` and the ``sfconnector`` script."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from .cli import cli

PROG_NAME = "sfconnector"


def _utf8_streams() -> None:
    # Record dumps can hold any character; print them escaped rather than fail.
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8", errors="backslashreplace")


def main(argv: Optional[Sequence[str]] = None) -> None:
    _utf8_streams()
    cli.main(args=list(argv) if argv is not None else None, prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
