# src/sfconnector/env_loader.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

_logger = logging.getLogger(__name__)


def load_env_files(
    candidates: Optional[Iterable[Path]] = None,
    *,
    quiet: bool = False,
) -> Optional[Path]:
    """Load SF_* settings from the first .env/.dotenv file found.

    - By default looks in the current working directory.
    - Variables already present in the environment are not overridden.
    - Returns the file that was loaded, or None.
    """
    if candidates is None:
        cwd = Path.cwd()
        candidates = (cwd / ".env", cwd / ".dotenv")

    for path in candidates:
        if path.exists():
            load_dotenv(path, override=False)
            if not quiet:
                _logger.debug("Loaded environment variables from %s", path)
            return path

    if not quiet:
        _logger.debug("No .env/.dotenv file found in %s", Path.cwd())
    return None
