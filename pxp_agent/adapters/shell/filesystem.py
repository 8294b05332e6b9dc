"""
Filesystem helpers — atomic small-file writes and whole-file reads.

Writes go to a temp file in the target directory and are renamed
into place, so readers never observe a partial file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_to_file(text: str, path: str | Path) -> None:
    """Write ``text`` to ``path`` atomically (temp file, then rename).

    Raises:
        OSError: The temp file could not be written or renamed.
    """
    target = Path(path)
    fd, tmp_path = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.replace(tmp, target)
        logger.debug("Wrote %s", target)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def read_file(path: str | Path) -> str | None:
    """Read a whole text file.

    Returns:
        The file content, or None if it could not be read.
    """
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None


def ensure_results_dir(path: str | Path) -> Path:
    """Create a fresh results directory for a non-blocking job.

    Raises:
        FileExistsError: The directory already exists.
        OSError: The directory could not be created.
    """
    results_dir = Path(path)
    results_dir.parent.mkdir(parents=True, exist_ok=True)
    results_dir.mkdir()
    return results_dir
