"""Zip helpers for uploading a directory as one dependency."""

from __future__ import annotations

import logging
import os
import tempfile
import time
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def zip_directory(dir_path: str | Path, dest_dir: str | Path | None = None) -> Path:
    """Write ``dir_path`` to a new zip file and return its path.

    Entries are stored relative to ``dir_path`` (its contents sit at the
    archive root). The caller owns the file and must delete it.
    """
    source = Path(dir_path)
    if not source.is_dir():
        raise NotADirectoryError(str(source))

    target_dir = Path(dest_dir) if dest_dir is not None else Path(tempfile.gettempdir())
    target = target_dir / f"{source.name}-{int(time.time() * 1000)}.zip"

    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for root, dirs, files in os.walk(source):
            dirs.sort()
            for name in sorted(files):
                path = Path(root) / name
                zf.write(path, path.relative_to(source).as_posix())

    logger.info("zipped %s -> %s (%d bytes)", source, target, target.stat().st_size)
    return target


def contains_py_file(dir_path: str | Path) -> bool:
    """True if any file under ``dir_path`` ends in ``.py``."""
    return any(p.is_file() for p in Path(dir_path).rglob("*.py"))
