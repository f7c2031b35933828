"""File I/O utilities.

Cache artifacts are published atomically: data goes to a temp file in
the target directory and is moved into place with ``os.replace``, so a
reader sees either the old file or the complete new one.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from anifetch.shared.constants import FileSystem

logger = logging.getLogger(__name__)


def atomic_write_bytes(path: str | Path, data: bytes) -> Path:
    """Write ``data`` to ``path`` atomically.

    The temp file is removed if anything fails before the replace,
    including task cancellation.

    Returns:
        The destination path.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=FileSystem.TEMP_SUFFIX,
    )
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return path


def atomic_write_text(path: str | Path, text: str) -> Path:
    """Write UTF-8 text to ``path`` atomically."""
    return atomic_write_bytes(path, text.encode(FileSystem.ENCODING))


def remove_files(directory: str | Path, pattern: str) -> int:
    """Delete files matching ``pattern`` directly inside ``directory``.

    A missing directory is not an error.

    Returns:
        Number of files removed.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0

    removed = 0
    for file_path in directory.glob(pattern):
        if file_path.is_file():
            file_path.unlink()
            removed += 1
    if removed:
        logger.debug("Removed %d file(s) matching %s in %s", removed, pattern, directory)
    return removed
