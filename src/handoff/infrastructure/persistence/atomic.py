"""
Atomic file writes.

Writes go to a temporary file in the target's directory (same filesystem)
and are then moved over the target with ``os.replace``, so readers see
either the old content or the new content, never a partial file.
"""

import os
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os


def _make_temp(path: Path) -> str:
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    os.close(fd)
    return temp_path


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to ``path`` atomically.

    Raises:
        OSError: If the temp file cannot be written or moved into place
    """
    temp_path = _make_temp(path)
    try:
        with open(temp_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(temp_path, path)
    except Exception:
        if Path(temp_path).exists():
            Path(temp_path).unlink()
        raise


async def atomic_write_text_async(path: Path, text: str) -> None:
    """Async variant of :func:`atomic_write_text` built on aiofiles."""
    temp_path = _make_temp(path)
    try:
        async with aiofiles.open(temp_path, "w", encoding="utf-8", newline="") as f:
            await f.write(text)
        await aiofiles.os.replace(temp_path, path)
    except Exception:
        if Path(temp_path).exists():
            Path(temp_path).unlink()
        raise
