"""
File helpers — atomic text writes and content hashing.
"""

from __future__ import annotations

import contextlib
import hashlib
import os
import tempfile
from pathlib import Path

__all__ = ["write_text_atomic", "file_md5"]


def write_text_atomic(text: str, path: str | Path, encoding: str = "utf-8") -> None:
    """Write *text* to *path* so readers never observe a partial file.

    The content goes to a temporary file in the same directory, which is
    then renamed over *path*.  Parent directories are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def file_md5(path: str | Path, chunk_size: int = 1 << 20) -> str:
    """Hex MD5 of the file at *path*, read in chunks."""
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()
