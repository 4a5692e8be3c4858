"""Shared utilities for xamlpatch."""

import contextlib
import hashlib
import os
from pathlib import Path

_CHUNK = 1024 * 1024


def atomic_write_bytes(filepath: Path, data: bytes) -> None:
    """Write bytes to a file atomically to prevent corruption on crash."""
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8", newline: str = "\n") -> None:
    """Write text atomically, translating ``\\n`` to *newline*."""
    atomic_write_bytes(filepath, text.replace("\n", newline).encode(encoding))


def file_sha256(filepath: Path) -> str:
    """Return the lowercase hex SHA-256 of a file's content."""
    h = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()
