from __future__ import annotations

import hashlib
import mimetypes
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_hash(data: bytes) -> str:
    """BLAKE2b-512 over the full byte sequence, lowercase hex (128 chars)."""
    return hashlib.blake2b(data, digest_size=64).hexdigest()


def guess_content_type(path: str) -> str:
    """
    Rules:
    - mimetypes.guess_type(path)[0] if available.
    - Else fallback application/octet-stream.
    """
    guessed, _ = mimetypes.guess_type(path)
    return guessed or DEFAULT_CONTENT_TYPE


def list_files(root: Path) -> list[Path]:
    """
    Recursively list regular files under root in stable order.
    Directories, broken symlinks, sockets etc. are skipped.
    """
    files = [p for p in root.rglob("*") if p.is_file()]
    files.sort(key=lambda p: p.relative_to(root).as_posix())
    return files
