from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from .hashing import content_hash, guess_content_type, list_files
from .pool import DEFAULT_CONCURRENCY, fan_out

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalEntry:
    path: str          # POSIX path relative to the scanned root
    contents: bytes
    hash: str
    content_type: str


async def read_entry(root: Path, file_path: Path) -> LocalEntry:
    """
    Buffer the whole file, then hash it. Read errors propagate.
    """
    rel = file_path.relative_to(root).as_posix()
    logger.debug("Reading file %s", rel)
    contents = await asyncio.to_thread(file_path.read_bytes)
    return LocalEntry(
        path=rel,
        contents=contents,
        hash=content_hash(contents),
        content_type=guess_content_type(rel),
    )


async def scan_directory(root: Path, *, concurrency: int = DEFAULT_CONCURRENCY) -> list[LocalEntry]:
    """
    One LocalEntry per regular file under root, in completion order.

    Any single read failure aborts the scan with that error.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    files = await asyncio.to_thread(list_files, root)
    logger.info("Reading %d files under %s", len(files), root)
    entries = await fan_out(files, lambda p: read_entry(root, p), concurrency=concurrency)
    logger.info("Read all files")
    return entries
