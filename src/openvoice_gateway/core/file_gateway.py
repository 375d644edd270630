"""Read-only access to the reference and output audio directories.

Listing returns direct children only, newest first. Retrieval resolves a
caller-supplied name against its root and refuses anything that lands outside
of it before the file is opened.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .exceptions import DirectoryListingError, FileNotFoundInRootError, PathTraversalError


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    size: int
    mtime_ms: float


def list_directory(root: str | Path) -> list[DirectoryEntry]:
    """List regular, non-hidden files directly under root.

    Raises:
        DirectoryListingError: if the directory or any entry cannot be read.
            No partial listing is ever returned.
    """
    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(root) as it:
            for entry in it:
                if entry.name.startswith("."):
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                stats = entry.stat(follow_symlinks=False)
                entries.append(
                    DirectoryEntry(
                        name=entry.name,
                        size=stats.st_size,
                        mtime_ms=stats.st_mtime_ns / 1_000_000,
                    )
                )
    except OSError as e:
        logger.error(f"Directory listing failed for {root}: {e}")
        raise DirectoryListingError(str(root), e.strerror or str(e)) from e

    entries.sort(key=lambda e: e.mtime_ms, reverse=True)
    return entries


def safe_resolve(root: str | Path, name: str) -> Path:
    """Resolve name against root, refusing results outside root.

    The root itself is not a valid result; only paths strictly below it are.
    """
    base = Path(root).resolve()
    try:
        candidate = (base / name).resolve()
    except (OSError, ValueError) as e:
        # e.g. embedded NUL bytes
        raise PathTraversalError(name) from e
    if not str(candidate).startswith(str(base) + os.sep):
        logger.warning(f"Rejected path outside {base}: {name!r}")
        raise PathTraversalError(name)
    return candidate


def open_file(root: str | Path, name: str) -> Path:
    """Return the path of a servable file under root."""
    path = safe_resolve(root, name)
    if not path.is_file():
        raise FileNotFoundInRootError(name)
    return path
