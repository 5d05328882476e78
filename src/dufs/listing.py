# Directory listing and recursive search.
# Created: 2026-10-16
#
# Produces the PathEntry rows shown on the index page. Entries whose metadata
# cannot be read (dangling symlinks, permission errors) are skipped.

from __future__ import annotations

import logging
import stat
from collections.abc import AsyncIterator
from enum import Enum
from pathlib import Path

import aiofiles.os
from pydantic import BaseModel

from dufs.paths import normalize_path

logger = logging.getLogger(__name__)


class PathType(str, Enum):
    DIR = "Dir"
    SYMLINK_DIR = "SymlinkDir"
    FILE = "File"
    SYMLINK_FILE = "SymlinkFile"

    @property
    def rank(self) -> int:
        return _TYPE_ORDER.index(self)


_TYPE_ORDER = [PathType.DIR, PathType.SYMLINK_DIR, PathType.FILE, PathType.SYMLINK_FILE]


class PathEntry(BaseModel):
    """One row of a directory listing or search result."""

    path_type: PathType
    name: str
    mtime: int | None = None
    size: int | None = None

    def sort_key(self) -> tuple:
        # None sorts before any number.
        return (
            self.path_type.rank,
            self.name,
            (self.mtime is not None, self.mtime or 0),
            (self.size is not None, self.size or 0),
        )


class IndexData(BaseModel):
    """Payload injected into the index page."""

    breadcrumb: str
    paths: list[PathEntry] = []
    readonly: bool = False


def sort_entries(entries: list[PathEntry]) -> list[PathEntry]:
    return sorted(entries, key=PathEntry.sort_key)


async def get_path_entry(path: Path, base: Path) -> PathEntry:
    """Build the entry for *path*, named relative to *base*.

    Raises ``OSError`` when either the followed or the link metadata is
    unavailable.
    """
    meta = await aiofiles.os.stat(path)
    link_meta = await aiofiles.os.stat(path, follow_symlinks=False)

    is_dir = stat.S_ISDIR(meta.st_mode)
    is_symlink = stat.S_ISLNK(link_meta.st_mode)
    if is_dir:
        path_type = PathType.SYMLINK_DIR if is_symlink else PathType.DIR
    else:
        path_type = PathType.SYMLINK_FILE if is_symlink else PathType.FILE

    mtime = meta.st_mtime_ns // 1_000_000
    return PathEntry(
        path_type=path_type,
        name=normalize_path(path.relative_to(base)),
        mtime=mtime if mtime >= 0 else None,
        size=None if is_dir else meta.st_size,
    )


async def list_directory(path: Path, exists: bool = True) -> list[PathEntry]:
    """List the direct children of *path*, sorted.

    ``exists=False`` yields an empty listing (the "not found" directory page).
    """
    entries: list[PathEntry] = []
    if not exists:
        return entries

    for name in await aiofiles.os.listdir(path):
        child = path / name
        try:
            entries.append(await get_path_entry(child, path))
        except OSError as e:
            logger.debug("Skipping %s: %s", child, e)
    return sort_entries(entries)


async def walk(root: Path) -> AsyncIterator[Path]:
    """Yield every path below *root*, depth-first, order unspecified.

    Symlinked directories are yielded but not descended into. Directories
    that cannot be read are skipped.
    """
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            names = await aiofiles.os.listdir(current)
        except OSError as e:
            logger.debug("Cannot read directory %s: %s", current, e)
            continue

        for name in names:
            child = current / name
            yield child
            try:
                link_meta = await aiofiles.os.stat(child, follow_symlinks=False)
            except OSError:
                continue
            if stat.S_ISDIR(link_meta.st_mode):
                pending.append(child)


async def search_directory(path: Path, query: str) -> list[PathEntry]:
    """Entries under *path* whose basename contains *query*, case-insensitively."""
    needle = query.lower()
    entries: list[PathEntry] = []
    async for child in walk(path):
        if needle not in child.name.lower():
            continue
        try:
            entries.append(await get_path_entry(child, path))
        except OSError as e:
            logger.debug("Skipping %s: %s", child, e)
    return sort_entries(entries)
