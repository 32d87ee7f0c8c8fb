"""Filesystem access and best-effort attribute resolution.

The walker never touches ``os`` directly; everything goes through a
:class:`FileSystem` handle so tests (and callers with unusual storage) can
substitute their own. Handles report failures as :class:`OSError`, which the
resolver turns into "no attributes available".
"""

from __future__ import annotations

import os
import stat
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO, Protocol

from treewalk.constants import FileKind

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class FileAttributes:
    """Metadata read from a single ``stat`` call."""

    kind: FileKind
    size: int
    mtime: float
    mode: int = 0
    device: int = 0
    inode: int = 0

    @classmethod
    def from_stat_result(cls, st: os.stat_result) -> FileAttributes:
        return cls(
            kind=_kind_from_mode(st.st_mode),
            size=st.st_size,
            mtime=st.st_mtime,
            mode=stat.S_IMODE(st.st_mode),
            device=st.st_dev,
            inode=st.st_ino,
        )

    @property
    def file_key(self) -> tuple[int, int]:
        """(device, inode) pair identifying the underlying object."""
        return self.device, self.inode

    @property
    def is_directory(self) -> bool:
        return self.kind is FileKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind is FileKind.SYMLINK


def _kind_from_mode(mode: int) -> FileKind:
    if stat.S_ISLNK(mode):
        return FileKind.SYMLINK
    if stat.S_ISDIR(mode):
        return FileKind.DIRECTORY
    if stat.S_ISREG(mode):
        return FileKind.FILE
    return FileKind.OTHER


class FileSystem(Protocol):
    """Read-only filesystem operations needed by a walk.

    Implementations must be safe for concurrent read-only use and must raise
    :class:`OSError` (never anything else) when an operation cannot complete.
    """

    def exists(self, path: Path) -> bool:
        """Return True if ``path`` exists, without following a final link."""
        ...

    def stat(self, path: Path, *, follow_symlinks: bool) -> FileAttributes: ...

    def list_dir(self, path: Path) -> list[str]:
        """Return the names of the direct children of ``path``."""
        ...

    def is_symlink(self, path: Path) -> bool: ...

    def open(self, path: Path) -> BinaryIO: ...


class LocalFileSystem:
    """:class:`FileSystem` backed by the operating system."""

    __slots__ = ()

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def stat(self, path: Path, *, follow_symlinks: bool) -> FileAttributes:
        return FileAttributes.from_stat_result(os.stat(path, follow_symlinks=follow_symlinks))

    def list_dir(self, path: Path) -> list[str]:
        with os.scandir(path) as it:
            return [entry.name for entry in it]

    def is_symlink(self, path: Path) -> bool:
        return os.path.islink(path)

    def open(self, path: Path) -> BinaryIO:
        return path.open("rb")

    def __repr__(self) -> str:
        return "LocalFileSystem()"


LOCAL_FILE_SYSTEM = LocalFileSystem()


def resolve_attributes(fs: FileSystem, path: Path, *, follow_links: bool = True) -> FileAttributes | None:
    """Return best-effort attributes for ``path`` or ``None`` if none can be read.

    With ``follow_links`` the link target is read first, so a link to a file
    reports as that file; if that fails (dangling link, entry deleted
    mid-walk) the link itself is read instead. Without ``follow_links`` the
    order is reversed.
    """
    for follow in (follow_links, not follow_links):
        try:
            return fs.stat(path, follow_symlinks=follow)
        except OSError:
            continue
    return None


def is_broken_link(fs: FileSystem, path: Path) -> bool:
    """Return True if ``path`` is a link whose target cannot be read."""
    try:
        fs.stat(path, follow_symlinks=True)
    except OSError:
        return fs.is_symlink(path)
    return False


@dataclass(frozen=True, slots=True)
class UnreliableAttributes:
    """Which entry kinds report untrustworthy size/timestamp data, and where.

    Directory timestamps on Windows are known to change in ways unrelated to
    the directory's own contents, so by default those details drop them.
    """

    platforms: frozenset[str] = frozenset({"win32"})
    kinds: frozenset[FileKind] = frozenset({FileKind.DIRECTORY})
    platform: str = field(default=sys.platform)

    @classmethod
    def never(cls) -> UnreliableAttributes:
        return cls(platforms=frozenset(), kinds=frozenset())

    def applies(self, kind: FileKind) -> bool:
        return self.platform in self.platforms and kind in self.kinds
