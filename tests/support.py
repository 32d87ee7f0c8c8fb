"""In-memory filesystem and helpers shared by walker tests."""

from __future__ import annotations

import errno
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from treewalk.attributes import FileAttributes
from treewalk.constants import FileKind
from treewalk.visitor import BaseVisitor, CollectingVisitor

if TYPE_CHECKING:
    from collections.abc import Callable

    from treewalk.details import VisitDetail
    from treewalk.links import LinkPolicy

MAX_LINK_HOPS = 8


@dataclass(slots=True)
class _Node:
    kind: FileKind
    data: bytes = b""
    target: Path | None = None
    mtime: float = 0.0
    inode: int = 0


@dataclass(slots=True)
class FakeFileSystem:
    """:class:`~treewalk.attributes.FileSystem` held entirely in memory.

    Children are listed in insertion order so tests can tell sorted walks
    apart from native-order walks.
    """

    _nodes: dict[Path, _Node] = field(default_factory=dict)
    denied: set[Path] = field(default_factory=set)
    unlistable: set[Path] = field(default_factory=set)
    stat_calls: list[tuple[Path, bool]] = field(default_factory=list)

    def _add(self, path: Path, node: _Node) -> Path:
        for parent in reversed(path.parents):
            if parent not in self._nodes:
                self._nodes[parent] = _Node(FileKind.DIRECTORY, inode=len(self._nodes) + 1)
        node.inode = len(self._nodes) + 1
        self._nodes[path] = node
        return path

    def add_dir(self, path: Path | str) -> Path:
        return self._add(Path(path), _Node(FileKind.DIRECTORY))

    def add_file(self, path: Path | str, data: bytes = b"", mtime: float = 1.0) -> Path:
        return self._add(Path(path), _Node(FileKind.FILE, data=data, mtime=mtime))

    def add_link(self, path: Path | str, target: Path | str) -> Path:
        return self._add(Path(path), _Node(FileKind.SYMLINK, target=Path(target)))

    def deny(self, path: Path | str) -> None:
        """Make every ``stat`` of ``path`` fail with a permission error."""
        self.denied.add(Path(path))

    def _lookup(self, path: Path, *, follow: bool) -> _Node:
        if path in self.denied:
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        node = self._nodes.get(path)
        hops = 0
        while node is not None and follow and node.kind is FileKind.SYMLINK:
            hops += 1
            if hops > MAX_LINK_HOPS or node.target is None:
                raise OSError(errno.ELOOP, "Too many levels of symbolic links", str(path))
            path = node.target
            if path in self.denied:
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            node = self._nodes.get(path)
        if node is None:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(path))
        return node

    def exists(self, path: Path) -> bool:
        return path in self._nodes

    def stat(self, path: Path, *, follow_symlinks: bool) -> FileAttributes:
        self.stat_calls.append((path, follow_symlinks))
        node = self._lookup(path, follow=follow_symlinks)
        return FileAttributes(
            kind=node.kind,
            size=len(node.data),
            mtime=node.mtime,
            mode=0o644,
            device=1,
            inode=node.inode,
        )

    def list_dir(self, path: Path) -> list[str]:
        node = self._lookup(path, follow=True)
        if node.kind is not FileKind.DIRECTORY:
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(path))
        if path in self.unlistable:
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        return [p.name for p in self._nodes if p.parent == path and p != path]

    def is_symlink(self, path: Path) -> bool:
        node = self._nodes.get(path)
        return node is not None and node.kind is FileKind.SYMLINK

    def open(self, path: Path) -> BinaryIO:
        return io.BytesIO(self._lookup(path, follow=True).data)


def events(visitor: CollectingVisitor) -> list[tuple[str, str]]:
    """Return ``(event, relative path)`` pairs in visit order."""
    return [(r.event, r.path) for r in visitor.records]


class CallbackVisitor(BaseVisitor):
    """Visitor that forwards every detail to ``on_visit`` after recording it."""

    def __init__(
        self,
        on_visit: Callable[[str, VisitDetail], None],
        *,
        reproducible: bool = True,
        links: LinkPolicy | None = None,
    ) -> None:
        super().__init__(reproducible=reproducible, links=links)
        self.on_visit = on_visit
        self.seen: list[tuple[str, str]] = []

    def visit_dir(self, detail: VisitDetail) -> None:
        self.seen.append(("dir", detail.path))
        self.on_visit("dir", detail)

    def visit_file(self, detail: VisitDetail) -> None:
        self.seen.append(("file", detail.path))
        self.on_visit("file", detail)


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (relative path -> text) below ``root``."""
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    return root
