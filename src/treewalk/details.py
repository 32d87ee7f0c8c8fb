"""Visit details delivered to visitors, and the factory that builds them.

A visit detail is one of three variants:

* :class:`ResolvedDetail` - attributes were read successfully.
* :class:`UnauthorizedDetail` - nothing could be read; only the name is known.
* :class:`FallbackDetail` - attributes were read but size and timestamp are
  untrustworthy for this entry kind on this platform, so they are dropped.

Consumers should ``match`` on the variant rather than probing optional fields.
"""

from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO

from treewalk.attributes import (
    LOCAL_FILE_SYSTEM,
    FileAttributes,
    FileSystem,
    UnreliableAttributes,
    is_broken_link,
    resolve_attributes,
)
from treewalk.constants import FileKind
from treewalk.relative_path import RelativePath

if TYPE_CHECKING:
    from pathlib import Path

    from treewalk.links import LinkPolicy


class StopSignal:
    """Cooperative cancellation token shared by one walk and its visitor."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def stop(self) -> None:
        self._event.set()

    @property
    def is_stopped(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"StopSignal(stopped={self.is_stopped})"


class _EntryMixin:
    """Behaviour shared by every detail variant."""

    __slots__ = ()

    file: Path
    relative_path: RelativePath
    stop_signal: StopSignal
    file_system: FileSystem
    is_directory: bool

    @property
    def name(self) -> str:
        return self.relative_path.name or self.file.name

    @property
    def path(self) -> str:
        """Slash-separated path relative to the walk root."""
        return self.relative_path.path_string

    def stop_visiting(self) -> None:
        """Ask the walk to stop; no further callbacks follow the current one."""
        self.stop_signal.stop()

    def open(self) -> BinaryIO:
        return self.file_system.open(self.file)

    def copy_to(self, target: Path) -> bool:
        """Copy this entry to ``target``; directories are created, not copied."""
        if self.is_directory:
            target.mkdir(parents=True, exist_ok=True)
            return True
        target.parent.mkdir(parents=True, exist_ok=True)
        with self.open() as src, target.open("wb") as dst:
            shutil.copyfileobj(src, dst)
        return True


@dataclass(frozen=True, slots=True)
class ResolvedDetail(_EntryMixin):
    file: Path
    relative_path: RelativePath
    attributes: FileAttributes
    stop_signal: StopSignal = field(compare=False, repr=False)
    preserve_link: bool = False
    broken_link: bool = False
    file_system: FileSystem = field(default=LOCAL_FILE_SYSTEM, compare=False, repr=False)

    @property
    def attributes_available(self) -> bool:
        return True

    @property
    def kind(self) -> FileKind:
        return self.attributes.kind

    @property
    def is_directory(self) -> bool:
        return self.attributes.is_directory

    @property
    def size(self) -> int:
        return self.attributes.size

    @property
    def last_modified(self) -> float:
        return self.attributes.mtime

    @property
    def mode(self) -> int:
        return self.attributes.mode

    @property
    def file_key(self) -> tuple[int, int]:
        return self.attributes.file_key


@dataclass(frozen=True, slots=True)
class UnauthorizedDetail(_EntryMixin):
    """An entry whose attributes could not be read at all."""

    file: Path
    relative_path: RelativePath
    stop_signal: StopSignal = field(compare=False, repr=False)
    file_system: FileSystem = field(default=LOCAL_FILE_SYSTEM, compare=False, repr=False)

    @property
    def attributes_available(self) -> bool:
        return False

    @property
    def is_directory(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class FallbackDetail(_EntryMixin):
    """An entry whose size and timestamp are omitted as unreliable."""

    file: Path
    relative_path: RelativePath
    kind: FileKind
    stop_signal: StopSignal = field(compare=False, repr=False)
    preserve_link: bool = False
    broken_link: bool = False
    file_key: tuple[int, int] | None = None
    file_system: FileSystem = field(default=LOCAL_FILE_SYSTEM, compare=False, repr=False)

    @property
    def attributes_available(self) -> bool:
        return True

    @property
    def is_directory(self) -> bool:
        return self.kind is FileKind.DIRECTORY


type VisitDetail = ResolvedDetail | UnauthorizedDetail | FallbackDetail


def detail_kind(detail: VisitDetail) -> FileKind | None:
    match detail:
        case ResolvedDetail() | FallbackDetail():
            return detail.kind
        case UnauthorizedDetail():
            return None


def detail_size(detail: VisitDetail) -> int | None:
    match detail:
        case ResolvedDetail():
            return detail.size
        case FallbackDetail() | UnauthorizedDetail():
            return None


def detail_last_modified(detail: VisitDetail) -> float | None:
    match detail:
        case ResolvedDetail():
            return detail.last_modified
        case FallbackDetail() | UnauthorizedDetail():
            return None


def detail_file_key(detail: VisitDetail) -> tuple[int, int] | None:
    match detail:
        case ResolvedDetail() | FallbackDetail():
            return detail.file_key
        case UnauthorizedDetail():
            return None


@dataclass(frozen=True, slots=True)
class VisitDetailFactory:
    """Build one visit detail per entry for a single walk."""

    link_policy: LinkPolicy
    file_system: FileSystem = LOCAL_FILE_SYSTEM
    unreliable: UnreliableAttributes = field(default_factory=UnreliableAttributes)

    def root_detail(self, path: Path, relative_path: RelativePath, stop: StopSignal) -> VisitDetail:
        """Return the detail for the entry a walk starts from.

        When the walk starts at the tree root (empty ``relative_path``) and
        that root is not a directory, the relative path becomes a one-segment
        leaf named after the entry.
        """
        attrs = self._read(path)
        if attrs is None:
            rel = RelativePath.leaf(path.name) if relative_path.is_empty else relative_path
            return UnauthorizedDetail(path, rel, stop, file_system=self.file_system)
        preserve_link = self.link_policy.preserve_links and attrs.is_symlink
        if relative_path.is_empty and (preserve_link or not attrs.is_directory):
            relative_path = RelativePath.leaf(path.name)
        return self._create(path, relative_path, attrs, stop, preserve_link=preserve_link)

    def child_detail(self, path: Path, parent: RelativePath, stop: StopSignal) -> VisitDetail:
        """Return the detail for ``path``, a direct child of the entry at ``parent``."""
        attrs = self._read(path)
        if attrs is None:
            return UnauthorizedDetail(path, parent.append(True, path.name), stop, file_system=self.file_system)
        preserve_link = self.link_policy.preserve_links and attrs.is_symlink
        is_leaf = preserve_link or not attrs.is_directory
        relative_path = parent.append(is_leaf, path.name)
        return self._create(path, relative_path, attrs, stop, preserve_link=preserve_link)

    def _read(self, path: Path) -> FileAttributes | None:
        return resolve_attributes(self.file_system, path, follow_links=not self.link_policy.preserve_links)

    def _create(
        self,
        path: Path,
        relative_path: RelativePath,
        attrs: FileAttributes,
        stop: StopSignal,
        *,
        preserve_link: bool,
    ) -> VisitDetail:
        broken = attrs.is_symlink and is_broken_link(self.file_system, path)
        if self.unreliable.applies(attrs.kind):
            return FallbackDetail(
                path,
                relative_path,
                attrs.kind,
                stop,
                preserve_link=preserve_link,
                broken_link=broken,
                file_key=attrs.file_key,
                file_system=self.file_system,
            )
        return ResolvedDetail(
            path,
            relative_path,
            attrs,
            stop,
            preserve_link=preserve_link,
            broken_link=broken,
            file_system=self.file_system,
        )
