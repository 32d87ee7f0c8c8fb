"""Directory tree facade: a root, a pattern filter and a traversal order."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

from treewalk.attributes import LOCAL_FILE_SYSTEM, FileSystem, UnreliableAttributes, resolve_attributes
from treewalk.constants import FileKind, TraversalOrder, WalkOutcome
from treewalk.details import StopSignal, VisitDetailFactory
from treewalk.links import LinkPolicy
from treewalk.patterns import PatternFilter
from treewalk.relative_path import RelativePath
from treewalk.visitor import BaseVisitor
from treewalk.walker import DefaultDirectoryWalker, DirectoryWalker, ReproducibleDirectoryWalker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from treewalk.config import WalkSettings
    from treewalk.details import VisitDetail
    from treewalk.visitor import FileVisitor


@dataclass(frozen=True, slots=True)
class DirectoryTree:
    """A directory (or single file) plus the filter and order used to walk it.

    Trees are immutable; :meth:`filter` and :meth:`postfix` return new trees
    sharing the same root and filesystem handle.
    """

    root: Path
    patterns: PatternFilter = field(default_factory=PatternFilter)
    order: TraversalOrder = TraversalOrder.PREFIX
    file_system: FileSystem = field(default=LOCAL_FILE_SYSTEM, compare=False, repr=False)
    unreliable: UnreliableAttributes = field(default_factory=UnreliableAttributes, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Absolute without resolving links so a linked root keeps its own name.
        object.__setattr__(self, "root", Path(os.path.abspath(self.root)))

    @classmethod
    def from_settings(
        cls,
        root: Path,
        settings: WalkSettings,
        *,
        file_system: FileSystem = LOCAL_FILE_SYSTEM,
    ) -> DirectoryTree:
        """Build a tree from loaded configuration."""
        return cls(
            root=root,
            patterns=settings.pattern_filter(),
            order=settings.order,
            file_system=file_system,
            unreliable=settings.unreliable_attributes(),
        )

    @property
    def display_name(self) -> str:
        includes = f" include {list(self.patterns.includes)}" if self.patterns.includes else ""
        excludes = f" exclude {list(self.patterns.excludes)}" if self.patterns.excludes else ""
        return f"directory '{self.root}'{includes}{excludes}"

    def __str__(self) -> str:
        return self.display_name

    @property
    def is_postfix(self) -> bool:
        return self.order is TraversalOrder.POSTFIX

    def filter(
        self,
        patterns: PatternFilter | None = None,
        *,
        includes: str | Iterable[str] = (),
        excludes: str | Iterable[str] = (),
    ) -> DirectoryTree:
        """Return a tree whose filter also requires ``patterns`` (and the extra includes/excludes)."""
        narrowed = self.patterns
        if patterns is not None:
            narrowed = narrowed.intersect(patterns)
        extra = PatternFilter.of(includes, excludes)
        if extra.clauses:
            narrowed = narrowed.intersect(extra)
        return replace(self, patterns=narrowed)

    def postfix(self) -> DirectoryTree:
        """Return a tree that reports directories after their contents."""
        if self.is_postfix:
            return self
        return replace(self, order=TraversalOrder.POSTFIX)

    def walker_for(self, visitor: FileVisitor) -> DirectoryWalker:
        if visitor.requires_reproducible_order():
            return ReproducibleDirectoryWalker(self.file_system, self.unreliable)
        return DefaultDirectoryWalker(self.file_system, self.unreliable)

    def visit(self, visitor: FileVisitor) -> WalkOutcome:
        """Walk the whole tree, reporting matching entries to ``visitor``."""
        return self.visit_from(visitor, self.root, RelativePath.EMPTY_ROOT, StopSignal())

    def visit_from(
        self,
        visitor: FileVisitor,
        path: Path,
        relative_path: RelativePath,
        stop: StopSignal,
    ) -> WalkOutcome:
        """Walk ``path`` as if reached at ``relative_path`` below the root.

        If ``path`` is a directory its contents (not the directory itself)
        are checked and reported; if it is a file, the file is.
        """
        return self.walker_for(visitor).walk(
            path,
            relative_path,
            visitor,
            self.patterns,
            stop,
            postfix=self.is_postfix,
        )

    def contains(self, file: Path) -> bool:
        """Return True if ``file`` is a regular file this tree's walk would report."""
        target = Path(os.path.abspath(file))
        if target == self.root:
            relative_path = RelativePath.EMPTY_ROOT
        elif target.is_relative_to(self.root):
            relative_path = RelativePath(is_file=True, segments=target.relative_to(self.root).parts)
        else:
            return False

        attrs = resolve_attributes(self.file_system, target)
        if attrs is None or attrs.kind is not FileKind.FILE:
            return False
        if self.patterns.prune_excluded_dirs and self._pruned_on_the_way(target, relative_path):
            return False

        finder = _MembershipVisitor(target)
        self.visit_from(finder, target, relative_path, StopSignal())
        return finder.found

    def _pruned_on_the_way(self, target: Path, relative_path: RelativePath) -> bool:
        factory = VisitDetailFactory(LinkPolicy(), self.file_system, self.unreliable)
        stop = StopSignal()
        current = self.root
        parent = RelativePath.EMPTY_ROOT
        for segment in relative_path.segments[:-1]:
            current /= segment
            details = factory.child_detail(current, parent, stop)
            if self.patterns.prunes(details):
                return True
            parent = details.relative_path
        return False


class _MembershipVisitor(BaseVisitor):
    def __init__(self, target: Path) -> None:
        super().__init__()
        self.target = target
        self.found = False

    def visit_file(self, detail: VisitDetail) -> None:
        if detail.file == self.target:
            self.found = True
            detail.stop_visiting()
