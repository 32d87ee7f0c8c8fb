"""Depth-first directory walkers.

All files in a directory are reported before any of its subdirectories is
entered. In prefix order a directory is reported before its contents; in
postfix order after them. The stop signal is checked before every sibling
and before every descent.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from time import perf_counter
from typing import TYPE_CHECKING

from treewalk.attributes import LOCAL_FILE_SYSTEM, FileSystem, UnreliableAttributes
from treewalk.constants import BrokenLinkAction, WalkOutcome
from treewalk.details import VisitDetailFactory, detail_file_key
from treewalk.errors import BrokenLinkError
from treewalk.logging_utils import StructuredLogEvent, get_logger, log_event

if TYPE_CHECKING:
    from pathlib import Path

    from treewalk.details import StopSignal, VisitDetail
    from treewalk.links import LinkPolicy
    from treewalk.patterns import PatternFilter
    from treewalk.relative_path import RelativePath
    from treewalk.visitor import FileVisitor

logger = get_logger(__name__)


def apply_broken_link_policy(detail: VisitDetail, links: LinkPolicy) -> bool:
    """Return False when ``detail`` is a broken link that should be skipped.

    Raises :class:`BrokenLinkError` when the policy says fail.
    """
    action = links.broken_link_action(detail)
    if action is None or action is BrokenLinkAction.REPORT:
        return True
    if action is BrokenLinkAction.SKIP:
        log_event(
            logger,
            StructuredLogEvent(
                name="walk.broken_link",
                message="skipping broken symbolic link",
                level=logging.WARNING,
                context={"path": detail.file},
            ),
        )
        return False
    log_event(
        logger,
        StructuredLogEvent(
            name="walk.broken_link",
            message="broken symbolic link aborts walk",
            level=logging.ERROR,
            context={"path": detail.file},
        ),
    )
    raise BrokenLinkError(detail.file)


def should_notify(detail: VisitDetail, spec: PatternFilter, links: LinkPolicy) -> bool:
    """Apply the filter, then the broken-link policy, to ``detail``."""
    return spec.matches(detail) and apply_broken_link_policy(detail, links)


class DirectoryWalker(ABC):
    """Walk a file or directory, reporting entries to a visitor."""

    def __init__(
        self,
        file_system: FileSystem = LOCAL_FILE_SYSTEM,
        unreliable: UnreliableAttributes | None = None,
    ) -> None:
        self.file_system = file_system
        self.unreliable = unreliable or UnreliableAttributes()

    @abstractmethod
    def order_children(self, names: list[str]) -> list[str]:
        """Return directory entry names in the order they should be visited."""

    def walk(
        self,
        root: Path,
        relative_path: RelativePath,
        visitor: FileVisitor,
        spec: PatternFilter,
        stop: StopSignal,
        *,
        postfix: bool = False,
    ) -> WalkOutcome:
        """Walk ``root``, starting at ``relative_path`` below the tree root.

        A directory root is not itself reported; its contents are. A file
        root is reported once, if it matches ``spec``.
        """
        if not self.file_system.exists(root):
            log_event(
                logger,
                StructuredLogEvent(
                    name="walk.missing_root",
                    message="file or directory not found",
                    context={"root": root},
                ),
            )
            return WalkOutcome.MISSING_ROOT

        start = perf_counter()
        links = visitor.link_policy()
        factory = VisitDetailFactory(link_policy=links, file_system=self.file_system, unreliable=self.unreliable)
        log_event(
            logger,
            StructuredLogEvent(
                name="walk.start",
                message="starting directory walk",
                level=logging.DEBUG,
                context={"root": root, "postfix": postfix, "walker": type(self).__name__, "links": links.mode},
            ),
        )

        details = factory.root_detail(root, relative_path, stop)
        if details.is_directory:
            key = detail_file_key(details)
            ancestors = frozenset({key}) if key is not None else frozenset()
            self._walk_dir(root, details.relative_path, visitor, spec, stop, factory, ancestors, postfix=postfix)
        elif relative_path.is_empty:
            # a tree root link is checked before the filter
            if apply_broken_link_policy(details, links) and spec.matches(details):
                visitor.visit_file(details)
        elif should_notify(details, spec, links):
            visitor.visit_file(details)

        outcome = WalkOutcome.STOPPED if stop.is_stopped else WalkOutcome.COMPLETED
        log_event(
            logger,
            StructuredLogEvent(
                name=f"walk.{outcome.value}",
                message="directory walk finished",
                level=logging.DEBUG,
                context={"root": root, "duration_seconds": perf_counter() - start},
            ),
        )
        return outcome

    def _list_children(self, directory: Path) -> list[str]:
        try:
            names = self.file_system.list_dir(directory)
        except OSError as err:
            log_event(
                logger,
                StructuredLogEvent(
                    name="walk.unreadable_dir",
                    message="could not list directory contents",
                    level=logging.WARNING,
                    context={"path": directory, "error": err},
                ),
            )
            return []
        return self.order_children(names)

    def _walk_dir(
        self,
        directory: Path,
        relative_path: RelativePath,
        visitor: FileVisitor,
        spec: PatternFilter,
        stop: StopSignal,
        factory: VisitDetailFactory,
        ancestors: frozenset[tuple[int, int]],
        *,
        postfix: bool,
    ) -> None:
        links = factory.link_policy
        dirs: list[VisitDetail] = []
        for name in self._list_children(directory):
            if stop.is_stopped:
                return
            details = factory.child_detail(directory / name, relative_path, stop)
            if details.is_directory:
                dirs.append(details)
            elif should_notify(details, spec, links):
                visitor.visit_file(details)

        for details in dirs:
            if stop.is_stopped:
                return
            if spec.prunes(details):
                continue
            key = detail_file_key(details)
            cycle = key is not None and key in ancestors
            if cycle:
                log_event(
                    logger,
                    StructuredLogEvent(
                        name="walk.cycle",
                        message="not descending into directory already being walked",
                        level=logging.WARNING,
                        context={"path": details.file},
                    ),
                )
                # never descended, so reported as a leaf
                details = replace(details, relative_path=replace(details.relative_path, is_file=True))
            notify = spec.matches(details)
            if notify and not postfix:
                visitor.visit_dir(details)
            if stop.is_stopped:
                return
            if not cycle:
                child_ancestors = ancestors | {key} if key is not None else ancestors
                self._walk_dir(
                    details.file,
                    details.relative_path,
                    visitor,
                    spec,
                    stop,
                    factory,
                    child_ancestors,
                    postfix=postfix,
                )
            if stop.is_stopped:
                return
            if notify and postfix:
                visitor.visit_dir(details)


class DefaultDirectoryWalker(DirectoryWalker):
    """Visit children in whatever order the filesystem lists them."""

    def order_children(self, names: list[str]) -> list[str]:
        return names


class ReproducibleDirectoryWalker(DirectoryWalker):
    """Visit children sorted by name so repeated walks agree."""

    def order_children(self, names: list[str]) -> list[str]:
        return sorted(names)
