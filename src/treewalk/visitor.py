"""Visitor callback contract and ready-made visitors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from treewalk.links import LinkPolicy

if TYPE_CHECKING:
    from pathlib import Path

    from treewalk.details import VisitDetail


class FileVisitor(Protocol):
    """Callbacks a walk drives.

    ``requires_reproducible_order`` is read once per walk; when true the walk
    sorts directory listings so the callback sequence does not depend on the
    filesystem's enumeration order.
    """

    def visit_dir(self, detail: VisitDetail) -> None: ...

    def visit_file(self, detail: VisitDetail) -> None: ...

    def requires_reproducible_order(self) -> bool: ...

    def link_policy(self) -> LinkPolicy: ...


class BaseVisitor:
    """Visitor with no-op callbacks; subclass and override what you need."""

    def __init__(self, *, reproducible: bool = False, links: LinkPolicy | None = None) -> None:
        self._reproducible = reproducible
        self._links = links or LinkPolicy()

    def visit_dir(self, detail: VisitDetail) -> None:
        pass

    def visit_file(self, detail: VisitDetail) -> None:
        pass

    def requires_reproducible_order(self) -> bool:
        return self._reproducible

    def link_policy(self) -> LinkPolicy:
        return self._links


@dataclass(frozen=True, slots=True)
class VisitRecord:
    """One visitor callback, as recorded by :class:`CollectingVisitor`."""

    event: str
    detail: VisitDetail = field(compare=False)

    @property
    def path(self) -> str:
        return self.detail.path


class CollectingVisitor(BaseVisitor):
    """Record every callback in order."""

    def __init__(self, *, reproducible: bool = False, links: LinkPolicy | None = None) -> None:
        super().__init__(reproducible=reproducible, links=links)
        self.records: list[VisitRecord] = []

    def visit_dir(self, detail: VisitDetail) -> None:
        self.records.append(VisitRecord("dir", detail))

    def visit_file(self, detail: VisitDetail) -> None:
        self.records.append(VisitRecord("file", detail))

    @property
    def details(self) -> list[VisitDetail]:
        return [r.detail for r in self.records]

    def paths(self) -> list[str]:
        """Relative paths in visit order."""
        return [r.path for r in self.records]

    def files(self) -> list[Path]:
        return [r.detail.file for r in self.records if r.event == "file"]
