"""Symbolic link policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from treewalk.constants import BrokenLinkAction, LinkMode
from treewalk.details import FallbackDetail, ResolvedDetail, UnauthorizedDetail

if TYPE_CHECKING:
    from treewalk.details import VisitDetail


@dataclass(frozen=True, slots=True)
class LinkPolicy:
    """Decide whether links are followed or preserved, and what broken ones do.

    ``broken`` only matters when links are preserved; a following walk reports
    a dangling link as a plain leaf of kind ``symlink``.
    """

    mode: LinkMode = LinkMode.FOLLOW
    broken: BrokenLinkAction = BrokenLinkAction.FAIL

    @classmethod
    def follow(cls) -> LinkPolicy:
        return cls(mode=LinkMode.FOLLOW)

    @classmethod
    def preserve(cls, broken: BrokenLinkAction = BrokenLinkAction.FAIL) -> LinkPolicy:
        return cls(mode=LinkMode.PRESERVE, broken=broken)

    @property
    def preserve_links(self) -> bool:
        return self.mode is LinkMode.PRESERVE

    def broken_link_action(self, detail: VisitDetail) -> BrokenLinkAction | None:
        """Return the action to take for ``detail``, or ``None`` to notify normally."""
        if not self.preserve_links:
            return None
        match detail:
            case ResolvedDetail(broken_link=True) | FallbackDetail(broken_link=True):
                return self.broken
            case ResolvedDetail() | FallbackDetail() | UnauthorizedDetail():
                return None
