"""Custom exception classes and error messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

ERROR_MSG_BROKEN_LINK = "Couldn't follow symbolic link '{path}'."


class TreeWalkError(Exception):
    """Base class for errors raised by treewalk."""


class BrokenLinkError(TreeWalkError):
    """Raised when a preserved symbolic link points at nothing and the policy says fail."""

    __slots__ = ("path",)

    def __init__(self, path: Path) -> None:
        super().__init__(ERROR_MSG_BROKEN_LINK.format(path=path))
        self.path = path


class ConfigLoadError(TreeWalkError):
    """Raised when a configuration file cannot be loaded or holds invalid values."""


__all__ = [
    "ERROR_MSG_BROKEN_LINK",
    "BrokenLinkError",
    "ConfigLoadError",
    "TreeWalkError",
]
