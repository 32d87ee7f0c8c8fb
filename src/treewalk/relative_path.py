"""Relative paths from a walk root to the entries below it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class RelativePath:
    """Ordered path segments below a walk root plus a leaf flag.

    ``is_file`` is true when the entry is not a container that will be
    descended into. The empty path with ``is_file=False`` denotes the root
    directory itself.
    """

    is_file: bool
    segments: tuple[str, ...] = ()

    EMPTY_ROOT: ClassVar[RelativePath]

    @classmethod
    def leaf(cls, name: str) -> RelativePath:
        """Return a single-segment leaf path for ``name``."""
        return cls(is_file=True, segments=(name,))

    @classmethod
    def parse(cls, is_file: bool, path: str) -> RelativePath:  # noqa: FBT001 - mirrors the constructor
        """Split a slash- or backslash-separated path string into segments."""
        normalised = path.replace("\\", SEPARATOR)
        segments = tuple(s for s in normalised.split(SEPARATOR) if s and s != ".")
        return cls(is_file=is_file, segments=segments)

    def append(self, is_file: bool, *segments: str) -> RelativePath:  # noqa: FBT001 - mirrors the constructor
        """Return a new path with ``segments`` added below this one."""
        return RelativePath(is_file=is_file, segments=self.segments + segments)

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def name(self) -> str:
        """Last segment, or the empty string for the root."""
        return self.segments[-1] if self.segments else ""

    @property
    def parent(self) -> RelativePath | None:
        """Containing directory path, or ``None`` for the root."""
        if not self.segments:
            return None
        return RelativePath(is_file=False, segments=self.segments[:-1])

    @property
    def path_string(self) -> str:
        return SEPARATOR.join(self.segments)

    def match_string(self, *, is_dir: bool) -> str:
        """Return the path in the form gitignore-style matchers expect.

        Directories get a trailing slash so directory-only patterns apply.
        """
        s = self.path_string
        if is_dir and s and not s.endswith(SEPARATOR):
            return s + SEPARATOR
        return s

    def __str__(self) -> str:
        return self.path_string


RelativePath.EMPTY_ROOT = RelativePath(is_file=False)
