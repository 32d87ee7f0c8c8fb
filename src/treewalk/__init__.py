"""Package initialization for treewalk."""

from __future__ import annotations

import contextlib
import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Final

_UNKNOWN_VERSION: Final[str] = "0.0.0"
_UNKNOWN_SOURCE: Final[str] = "unknown"
_PYPROJECT_SOURCE: Final[str] = "pyproject"


def _load_pyproject_version() -> tuple[str, str]:
    """Read the version declared in the project's ``pyproject.toml``."""
    pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with pyproject_path.open("rb") as fh:
        data = tomllib.load(fh)

    project_table = data.get("project")
    if not isinstance(project_table, dict):
        msg = "pyproject.toml is missing a [project] table"
        raise TypeError(msg)

    version_value = project_table.get("version")
    if not isinstance(version_value, str):
        msg = "[project].version must be a string"
        raise TypeError(msg)

    return version_value, _PYPROJECT_SOURCE


def _resolve_version() -> tuple[str, str]:
    """Resolve the package version and record the source used."""
    if __package__:
        with contextlib.suppress(PackageNotFoundError):
            return version(__package__), "distribution"

    with contextlib.suppress(Exception):
        return _load_pyproject_version()

    return _UNKNOWN_VERSION, _UNKNOWN_SOURCE


__version__, VERSION_SOURCE = _resolve_version()

from treewalk.attributes import (  # noqa: E402
    LOCAL_FILE_SYSTEM,
    FileAttributes,
    FileSystem,
    LocalFileSystem,
    UnreliableAttributes,
    resolve_attributes,
)
from treewalk.constants import (  # noqa: E402
    BrokenLinkAction,
    FileKind,
    LinkMode,
    TraversalOrder,
    WalkOutcome,
)
from treewalk.details import (  # noqa: E402
    FallbackDetail,
    ResolvedDetail,
    StopSignal,
    UnauthorizedDetail,
    VisitDetail,
    VisitDetailFactory,
)
from treewalk.errors import BrokenLinkError, ConfigLoadError, TreeWalkError  # noqa: E402
from treewalk.links import LinkPolicy  # noqa: E402
from treewalk.patterns import PatternFilter, PatternSet  # noqa: E402
from treewalk.relative_path import RelativePath  # noqa: E402
from treewalk.tree import DirectoryTree  # noqa: E402
from treewalk.visitor import BaseVisitor, CollectingVisitor, FileVisitor  # noqa: E402
from treewalk.walker import (  # noqa: E402
    DefaultDirectoryWalker,
    DirectoryWalker,
    ReproducibleDirectoryWalker,
)

__all__ = [
    "LOCAL_FILE_SYSTEM",
    "VERSION_SOURCE",
    "BaseVisitor",
    "BrokenLinkAction",
    "BrokenLinkError",
    "CollectingVisitor",
    "ConfigLoadError",
    "DefaultDirectoryWalker",
    "DirectoryTree",
    "DirectoryWalker",
    "FallbackDetail",
    "FileAttributes",
    "FileKind",
    "FileSystem",
    "FileVisitor",
    "LinkMode",
    "LinkPolicy",
    "LocalFileSystem",
    "PatternFilter",
    "PatternSet",
    "RelativePath",
    "ReproducibleDirectoryWalker",
    "ResolvedDetail",
    "StopSignal",
    "TraversalOrder",
    "TreeWalkError",
    "UnauthorizedDetail",
    "UnreliableAttributes",
    "VisitDetail",
    "VisitDetailFactory",
    "WalkOutcome",
    "__version__",
    "resolve_attributes",
]
