"""Project-wide constants and enums."""

from __future__ import annotations

from enum import StrEnum


class TraversalOrder(StrEnum):
    """When a directory is reported relative to its descendants."""

    PREFIX = "prefix"
    POSTFIX = "postfix"


class LinkMode(StrEnum):
    """How symbolic links encountered during a walk are treated."""

    FOLLOW = "follow"
    PRESERVE = "preserve"


class BrokenLinkAction(StrEnum):
    """What a preserving walk does with a link whose target is missing."""

    SKIP = "skip"
    REPORT = "report"
    FAIL = "fail"


class FileKind(StrEnum):
    """Entry types reported in visit details."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class WalkOutcome(StrEnum):
    """How a walk ended when it did not raise."""

    COMPLETED = "completed"
    MISSING_ROOT = "missing_root"
    STOPPED = "stopped"


# Configuration keys
CONFIG_INCLUDE = "include"
CONFIG_EXCLUDE = "exclude"
CONFIG_ORDER = "order"
CONFIG_REPRODUCIBLE = "reproducible"
CONFIG_LINKS = "links"
CONFIG_BROKEN_LINKS = "broken_links"
CONFIG_PRUNE_EXCLUDED_DIRS = "prune_excluded_dirs"
CONFIG_UNRELIABLE_DIR_PLATFORMS = "unreliable_dir_attributes_platforms"

# Exit codes
EXIT_CONFIG = 3
EXIT_BROKEN_LINK = 4
