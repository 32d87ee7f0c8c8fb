"""Shared CLI helpers used by multiple subcommands."""

from __future__ import annotations

import contextlib
import os
import sys
from typing import TYPE_CHECKING, Any

from treewalk.constants import FileKind
from treewalk.details import (
    FallbackDetail,
    ResolvedDetail,
    UnauthorizedDetail,
    detail_kind,
    detail_last_modified,
    detail_size,
)

if TYPE_CHECKING:
    from treewalk.visitor import VisitRecord


def exit_on_broken_pipe() -> None:
    """Exit quietly when stdout's reader has gone away."""
    # Point stdout at devnull so the interpreter's final flush cannot raise again.
    with contextlib.suppress(OSError, ValueError):
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
    raise SystemExit(0)


def detail_status(record: VisitRecord) -> str:
    """Short label describing which detail variant ``record`` carries."""
    match record.detail:
        case ResolvedDetail(broken_link=True) | FallbackDetail(broken_link=True):
            return "broken-link"
        case ResolvedDetail():
            return "ok"
        case FallbackDetail():
            return "fallback"
        case UnauthorizedDetail():
            return "unauthorized"


def record_payload(record: VisitRecord) -> dict[str, Any]:
    """JSON-friendly description of one visitor callback."""
    kind: FileKind | None = detail_kind(record.detail)
    return {
        "event": record.event,
        "path": record.path,
        "kind": kind.value if kind is not None else None,
        "size": detail_size(record.detail),
        "mtime": detail_last_modified(record.detail),
        "status": detail_status(record),
    }
