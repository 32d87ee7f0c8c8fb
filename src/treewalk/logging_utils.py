"""Structured walk events carried on standard :mod:`logging` records.

Each record gets two extra attributes: ``event`` (a dotted name such as
``walk.cycle``) and ``context`` (a flat mapping of scalar values).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

type LogValue = str | int | float | bool | None


def _scalar(value: object) -> LogValue:
    """Flatten ``value`` into something a log formatter can print."""
    match value:
        case Path():
            return value.as_posix()
        case Enum():
            return _scalar(value.value)
        case OSError():
            return value.strerror or str(value)
        case float():
            return round(value, 6)
        case str() | int() | bool() | None:
            return value
        case _:
            return str(value)


@dataclass(frozen=True, slots=True)
class StructuredLogEvent:
    """A named walk event plus the context it happened in."""

    name: str
    message: str
    context: dict[str, object] = field(default_factory=dict)
    level: int = logging.INFO

    def flat_context(self) -> dict[str, LogValue]:
        return {str(k): _scalar(v) for k, v in self.context.items()}


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_event(logger: logging.Logger, event: StructuredLogEvent) -> None:
    """Emit ``event`` to ``logger`` if its level is enabled."""
    if not logger.isEnabledFor(event.level):
        return
    logger.log(event.level, event.message, extra={"event": event.name, "context": event.flat_context()})


__all__ = ["StructuredLogEvent", "get_logger", "log_event"]
