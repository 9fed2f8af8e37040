"""Decode worker JSON-lines events and fold them into job progress."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from translate_machine.jobs.models import JobProgress


@dataclass(frozen=True, slots=True)
class InitEvent:
    """Worker finished scanning and reports how many files are pending."""

    pending: int


@dataclass(frozen=True, slots=True)
class FileStartEvent:
    file: str | None


@dataclass(frozen=True, slots=True)
class FileOkEvent:
    file: str | None


@dataclass(frozen=True, slots=True)
class FileFailEvent:
    file: str | None


@dataclass(frozen=True, slots=True)
class DoneEvent:
    """Worker summary; final status still comes from the exit code."""

    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    """Well-formed event object with a kind this version does not know."""

    kind: object
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RawLine:
    """Line that is not a JSON event object."""

    text: str


WorkerEvent = Union[
    InitEvent,
    FileStartEvent,
    FileOkEvent,
    FileFailEvent,
    DoneEvent,
    UnknownEvent,
    RawLine,
]

_FILE_EVENTS = {
    "file_start": FileStartEvent,
    "file_ok": FileOkEvent,
    "file_fail": FileFailEvent,
}


def parse_event(line: str) -> WorkerEvent:
    """Decode one primary-stream line; undecodable input becomes ``RawLine``. Never raises."""

    try:
        payload = json.loads(line)
    except (ValueError, RecursionError):
        return RawLine(text=line)
    if not isinstance(payload, dict):
        return RawLine(text=line)

    kind = payload.get("event")
    if kind == "init":
        return InitEvent(pending=_as_count(payload.get("pending")))
    if kind in _FILE_EVENTS:
        return _FILE_EVENTS[kind](file=_as_file(payload.get("file")))
    if kind == "done":
        return DoneEvent(payload=payload)
    return UnknownEvent(kind=kind, payload=payload)


def apply_event(progress: JobProgress, event: WorkerEvent) -> None:
    """Fold ``event`` into ``progress``. Counters only ever grow."""

    if isinstance(event, InitEvent):
        progress.total = event.pending
    elif isinstance(event, FileStartEvent):
        progress.current_file = event.file
    elif isinstance(event, FileOkEvent):
        progress.completed += 1
        progress.current_file = event.file
    elif isinstance(event, FileFailEvent):
        progress.completed += 1
        progress.failed += 1
        progress.current_file = event.file


def _as_count(value: object) -> int:
    # bool is an int subclass; a JSON true is not a file count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


def _as_file(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
