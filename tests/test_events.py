from __future__ import annotations

import allure
import pytest

from translate_machine.jobs.events import (
    DoneEvent,
    FileFailEvent,
    FileOkEvent,
    FileStartEvent,
    InitEvent,
    RawLine,
    UnknownEvent,
    apply_event,
    parse_event,
)
from translate_machine.jobs.models import JobProgress

pytestmark = [
    allure.epic("Job Supervision"),
    allure.feature("Event Interpreter"),
]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ('{"event": "init", "pending": 3}', InitEvent(pending=3)),
        ('{"event": "init"}', InitEvent(pending=0)),
        ('{"event": "init", "pending": "3"}', InitEvent(pending=0)),
        ('{"event": "file_start", "file": "a.md"}', FileStartEvent(file="a.md")),
        ('{"event": "file_ok", "file": "a.md"}', FileOkEvent(file="a.md")),
        ('{"event": "file_fail", "file": "b.md", "error": "x"}', FileFailEvent(file="b.md")),
    ],
)
def test_parse_event_recognized_kinds(line: str, expected) -> None:
    assert parse_event(line) == expected


def test_parse_event_done_and_unknown_keep_payload() -> None:
    done = parse_event('{"event": "done", "ok": 2}')
    unknown = parse_event('{"event": "heartbeat", "n": 1}')

    assert isinstance(done, DoneEvent)
    assert done.payload["ok"] == 2
    assert unknown == UnknownEvent(kind="heartbeat", payload={"event": "heartbeat", "n": 1})


@pytest.mark.parametrize("line", ["Translating...", "", "{broken", "[1, 2]", "42", '"text"'])
def test_parse_event_non_object_lines_are_raw(line: str) -> None:
    assert parse_event(line) == RawLine(text=line)


@pytest.mark.parametrize(
    "pending",
    ["1e400", "-1e400", "NaN", "Infinity", "-Infinity"],
)
def test_parse_event_non_finite_count_is_zero(pending: str) -> None:
    assert parse_event(f'{{"event": "init", "pending": {pending}}}') == InitEvent(pending=0)


def test_parse_event_deeply_nested_line_is_raw() -> None:
    line = "[" * 100_000

    assert parse_event(line) == RawLine(text=line)


def test_apply_event_example_run() -> None:
    progress = JobProgress()
    lines = ['{"event": "init", "pending": 3}']
    for name in ("a.md", "b.md", "c.md"):
        lines.append(f'{{"event": "file_start", "file": "{name}"}}')
        lines.append(f'{{"event": "file_ok", "file": "{name}"}}')
    lines.append('{"event": "done"}')

    for line in lines:
        apply_event(progress, parse_event(line))

    assert progress == JobProgress(total=3, completed=3, failed=0, current_file="c.md")


def test_apply_event_counters_never_decrease() -> None:
    progress = JobProgress()
    kinds = ["file_ok", "file_fail", "file_ok", "file_fail", "file_fail"]
    seen: list[tuple[int, int]] = []

    for kind in kinds:
        apply_event(progress, parse_event(f'{{"event": "{kind}", "file": "x.md"}}'))
        seen.append((progress.completed, progress.failed))

    assert seen == sorted(seen)
    assert progress.completed == 5
    assert progress.failed == 3


def test_apply_event_ignores_raw_done_and_unknown() -> None:
    progress = JobProgress(total=2, completed=1, failed=0, current_file="a.md")

    for line in ("plain text", '{"event": "done"}', '{"event": "other", "file": "z.md"}'):
        apply_event(progress, parse_event(line))

    assert progress == JobProgress(total=2, completed=1, failed=0, current_file="a.md")
