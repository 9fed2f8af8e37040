from __future__ import annotations

import allure
import pytest

from translate_machine.jobs.events import parse_event
from translate_machine.jobs.models import (
    JobStatus,
    OutputBuffer,
    TranslationJob,
    new_job_id,
)

pytestmark = [
    allure.epic("Job Supervision"),
    allure.feature("Job State"),
]


def test_output_buffer_drops_oldest_lines_over_limit() -> None:
    buffer = OutputBuffer(limit=200)
    for index in range(1, 251):
        buffer.append(f"line {index}")

    lines = buffer.lines_from(0)

    assert len(buffer) == 200
    assert buffer.total == 250
    assert lines[0] == "line 51"
    assert lines[-1] == "line 250"


def test_output_buffer_offsets() -> None:
    buffer = OutputBuffer(limit=5)
    for line in ("a", "b", "c"):
        buffer.append(line)

    assert buffer.lines_from(1) == ["b", "c"]
    assert buffer.lines_from(3) == []
    assert buffer.lines_from(10) == []
    assert buffer.lines_from(-4) == ["a", "b", "c"]


def test_output_buffer_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError, match="must be positive"):
        OutputBuffer(limit=0)


def test_job_finish_is_one_way_and_sets_completed_at_once() -> None:
    job = TranslationJob(source="/docs-en", target="/docs-tw")
    assert job.view().completed_at is None

    assert job.cancel() is True
    cancelled = job.view()
    assert job.finish(JobStatus.COMPLETED) is False
    assert job.finish(JobStatus.FAILED) is False

    final = job.view()
    assert final.status == JobStatus.CANCELLED
    assert final.completed_at == cancelled.completed_at
    assert final.completed_at is not None
    assert final.completed_at >= final.started_at


def test_job_finish_rejects_running_status() -> None:
    job = TranslationJob(source="s", target="t")

    with pytest.raises(ValueError, match="non-terminal"):
        job.finish(JobStatus.RUNNING)


def test_job_view_is_a_snapshot() -> None:
    job = TranslationJob(source="s", target="t")
    init_line = '{"event": "init", "pending": 2}'
    ok_line = '{"event": "file_ok", "file": "a.md"}'
    job.record_event_line(init_line, parse_event(init_line))
    before = job.view()

    job.record_event_line(ok_line, parse_event(ok_line))

    assert before.progress.completed == 0
    assert before.output_lines == (init_line,)
    assert job.view().progress.completed == 1


def test_job_view_to_dict_uses_camel_case_and_epoch_ms() -> None:
    job = TranslationJob(source="/docs-en", target="/docs-tw", job_id="translate-1")
    job.set_pid(4321)
    job.append_output("hello")
    job.finish(JobStatus.COMPLETED)

    payload = job.view().to_dict()
    summary = job.view(include_output=False).to_dict(include_output=False)

    assert payload["id"] == "translate-1"
    assert payload["status"] == "completed"
    assert payload["progress"] == {"total": 0, "completed": 0, "failed": 0}
    assert isinstance(payload["startedAt"], int)
    assert payload["completedAt"] >= payload["startedAt"]
    assert payload["outputLines"] == ["hello"]
    assert payload["pid"] == 4321
    assert "outputLines" not in summary


def test_new_job_ids_are_unique_within_a_millisecond() -> None:
    ids = {new_job_id() for _ in range(1000)}

    assert len(ids) == 1000
    assert all(job_id.startswith("translate-") for job_id in ids)
