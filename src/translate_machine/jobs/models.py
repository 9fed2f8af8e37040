"""Domain models for supervised translation jobs."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import uuid4

from translate_machine.jobs.events import WorkerEvent, apply_event

DEFAULT_OUTPUT_LIMIT = 200


class JobStatus(str, Enum):
    """Job lifecycle states. Only ``RUNNING`` is non-terminal."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


@dataclass(slots=True)
class JobProgress:
    """Progress counters derived from worker events."""

    total: int = 0
    completed: int = 0
    failed: int = 0
    current_file: str | None = None

    def copy(self) -> JobProgress:
        return JobProgress(
            total=self.total,
            completed=self.completed,
            failed=self.failed,
            current_file=self.current_file,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
        }
        if self.current_file is not None:
            payload["currentFile"] = self.current_file
        return payload


@dataclass(slots=True)
class StartJobOptions:
    """Input payload for starting one translation job."""

    source: str
    target: str
    model: str | None = None
    target_lang: str | None = None
    source_lang: str | None = None
    parallel: int | None = None
    retries: int | None = None
    delay: float | None = None
    max_files: int | None = None
    file_pattern: str | None = None
    glossary: str | None = None
    trim_suffix: str | None = None
    add_suffix: str | None = None
    preserve_code: bool | None = None
    retry_failed: bool = False
    dry_run: bool = False


@dataclass(slots=True)
class JobManagerConfig:
    """Component-level settings shared by every job."""

    script_path: Path
    max_concurrent: int = 2
    default_model: str | None = None
    default_target_lang: str | None = None
    default_parallel: int | None = None
    default_retries: int | None = None
    default_delay: float | None = None
    preserve_code: bool | None = None
    python_executable: str = "python3"
    output_limit: int = DEFAULT_OUTPUT_LIMIT


class OutputBuffer:
    """Fixed-capacity line buffer that drops the oldest lines on overflow."""

    def __init__(self, limit: int = DEFAULT_OUTPUT_LIMIT) -> None:
        if limit <= 0:
            raise ValueError(f"Output buffer limit must be positive: {limit!r}")
        self._lines: deque[str] = deque(maxlen=limit)
        self._total = 0

    @property
    def total(self) -> int:
        """Lines appended since creation, including dropped ones."""

        return self._total

    def append(self, line: str) -> None:
        self._lines.append(line)
        self._total += 1

    def lines_from(self, offset: int = 0) -> list[str]:
        """Return retained lines from ``offset``; stale offsets yield ``[]``."""

        return list(self._lines)[max(0, offset) :]

    def __len__(self) -> int:
        return len(self._lines)


@dataclass(frozen=True, slots=True)
class TranslationJobView:
    """Point-in-time snapshot of one job for readers."""

    id: str
    status: JobStatus
    source: str
    target: str
    started_at: datetime
    completed_at: datetime | None
    progress: JobProgress
    output_lines: tuple[str, ...] = ()
    output_total: int = 0
    pid: int | None = None

    def to_dict(self, *, include_output: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "source": self.source,
            "target": self.target,
            "progress": self.progress.to_dict(),
            "startedAt": _epoch_ms(self.started_at),
            "completedAt": _epoch_ms(self.completed_at) if self.completed_at else None,
            "pid": self.pid,
        }
        if include_output:
            payload["outputLines"] = list(self.output_lines)
        return payload


class TranslationJob:
    """Mutable job record.

    Written concurrently by the stdout and stderr reader threads, the exit
    watcher and ``cancel``; every read and write takes ``_lock``.
    """

    def __init__(
        self,
        *,
        source: str,
        target: str,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
        job_id: str | None = None,
    ) -> None:
        self.id = job_id or new_job_id()
        self.source = source
        self.target = target
        self.started_at = utc_now()
        self._status = JobStatus.RUNNING
        self._completed_at: datetime | None = None
        self._progress = JobProgress()
        self._output = OutputBuffer(output_limit)
        self._pid: int | None = None
        self._lock = threading.Lock()

    @property
    def status(self) -> JobStatus:
        with self._lock:
            return self._status

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    def set_pid(self, pid: int) -> None:
        with self._lock:
            self._pid = pid

    def append_output(self, line: str) -> None:
        with self._lock:
            self._output.append(line)

    def record_event_line(self, line: str, event: WorkerEvent) -> None:
        """Append a primary-stream line and fold its event in one step."""

        with self._lock:
            self._output.append(line)
            apply_event(self._progress, event)

    def finish(self, status: JobStatus) -> bool:
        """Leave ``RUNNING`` for ``status``; no-op once the job is terminal."""

        if not status.is_terminal:
            raise ValueError(f"Cannot finish a job with non-terminal status {status.value!r}")
        with self._lock:
            if self._status.is_terminal:
                return False
            self._status = status
            self._completed_at = max(utc_now(), self.started_at)
            return True

    def cancel(self) -> bool:
        return self.finish(JobStatus.CANCELLED)

    def output_from(self, offset: int = 0) -> list[str]:
        with self._lock:
            return self._output.lines_from(offset)

    def view(self, *, include_output: bool = True) -> TranslationJobView:
        with self._lock:
            return TranslationJobView(
                id=self.id,
                status=self._status,
                source=self.source,
                target=self.target,
                started_at=self.started_at,
                completed_at=self._completed_at,
                progress=self._progress.copy(),
                output_lines=tuple(self._output.lines_from(0)) if include_output else (),
                output_total=self._output.total,
                pid=self._pid,
            )


def new_job_id() -> str:
    """Timestamp-derived id with a random suffix for same-millisecond starts."""

    return f"translate-{time.time_ns() // 1_000_000}-{uuid4().hex[:8]}"


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)
