"""Controllers for translate-machine CLI commands."""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from translate_machine.config import Settings
from translate_machine.files import list_translation_files, read_translation_logs
from translate_machine.jobs import (
    JobAdmissionError,
    JobManager,
    JobProgress,
    JobStatus,
    StartJobOptions,
    TranslationJobView,
)


@dataclass(slots=True)
class TranslateRunCommand:
    """CLI input for running one job in the foreground."""

    options: StartJobOptions
    show_output: bool = True
    poll_interval_seconds: float = 0.5


@dataclass(slots=True)
class TranslateRunResult:
    """Final state of a foreground run, filled in as the run ends."""

    job_id: str | None = None
    status: JobStatus | None = None

    @property
    def success(self) -> bool:
        return self.status is JobStatus.COMPLETED


@dataclass(slots=True)
class TranslateFilesCommand:
    source: Path
    target: Path
    file_pattern: str = "*.md"
    trim_suffix: str | None = None
    add_suffix: str | None = None


@dataclass(slots=True)
class TranslateLogsCommand:
    target: Path
    glossary: Path | None = None


class TranslateCliController:
    """Coordinates the job manager and file lookups for CLI commands."""

    def run_job(self, command: TranslateRunCommand, result: TranslateRunResult) -> Iterator[str]:
        """Start a job and follow it until it leaves ``running``, yielding report lines.

        Ctrl-C cancels the job. The manager lives only as long as this call, so
        any worker still alive when it returns is terminated.
        """

        settings = Settings.from_env()
        manager = JobManager(settings.job_manager_config())
        options = _apply_defaults(command.options, settings)
        try:
            try:
                job = manager.start(options)
            except JobAdmissionError as error:
                yield f"Job rejected: {error}"
                return

            result.job_id = job.id
            yield f"Job started: job_id={job.id} pid={job.pid} source={job.source} target={job.target}"
            try:
                final = yield from _follow(manager, job.id, command)
            except KeyboardInterrupt:
                manager.cancel(job.id)
                final = manager.get(job.id)
                yield "Interrupted, job cancelled."

            result.status = final.status if final is not None else None
            if final is not None:
                yield _format_final(final)
        finally:
            manager.shutdown()

    def list_files(self, command: TranslateFilesCommand) -> list[str]:
        listing = list_translation_files(
            command.source,
            command.target,
            file_pattern=command.file_pattern,
            trim_suffix=command.trim_suffix,
            add_suffix=command.add_suffix,
        )
        lines = [
            f"Source files ({len(listing.source)}):",
            *[f"  {name}" for name in listing.source],
            f"Target files ({len(listing.target)}):",
            *[f"  {name}" for name in listing.target],
            f"Pending ({len(listing.pending)}):",
            *[f"  {name}" for name in listing.pending],
        ]
        return lines

    def read_logs(self, command: TranslateLogsCommand) -> list[str]:
        logs = read_translation_logs(command.target, command.glossary)
        sections = (
            ("translate-log.txt", logs.translate_log),
            ("glossary", logs.glossary),
            ("new-terms.txt", logs.new_terms),
            ("failed-files.txt", logs.failed_files),
        )
        lines: list[str] = []
        for title, content in sections:
            lines.append(f"== {title}")
            lines.extend(content.splitlines() or ["(empty)"])
        return lines


def _follow(
    manager: JobManager,
    job_id: str,
    command: TranslateRunCommand,
) -> Iterator[str]:
    consumed = 0
    last_progress: JobProgress | None = None
    while True:
        view = manager.get(job_id)
        if view is None:
            return None
        if command.show_output:
            yield from _new_output(view, consumed)
        consumed = view.output_total
        if view.progress != last_progress:
            last_progress = view.progress
            yield _format_progress(view.progress)
        if view.status.is_terminal:
            return view
        time.sleep(command.poll_interval_seconds)


def _new_output(view: TranslationJobView, consumed: int) -> list[str]:
    """Lines produced since ``consumed``, led by a notice when the buffer dropped some."""

    fresh = view.output_total - consumed
    if fresh <= 0:
        return []
    retained = list(view.output_lines[-fresh:])
    dropped = fresh - len(retained)
    if dropped:
        return [f"(output truncated, {dropped} lines dropped)", *retained]
    return retained


def _apply_defaults(options: StartJobOptions, settings: Settings) -> StartJobOptions:
    if options.source and options.target:
        return options
    source = options.source or settings.default_source or ""
    target = options.target or settings.default_target or ""
    if not source or not target:
        raise ValueError(
            "source and target are required. Pass --source/--target or set "
            "TRANSLATE_MACHINE_DEFAULT_SOURCE/TRANSLATE_MACHINE_DEFAULT_TARGET.",
        )
    options.source = source
    options.target = target
    return options


def _format_progress(progress: JobProgress) -> str:
    current = f" current={progress.current_file}" if progress.current_file else ""
    return (
        f"Progress: {progress.completed}/{progress.total} "
        f"failed={progress.failed}{current}"
    )


def _format_final(job: TranslationJobView) -> str:
    elapsed = ""
    if job.completed_at is not None:
        elapsed = f" elapsed={(job.completed_at - job.started_at).total_seconds():.1f}s"
    return (
        f"Job finished: job_id={job.id} status={job.status.value} "
        f"completed={job.progress.completed} failed={job.progress.failed}{elapsed}"
    )
