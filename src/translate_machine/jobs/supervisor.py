"""Subprocess supervision for translation workers."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from typing import IO

from translate_machine.jobs.command import render_command
from translate_machine.jobs.events import parse_event
from translate_machine.jobs.models import JobStatus, TranslationJob

logger = logging.getLogger(__name__)

STDERR_PREFIX = "[stderr] "
ERROR_PREFIX = "[error] "

_USE_PROCESS_GROUPS = os.name != "nt"


class ProcessSupervisor:
    """Launch one worker per job and reconcile its streams and exit into job state.

    Each worker gets two reader threads (stdout, stderr) and an exit watcher.
    ``launch`` returns as soon as the process is spawned; nothing raised after
    that point reaches the caller, failures end up in the job's status and
    output buffer instead.
    """

    def __init__(self, *, python_executable: str = "python3") -> None:
        self.python_executable = python_executable
        self._processes: dict[str, subprocess.Popen[str]] = {}
        self._watchers: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def launch(
        self,
        job: TranslationJob,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
    ) -> None:
        """Spawn the worker for ``job``. Spawn failures mark the job failed."""

        if not job.is_running:
            logger.info("Job %s left running before launch, not spawning", job.id)
            return
        argv = [self.python_executable, *args]
        logger.info("Starting job %s: %s", job.id, render_command(self.python_executable, args))
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                env=env if env is not None else os.environ.copy(),
                start_new_session=_USE_PROCESS_GROUPS,
            )
        except OSError as error:
            job.append_output(f"{ERROR_PREFIX}{error}")
            job.finish(JobStatus.FAILED)
            logger.error("Job %s error: %s", job.id, error)
            return

        job.set_pid(process.pid)
        readers = [
            threading.Thread(
                target=self._consume_stdout,
                args=(job, process.stdout),
                daemon=True,
                name=f"{job.id}-stdout",
            ),
            threading.Thread(
                target=self._consume_stderr,
                args=(job, process.stderr),
                daemon=True,
                name=f"{job.id}-stderr",
            ),
        ]
        watcher = threading.Thread(
            target=self._watch_exit,
            args=(job, process, readers),
            daemon=True,
            name=f"{job.id}-exit",
        )
        with self._lock:
            self._processes[job.id] = process
            self._watchers[job.id] = watcher
        for reader in readers:
            reader.start()
        watcher.start()
        # a cancel that raced the spawn found no process to signal
        if not job.is_running:
            self.terminate(job.id)

    def terminate(self, job_id: str) -> bool:
        """Send SIGTERM to the job's worker without waiting for it to exit."""

        with self._lock:
            process = self._processes.pop(job_id, None)
        if process is None or process.poll() is not None:
            return False
        try:
            if _USE_PROCESS_GROUPS:
                os.killpg(process.pid, signal.SIGTERM)
            else:
                process.terminate()
        except OSError as error:
            logger.warning("Failed to signal job %s (pid=%s): %s", job_id, process.pid, error)
            return False
        return True

    def wait(self, job_id: str, timeout: float | None = None) -> bool:
        """Block until the job's exit has been handled. True if it has."""

        with self._lock:
            watcher = self._watchers.get(job_id)
        if watcher is None:
            return True
        watcher.join(timeout)
        return not watcher.is_alive()

    def running_job_ids(self) -> list[str]:
        with self._lock:
            return list(self._processes)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Terminate every live worker and wait briefly for exit handling."""

        job_ids = self.running_job_ids()
        for job_id in job_ids:
            self.terminate(job_id)
        for job_id in job_ids:
            if not self.wait(job_id, timeout):
                logger.warning("Job %s did not exit within %.1fs", job_id, timeout)

    def _consume_stdout(self, job: TranslationJob, stream: IO[str]) -> None:
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                job.record_event_line(line, parse_event(line))
        except (OSError, ValueError) as error:
            job.append_output(f"{ERROR_PREFIX}{error}")
            logger.error("Job %s stdout error: %s", job.id, error)
        finally:
            stream.close()

    def _consume_stderr(self, job: TranslationJob, stream: IO[str]) -> None:
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                job.append_output(f"{STDERR_PREFIX}{line}")
        except (OSError, ValueError) as error:
            job.append_output(f"{ERROR_PREFIX}{error}")
            logger.error("Job %s stderr error: %s", job.id, error)
        finally:
            stream.close()

    def _watch_exit(
        self,
        job: TranslationJob,
        process: subprocess.Popen[str],
        readers: list[threading.Thread],
    ) -> None:
        for reader in readers:
            reader.join()
        returncode = process.wait()
        job.finish(JobStatus.COMPLETED if returncode == 0 else JobStatus.FAILED)
        with self._lock:
            self._processes.pop(job.id, None)
            self._watchers.pop(job.id, None)
        logger.info("Job %s finished: %s (code=%s)", job.id, job.status.value, returncode)
