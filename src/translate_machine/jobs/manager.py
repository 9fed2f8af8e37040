"""In-memory registry of translation jobs."""

from __future__ import annotations

import logging
import threading

from translate_machine.jobs.command import build_worker_args
from translate_machine.jobs.models import (
    JobManagerConfig,
    StartJobOptions,
    TranslationJob,
    TranslationJobView,
)
from translate_machine.jobs.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


class JobAdmissionError(RuntimeError):
    """Start request rejected before any worker was spawned."""


class CapacityExceededError(JobAdmissionError):
    def __init__(self, max_concurrent: int) -> None:
        super().__init__(f"Maximum concurrent jobs reached ({max_concurrent})")
        self.max_concurrent = max_concurrent


class TargetBusyError(JobAdmissionError):
    def __init__(self, target: str, job_id: str) -> None:
        super().__init__(f"Target directory {target} already has a running job ({job_id})")
        self.target = target
        self.job_id = job_id


class JobManager:
    """Admits, tracks and cancels translation jobs.

    Jobs are kept for the lifetime of the process and never evicted. The
    registry lock covers admission and the id map; each job guards its own
    fields.
    """

    def __init__(
        self,
        config: JobManagerConfig,
        *,
        supervisor: ProcessSupervisor | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        self.config = config
        self.supervisor = supervisor or ProcessSupervisor(
            python_executable=config.python_executable,
        )
        self._env = env
        self._jobs: dict[str, TranslationJob] = {}
        self._lock = threading.Lock()

    def start(self, options: StartJobOptions) -> TranslationJobView:
        """Admit and launch a job; returns without waiting for the worker."""

        args = build_worker_args(options, self.config)
        with self._lock:
            running = [job for job in self._jobs.values() if job.is_running]
            if len(running) >= self.config.max_concurrent:
                raise CapacityExceededError(self.config.max_concurrent)
            for job in running:
                if job.target == options.target:
                    raise TargetBusyError(options.target, job.id)

            job = TranslationJob(
                source=options.source,
                target=options.target,
                output_limit=self.config.output_limit,
            )
            self._jobs[job.id] = job

        self.supervisor.launch(job, args, env=self._env)
        return job.view()

    def get(self, job_id: str) -> TranslationJobView | None:
        job = self._find(job_id)
        return job.view() if job is not None else None

    def list(self) -> list[TranslationJobView]:
        """All jobs, newest first, without output lines."""

        with self._lock:
            jobs = list(self._jobs.values())
        jobs.sort(key=lambda job: job.started_at, reverse=True)
        return [job.view(include_output=False) for job in jobs]

    def cancel(self, job_id: str) -> bool:
        """Cancel a running job. False if the job is unknown or already finished."""

        job = self._find(job_id)
        if job is None or not job.cancel():
            return False
        self.supervisor.terminate(job_id)
        logger.info("Job %s cancelled", job_id)
        return True

    def output(self, job_id: str, offset: int = 0) -> list[str]:
        job = self._find(job_id)
        if job is None:
            return []
        return job.output_from(offset)

    def wait(self, job_id: str, timeout: float | None = None) -> bool:
        """Block until the worker's exit was handled (or it never started)."""

        return self.supervisor.wait(job_id, timeout)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop every live worker; running jobs are marked cancelled."""

        with self._lock:
            running_ids = [job.id for job in self._jobs.values() if job.is_running]
        for job_id in running_ids:
            self.cancel(job_id)
        for job_id in running_ids:
            if not self.supervisor.wait(job_id, timeout):
                logger.warning("Job %s did not exit within %.1fs", job_id, timeout)
        self.supervisor.shutdown(timeout)

    def _find(self, job_id: str) -> TranslationJob | None:
        with self._lock:
            return self._jobs.get(job_id)
