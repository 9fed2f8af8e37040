"""Translation job supervision: registry, worker processes, event parsing."""

from translate_machine.jobs.manager import (
    CapacityExceededError,
    JobAdmissionError,
    JobManager,
    TargetBusyError,
)
from translate_machine.jobs.models import (
    JobManagerConfig,
    JobProgress,
    JobStatus,
    StartJobOptions,
    TranslationJobView,
)
from translate_machine.jobs.supervisor import ProcessSupervisor

__all__ = [
    "CapacityExceededError",
    "JobAdmissionError",
    "JobManager",
    "JobManagerConfig",
    "JobProgress",
    "JobStatus",
    "ProcessSupervisor",
    "StartJobOptions",
    "TargetBusyError",
    "TranslationJobView",
]
