"""``translate_files`` agent tool: one action-dispatching entry point."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from translate_machine.config import Settings
from translate_machine.jobs import JobManager, StartJobOptions, TranslationJobView

TOOL_NAME = "translate_files"
ACTIONS = ("start", "status", "cancel", "list", "dry-run", "retry-failed")


class ToolInputError(ValueError):
    """Tool call parameters are missing or invalid."""


class TranslateFilesTool:
    """Start, inspect and cancel translation jobs on behalf of an agent."""

    name = TOOL_NAME
    description = (
        "Batch-translate files with TranslateMachine. Supports starting a job, "
        "checking progress, cancelling, previewing (dry-run) and retrying failed files."
    )

    def __init__(self, manager: JobManager, settings: Settings | None = None) -> None:
        self.manager = manager
        self.settings = settings or Settings()

    def execute(self, params: Mapping[str, Any]) -> dict[str, Any]:
        action = str(params.get("action") or "")
        if action == "start":
            return _result(self._start(params))
        if action == "dry-run":
            return _result(self._dry_run(params))
        if action == "retry-failed":
            return _result(self._retry_failed(params))
        if action == "status":
            return _result(self._status(params))
        if action == "cancel":
            job_id = _required_job_id(params)
            return _result({"cancelled": self.manager.cancel(job_id), "jobId": job_id})
        if action == "list":
            return _result({"jobs": [_summary(job) for job in self.manager.list()]})
        raise ToolInputError(f"Unknown action: {action}. Available: {', '.join(ACTIONS)}")

    def _start(self, params: Mapping[str, Any]) -> dict[str, Any]:
        source, target = self._paths(params)
        job = self.manager.start(
            StartJobOptions(
                source=source,
                target=target,
                model=_text(params, "model") or self.settings.default_model,
                parallel=_count(params, "parallel", self.settings.default_parallel),
                max_files=_count(params, "maxFiles"),
                source_lang=_text(params, "sourceLang"),
                target_lang=_text(params, "targetLang") or self.settings.default_target_lang,
                file_pattern=_text(params, "filePattern"),
                glossary=_text(params, "glossary"),
                trim_suffix=_text(params, "trimSuffix"),
                add_suffix=_text(params, "addSuffix"),
                retries=_count(params, "retries"),
                delay=_count(params, "delay"),
                preserve_code=_flag(params, "preserveCode"),
            ),
        )
        return {"jobId": job.id, "status": job.status.value, "source": source, "target": target}

    def _dry_run(self, params: Mapping[str, Any]) -> dict[str, Any]:
        source, target = self._paths(params)
        job = self.manager.start(
            StartJobOptions(
                source=source,
                target=target,
                dry_run=True,
                file_pattern=_text(params, "filePattern"),
            ),
        )
        return {"jobId": job.id, "status": "dry-run", "source": source, "target": target}

    def _retry_failed(self, params: Mapping[str, Any]) -> dict[str, Any]:
        source, target = self._paths(params)
        job = self.manager.start(
            StartJobOptions(
                source=source,
                target=target,
                retry_failed=True,
                model=_text(params, "model") or self.settings.default_model,
                parallel=_count(params, "parallel", self.settings.default_parallel),
                glossary=_text(params, "glossary"),
                trim_suffix=_text(params, "trimSuffix"),
                add_suffix=_text(params, "addSuffix"),
                retries=_count(params, "retries"),
                delay=_count(params, "delay"),
                preserve_code=_flag(params, "preserveCode"),
            ),
        )
        return {
            "jobId": job.id,
            "status": job.status.value,
            "source": source,
            "target": target,
            "mode": "retry-failed",
        }

    def _status(self, params: Mapping[str, Any]) -> dict[str, Any]:
        job_id = _required_job_id(params)
        job = self.manager.get(job_id)
        if job is None:
            return {"found": False, "jobId": job_id}
        return {"found": True, **_summary(job)}

    def _paths(self, params: Mapping[str, Any]) -> tuple[str, str]:
        source = _text(params, "source") or self.settings.default_source or ""
        target = _text(params, "target") or self.settings.default_target or ""
        if not source or not target:
            raise ToolInputError("source and target must be specified")
        return source, target


def _result(payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "content": [
            {"type": "text", "text": json.dumps(payload, ensure_ascii=False, indent=2)},
        ],
        "details": payload,
    }


def _summary(job: TranslationJobView) -> dict[str, Any]:
    payload = job.to_dict(include_output=False)
    payload.pop("pid", None)
    return payload


def _required_job_id(params: Mapping[str, Any]) -> str:
    job_id = _text(params, "jobId")
    if not job_id:
        raise ToolInputError("jobId must be specified")
    return job_id


def _text(params: Mapping[str, Any], key: str) -> str | None:
    value = params.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _count(params: Mapping[str, Any], key: str, default=None):
    value = params.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return value


def _flag(params: Mapping[str, Any], key: str) -> bool | None:
    value = params.get(key)
    return value if isinstance(value, bool) else None
