"""Request-layer methods (``translate.*``) over the job registry."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from translate_machine.files import list_translation_files, read_translation_logs
from translate_machine.jobs import JobAdmissionError, JobManager, StartJobOptions

logger = logging.getLogger(__name__)

Params = Mapping[str, Any]


@dataclass(slots=True)
class GatewayResponse:
    """Outcome of one gateway call: ``ok`` flag plus JSON-serializable payload."""

    ok: bool
    payload: dict[str, Any] = field(default_factory=dict)


def _error(message: str) -> GatewayResponse:
    return GatewayResponse(ok=False, payload={"error": message})


class TranslateGateway:
    """Dispatch ``translate.*`` method calls to the job manager and file lookups."""

    def __init__(self, manager: JobManager) -> None:
        self.manager = manager
        self._methods: dict[str, Callable[[Params], GatewayResponse]] = {
            "translate.start": self.start,
            "translate.status": self.status,
            "translate.cancel": self.cancel,
            "translate.list": self.list_jobs,
            "translate.output": self.output,
            "translate.files": self.files,
            "translate.logs": self.logs,
        }

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    def handle(self, method: str, params: object = None) -> GatewayResponse:
        handler = self._methods.get(method)
        if handler is None:
            return _error(f"Unknown method: {method}")
        return handler(params if isinstance(params, Mapping) else {})

    def start(self, params: Params) -> GatewayResponse:
        source = _stripped(params, "source")
        target = _stripped(params, "target")
        if not source or not target:
            return _error("source and target are required")
        try:
            job = self.manager.start(
                StartJobOptions(
                    source=source,
                    target=target,
                    model=_string(params, "model"),
                    target_lang=_string(params, "targetLang"),
                    source_lang=_string(params, "sourceLang"),
                    parallel=_int(params, "parallel"),
                    retries=_int(params, "retries"),
                    delay=_number(params, "delay"),
                    max_files=_int(params, "maxFiles"),
                    file_pattern=_string(params, "filePattern"),
                    glossary=_string(params, "glossary"),
                    trim_suffix=_string(params, "trimSuffix"),
                    add_suffix=_string(params, "addSuffix"),
                    preserve_code=_bool(params, "preserveCode"),
                    retry_failed=params.get("retryFailed") is True,
                    dry_run=params.get("dryRun") is True,
                ),
            )
        except JobAdmissionError as error:
            return _error(str(error))
        return GatewayResponse(ok=True, payload={"jobId": job.id, "started": True})

    def status(self, params: Params) -> GatewayResponse:
        job = self.manager.get(_stripped(params, "jobId"))
        if job is None:
            return GatewayResponse(ok=True, payload={"found": False})
        return GatewayResponse(
            ok=True,
            payload={"found": True, "job": job.to_dict(include_output=False)},
        )

    def cancel(self, params: Params) -> GatewayResponse:
        if self.manager.cancel(_stripped(params, "jobId")):
            return GatewayResponse(ok=True, payload={"cancelled": True})
        return _error("No running job found")

    def list_jobs(self, params: Params) -> GatewayResponse:
        jobs = [job.to_dict(include_output=False) for job in self.manager.list()]
        return GatewayResponse(ok=True, payload={"jobs": jobs})

    def output(self, params: Params) -> GatewayResponse:
        offset = _int(params, "offset") or 0
        lines = self.manager.output(_stripped(params, "jobId"), offset)
        return GatewayResponse(ok=True, payload={"lines": lines, "offset": offset + len(lines)})

    def files(self, params: Params) -> GatewayResponse:
        source = _stripped(params, "source")
        target = _stripped(params, "target")
        if not source or not target:
            return _error("source and target are required")
        try:
            result = list_translation_files(
                source,
                target,
                file_pattern=_string(params, "filePattern") or "*.md",
                trim_suffix=_string(params, "trimSuffix"),
                add_suffix=_string(params, "addSuffix"),
            )
        except OSError as error:
            logger.warning("translate.files failed for %s -> %s: %s", source, target, error)
            return _error(str(error))
        return GatewayResponse(ok=True, payload=result.to_dict())

    def logs(self, params: Params) -> GatewayResponse:
        target = _stripped(params, "target")
        if not target:
            return _error("target is required")
        try:
            logs = read_translation_logs(target, _stripped(params, "glossary") or None)
        except (OSError, UnicodeDecodeError) as error:
            logger.warning("translate.logs failed for %s: %s", target, error)
            return _error(str(error))
        return GatewayResponse(ok=True, payload=logs.to_dict())


def _string(params: Params, key: str) -> str | None:
    value = params.get(key)
    return value if isinstance(value, str) else None


def _stripped(params: Params, key: str) -> str:
    value = _string(params, key)
    return value.strip() if value is not None else ""


def _int(params: Params, key: str) -> int | None:
    value = _number(params, key)
    return int(value) if value is not None else None


def _number(params: Params, key: str) -> float | None:
    value = params.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _bool(params: Params, key: str) -> bool | None:
    value = params.get(key)
    return value if isinstance(value, bool) else None
