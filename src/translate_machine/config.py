"""Runtime configuration for the translation job supervisor."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from translate_machine.jobs.models import JobManagerConfig

DEFAULT_SCRIPT_PATH = Path("~/.openclaw/workspace/TranslateMachine/translate.py")
DEFAULT_MAX_CONCURRENT_JOBS = 2


@dataclass(slots=True)
class Settings:
    """Component-level defaults; per-request options override them."""

    script_path: str | None = None
    default_source: str | None = None
    default_target: str | None = None
    default_model: str | None = None
    default_target_lang: str | None = None
    default_parallel: int | None = None
    default_retries: int | None = None
    default_delay: float | None = None
    preserve_code: bool | None = None
    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS
    python_executable: str = "python3"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``TRANSLATE_MACHINE_*`` environment variables."""

        return cls(
            script_path=_env_str("TRANSLATE_MACHINE_SCRIPT_PATH"),
            default_source=_env_str("TRANSLATE_MACHINE_DEFAULT_SOURCE"),
            default_target=_env_str("TRANSLATE_MACHINE_DEFAULT_TARGET"),
            default_model=_env_str("TRANSLATE_MACHINE_DEFAULT_MODEL"),
            default_target_lang=_env_str("TRANSLATE_MACHINE_DEFAULT_TARGET_LANG"),
            default_parallel=_env_int("TRANSLATE_MACHINE_DEFAULT_PARALLEL"),
            default_retries=_env_int("TRANSLATE_MACHINE_DEFAULT_RETRIES"),
            default_delay=_env_float("TRANSLATE_MACHINE_DEFAULT_DELAY"),
            preserve_code=_env_bool("TRANSLATE_MACHINE_PRESERVE_CODE"),
            max_concurrent_jobs=_env_int(
                "TRANSLATE_MACHINE_MAX_CONCURRENT_JOBS",
                default=DEFAULT_MAX_CONCURRENT_JOBS,
            ),
            python_executable=_env_str("TRANSLATE_MACHINE_PYTHON") or "python3",
        )

    @classmethod
    def from_mapping(cls, raw: object) -> Settings:
        """Build settings from a plugin config object, ignoring wrongly typed values."""

        values: Mapping[str, object] = raw if isinstance(raw, Mapping) else {}

        max_concurrent = _typed(values, "maxConcurrentJobs", int)
        return cls(
            script_path=_typed(values, "scriptPath", str),
            default_source=_typed(values, "defaultSource", str),
            default_target=_typed(values, "defaultTarget", str),
            default_model=_typed(values, "defaultModel", str),
            default_target_lang=_typed(values, "defaultTargetLang", str),
            default_parallel=_typed(values, "defaultParallel", int),
            default_retries=_typed(values, "defaultRetries", int),
            default_delay=_typed(values, "defaultDelay", (int, float)),
            preserve_code=_typed(values, "preserveCode", bool),
            max_concurrent_jobs=(
                max_concurrent if max_concurrent is not None else DEFAULT_MAX_CONCURRENT_JOBS
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the job manager cannot honour."""

        if self.max_concurrent_jobs < 1:
            raise ValueError("TRANSLATE_MACHINE_MAX_CONCURRENT_JOBS must be >= 1.")
        for name in ("default_parallel", "default_retries", "default_delay"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value!r}.")

    def job_manager_config(self) -> JobManagerConfig:
        self.validate()
        return JobManagerConfig(
            script_path=resolve_script_path(self.script_path),
            max_concurrent=self.max_concurrent_jobs,
            default_model=self.default_model,
            default_target_lang=self.default_target_lang,
            default_parallel=self.default_parallel,
            default_retries=self.default_retries,
            default_delay=self.default_delay,
            preserve_code=self.preserve_code,
            python_executable=self.python_executable,
        )


def resolve_script_path(configured: str | None) -> Path:
    """Pick the configured worker script if present, else the default install location."""

    expanded = Path(configured).expanduser() if configured else None
    if expanded is not None and expanded.exists():
        return expanded
    default_path = DEFAULT_SCRIPT_PATH.expanduser()
    if default_path.exists():
        return default_path
    return expanded or default_path


def _typed(values: Mapping[str, object], key: str, kind):
    value = values.get(key)
    # bool is an int subclass and must not pass as a number
    if isinstance(value, bool) and kind is not bool:
        return None
    return value if isinstance(value, kind) else None


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_int(name: str, default: int | None = None) -> int | None:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str) -> float | None:
    value = _env_str(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as error:
        raise ValueError(f"Invalid number value for {name}: {value!r}") from error


def _env_bool(name: str) -> bool | None:
    value = _env_str(name)
    if value is None:
        return None
    normalized = value.lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
