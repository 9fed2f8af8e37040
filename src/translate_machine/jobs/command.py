"""Render the worker command line from job options and component defaults."""

from __future__ import annotations

import shlex

from translate_machine.jobs.models import JobManagerConfig, StartJobOptions

DEFAULT_MODEL = "haiku"
DEFAULT_TARGET_LANG = "繁體中文，台灣用語習慣"
DEFAULT_PARALLEL = 1
DEFAULT_RETRIES = 2
DEFAULT_DELAY = 3


def build_worker_args(options: StartJobOptions, config: JobManagerConfig) -> list[str]:
    """Return worker arguments (script path first, interpreter excluded).

    The worker always runs non-interactively with JSON-lines output so the
    supervisor can parse its stdout.
    """

    args = [
        str(config.script_path),
        "--source",
        options.source,
        "--target",
        options.target,
        "--model",
        options.model or config.default_model or DEFAULT_MODEL,
        "--target-lang",
        options.target_lang or config.default_target_lang or DEFAULT_TARGET_LANG,
        "--parallel",
        _number(_first_set(options.parallel, config.default_parallel, DEFAULT_PARALLEL)),
        "--retries",
        _number(_first_set(options.retries, config.default_retries, DEFAULT_RETRIES)),
        "--delay",
        _number(_first_set(options.delay, config.default_delay, DEFAULT_DELAY)),
        "--output-format",
        "json",
        "--no-interactive",
        "--pause-every",
        "0",
    ]

    if options.source_lang:
        args.extend(["--source-lang", options.source_lang])
    if options.max_files is not None and options.max_files > 0:
        args.extend(["--max-files", _number(options.max_files)])
    if options.file_pattern:
        args.extend(["--file-pattern", options.file_pattern])
    if options.glossary:
        args.extend(["--glossary", options.glossary])
    if options.trim_suffix:
        args.extend(["--trim-suffix", options.trim_suffix])
    if options.add_suffix:
        args.extend(["--add-suffix", options.add_suffix])
    # the worker preserves code blocks unless told otherwise
    if not _first_set(options.preserve_code, config.preserve_code, True):
        args.append("--no-preserve-code")
    if options.retry_failed:
        args.append("--retry-failed")
    if options.dry_run:
        args.append("--dry-run")
    return args


def render_command(python_executable: str, args: list[str]) -> str:
    """Shell-quoted command line for log messages."""

    return shlex.join([python_executable, *args])


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
