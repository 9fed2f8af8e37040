"""Shared test fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from translate_machine.jobs import JobManager, JobManagerConfig

_FAKE_WORKER = '''
import argparse
import json
import os
import sys
import time
from fnmatch import fnmatch
from pathlib import Path


def emit(**payload):
    print(json.dumps(payload, ensure_ascii=False), flush=True)


parser = argparse.ArgumentParser(allow_abbrev=False)
parser.add_argument("--source", required=True)
parser.add_argument("--target", required=True)
parser.add_argument("--delay", type=float, default=0)
parser.add_argument("--file-pattern", default="*.md")
parser.add_argument("--max-files", type=int, default=0)
parser.add_argument("--dry-run", action="store_true")
args, _unknown = parser.parse_known_args()

noise = int(os.environ.get("FAKE_WORKER_NOISE", "0"))
if noise:
    for index in range(1, noise + 1):
        print(f"noise {index}", flush=True)
    sys.exit(0)

first_line = os.environ.get("FAKE_WORKER_FIRST_LINE")
if first_line is not None:
    print(first_line, flush=True)

exit_code = os.environ.get("FAKE_WORKER_EXIT_CODE")
if exit_code is not None:
    print("worker crashed", file=sys.stderr, flush=True)
    sys.exit(int(exit_code))

source = Path(args.source)
target = Path(args.target)
target.mkdir(parents=True, exist_ok=True)
names = sorted(p.name for p in source.iterdir() if p.is_file() and fnmatch(p.name, args.file_pattern))
if args.max_files > 0:
    names = names[: args.max_files]

print("TranslateMachine fake worker", flush=True)
print(f"scanning {source}", file=sys.stderr, flush=True)
emit(event="init", pending=len(names))
failed = 0
for index, name in enumerate(names):
    if index and args.delay:
        time.sleep(args.delay)
    emit(event="file_start", file=name)
    if "fail" in name:
        failed += 1
        emit(event="file_fail", file=name, error="boom")
        continue
    if not args.dry_run:
        (target / name).write_text((source / name).read_text("utf-8"), "utf-8")
    emit(event="file_ok", file=name)
emit(event="done", ok=len(names) - failed, failed=failed)
sys.exit(1 if failed else 0)
'''


@pytest.fixture()
def fake_worker(tmp_path: Path) -> Path:
    """Worker script that "translates" by copying files and reports JSON events.

    Files with ``fail`` in their name are reported as failed and make the
    worker exit with code 1. ``FAKE_WORKER_NOISE=<n>`` prints n plain lines
    instead; ``FAKE_WORKER_EXIT_CODE=<n>`` exits immediately with n.
    ``FAKE_WORKER_FIRST_LINE`` is printed on stdout before anything else.
    """

    path = tmp_path / "bin" / "translate.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_FAKE_WORKER.strip() + "\n", "utf-8")
    return path


@pytest.fixture()
def make_source(tmp_path: Path) -> Callable[..., Path]:
    def _make(*names: str, name: str = "docs-en") -> Path:
        source = tmp_path / name
        source.mkdir(parents=True, exist_ok=True)
        for file_name in names:
            (source / file_name).write_text(f"# {file_name}\n", "utf-8")
        return source

    return _make


@pytest.fixture()
def make_manager(fake_worker: Path) -> Iterator[Callable[..., JobManager]]:
    """Build job managers wired to the fake worker; live workers are stopped on teardown."""

    managers: list[JobManager] = []

    def _make(**overrides) -> JobManager:
        config = JobManagerConfig(
            script_path=fake_worker,
            python_executable=sys.executable,
            default_delay=0,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        manager = JobManager(config)
        managers.append(manager)
        return manager

    yield _make
    for manager in managers:
        manager.shutdown(timeout=10)
