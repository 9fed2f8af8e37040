"""Read-only lookups over source/target directories and worker log artifacts."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from fnmatch import fnmatch
from pathlib import Path, PurePath

TRANSLATE_LOG_NAME = "translate-log.txt"
GLOSSARY_NAME = "glossary.md"
NEW_TERMS_NAME = "new-terms.txt"
FAILED_FILES_NAME = "failed-files.txt"


@dataclass(slots=True)
class FileListResult:
    """Source and target file names plus the sources without a translation yet."""

    source: list[str] = field(default_factory=list)
    target: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return asdict(self)


@dataclass(slots=True)
class LogContents:
    translate_log: str = ""
    glossary: str = ""
    new_terms: str = ""
    failed_files: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "translateLog": self.translate_log,
            "glossary": self.glossary,
            "newTerms": self.new_terms,
            "failedFiles": self.failed_files,
        }


def list_translation_files(
    source_dir: str | Path,
    target_dir: str | Path,
    file_pattern: str = "*.md",
    trim_suffix: str | None = None,
    add_suffix: str | None = None,
) -> FileListResult:
    """List matching files in both directories and work out which are pending."""

    source_path = Path(source_dir).expanduser()
    target_path = Path(target_dir).expanduser()
    result = FileListResult()
    if not source_path.is_dir():
        return result

    result.source = _matching_files(source_path, file_pattern)
    if target_path.is_dir():
        result.target = _matching_files(target_path, file_pattern)

    existing = set(result.target)
    result.pending = [
        name
        for name in result.source
        if expected_target_name(name, trim_suffix=trim_suffix, add_suffix=add_suffix)
        not in existing
    ]
    return result


def expected_target_name(
    name: str,
    *,
    trim_suffix: str | None = None,
    add_suffix: str | None = None,
) -> str:
    """Apply the worker's filename suffix transforms, e.g. ``intro-en.md`` -> ``intro-tw.md``."""

    path = PurePath(name)
    stem = path.stem
    if trim_suffix and stem.endswith(trim_suffix):
        stem = stem[: -len(trim_suffix)]
    if add_suffix:
        stem = f"{stem}{add_suffix}"
    return f"{stem}{path.suffix}"


def read_translation_logs(
    target_dir: str | Path,
    glossary_path: str | Path | None = None,
) -> LogContents:
    """Read the worker's log artifacts; missing files read as empty text."""

    target_path = Path(target_dir).expanduser()
    glossary = Path(glossary_path).expanduser() if glossary_path else target_path / GLOSSARY_NAME
    return LogContents(
        translate_log=_read_text(target_path / TRANSLATE_LOG_NAME),
        glossary=_read_text(glossary),
        new_terms=_read_text(target_path / NEW_TERMS_NAME),
        failed_files=_read_text(target_path / FAILED_FILES_NAME),
    )


def _matching_files(directory: Path, pattern: str) -> list[str]:
    return sorted(
        entry.name
        for entry in directory.iterdir()
        if entry.is_file() and (not pattern or fnmatch(entry.name, pattern))
    )


def _read_text(path: Path) -> str:
    if not path.is_file():
        return ""
    return path.read_text("utf-8")
