"""CLI entrypoint for translate-machine."""

from pathlib import Path

import rich_click as click

from translate_machine import __version__
from translate_machine.controllers import (
    TranslateCliController,
    TranslateFilesCommand,
    TranslateLogsCommand,
    TranslateRunCommand,
    TranslateRunResult,
)
from translate_machine.jobs import StartJobOptions

click.rich_click.USE_MARKDOWN = True
CONTROLLER = TranslateCliController()


@click.group()
@click.version_option(version=__version__, prog_name="translate-machine")
def translate_machine() -> None:
    """Batch translation job supervisor CLI."""


@translate_machine.command("run")
@click.option("--source", default="", help="Source directory or file.")
@click.option("--target", default="", help="Target directory.")
@click.option("--model", default=None, help="Model name passed to the worker (default: haiku).")
@click.option("--target-lang", default=None, help="Target language description.")
@click.option("--source-lang", default=None, help="Source language description.")
@click.option("--parallel", type=click.IntRange(min=1), default=None, help="Parallel files.")
@click.option("--retries", type=click.IntRange(min=0), default=None, help="Retries per file.")
@click.option(
    "--delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Delay between files, seconds.",
)
@click.option("--max-files", type=click.IntRange(min=0), default=None, help="Max files to run.")
@click.option("--file-pattern", default=None, help="File glob pattern, for example *.md.")
@click.option("--glossary", default=None, help="Custom glossary path.")
@click.option("--trim-suffix", default=None, help="Suffix removed from source file names.")
@click.option("--add-suffix", default=None, help="Suffix appended to target file names.")
@click.option(
    "--preserve-code/--no-preserve-code",
    default=None,
    help="Protect fenced code blocks from translation.",
)
@click.option("--retry-failed", is_flag=True, help="Only retry previously failed files.")
@click.option("--dry-run", is_flag=True, help="List what would be translated.")
@click.option(
    "--quiet",
    is_flag=True,
    help="Only print progress, not raw worker output.",
)
def run(  # noqa: PLR0913
    source: str,
    target: str,
    model: str | None,
    target_lang: str | None,
    source_lang: str | None,
    parallel: int | None,
    retries: int | None,
    delay: float | None,
    max_files: int | None,
    file_pattern: str | None,
    glossary: str | None,
    trim_suffix: str | None,
    add_suffix: str | None,
    preserve_code: bool | None,
    retry_failed: bool,
    dry_run: bool,
    quiet: bool,
) -> None:
    """Run one translation job in the foreground and follow its progress."""

    result = TranslateRunResult()
    command = TranslateRunCommand(
        options=StartJobOptions(
            source=source.strip(),
            target=target.strip(),
            model=model,
            target_lang=target_lang,
            source_lang=source_lang,
            parallel=parallel,
            retries=retries,
            delay=delay,
            max_files=max_files,
            file_pattern=file_pattern,
            glossary=glossary,
            trim_suffix=trim_suffix,
            add_suffix=add_suffix,
            preserve_code=preserve_code,
            retry_failed=retry_failed,
            dry_run=dry_run,
        ),
        show_output=not quiet,
    )
    try:
        _emit_lines(CONTROLLER.run_job(command, result))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    if not result.success:
        raise click.ClickException("Translation job did not complete successfully.")


@translate_machine.command("files")
@click.option("--source", type=click.Path(path_type=Path), required=True, help="Source dir.")
@click.option("--target", type=click.Path(path_type=Path), required=True, help="Target dir.")
@click.option("--file-pattern", default="*.md", show_default=True, help="File glob pattern.")
@click.option("--trim-suffix", default=None, help="Suffix removed from source file names.")
@click.option("--add-suffix", default=None, help="Suffix appended to target file names.")
def files(
    source: Path,
    target: Path,
    file_pattern: str,
    trim_suffix: str | None,
    add_suffix: str | None,
) -> None:
    """List source, target and pending files."""

    _emit_lines(
        CONTROLLER.list_files(
            TranslateFilesCommand(
                source=source,
                target=target,
                file_pattern=file_pattern,
                trim_suffix=trim_suffix,
                add_suffix=add_suffix,
            ),
        ),
    )


@translate_machine.command("logs")
@click.option("--target", type=click.Path(path_type=Path), required=True, help="Target dir.")
@click.option(
    "--glossary",
    type=click.Path(path_type=Path),
    default=None,
    help="Glossary path (default: <target>/glossary.md).",
)
def logs(target: Path, glossary: Path | None) -> None:
    """Print the worker's log artifacts from a target directory."""

    _emit_lines(CONTROLLER.read_logs(TranslateLogsCommand(target=target, glossary=glossary)))


def _emit_lines(lines) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    translate_machine()
