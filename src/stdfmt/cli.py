# =============================================================================
# stdfmt - black and isort brought together
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025 Michael Gardner, A Bit of Help, Inc.
# See LICENSE file in the project root.
# =============================================================================

"""
Command-line interface with functional error handling.

Known failures travel as StdfmtError values and exit with 1; anything
else escaping the run is caught by @impure_safe and exits with 2.
"""

import asyncio
import sys
import traceback
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from returns.io import IOFailure, IOResult, impure_safe
from returns.result import Failure, Result, Success
from returns.unsafe import unsafe_perform_io
from rich.console import Console
from typing_extensions import Annotated

from . import __version__
from .config import RunConfig, StdfmtSettings, build_run_config
from .errors import ConfigError, FormatterError, StdfmtError, conflicting_flags
from .formatter import PARSERS, format_safe
from .logging_jsonl import JsonlLogger
from .logging_setup import setup_event_logger, setup_logging
from .models import FileTask, RunSummary
from .orchestrator import run
from .reporter import Reporter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERNAL = 2

STDIN_NAME = "(stdin)"

HELP = """black and isort brought together!

Formats the files matching PATTERNS (default: every .py/.pyi file), or the
text piped on standard input.

Examples:

  stdfmt 'src/**/*.py'

  stdfmt --since HEAD

  stdfmt --staged --changed

  echo "x = {'foo':\\"bar\\"}" | stdfmt

  cat stubs.pyi | stdfmt --parser pyi
"""

app = typer.Typer(
    name="stdfmt",
    help=HELP,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=False,
)

err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def stdin_is_piped() -> bool:
    """True when standard input is not an interactive terminal."""
    return sys.stdin is not None and not sys.stdin.isatty()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"stdfmt {__version__}")
        raise typer.Exit()


def load_settings() -> Result[StdfmtSettings, ConfigError]:
    """Read settings from the environment."""
    try:
        return Success(StdfmtSettings())
    except ValidationError as e:
        error = e.errors()[0]
        key = ".".join(str(part) for part in error.get("loc", ())) or None
        return Failure(ConfigError(
            message=f"Invalid setting {key}: {error['msg']}",
            key=key
        ))


def report_error(error: StdfmtError) -> None:
    err_console.print(error.message, style="red", markup=False)


def report_exception(exc: BaseException, debug: bool) -> None:
    """One line by default; the full traceback in debug mode."""
    if debug:
        err_console.print("".join(traceback.format_exception(exc)), markup=False)
    else:
        err_console.print(str(exc) or type(exc).__name__, style="red", markup=False)


# =============================================================================
# Stdin mode
# =============================================================================

def format_stdin(text: str, config: RunConfig) -> Result[int, FormatterError]:
    """Format or check a piped buffer; no file I/O and no range filtering."""
    task = FileTask(path=Path(STDIN_NAME), original_content=text, is_stdin=True)
    options = config.options.model_copy(update={"filepath": STDIN_NAME})
    result = format_safe(task.original_content, options)
    if isinstance(result, Failure):
        return result
    formatted = result.unwrap()

    if config.check:
        if not formatted.already_formatted:
            typer.echo(STDIN_NAME)
            return Success(EXIT_FAILURE)
        return Success(EXIT_OK)

    sys.stdout.write(formatted.formatted_content)
    sys.stdout.flush()
    return Success(EXIT_OK)


# =============================================================================
# Batch mode
# =============================================================================

async def _run_batch(
    root: Path,
    config: RunConfig,
    reporter: Reporter,
    event_logger: Optional[JsonlLogger]
) -> Result[RunSummary, StdfmtError]:
    """Run the orchestrator while the reporter drains its event queue."""
    queue: asyncio.Queue = asyncio.Queue()
    consumer = asyncio.create_task(reporter.consume(queue))
    try:
        return await run(root, config, event_queue=queue, event_logger=event_logger)
    finally:
        await queue.put(None)
        await consumer


@impure_safe
def _execute_batch(root: Path, config: RunConfig, log_path: Optional[Path]) -> int:
    """Execute a batch run synchronously.

    Note:
        @impure_safe converts escaping exceptions to IOResult[int, Exception]
    """
    reporter = Reporter(root, check=config.check)
    reporter.start()

    event_logger = setup_event_logger(log_path)
    try:
        result = asyncio.run(_run_batch(root, config, reporter, event_logger))
    finally:
        if event_logger:
            event_logger.close()

    if isinstance(result, Failure):
        report_error(result.failure())
        return EXIT_FAILURE

    summary = result.unwrap()
    reporter.finish(summary)
    return EXIT_OK if summary.succeeded(config.check) else EXIT_FAILURE


@impure_safe
def _execute_stdin(config: RunConfig) -> int:
    """Execute stdin mode synchronously."""
    result = format_stdin(sys.stdin.read(), config)
    if isinstance(result, Failure):
        err_console.print(f"{STDIN_NAME}: {result.failure().message}", style="red", markup=False)
        return EXIT_INTERNAL
    return result.unwrap()


def _handle_command_result(result: IOResult[int, Exception], debug: bool) -> int:
    """Map an execution result to an exit code."""
    if isinstance(result, IOFailure):
        report_exception(unsafe_perform_io(result.failure()), debug)
        return EXIT_INTERNAL
    return unsafe_perform_io(result.unwrap())


# =============================================================================
# Command
# =============================================================================

@app.command(help=HELP)
def format_command(
    ctx: typer.Context,
    patterns: Annotated[Optional[List[str]], typer.Argument(help="Glob patterns, files or directories to format", show_default=False)] = None,
    since: Annotated[Optional[str], typer.Option("--since", help="Format files changed since given revision")] = None,
    changed: Annotated[bool, typer.Option("--changed", help="Format only changed or added lines")] = False,
    staged: Annotated[bool, typer.Option("--staged", help="Use the git index instead of the working tree")] = False,
    check: Annotated[bool, typer.Option("--check", help="Do not format, just check formatting")] = False,
    parser: Annotated[Optional[str], typer.Option("--parser", help=f"Force parser to use ({', '.join(PARSERS)}; default: inferred)")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Number of files formatted concurrently (default: CPU count)")] = None,
    exclude: Annotated[Optional[List[str]], typer.Option("--exclude", help="Glob of paths to leave alone (can be used multiple times)")] = None,
    line_length: Annotated[Optional[int], typer.Option("--line-length", help="Maximum line length")] = None,
    log_path: Annotated[Optional[Path], typer.Option("--log-path", help="Write a JSON Lines event log to this file")] = None,
    version: Annotated[Optional[bool], typer.Option("--version", "-v", callback=version_callback, is_eager=True, help="Show version and exit")] = None,
) -> None:
    """Format files, changed files, or changed lines with black and isort."""
    settings_result = load_settings()
    if isinstance(settings_result, Failure):
        report_error(settings_result.failure())
        raise typer.Exit(EXIT_FAILURE)
    settings = settings_result.unwrap()
    setup_logging(settings)

    has_stdin = stdin_is_piped()
    if has_stdin:
        flags = [
            name for name, value in (("--changed", changed), ("--since", since), ("--staged", staged))
            if value
        ]
        if flags:
            report_error(conflicting_flags(*flags))
            raise typer.Exit(EXIT_FAILURE)
    elif not (patterns or changed or staged or since):
        typer.echo(ctx.get_help())
        raise typer.Exit(EXIT_FAILURE)

    config_result = build_run_config(
        settings,
        parser=parser,
        line_length=line_length,
        exclude=exclude,
        patterns=patterns,
        since=since,
        changed=changed,
        staged=staged,
        check=check,
        workers=workers,
    )
    if isinstance(config_result, Failure):
        report_error(config_result.failure())
        raise typer.Exit(EXIT_FAILURE)
    config = config_result.unwrap()

    if has_stdin:
        result = _execute_stdin(config)
    else:
        result = _execute_batch(Path.cwd(), config, log_path)

    exit_code = _handle_command_result(result, settings.debug)
    if exit_code != EXIT_OK:
        raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
