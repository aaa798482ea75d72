"""Typer application and CLI entry points for comppatch.

Two console scripts are declared in ``pyproject.toml``:

* ``comppatch`` -- :func:`main`, the full command group (``patch``,
  ``clause``, ``globs``, ``config``) with global output flags.
* ``patch-completions`` -- :func:`patch_main`, a single-command shortcut
  for build scripts::

      patch-completions completions/_fswww '*.png' '*.jpg'

Both run through :func:`_run`, which maps
:class:`~comppatch.exceptions.ComppatchError` to its exit code and writes a
crash log for anything unexpected.

See Also:
    :mod:`comppatch.config`: Glob set and marker resolution.
    :mod:`comppatch.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from comppatch import __version__
from comppatch.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="comppatch",
    help="Restrict path completion in generated shell completions to a set of file globs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

patch_app = typer.Typer(
    name="patch-completions",
    add_completion=False,
)
"""Single-command application behind the ``patch-completions`` script."""

from comppatch.commands.config import config_app  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"comppatch {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~comppatch.output.OutputManager` from the
    CLI flags and stores shared options in ``ctx.obj``.
    """
    from comppatch.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["force"] = force


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def patch_command(
    file: Path = typer.Argument(
        ..., help="Generated completion file to patch in place.", show_default=False
    ),
    globs: Optional[list[str]] = typer.Argument(
        None,
        help="Glob patterns to allow (e.g. '*.png'). Defaults to the configured set.",
        show_default=False,
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Report what would change without writing."
    ),
    show_diff: bool = typer.Option(
        False, "--diff", help="Print a unified diff of the change to stdout."
    ),
) -> None:
    """Patch a completion file so path arguments only complete matching files.

    Example::

        comppatch patch completions/_fswww
        comppatch patch completions/_fswww '*.png' '*.jpg' --diff
        patch-completions completions/_fswww --dry-run
    """
    from comppatch.config import resolve_config
    from comppatch.output import (
        OutputFormat,
        debug,
        format_response,
        get_output,
        info,
        print_diff,
        success,
        warning,
    )
    from comppatch.patcher import patch_file, unified_diff

    config = resolve_config(cli_globs=globs)
    debug(f"Glob set: {' '.join(config.globs)}")
    debug(
        f"Markers: path {config.markers.path_open!r}...{config.markers.path_close!r}, "
        f"placeholder {config.markers.placeholder!r}"
    )

    report = patch_file(
        file,
        config.globs,
        markers=config.markers,
        clause=config.clause,
        dry_run=dry_run,
    )

    # JSON mode keeps stdout a single document; the diff rides in the payload.
    if get_output().format == OutputFormat.JSON:
        payload = report.model_dump(mode="json")
        if show_diff:
            payload["diff"] = unified_diff(report)
        format_response(payload)
    elif show_diff:
        print_diff(unified_diff(report))

    if not report.clauses_inserted:
        warning(f"No completion markers found in {file}; file left unchanged.")
        return

    summary = (
        f"{report.clauses_inserted} clause(s) on {report.lines_changed} line(s) "
        f"({report.path_clauses} path, {report.placeholder_clauses} placeholder)"
    )
    if dry_run:
        info(f"Dry run: would insert {summary} in {file}")
    else:
        success(f"Patched {file}: inserted {summary}")


app.command("patch")(patch_command)
patch_app.command()(patch_command)


@app.command("clause")
def clause_command(
    globs: Optional[list[str]] = typer.Argument(
        None, help="Glob patterns. Defaults to the configured set.", show_default=False
    ),
) -> None:
    """Print the completion directive that would be inserted.

    Example::

        $ comppatch clause '*.png' '*.jpg'
        _files -g "*.png|*.jpg"
    """
    from comppatch.config import resolve_config
    from comppatch.output import print_data
    from comppatch.patcher import build_glob_set, render_clause

    config = resolve_config(cli_globs=globs)
    glob_set = build_glob_set(config.globs, config.markers, config.clause)
    print_data(render_clause(glob_set, config.clause))


@app.command("globs")
def globs_command() -> None:
    """List the effective glob set after config and environment overrides."""
    from comppatch.config import resolve_config
    from comppatch.output import print_table
    from comppatch.patcher import build_glob_set

    config = resolve_config()
    glob_set = build_glob_set(config.globs, config.markers, config.clause)
    rows = [[str(i), pattern] for i, pattern in enumerate(glob_set.patterns, start=1)]
    print_table(["#", "glob"], rows, title="Glob set")


# ------------------------------------------------------------------ #
# Entry points
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from comppatch.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def _run(typer_app: typer.Typer) -> None:
    """Invoke *typer_app*, translating errors into exit codes.

    :class:`~comppatch.exceptions.ComppatchError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        typer_app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from comppatch.exceptions import ComppatchError
        from comppatch.output import error

        if isinstance(exc, ComppatchError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)


def main() -> None:
    """Entry point for the ``comppatch`` console script."""
    _run(app)


def patch_main() -> None:
    """Entry point for the ``patch-completions`` console script."""
    _run(patch_app)
