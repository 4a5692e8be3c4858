"""Shared CLI utilities for xamlpatch commands.

Provides common Typer options, config-loading helpers, and standardised
output / error helpers so that every command gets consistent ``--work-dir``
support, error reporting, and JSON output without boilerplate.

Usage in a command::

    import typer
    from xamlpatch.cli import WorkDirOption, get_config, error_exit, step

    app = typer.Typer()

    @app.command()
    def main(work_dir: Path | None = WorkDirOption) -> None:
        cfg = get_config()
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from xamlpatch.config import ProjectConfig, load_config

# Re-usable Typer options
WorkDirOption: Path | None = typer.Option(
    None,
    "--work-dir",
    "-w",
    help="Work directory (Work/<SdkVersion>/<DllHash>). Default: the only one, or cwd.",
)

VerboseOption: bool = typer.Option(
    False, "--verbose", "-v", help="Echo every external command before running it."
)

# Exceptions that abort a command with a plain error message.
FATAL_ERRORS: tuple[type[BaseException], ...] = (
    FileNotFoundError,
    FileExistsError,
    NotADirectoryError,
    KeyError,
    ValueError,
    RuntimeError,
)


def get_config() -> ProjectConfig:
    """Load the project config (or defaults)."""
    return load_config()


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def step(msg: str) -> None:
    """Announce a workflow step."""
    typer.secho(f"==> {msg}", fg=typer.colors.CYAN, bold=True)


def done(msg: str) -> None:
    """Report a successfully completed action."""
    typer.secho(msg, fg=typer.colors.GREEN)


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr."""
    typer.secho(f"warning: {msg}", fg=typer.colors.YELLOW, err=True)


def error_message(exc: BaseException) -> str:
    """Render an exception for :func:`error_exit`.

    ``KeyError`` wraps its message in quotes when stringified, so unwrap it.
    """
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc)


def rel_display_path(filepath: Path, base_dir: Path | None = None) -> str:
    """Return a display-friendly path, relative to *base_dir* when possible."""
    if base_dir is not None:
        try:
            return str(filepath.relative_to(base_dir))
        except ValueError:
            pass
    return str(filepath)
