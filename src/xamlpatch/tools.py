"""External process execution for xamlpatch.

Every step of the workflow is an external tool (git, ilspycmd, dotnet) run
synchronously, one after the other.  :func:`run_tool` is the single place
those processes are started: it captures output, enforces the configured
timeout, and turns every kind of failure into a :class:`ToolError` so that
callers can simply let it propagate and abort the run.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

import typer

# Set by the umbrella CLI's --verbose flag.
_VERBOSE = False


class ToolError(RuntimeError):
    """An external command failed, was missing, or timed out."""

    def __init__(
        self,
        cmd: Sequence[str],
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip()
        if detail:
            # Keep the tail; git and ilspycmd put the useful line last.
            lines = detail.splitlines()
            detail = "\n".join(lines[-15:])
            message = f"{message}\n{detail}"
        super().__init__(message)


def set_verbose(enabled: bool) -> None:
    """Enable or disable echoing of every command."""
    global _VERBOSE
    _VERBOSE = enabled


def format_command(cmd: Sequence[str]) -> str:
    """Render *cmd* for display, quoting arguments that contain spaces."""
    return " ".join(f'"{c}"' if " " in c else c for c in cmd)


def which(executable: str) -> str | None:
    """Locate *executable* on PATH (or accept an existing explicit path)."""
    found = shutil.which(executable)
    if found:
        return found
    p = Path(executable)
    if p.is_absolute() and p.is_file():
        return str(p)
    return None


def run_tool(
    cmd: Sequence[str],
    cwd: Path,
    *,
    timeout: int | None = None,
    text: bool = True,
    capture: bool = True,
) -> subprocess.CompletedProcess:
    """Run *cmd* in *cwd* and return the completed process.

    Output is captured.  With ``text=False`` stdout is returned as raw bytes,
    which is what patch generation needs to keep line endings intact.
    With ``capture=False`` the tool writes straight to the terminal (used for
    long-running builds).

    Raises:
        ToolError: the executable is missing, the command timed out, or it
            exited with a non-zero status.
    """
    argv = [str(c) for c in cmd]
    if _VERBOSE:
        typer.secho(f"$ {format_command(argv)}", fg=typer.colors.BRIGHT_BLACK, err=True)
    try:
        result = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=capture,
            text=text,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ToolError(argv, f"Executable not found: {argv[0]} ({e.strerror})") from e
    except subprocess.TimeoutExpired as e:
        raise ToolError(argv, f"Timed out after {timeout}s: {format_command(argv)}") from e
    except OSError as e:
        raise ToolError(argv, f"Failed to start {argv[0]}: {e}") from e

    if result.returncode != 0:
        stderr = result.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        stdout = result.stdout
        if isinstance(stdout, bytes):
            stdout = stdout.decode("utf-8", errors="replace")
        raise ToolError(
            argv,
            f"Command failed with exit code {result.returncode}: {format_command(argv)}",
            returncode=result.returncode,
            stderr=stderr or stdout or "",
        )
    return result
