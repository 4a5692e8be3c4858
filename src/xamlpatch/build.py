"""Build the decompiled (and patched) project with the configured build tool.

Usage::

    xamlpatch build
    xamlpatch build --work-dir Work/10.0.22621.0/3f2a9c1e0b7d4a55
"""

from __future__ import annotations

from pathlib import Path

import typer

from xamlpatch.cli import (
    FATAL_ERRORS,
    VerboseOption,
    WorkDirOption,
    done,
    error_exit,
    error_message,
    get_config,
    step,
)
from xamlpatch.config import ProjectConfig
from xamlpatch.decompiler import find_project_file
from xamlpatch.tools import run_tool, set_verbose
from xamlpatch.workdir import WorkDir, resolve_work_dir


def build_command(cfg: ProjectConfig, project: Path) -> list[str]:
    """Build the build-tool argv for *project*."""
    return [*cfg.build_argv(), str(project), *cfg.build_args]


def build_work_dir(cfg: ProjectConfig, work: WorkDir) -> Path:
    """Build *work*'s project file and return it.

    Build output goes straight to the terminal.

    Raises:
        FileNotFoundError: the work directory has no project file.
        ToolError: the build failed.
    """
    project = find_project_file(work.source_dir)
    if project is None:
        raise FileNotFoundError(f"No project file in {work.source_dir}")
    run_tool(build_command(cfg, project), cwd=project.parent, timeout=cfg.timeout, capture=False)
    return project


app = typer.Typer(
    help="Build the decompiled project of a work directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

xamlpatch build                         Build the only work directory

xamlpatch build -w Work/10.0.22621.0/<hash>   Build a specific one

[dim]The build tool and its arguments come from [tools] build / build_args in
xamlpatch.toml (default: dotnet build -c Release).[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    work_dir: Path | None = WorkDirOption,
    verbose: bool = VerboseOption,
) -> None:
    """Build the decompiled project file."""
    set_verbose(verbose)
    try:
        cfg = get_config()
        work = resolve_work_dir(cfg, work_dir)
        step(f"Building {work.source_dir}")
        project = build_work_dir(cfg, work)
    except FATAL_ERRORS as e:
        error_exit(error_message(e))
    done(f"Built {project.name}")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
