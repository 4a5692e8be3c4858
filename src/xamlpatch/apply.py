"""Replay reusable patch sets onto a work directory.

Usage::

    xamlpatch apply
    xamlpatch apply --work-dir Work/10.0.22621.0/3f2a9c1e0b7d4a55 --reset
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
    warn,
)
from xamlpatch.config import ProjectConfig
from xamlpatch.patchsets import PatchSet, discover_patch_sets, select_patch_sets
from xamlpatch.repo import apply_patch, reset_to_baseline
from xamlpatch.tools import ToolError, set_verbose
from xamlpatch.workdir import WorkDir, resolve_work_dir


def applicable_patch_sets(cfg: ProjectConfig, work: WorkDir) -> list[PatchSet]:
    """Return the patch sets for *work*'s SDK version, in application order."""
    sets, ignored = discover_patch_sets(cfg.patches_dir)
    for path in ignored:
        warn(f"ignoring {path.name}/ in {cfg.patches_dir}: not a patch set name")
    return select_patch_sets(sets, work.sdk_version)


def apply_patch_sets(cfg: ProjectConfig, work: WorkDir) -> int:
    """Apply every selected patch set to *work* and return the patch count.

    Stops at the first patch that does not apply.

    Raises:
        ToolError: a patch was rejected (message names set and file).
    """
    applied = 0
    for patch_set in applicable_patch_sets(cfg, work):
        patches = patch_set.patches()
        typer.echo(f"  {patch_set.name} ({patch_set.describe()}): {len(patches)} patch(es)")
        for patch in patches:
            try:
                apply_patch(cfg, work.source_dir, patch)
            except ToolError as e:
                raise ToolError(
                    e.cmd,
                    f"Patch {patch_set.name}/{patch.name} does not apply to SDK {work.sdk_version}",
                    returncode=e.returncode,
                    stderr=e.stderr,
                ) from e
            applied += 1
    return applied


app = typer.Typer(
    help="Replay reusable patch sets onto an existing work directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

xamlpatch apply                         Apply to the only work directory

xamlpatch apply -w Work/10.0.22621.0/<hash> --reset   Start from the pristine decompile

[dim]Common/ is applied first, then every Sdk_<rel>_<version>/ set whose predicate
holds for the work directory's SDK version.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    work_dir: Path | None = WorkDirOption,
    reset: bool = typer.Option(
        False, "--reset", help="Discard working-tree edits before applying."
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Apply the patch sets that match the work directory's SDK version."""
    set_verbose(verbose)
    try:
        cfg = get_config()
        work = resolve_work_dir(cfg, work_dir)
        if reset:
            step(f"Resetting {work.source_dir} to baseline")
            reset_to_baseline(cfg, work.source_dir)
        step(f"Applying patch sets for SDK {work.sdk_version}")
        count = apply_patch_sets(cfg, work)
    except FATAL_ERRORS as e:
        error_exit(error_message(e))
    done(f"Applied {count} patch(es) to {work.source_dir}")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
