"""Create a work directory: decompile, baseline commit, replay patch sets.

Usage::

    xamlpatch setup
    xamlpatch setup --sdk-version 10.0.19041.0
    xamlpatch setup --sdk-root "C:/Program Files (x86)/Windows Kits/10" --build

Every step is fatal on failure.  A half-built work directory is left in
place for inspection; pass ``--force`` to replace it on the next run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import typer

from xamlpatch.apply import apply_patch_sets
from xamlpatch.build import build_work_dir
from xamlpatch.cli import (
    FATAL_ERRORS,
    VerboseOption,
    done,
    error_exit,
    error_message,
    get_config,
    rel_display_path,
    step,
)
from xamlpatch.config import ProjectConfig
from xamlpatch.decompiler import decompile
from xamlpatch.repo import init_baseline
from xamlpatch.sdk import find_sdk_root, resolve_dll
from xamlpatch.tools import set_verbose
from xamlpatch.workdir import WorkDir, write_helper_scripts


@dataclass
class SetupResult:
    """What a setup run produced."""

    work: WorkDir
    dll: Path
    project: Path
    baseline: str
    patches_applied: int = 0
    helpers: list[Path] = field(default_factory=list)
    built: bool = False


def run_setup(
    cfg: ProjectConfig,
    *,
    sdk_version: str | None = None,
    sdk_root: Path | None = None,
    apply_patches: bool = True,
    build: bool = False,
    force: bool = False,
) -> SetupResult:
    """Run the whole setup sequence and return what it produced.

    Raises:
        FileNotFoundError: SDK or DLL missing.
        FileExistsError: the work directory exists and *force* is off.
        ToolError: decompiler, git, or build tool failed, or a patch was
            rejected.
    """
    step("Locating Windows SDK")
    root = find_sdk_root(sdk_root or cfg.sdk_root)
    version, dll = resolve_dll(root, cfg.dll_relpath, sdk_version)
    typer.echo(f"  SDK {version}: {dll}")

    work = WorkDir.for_dll(cfg, version, dll)
    if force and work.root.exists():
        step(f"Removing existing {rel_display_path(work.root, cfg.root)}")
        work.remove()
    work.create()
    typer.echo(f"  Work directory: {work.root}")

    step(f"Decompiling {dll.name}")
    project = decompile(cfg, dll, work.source_dir)

    step("Creating baseline commit")
    baseline = init_baseline(
        cfg,
        work.source_dir,
        f"Baseline: {dll.name} from SDK {version} ({work.dll_hash})",
    )

    result = SetupResult(work=work, dll=dll, project=project, baseline=baseline)
    result.helpers = write_helper_scripts(cfg, work)

    if apply_patches:
        step(f"Applying patch sets from {rel_display_path(cfg.patches_dir, cfg.root)}")
        result.patches_applied = apply_patch_sets(cfg, work)

    if build:
        step(f"Building {project.name}")
        build_work_dir(cfg, work)
        result.built = True

    return result


app = typer.Typer(
    help="Decompile the XAML build-task DLL into a fresh, patched work directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

xamlpatch setup                             Newest installed SDK

xamlpatch setup --sdk-version 10.0.19041.0  A specific SDK

xamlpatch setup --no-patches                Pristine decompile only

xamlpatch setup --force --build             Replace existing work dir, then build

[bold]What it creates:[/bold]

Work/<SdkVersion>/<DllHash>/Source/          Decompiled project (git, one baseline commit)

Work/<SdkVersion>/<DllHash>/Patches/         Output of generate-patches

Work/<SdkVersion>/<DllHash>/GeneratePatches.cmd   Helper that re-runs generate-patches

[dim]Edit files under Source/, then run the helper (or 'xamlpatch generate-patches')
to record the edits as per-file patches.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    sdk_version: str | None = typer.Option(
        None, "--sdk-version", "-s", help="SDK version, e.g. 10.0.22621.0 (default: newest)."
    ),
    sdk_root: Path | None = typer.Option(
        None, "--sdk-root", help="SDK install root (default: sdk.root or the registry)."
    ),
    no_patches: bool = typer.Option(False, "--no-patches", help="Do not apply patch sets."),
    build: bool = typer.Option(False, "--build", help="Build the project after patching."),
    force: bool = typer.Option(
        False, "--force", help="Delete an existing work directory for the same DLL first."
    ),
    verbose: bool = VerboseOption,
) -> None:
    """Set up a work directory for one SDK version."""
    set_verbose(verbose)
    try:
        cfg = get_config()
        result = run_setup(
            cfg,
            sdk_version=sdk_version,
            sdk_root=sdk_root,
            apply_patches=not no_patches,
            build=build,
            force=force,
        )
    except FATAL_ERRORS as e:
        error_exit(error_message(e))

    done(
        f"\nWork directory ready: {result.work.root}\n"
        f"  baseline {result.baseline[:12]}, {result.patches_applied} patch(es) applied"
    )
    typer.echo(f"Edit files under {result.work.source_dir}, then run:")
    for helper in result.helpers:
        typer.echo(f"  {helper}")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
