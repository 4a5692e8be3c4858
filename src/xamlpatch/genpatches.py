"""Record the edits in a work directory as per-file patches.

Diffs ``Source/`` against its baseline commit and writes one patch per
changed path into the work directory's ``Patches/``.  Patches left over from
an earlier run are removed first, so the directory always mirrors the
current edits exactly.

Usage::

    xamlpatch generate-patches
    xamlpatch generate-patches --work-dir Work/10.0.22621.0/3f2a9c1e0b7d4a55
    xamlpatch generate-patches --into Sdk_Ge_10.0.22621.0
"""

from __future__ import annotations

import shutil
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
    json_print,
    rel_display_path,
    step,
)
from xamlpatch.config import ProjectConfig
from xamlpatch.patchsets import parse_patch_set_name, sanitize_patch_name
from xamlpatch.repo import changed_paths, diff_path
from xamlpatch.tools import set_verbose
from xamlpatch.utils import atomic_write_bytes
from xamlpatch.workdir import WorkDir, resolve_work_dir


def plan_patch_names(paths: list[str]) -> dict[str, str]:
    """Map each changed path to its patch file name.

    Raises:
        ValueError: two paths sanitize to the same file name.
    """
    names: dict[str, str] = {}
    owners: dict[str, str] = {}
    for relpath in paths:
        name = sanitize_patch_name(relpath)
        key = name.lower()  # patch sets live on case-insensitive file systems
        if key in owners:
            raise ValueError(
                f"Paths {owners[key]!r} and {relpath!r} both map to patch file {name!r}"
            )
        owners[key] = relpath
        names[relpath] = name
    return names


def generate_patches(cfg: ProjectConfig, work: WorkDir) -> dict[str, Path]:
    """Write one patch per changed path and return ``{relpath: patch}``.

    All diffs are taken before ``Patches/`` is touched, so a git failure
    leaves the previous patches in place.
    """
    paths = changed_paths(cfg, work.source_dir)
    names = plan_patch_names(paths)

    diffs: dict[str, bytes] = {}
    for relpath in names:
        data = diff_path(cfg, work.source_dir, relpath)
        if data.strip():
            diffs[relpath] = data

    work.patches_dir.mkdir(parents=True, exist_ok=True)
    for stale in work.generated_patches():
        stale.unlink()

    written: dict[str, Path] = {}
    for relpath, data in diffs.items():
        dest = work.patches_dir / names[relpath]
        atomic_write_bytes(dest, data)
        written[relpath] = dest
    return written


def publish_patches(cfg: ProjectConfig, patches: list[Path], set_name: str) -> Path:
    """Copy *patches* into the reusable patch set *set_name*.

    Raises:
        ValueError: *set_name* is not ``Common`` or ``Sdk_<rel>_<version>``.
    """
    parse_patch_set_name(set_name)
    dest = cfg.patches_dir / set_name
    dest.mkdir(parents=True, exist_ok=True)
    for patch in patches:
        shutil.copy2(patch, dest / patch.name)
    return dest


app = typer.Typer(
    help="Write one patch per edited file in a work directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

xamlpatch generate-patches                        Only work directory, or the one you are in

xamlpatch generate-patches -w Work/10.0.22621.0/<hash>

xamlpatch generate-patches --into Common          Also copy into Patches/Common/

xamlpatch generate-patches --into Sdk_Ge_10.0.22621.0

[dim]Patch files are named after the edited path with separators replaced by '_'.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    work_dir: Path | None = WorkDirOption,
    into: str | None = typer.Option(
        None, "--into", help="Also copy the patches into this reusable patch set."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON."),
    verbose: bool = VerboseOption,
) -> None:
    """Diff the working tree against the baseline and write patches."""
    set_verbose(verbose)
    try:
        cfg = get_config()
        work = resolve_work_dir(cfg, work_dir)
        if not json_output:
            step(f"Diffing {work.source_dir} against baseline")
        written = generate_patches(cfg, work)
        published = publish_patches(cfg, list(written.values()), into) if into else None
    except FATAL_ERRORS as e:
        error_exit(error_message(e), json_mode=json_output)

    if json_output:
        json_print(
            {
                "work_dir": str(work.root),
                "sdk_version": str(work.sdk_version),
                "patches": {k: str(v) for k, v in written.items()},
                "published_to": str(published) if published else None,
            }
        )
        return

    for relpath, patch in written.items():
        typer.echo(f"  {relpath} -> {patch.name}")
    done(f"Wrote {len(written)} patch(es) to {rel_display_path(work.patches_dir, cfg.root)}")
    if published is not None:
        done(f"Copied into {rel_display_path(published, cfg.root)}")


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
