"""status.py – Overview of work directories and reusable patch sets.

Prints a Rich-formatted table of every work directory (SDK version, DLL hash,
number of edited paths, number of generated patches) and of every patch set
with the SDK predicate that gates it.
"""

from dataclasses import dataclass
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from xamlpatch.cli import FATAL_ERRORS, error_exit, error_message, get_config, json_print
from xamlpatch.config import ProjectConfig
from xamlpatch.patchsets import PatchSet, discover_patch_sets
from xamlpatch.repo import commit_count, edited_paths
from xamlpatch.tools import ToolError
from xamlpatch.workdir import WorkDir, discover_work_dirs

# ---------------------------------------------------------------------------
# Data collection
# ---------------------------------------------------------------------------


@dataclass
class WorkDirStats:
    """Summary of one work directory."""

    work: WorkDir
    edited: int | None = None
    patches: int = 0
    commits: int | None = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.work.root),
            "sdk_version": str(self.work.sdk_version),
            "dll_hash": self.work.dll_hash,
            "edited": self.edited,
            "patches": self.patches,
            "commits": self.commits,
            "error": self.error or None,
        }


def collect_work_dir(cfg: ProjectConfig, work: WorkDir) -> WorkDirStats:
    """Gather stats for *work*; git failures are recorded, not raised."""
    stats = WorkDirStats(work=work, patches=len(work.generated_patches()))
    try:
        stats.commits = commit_count(cfg, work.source_dir)
        stats.edited = len(edited_paths(cfg, work.source_dir))
    except ToolError as e:
        stats.error = str(e).splitlines()[0]
    return stats


def patch_set_to_dict(ps: PatchSet) -> dict[str, Any]:
    return {
        "name": ps.name,
        "applies": ps.describe(),
        "patches": len(ps.patches()),
    }


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_work_dirs(console: Console, cfg: ProjectConfig, all_stats: list[WorkDirStats]) -> None:
    tbl = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    tbl.add_column("SDK")
    tbl.add_column("DLL hash")
    tbl.add_column("Edited", justify="right")
    tbl.add_column("Patches", justify="right")
    tbl.add_column("Note")
    for s in all_stats:
        note = escape(s.error)
        if not note and s.commits is not None and s.commits != 1:
            note = f"[yellow]{s.commits} commits (expected 1)[/]"
        tbl.add_row(
            str(s.work.sdk_version),
            s.work.dll_hash,
            "?" if s.edited is None else str(s.edited),
            str(s.patches),
            note,
        )
    if not all_stats:
        tbl.add_row("[dim]none[/]", "", "", "", "run 'xamlpatch setup'")
    console.print(Panel(tbl, title=f"[bold]Work directories[/] ({cfg.work_dir})", border_style="blue"))


def _render_patch_sets(console: Console, cfg: ProjectConfig, sets: list[PatchSet]) -> None:
    tbl = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    tbl.add_column("Patch set")
    tbl.add_column("Applies when")
    tbl.add_column("Patches", justify="right")
    for ps in sets:
        tbl.add_row(ps.name, ps.describe(), str(len(ps.patches())))
    if not sets:
        tbl.add_row("[dim]none[/]", "", "")
    console.print(Panel(tbl, title=f"[bold]Patch sets[/] ({cfg.patches_dir})", border_style="green"))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="Show work directories and patch sets.",
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON."),
) -> None:
    """Summarise work directories and reusable patch sets."""
    try:
        cfg = get_config()
        all_stats = [collect_work_dir(cfg, w) for w in discover_work_dirs(cfg)]
        sets, ignored = discover_patch_sets(cfg.patches_dir)
    except FATAL_ERRORS as e:
        error_exit(error_message(e), json_mode=json_output)

    if json_output:
        json_print(
            {
                "work_dirs": [s.to_dict() for s in all_stats],
                "patch_sets": [patch_set_to_dict(ps) for ps in sets],
                "ignored": [p.name for p in ignored],
            }
        )
        return

    console = Console()
    _render_work_dirs(console, cfg, all_stats)
    _render_patch_sets(console, cfg, sets)
    for path in ignored:
        console.print(f"[yellow]ignored:[/] {path.name}/ (not a patch set name)")
