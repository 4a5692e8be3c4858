"""doctor.py – Diagnostic command for xamlpatch project health.

Validates the whole toolchain in a single command: config file, SDK root,
target DLL, git, the decompiler, the build tool, and the patch set layout.
Prints a checklist with actionable fix suggestions.

Usage::

    xamlpatch doctor
    xamlpatch doctor --sdk-version 10.0.22621.0
    xamlpatch doctor --json
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import pefile
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from xamlpatch.cli import get_config, json_print
from xamlpatch.config import ProjectConfig, split_command
from xamlpatch.patchsets import discover_patch_sets
from xamlpatch.sdk import find_sdk_root, list_sdk_versions, resolve_dll
from xamlpatch.tools import which

_PASS = "pass"
_FAIL = "fail"
_WARN = "warn"
_SKIP = "skip"

# IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR: present only in managed assemblies.
_CLR_DIRECTORY_INDEX = 14


@dataclass
class CheckResult:
    """Outcome of one check: pass, fail, warn or skip."""

    name: str
    status: str
    message: str
    fix: str = ""

    def to_dict(self) -> dict[str, str]:
        d = asdict(self)
        if not self.fix:
            del d["fix"]
        return d


@dataclass
class DoctorReport:
    checks: list[CheckResult] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(c.status == status for c in self.checks)

    @property
    def pass_count(self) -> int:
        return self.count(_PASS)

    @property
    def fail_count(self) -> int:
        return self.count(_FAIL)

    @property
    def warn_count(self) -> int:
        return self.count(_WARN)

    @property
    def passed(self) -> bool:
        """No check failed (warnings are fine)."""
        return self.fail_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "summary": {s: self.count(s) for s in (_PASS, _FAIL, _WARN)},
            "checks": [c.to_dict() for c in self.checks],
        }


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def check_config_parse() -> tuple[CheckResult, ProjectConfig | None]:
    """Check that xamlpatch.toml (if any) parses without errors."""
    try:
        cfg = get_config()
    except (ValueError, KeyError, OSError) as e:
        return (
            CheckResult(
                name="xamlpatch.toml",
                status=_FAIL,
                message=f"Config error: {e}",
                fix="Check xamlpatch.toml syntax and value types (must be valid TOML).",
            ),
            None,
        )
    if cfg.config_path is None:
        return (
            CheckResult(
                name="xamlpatch.toml",
                status=_WARN,
                message=f"Not found; using defaults rooted at {cfg.root}",
                fix="Run 'xamlpatch init' to write a config you can adjust.",
            ),
            cfg,
        )
    return (
        CheckResult(name="xamlpatch.toml", status=_PASS, message=f"Parsed {cfg.config_path}"),
        cfg,
    )


def check_sdk_root(cfg: ProjectConfig) -> tuple[CheckResult, Path | None]:
    """Check that the Windows SDK root can be located."""
    try:
        root = find_sdk_root(cfg.sdk_root)
    except FileNotFoundError as e:
        return (
            CheckResult(
                name="SDK root",
                status=_FAIL,
                message=str(e),
                fix="Install the Windows SDK, or set [sdk] root in xamlpatch.toml.",
            ),
            None,
        )
    versions = list_sdk_versions(root, cfg.dll_relpath)
    if not versions:
        return (
            CheckResult(
                name="SDK root",
                status=_FAIL,
                message=f"{root} has no SDK version containing {cfg.dll_relpath}",
                fix="Install an SDK with the UWP/XAML tools, or fix [sdk] dll in xamlpatch.toml.",
            ),
            root,
        )
    listing = ", ".join(str(v) for v in versions)
    return (
        CheckResult(name="SDK root", status=_PASS, message=f"{root} (versions: {listing})"),
        root,
    )


def check_target_dll(cfg: ProjectConfig, sdk_root: Path, sdk_version: str | None) -> CheckResult:
    """Check that the target DLL exists and is a managed PE image."""
    try:
        version, dll = resolve_dll(sdk_root, cfg.dll_relpath, sdk_version)
    except (FileNotFoundError, ValueError) as e:
        return CheckResult(
            name="Target DLL",
            status=_FAIL,
            message=str(e),
            fix="Pass an installed --sdk-version (see the SDK root check).",
        )

    try:
        pe = pefile.PE(str(dll), fast_load=True)
        try:
            dirs = pe.OPTIONAL_HEADER.DATA_DIRECTORY
            managed = len(dirs) > _CLR_DIRECTORY_INDEX and dirs[_CLR_DIRECTORY_INDEX].VirtualAddress != 0
        finally:
            pe.close()
    except (pefile.PEFormatError, OSError) as e:
        return CheckResult(
            name="Target DLL",
            status=_FAIL,
            message=f"Not a PE image: {dll} ({e})",
            fix="Repair the SDK installation.",
        )

    if not managed:
        return CheckResult(
            name="Target DLL",
            status=_WARN,
            message=f"{dll} has no CLR header; ILSpy can only decompile .NET assemblies",
            fix="Check [sdk] dll in xamlpatch.toml points at the managed build-task DLL.",
        )
    return CheckResult(name="Target DLL", status=_PASS, message=f"SDK {version}: {dll}")


def check_executable(name: str, command: str, fix: str) -> CheckResult:
    """Check that the first token of a configured command is runnable."""
    try:
        exe = split_command(command)[0]
    except ValueError as e:
        return CheckResult(name=name, status=_FAIL, message=str(e), fix=fix)
    found = which(exe)
    if found is None:
        return CheckResult(
            name=name,
            status=_FAIL,
            message=f"Executable '{exe}' not found in PATH",
            fix=fix,
        )
    return CheckResult(name=name, status=_PASS, message=f"Found: {found}")


def check_patch_sets(cfg: ProjectConfig) -> CheckResult:
    """Check the reusable patch set directory layout."""
    if not cfg.patches_dir.is_dir():
        return CheckResult(
            name="Patch sets",
            status=_WARN,
            message=f"Directory not found: {cfg.patches_dir}",
            fix="Run 'xamlpatch init' or create Patches/Common/.",
        )
    sets, ignored = discover_patch_sets(cfg.patches_dir)
    if ignored:
        names = ", ".join(p.name for p in ignored)
        return CheckResult(
            name="Patch sets",
            status=_WARN,
            message=f"Ignored directories with invalid names: {names}",
            fix="Rename them to Common or Sdk_<Eq|Lt|Le|Gt|Ge>_<version>.",
        )
    total = sum(len(s.patches()) for s in sets)
    return CheckResult(
        name="Patch sets",
        status=_PASS,
        message=f"{len(sets)} set(s), {total} patch(es) in {cfg.patches_dir}",
    )


# ---------------------------------------------------------------------------
# Main diagnostic runner
# ---------------------------------------------------------------------------


def run_doctor(sdk_version: str | None = None) -> DoctorReport:
    """Run all diagnostic checks and return a report."""
    report = DoctorReport()

    config_result, cfg = check_config_parse()
    report.checks.append(config_result)
    if cfg is None:
        return report

    sdk_result, sdk_root = check_sdk_root(cfg)
    report.checks.append(sdk_result)
    if sdk_root is not None:
        report.checks.append(check_target_dll(cfg, sdk_root, sdk_version))
    else:
        report.checks.append(
            CheckResult(name="Target DLL", status=_SKIP, message="Skipped (no SDK root)")
        )

    report.checks.append(
        check_executable("Git", cfg.git_command, "Install Git and make sure 'git' is on PATH.")
    )
    report.checks.append(
        check_executable(
            "Decompiler",
            cfg.decompiler_command,
            "Install ILSpy's CLI: dotnet tool install --global ilspycmd",
        )
    )
    report.checks.append(
        check_executable(
            "Build tool",
            cfg.build_command,
            "Install the .NET SDK, or set [tools] build in xamlpatch.toml (e.g. msbuild).",
        )
    )
    report.checks.append(check_patch_sets(cfg))
    return report




# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

_EPILOG = """\
[bold]Example:[/bold]

xamlpatch doctor                              Check the newest SDK

xamlpatch doctor --sdk-version 10.0.19041.0   Check a specific SDK

xamlpatch doctor --json                       Machine-readable output

[dim]Validates: xamlpatch.toml, SDK root, target DLL, git, decompiler, build tool,
and the Patches/ layout.[/dim]"""

_STATUS_STYLE = {
    _PASS: "[green]PASS[/]",
    _FAIL: "[red bold]FAIL[/]",
    _WARN: "[yellow]WARN[/]",
    _SKIP: "[dim]SKIP[/]",
}

app = typer.Typer(
    help="Diagnostic checks for xamlpatch project health.",
    rich_markup_mode="rich",
    epilog=_EPILOG,
)


def _render(console: Console, report: DoctorReport) -> None:
    tbl = Table(show_header=False, box=None, padding=(0, 1))
    tbl.add_column("Status")
    tbl.add_column("Check", style="bold")
    tbl.add_column("Details")
    for check in report.checks:
        details = escape(check.message)
        if check.fix:
            details += f"\n[dim]fix: {escape(check.fix)}[/]"
        tbl.add_row(_STATUS_STYLE.get(check.status, check.status), check.name, details)
    console.print(tbl)

    summary = f"{report.pass_count} passed, {report.fail_count} failed, {report.warn_count} warnings"
    if report.passed:
        console.print(f"\n[green]{summary}. Toolchain looks healthy.[/]")
    else:
        console.print(f"\n[red]{summary}. Fix the failures above and re-run.[/]")


@app.callback(invoke_without_command=True)
def main(
    sdk_version: str | None = typer.Option(
        None, "--sdk-version", "-s", help="SDK version to check (default: newest)."
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON."),
) -> None:
    """Run diagnostic checks on the xamlpatch project."""
    report = run_doctor(sdk_version=sdk_version)
    if json_output:
        json_print(report.to_dict())
    else:
        _render(Console(), report)
    if not report.passed:
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
