"""Initialize a new xamlpatch project directory.

Usage:
    xamlpatch init [--sdk-root PATH] [--decompiler CMD] [--build CMD]
"""

from pathlib import Path

import tomlkit
import typer

from xamlpatch.cli import error_exit
from xamlpatch.config import CONFIG_NAME, DEFAULT_DLL_RELPATH, DEFAULT_HASH_LENGTH, DEFAULT_TIMEOUT
from xamlpatch.patchsets import COMMON_SET

app = typer.Typer(
    help="Initialize a new xamlpatch project directory.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

xamlpatch init                                      Defaults (registry SDK lookup, ilspycmd, dotnet)

xamlpatch init --sdk-root "D:/Windows Kits/10"      Pin the SDK install root

xamlpatch init --build msbuild                      Build with MSBuild instead of dotnet

[bold]What it creates:[/bold]

xamlpatch.toml         Project configuration (SDK, tools, directories)

Patches/Common/        Patches applied to every SDK version

.gitignore             Keeps Work/ out of version control

[dim]Run this once, then 'xamlpatch doctor' and 'xamlpatch setup'.[/dim]""",
)

DEFAULT_XAMLPATCH_TOML = """# xamlpatch project configuration
# Every command reads its settings from here.  CLI flags override them.

# ---------------------------------------------------------------------------
# Directory layout
# ---------------------------------------------------------------------------

[project]
work_dir = "Work"          # Work/<SdkVersion>/<DllHash>/{{Source,Patches}}
patches_dir = "Patches"    # Patches/{{Common,Sdk_<Eq|Lt|Le|Gt|Ge>_<version>}}

# ---------------------------------------------------------------------------
# Windows SDK
# ---------------------------------------------------------------------------

[sdk]
{sdk_root_line}
dll = "{dll}"   # relative to <root>/bin/<version>
hash_length = {hash_length}        # hex digits of the DLL SHA-256 used in work dir names

# ---------------------------------------------------------------------------
# External tools
# ---------------------------------------------------------------------------

[tools]
git = "git"
decompiler = {decompiler}
decompiler_args = []             # extra ilspycmd arguments
build = {build}
build_args = ["-c", "Release"]
timeout = {timeout}                   # per-command timeout (seconds)
"""

GITIGNORE = """Work/
"""


def _toml_string(value: str) -> str:
    """Render *value* as a TOML string literal (quotes and backslashes escaped)."""
    return tomlkit.string(value).as_string()


@app.callback(invoke_without_command=True)
def main(
    sdk_root: str | None = typer.Option(
        None, "--sdk-root", help="Pin the SDK install root instead of using the registry."
    ),
    decompiler: str = typer.Option("ilspycmd", "--decompiler", help="Decompiler command."),
    build: str = typer.Option("dotnet build", "--build", help="Build tool command."),
) -> None:
    """
    Initialize a new xamlpatch project in the current directory.

    Creates xamlpatch.toml and the reusable patch set layout.
    """
    cwd = Path.cwd()
    toml_path = cwd / CONFIG_NAME

    if toml_path.exists():
        error_exit(f"A {CONFIG_NAME} already exists in {cwd}")

    if sdk_root:
        sdk_root_line = f"root = {_toml_string(Path(sdk_root).as_posix())}"
    else:
        sdk_root_line = '# root = "C:/Program Files (x86)/Windows Kits/10"   # default: registry KitsRoot10'

    # 1. Write xamlpatch.toml
    toml_content = DEFAULT_XAMLPATCH_TOML.format(
        sdk_root_line=sdk_root_line,
        dll=DEFAULT_DLL_RELPATH,
        hash_length=DEFAULT_HASH_LENGTH,
        decompiler=_toml_string(decompiler),
        build=_toml_string(build),
        timeout=DEFAULT_TIMEOUT,
    )
    toml_path.write_text(toml_content, encoding="utf-8")
    typer.secho(f"Created {toml_path.name}", fg=typer.colors.GREEN)

    # 2. Patch set layout
    common = cwd / "Patches" / COMMON_SET
    common.mkdir(parents=True, exist_ok=True)
    typer.secho(f"Created Patches/{COMMON_SET}/ (patches for every SDK version)", fg=typer.colors.GREEN)

    # 3. Keep work directories out of the project's own repository
    gitignore = cwd / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(GITIGNORE, encoding="utf-8")
        typer.secho("Created .gitignore", fg=typer.colors.GREEN)
    elif "Work/" not in gitignore.read_text(encoding="utf-8").splitlines():
        with open(gitignore, "a", encoding="utf-8") as f:
            f.write("\n" + GITIGNORE)
        typer.secho("Added Work/ to .gitignore", fg=typer.colors.GREEN)

    typer.secho("\nInitialization complete! Next steps:", fg=typer.colors.CYAN, bold=True)
    typer.echo("1. Run 'xamlpatch doctor' to check the SDK and toolchain")
    typer.echo("2. Run 'xamlpatch setup' to decompile the newest SDK's DLL")
    typer.echo("3. Edit Source/, then run the work directory's GeneratePatches helper")


init = main


def main_entry() -> None:
    """Run the Typer CLI application."""
    app()


if __name__ == "__main__":
    main_entry()
