"""main.py – Umbrella CLI entry point for xamlpatch.

Every subcommand lives in its own module and is imported lazily at startup.
A module that fails to import (for example because ``pefile`` is missing for
``doctor``) is replaced by a stub that reports the problem, so the remaining
commands keep working.
"""

import importlib
import sys

import typer

app = typer.Typer(
    help="Decompile, patch and rebuild the Windows SDK XAML build-task DLL.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  xamlpatch init                      Create xamlpatch.toml and Patches/Common/
  xamlpatch doctor                    Check SDK, git, ilspycmd, dotnet
  xamlpatch setup                     Decompile + baseline commit + apply patch sets
  (edit Work/<sdk>/<hash>/Source/...)
  xamlpatch generate-patches          Write one patch per edited file
  xamlpatch generate-patches --into Common   Promote them to a reusable patch set
  xamlpatch setup -s 10.0.19041.0     Replay the patch sets on another SDK

[dim]All commands read project settings from xamlpatch.toml (optional).
Run 'xamlpatch <cmd> --help' for details.[/dim]""",
)

# (command name, module, help, is_group).  Groups are mounted with
# add_typer(); everything else exposes a single ``main`` callback.
_COMMANDS: list[tuple[str, str, str, bool]] = [
    ("init", "xamlpatch.init", "Initialize a new xamlpatch project.", False),
    ("doctor", "xamlpatch.doctor", "Check SDK, DLL and toolchain health.", False),
    ("setup", "xamlpatch.bootstrap", "Decompile the DLL into a fresh, patched work directory.", False),
    ("generate-patches", "xamlpatch.genpatches", "Write one patch per edited file.", False),
    ("apply", "xamlpatch.apply", "Replay patch sets onto an existing work directory.", False),
    ("build", "xamlpatch.build", "Build the decompiled project of a work directory.", False),
    ("status", "xamlpatch.status", "Show work directories and patch sets.", False),
    ("cfg", "xamlpatch.cfg", "Read and edit xamlpatch.toml.", True),
]


def _unavailable(module: str, err: ImportError) -> typer.Typer:
    """Build a placeholder app that fails with the import error."""
    placeholder = typer.Typer(help=f"[unavailable] {module}")

    @placeholder.callback(invoke_without_command=True)
    def _fail() -> None:
        print(f"Error: cannot load {module}: {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return placeholder


def _register(name: str, module: str, help_text: str, is_group: bool) -> None:
    try:
        mod = importlib.import_module(module)
    except ImportError as exc:
        app.add_typer(_unavailable(module, exc), name=name, help=f"[unavailable] {help_text}")
        return
    if is_group:
        app.add_typer(mod.app, name=name, help=help_text)
        return
    epilog = mod.app.info.epilog
    app.command(
        name=name,
        help=help_text,
        epilog=epilog if isinstance(epilog, str) else None,
    )(mod.main)


for _entry in _COMMANDS:
    _register(*_entry)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
