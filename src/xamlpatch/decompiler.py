"""decompiler.py - ILSpy command-line decompilation of the target DLL.

Runs ``ilspycmd`` in whole-project mode so the output is a buildable
``.csproj`` with one ``.cs`` file per type, laid out by namespace.  The DLL's
own directory is passed as a reference path so that sibling assemblies in
``XamlCompiler/`` resolve.

Install the decompiler with::

    dotnet tool install --global ilspycmd
"""

from pathlib import Path

from xamlpatch.config import ProjectConfig
from xamlpatch.tools import ToolError, run_tool, which

PROJECT_GLOB = "*.csproj"


def decompile_command(cfg: ProjectConfig, dll: Path, out_dir: Path) -> list[str]:
    """Build the decompiler argv for *dll* into *out_dir*."""
    return [
        *cfg.decompiler_argv(),
        "--project",
        "--outputdir",
        str(out_dir),
        "--referencepath",
        str(dll.parent),
        *cfg.decompiler_args,
        str(dll),
    ]


def decompile(cfg: ProjectConfig, dll: Path, out_dir: Path) -> Path:
    """Decompile *dll* into *out_dir* and return the generated project file.

    Raises:
        FileNotFoundError: *dll* does not exist.
        ToolError: the decompiler failed or produced no project.
    """
    if not dll.is_file():
        raise FileNotFoundError(f"DLL not found: {dll}")
    out_dir.mkdir(parents=True, exist_ok=True)
    cmd = decompile_command(cfg, dll, out_dir)
    run_tool(cmd, cwd=out_dir, timeout=cfg.timeout)

    project = find_project_file(out_dir)
    if project is None:
        raise ToolError(cmd, f"Decompiler produced no project file in {out_dir}")
    return project


def find_project_file(source_dir: Path) -> Path | None:
    """Return the decompiled ``.csproj`` (top-level first, then nested)."""
    top = sorted(source_dir.glob(PROJECT_GLOB))
    if top:
        return top[0]
    nested = sorted(
        p for p in source_dir.rglob(PROJECT_GLOB) if ".git" not in p.relative_to(source_dir).parts
    )
    return nested[0] if nested else None


def decompiler_available(cfg: ProjectConfig) -> str | None:
    """Return the resolved decompiler executable, or ``None``."""
    return which(cfg.decompiler_argv()[0])
