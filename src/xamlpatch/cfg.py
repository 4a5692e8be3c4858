"""xamlpatch cfg: Programmatic editor for xamlpatch.toml.

Uses tomlkit for format-preserving round-trip editing (comments,
ordering, and whitespace are retained).

Usage::

    xamlpatch cfg show
    xamlpatch cfg show tools.decompiler
    xamlpatch cfg set sdk.root "D:/Windows Kits/10"
    xamlpatch cfg set tools.build_args '["-c", "Debug"]'
"""

from pathlib import Path
from typing import Any

import tomlkit
import typer
from tomlkit.exceptions import ParseError

from xamlpatch.config import CONFIG_NAME, _find_root, load_config

app = typer.Typer(
    help="Read and edit xamlpatch.toml.",
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_toml() -> tuple[tomlkit.TOMLDocument, Path]:
    """Load xamlpatch.toml as a tomlkit document, preserving formatting."""
    _root, toml_path = _find_root()
    if toml_path is None:
        typer.secho(
            f"Error: Could not find {CONFIG_NAME} in any parent directory.\n"
            "Run 'xamlpatch init' first.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
    doc = tomlkit.parse(toml_path.read_text(encoding="utf-8"))
    return doc, toml_path


def _save_toml(doc: tomlkit.TOMLDocument, path: Path) -> None:
    """Write tomlkit document back, preserving formatting."""
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def parse_value(raw: str) -> Any:
    """Interpret *raw* as a TOML value, falling back to a plain string.

    ``600`` becomes an int, ``true`` a bool, ``["-c", "Debug"]`` a list;
    anything that is not valid TOML (``dotnet build``) stays a string.
    """
    try:
        return tomlkit.parse(f"v = {raw}")["v"]
    except ParseError:
        return raw


def _get_dotted(doc: Any, key: str) -> Any:
    node = doc
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("show")
def show(key: str | None = typer.Argument(None, help="Dotted key, e.g. tools.decompiler.")) -> None:
    """Print the whole config, or the value of one dotted KEY."""
    doc, _path = _load_toml()
    if key is None:
        typer.echo(tomlkit.dumps(doc), nl=False)
        return
    try:
        value = _get_dotted(doc, key)
    except KeyError:
        typer.secho(f"Error: Key '{key}' not set in {CONFIG_NAME}.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
    if isinstance(value, dict):
        typer.echo(tomlkit.dumps({key.split(".")[-1]: value}), nl=False)
    else:
        typer.echo(tomlkit.dumps({"v": value}).split("=", 1)[1].strip())


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Dotted key, e.g. sdk.root."),
    value: str = typer.Argument(..., help="New value (TOML literal or plain string)."),
) -> None:
    """Set dotted KEY to VALUE, creating tables as needed."""
    doc, path = _load_toml()
    parts = key.split(".")
    node: Any = doc
    for part in parts[:-1]:
        if part not in node:
            node[part] = tomlkit.table()
        node = node[part]
        if not isinstance(node, dict):
            typer.secho(f"Error: '{part}' in '{key}' is not a table.", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
    node[parts[-1]] = parse_value(value)

    backup = path.read_text(encoding="utf-8")
    _save_toml(doc, path)
    try:
        load_config(path.parent)
    except ValueError as e:
        path.write_text(backup, encoding="utf-8")
        typer.secho(f"Error: rejected, config would be invalid: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from None
    typer.secho(f"Set {key} in {path.name}", fg=typer.colors.GREEN)
