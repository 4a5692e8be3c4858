"""Centralised project configuration loader for xamlpatch.

Reads ``xamlpatch.toml`` from the project root and exposes every setting as
simple attributes so that commands never hardcode tool names or directory
layouts.

Unlike most project files the config is optional: when no ``xamlpatch.toml``
exists in the current directory or any parent, the built-in defaults below
are used with the current directory as the project root.

Usage in any command::

    from xamlpatch.config import load_config

    cfg = load_config()
    cfg.work_dir          # Path, e.g. <root>/Work
    cfg.patches_dir       # Path, e.g. <root>/Patches
    cfg.git_argv()        # ["git"]
"""

from __future__ import annotations

import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_NAME = "xamlpatch.toml"

DEFAULT_DLL_RELPATH = "XamlCompiler/Microsoft.Windows.UI.Xaml.Build.Tasks.dll"
DEFAULT_HASH_LENGTH = 16
DEFAULT_TIMEOUT = 600


@dataclass
class ProjectConfig:
    """Parsed project configuration with computed paths."""

    # Root directory (where xamlpatch.toml lives, or cwd)
    root: Path

    # --- [project] ---
    work_dir: Path = field(default_factory=lambda: Path("Work"))
    patches_dir: Path = field(default_factory=lambda: Path("Patches"))

    # --- [sdk] ---
    sdk_root: Path | None = None  # None = registry lookup
    dll_relpath: str = DEFAULT_DLL_RELPATH
    hash_length: int = DEFAULT_HASH_LENGTH

    # --- [tools] ---
    git_command: str = "git"
    decompiler_command: str = "ilspycmd"
    decompiler_args: list[str] = field(default_factory=list)
    build_command: str = "dotnet build"
    build_args: list[str] = field(default_factory=lambda: ["-c", "Release"])
    timeout: int = DEFAULT_TIMEOUT

    # Whether a config file was actually found
    config_path: Path | None = None

    def git_argv(self) -> list[str]:
        """Return the git command prefix as an argv list."""
        return split_command(self.git_command)

    def decompiler_argv(self) -> list[str]:
        """Return the decompiler command prefix as an argv list."""
        return split_command(self.decompiler_command)

    def build_argv(self) -> list[str]:
        """Return the build tool command prefix as an argv list."""
        return split_command(self.build_command)


def split_command(command: str) -> list[str]:
    """Split a configured command string into argv parts.

    Windows paths with backslashes are common in this config, so the split
    is done in non-POSIX mode on Windows hosts.
    """
    parts = shlex.split(command, posix=sys.platform != "win32")
    if not parts:
        raise ValueError(f"Empty command string: {command!r}")
    return [p.strip('"') for p in parts]


def _resolve(root: Path, rel: str | None) -> Path | None:
    """Resolve a path relative to project root."""
    if rel is None or rel == "":
        return None
    p = Path(rel)
    if p.is_absolute():
        return p
    return root / p


def _find_root(start: Path | None = None) -> tuple[Path, Path | None]:
    """Walk up from *start* (or cwd) to find xamlpatch.toml.

    Returns ``(root, config_path)``.  When no config exists, the starting
    directory is the root and ``config_path`` is ``None``.
    """
    origin = (start or Path.cwd()).resolve()
    candidate = origin
    while True:
        toml_path = candidate / CONFIG_NAME
        if toml_path.exists():
            return candidate, toml_path
        if candidate == candidate.parent:
            return origin, None
        candidate = candidate.parent


def _table(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table, got {value!r}")
    return value


def _as_str(section: dict[str, Any], key: str, default: str | None, qualified: str) -> str | None:
    value = section.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{qualified} must be a string, got {value!r}")
    return value


def _as_int(section: dict[str, Any], key: str, default: int, qualified: str) -> int:
    value = section.get(key, default)
    # bool is an int subclass; `hash_length = true` is a typo, not 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{qualified} must be an integer, got {value!r}")
    return value


def _as_str_list(value: Any, key: str) -> list[str]:
    if isinstance(value, str):
        return split_command(value) if value.strip() else []
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"{key} must be a string or a list of strings, got {value!r}")


def load_config(root: Path | None = None) -> ProjectConfig:
    """Load xamlpatch.toml (or defaults).

    Args:
        root: Directory to start the search from.  Defaults to cwd.

    Raises:
        ValueError: A setting has the wrong type or an invalid value.
        tomllib.TOMLDecodeError: The file is not valid TOML.
    """
    root, toml_path = _find_root(root)
    raw: dict[str, Any] = {}
    if toml_path is not None:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)

    project = _table(raw, "project")
    sdk = _table(raw, "sdk")
    tools = _table(raw, "tools")

    hash_length = _as_int(sdk, "hash_length", DEFAULT_HASH_LENGTH, "sdk.hash_length")
    if not 8 <= hash_length <= 64:
        raise ValueError(f"sdk.hash_length must be between 8 and 64, got {hash_length}")

    timeout = _as_int(tools, "timeout", DEFAULT_TIMEOUT, "tools.timeout")
    if timeout <= 0:
        raise ValueError(f"tools.timeout must be positive, got {timeout}")

    work_dir = _as_str(project, "work_dir", "Work", "project.work_dir")
    patches_dir = _as_str(project, "patches_dir", "Patches", "project.patches_dir")

    cfg = ProjectConfig(
        root=root,
        work_dir=_resolve(root, work_dir) or root / "Work",
        patches_dir=_resolve(root, patches_dir) or root / "Patches",
        sdk_root=_resolve(root, _as_str(sdk, "root", None, "sdk.root")),
        dll_relpath=_as_str(sdk, "dll", DEFAULT_DLL_RELPATH, "sdk.dll"),
        hash_length=hash_length,
        git_command=_as_str(tools, "git", "git", "tools.git"),
        decompiler_command=_as_str(tools, "decompiler", "ilspycmd", "tools.decompiler"),
        decompiler_args=_as_str_list(tools.get("decompiler_args", []), "tools.decompiler_args"),
        build_command=_as_str(tools, "build", "dotnet build", "tools.build"),
        build_args=_as_str_list(tools.get("build_args", ["-c", "Release"]), "tools.build_args"),
        timeout=timeout,
        config_path=toml_path,
    )
    return cfg
