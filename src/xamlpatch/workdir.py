"""Work directory layout and per-work-directory helper scripts.

A work directory is keyed by SDK version and DLL content hash::

    Work/<SdkVersion>/<DllHash>/
        Source/                 decompiled tree (git repo, one baseline commit)
        Patches/                patches generated from the edits in Source/
        GeneratePatches.cmd     helper for Windows shells
        generate-patches.sh     helper for POSIX shells

The same DLL decompiled twice maps to the same directory, which is why an
existing work directory is never silently reused.
"""

from __future__ import annotations

import shlex
import shutil
import stat
import sys
from dataclasses import dataclass
from pathlib import Path

from xamlpatch.config import ProjectConfig
from xamlpatch.sdk import SdkVersion, is_version, parse_version
from xamlpatch.utils import atomic_write_text, file_sha256

SOURCE_DIR = "Source"
PATCHES_DIR = "Patches"
CMD_HELPER = "GeneratePatches.cmd"
SH_HELPER = "generate-patches.sh"

_CMD_TEMPLATE = """\
@echo off
rem Regenerates Patches\\ from the edits in Source\\ of this work directory.
rem Generated by xamlpatch setup; re-run setup to refresh.
cd /d "{root}" || exit /b 1
"{python}" -m xamlpatch generate-patches --work-dir "{work_dir}" %*
exit /b %ERRORLEVEL%
"""

_SH_TEMPLATE = """\
#!/bin/sh
# Regenerates Patches/ from the edits in Source/ of this work directory.
# Generated by xamlpatch setup; re-run setup to refresh.
cd {root} || exit 1
exec {python} -m xamlpatch generate-patches --work-dir {work_dir} "$@"
"""


def dll_hash(dll: Path, length: int) -> str:
    """Return the truncated content hash that keys a work directory."""
    return file_sha256(dll)[:length]


@dataclass(frozen=True)
class WorkDir:
    """One decompile of one DLL for one SDK version."""

    root: Path
    sdk_version: SdkVersion
    dll_hash: str

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIR

    @property
    def patches_dir(self) -> Path:
        return self.root / PATCHES_DIR

    @classmethod
    def for_dll(cls, cfg: ProjectConfig, sdk_version: SdkVersion, dll: Path) -> WorkDir:
        """Compute the work directory for *dll* of *sdk_version*."""
        digest = dll_hash(dll, cfg.hash_length)
        return cls(root=cfg.work_dir / str(sdk_version) / digest, sdk_version=sdk_version, dll_hash=digest)

    @classmethod
    def from_path(cls, path: Path) -> WorkDir:
        """Recognise an existing work directory from *path*.

        *path* may be the work directory itself, its ``Source/`` directory,
        or anything inside ``Source/``.

        Raises:
            FileNotFoundError: no work directory encloses *path*.
        """
        path = path.resolve()
        for candidate in (path, *path.parents):
            if not (candidate / SOURCE_DIR).is_dir():
                continue
            if is_version(candidate.parent.name):
                return cls(
                    root=candidate,
                    sdk_version=parse_version(candidate.parent.name),
                    dll_hash=candidate.name,
                )
        raise FileNotFoundError(
            f"Not inside a work directory (expected Work/<SdkVersion>/<DllHash>/Source): {path}"
        )

    def create(self) -> None:
        """Create the directory skeleton.

        Raises:
            FileExistsError: the work directory already exists.
        """
        if self.root.exists():
            raise FileExistsError(
                f"Work directory already exists: {self.root} "
                "(delete it or pass --force to start over)"
            )
        self.source_dir.mkdir(parents=True)
        self.patches_dir.mkdir()

    def remove(self) -> None:
        """Delete the work directory, including git's read-only objects."""
        if not self.root.exists():
            return
        if sys.version_info >= (3, 12):
            shutil.rmtree(self.root, onexc=_make_writable_and_retry)
        else:
            shutil.rmtree(self.root, onerror=_make_writable_and_retry)

    def generated_patches(self) -> list[Path]:
        """Patches currently generated for this work directory."""
        if not self.patches_dir.is_dir():
            return []
        return sorted(self.patches_dir.glob("*.patch"))


def _make_writable_and_retry(func, path, _exc) -> None:
    """rmtree error hook: git marks pack files read-only on Windows."""
    Path(path).chmod(stat.S_IWRITE | stat.S_IREAD)
    func(path)


def discover_work_dirs(cfg: ProjectConfig) -> list[WorkDir]:
    """List existing work directories, ordered by SDK version then hash."""
    found: list[WorkDir] = []
    if not cfg.work_dir.is_dir():
        return found
    for version_dir in cfg.work_dir.iterdir():
        if not version_dir.is_dir() or not is_version(version_dir.name):
            continue
        version = parse_version(version_dir.name)
        for hash_dir in version_dir.iterdir():
            if (hash_dir / SOURCE_DIR).is_dir():
                found.append(WorkDir(root=hash_dir, sdk_version=version, dll_hash=hash_dir.name))
    return sorted(found, key=lambda w: (w.sdk_version.parts, w.dll_hash))


def resolve_work_dir(cfg: ProjectConfig, work_dir: Path | None) -> WorkDir:
    """Pick the work directory a command operates on.

    Explicit ``--work-dir`` wins; otherwise the current directory if it is
    inside one; otherwise the only existing work directory.

    Raises:
        FileNotFoundError: nothing matches.
        ValueError: several work directories exist and none was chosen.
    """
    if work_dir is not None:
        return WorkDir.from_path(work_dir)
    try:
        return WorkDir.from_path(Path.cwd())
    except FileNotFoundError:
        pass
    existing = discover_work_dirs(cfg)
    if not existing:
        raise FileNotFoundError(f"No work directories under {cfg.work_dir}; run 'xamlpatch setup'")
    if len(existing) > 1:
        listing = ", ".join(str(w.root) for w in existing)
        raise ValueError(f"Several work directories exist, pass --work-dir: {listing}")
    return existing[0]


def write_helper_scripts(cfg: ProjectConfig, work: WorkDir, python: str | None = None) -> list[Path]:
    """Write the generate-patches helper scripts into *work*.

    The scripts bake in the interpreter that ran setup so they keep working
    outside an activated virtualenv.
    """
    python = python or sys.executable
    root = str(cfg.root)
    work_root = str(work.root)

    cmd_path = work.root / CMD_HELPER
    atomic_write_text(
        cmd_path,
        _CMD_TEMPLATE.format(root=root, python=python, work_dir=work_root),
        newline="\r\n",
    )

    sh_path = work.root / SH_HELPER
    atomic_write_text(
        sh_path,
        _SH_TEMPLATE.format(
            root=shlex.quote(root),
            python=shlex.quote(python),
            work_dir=shlex.quote(work_root),
        ),
    )
    sh_path.chmod(sh_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return [cmd_path, sh_path]
