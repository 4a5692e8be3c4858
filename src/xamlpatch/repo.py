"""Baseline git repository over a decompiled source tree.

The repository exists only to diff against: it holds exactly one commit (the
pristine decompile), and a pre-commit hook that always fails keeps it that
way.  Every edit the engineer makes, and every patch replayed by setup,
stays in the working tree where ``git diff HEAD`` sees it.
"""

from __future__ import annotations

from pathlib import Path

from xamlpatch.config import ProjectConfig
from xamlpatch.tools import run_tool

BASELINE_AUTHOR = "xamlpatch"
BASELINE_EMAIL = "xamlpatch@localhost"

# Build outputs of the decompiled project must never show up as edits.
GITIGNORE = """\
bin/
obj/
.vs/
*.user
"""

PRE_COMMIT_HOOK = """\
#!/bin/sh
echo "xamlpatch: this repository holds a single baseline commit; commits are disabled." >&2
echo "xamlpatch: run generate-patches to record your edits instead." >&2
exit 1
"""

_LOCAL_CONFIG = (
    ("user.name", BASELINE_AUTHOR),
    ("user.email", BASELINE_EMAIL),
    ("core.autocrlf", "false"),
    ("core.safecrlf", "false"),
    ("commit.gpgsign", "false"),
)


def _git(cfg: ProjectConfig, source_dir: Path, *args: str, text: bool = True):
    return run_tool([*cfg.git_argv(), *args], cwd=source_dir, timeout=cfg.timeout, text=text)


def init_baseline(cfg: ProjectConfig, source_dir: Path, message: str) -> str:
    """Turn *source_dir* into a repository with one baseline commit.

    Returns the baseline commit id.
    """
    _git(cfg, source_dir, "init", "--quiet")
    for key, value in _LOCAL_CONFIG:
        _git(cfg, source_dir, "config", "--local", key, value)

    (source_dir / ".gitignore").write_text(GITIGNORE, encoding="utf-8")
    _git(cfg, source_dir, "add", "--all")
    _git(cfg, source_dir, "commit", "--quiet", "--no-verify", "-m", message)
    disable_commits(source_dir)
    return baseline_commit(cfg, source_dir)


def disable_commits(source_dir: Path) -> Path:
    """Install the always-failing pre-commit hook."""
    hook = source_dir / ".git" / "hooks" / "pre-commit"
    hook.parent.mkdir(parents=True, exist_ok=True)
    with open(hook, "w", encoding="utf-8", newline="\n") as f:
        f.write(PRE_COMMIT_HOOK)
    hook.chmod(0o755)
    return hook


def baseline_commit(cfg: ProjectConfig, source_dir: Path) -> str:
    """Return the id of the commit the working tree is compared against."""
    return _git(cfg, source_dir, "rev-parse", "HEAD").stdout.strip()


def commit_count(cfg: ProjectConfig, source_dir: Path) -> int:
    """Number of commits reachable from HEAD (1 for a healthy work directory)."""
    return int(_git(cfg, source_dir, "rev-list", "--count", "HEAD").stdout.strip())


def changed_paths(cfg: ProjectConfig, source_dir: Path) -> list[str]:
    """Return repository-relative paths that differ from the baseline.

    New files are marked intent-to-add first so they appear in the diff.
    Paths use forward slashes, as git reports them.
    """
    _git(cfg, source_dir, "add", "--intent-to-add", "--", ".")
    out = _git(
        cfg, source_dir, "diff", "--name-only", "--no-renames", "-z", "HEAD", "--"
    ).stdout
    return sorted(p for p in out.split("\0") if p)


def edited_paths(cfg: ProjectConfig, source_dir: Path) -> list[str]:
    """Like :func:`changed_paths`, but leaves the index untouched.

    Used for reporting; untracked files are listed individually.
    """
    out = _git(
        cfg,
        source_dir,
        "status",
        "--porcelain",
        "-z",
        "--untracked-files=all",
        "--no-renames",
    ).stdout
    # each record is "XY <path>"
    return sorted(entry[3:] for entry in out.split("\0") if len(entry) > 3)


def diff_path(cfg: ProjectConfig, source_dir: Path, relpath: str) -> bytes:
    """Return the unified diff of one path against the baseline, as bytes."""
    result = _git(
        cfg,
        source_dir,
        "diff",
        "--no-color",
        "--no-ext-diff",
        "--no-renames",
        "--full-index",
        "--binary",
        "HEAD",
        "--",
        relpath,
        text=False,
    )
    return result.stdout


def apply_patch(cfg: ProjectConfig, source_dir: Path, patch: Path) -> None:
    """Apply *patch* to the working tree (fatal on any rejected hunk)."""
    _git(cfg, source_dir, "apply", "--whitespace=nowarn", str(patch.resolve()))


def reset_to_baseline(cfg: ProjectConfig, source_dir: Path) -> None:
    """Discard all working-tree edits, restoring the pristine decompile."""
    _git(cfg, source_dir, "reset", "--quiet", "--hard", "HEAD")
    _git(cfg, source_dir, "clean", "--quiet", "--force", "-d")
