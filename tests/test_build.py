"""Tests for building a work directory's decompiled project."""

from pathlib import Path

import pytest

from xamlpatch.build import build_command, build_work_dir
from xamlpatch.config import ProjectConfig
from xamlpatch.sdk import SdkVersion
from xamlpatch.workdir import WorkDir


@pytest.fixture
def cfg(tmp_path: Path) -> ProjectConfig:
    return ProjectConfig(root=tmp_path, work_dir=tmp_path / "Work", timeout=42)


@pytest.fixture
def work(cfg: ProjectConfig) -> WorkDir:
    w = WorkDir(root=cfg.work_dir / "10.0.22621.0" / "abcd", sdk_version=SdkVersion("10.0.22621.0"), dll_hash="abcd")
    w.create()
    return w


def test_build_command_defaults(cfg: ProjectConfig, tmp_path: Path) -> None:
    project = tmp_path / "Tasks.csproj"
    assert build_command(cfg, project) == ["dotnet", "build", str(project), "-c", "Release"]


def test_build_command_custom(tmp_path: Path) -> None:
    cfg = ProjectConfig(root=tmp_path, build_command="msbuild", build_args=["/p:Configuration=Debug"])
    project = tmp_path / "Tasks.csproj"
    assert build_command(cfg, project) == ["msbuild", str(project), "/p:Configuration=Debug"]


def test_build_without_project(cfg: ProjectConfig, work: WorkDir) -> None:
    with pytest.raises(FileNotFoundError, match="No project file"):
        build_work_dir(cfg, work)


def test_build_runs_in_project_dir(
    cfg: ProjectConfig, work: WorkDir, monkeypatch: pytest.MonkeyPatch
) -> None:
    project = work.source_dir / "Tasks.csproj"
    project.write_text("<Project/>")
    seen: dict = {}

    def _run_tool(cmd, cwd, **kwargs):
        seen.update(cmd=cmd, cwd=cwd, **kwargs)

    monkeypatch.setattr("xamlpatch.build.run_tool", _run_tool)
    assert build_work_dir(cfg, work) == project
    assert seen["cwd"] == work.source_dir
    assert seen["timeout"] == 42
    assert seen["capture"] is False
    assert seen["cmd"][:2] == ["dotnet", "build"]
