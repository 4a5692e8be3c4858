"""Tests for the ILSpy decompiler wrapper."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from xamlpatch.config import ProjectConfig
from xamlpatch.decompiler import decompile, decompile_command, decompiler_available, find_project_file
from xamlpatch.tools import ToolError


@pytest.fixture
def cfg(tmp_path: Path) -> ProjectConfig:
    return ProjectConfig(root=tmp_path, decompiler_args=["--nested-directories"], timeout=99)


@pytest.fixture
def dll(tmp_path: Path) -> Path:
    p = tmp_path / "sdk" / "XamlCompiler" / "Microsoft.Windows.UI.Xaml.Build.Tasks.dll"
    p.parent.mkdir(parents=True)
    p.write_bytes(b"MZ")
    return p


class TestDecompileCommand:
    def test_argv(self, cfg: ProjectConfig, dll: Path, tmp_path: Path) -> None:
        out = tmp_path / "Source"
        assert decompile_command(cfg, dll, out) == [
            "ilspycmd",
            "--project",
            "--outputdir",
            str(out),
            "--referencepath",
            str(dll.parent),
            "--nested-directories",
            str(dll),
        ]


class TestDecompile:
    def test_missing_dll(self, cfg: ProjectConfig, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            decompile(cfg, tmp_path / "none.dll", tmp_path / "Source")

    @patch("xamlpatch.tools.subprocess.run")
    def test_returns_project(self, mock_run, cfg: ProjectConfig, dll: Path, tmp_path: Path) -> None:
        out = tmp_path / "Source"

        def _fake_run(argv, **kwargs):
            (out / "Microsoft.Windows.UI.Xaml.Build.Tasks.csproj").write_text("<Project/>")
            return subprocess.CompletedProcess(args=argv, returncode=0, stdout="", stderr="")

        mock_run.side_effect = _fake_run
        project = decompile(cfg, dll, out)
        assert project == out / "Microsoft.Windows.UI.Xaml.Build.Tasks.csproj"
        assert mock_run.call_args.kwargs["timeout"] == 99
        assert mock_run.call_args.kwargs["cwd"] == out

    @patch("xamlpatch.tools.subprocess.run")
    def test_no_project_is_error(self, mock_run, cfg: ProjectConfig, dll: Path, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with pytest.raises(ToolError, match="no project file"):
            decompile(cfg, dll, tmp_path / "Source")

    @patch("xamlpatch.tools.subprocess.run")
    def test_decompiler_failure(self, mock_run, cfg: ProjectConfig, dll: Path, tmp_path: Path) -> None:
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=1, stdout="", stderr="Unhandled exception"
        )
        with pytest.raises(ToolError, match="Unhandled exception"):
            decompile(cfg, dll, tmp_path / "Source")


class TestFindProjectFile:
    def test_top_level(self, tmp_path: Path) -> None:
        (tmp_path / "B.csproj").write_text("")
        (tmp_path / "A.csproj").write_text("")
        assert find_project_file(tmp_path) == tmp_path / "A.csproj"

    def test_nested(self, tmp_path: Path) -> None:
        nested = tmp_path / "Tasks" / "Tasks.csproj"
        nested.parent.mkdir()
        nested.write_text("")
        assert find_project_file(tmp_path) == nested

    def test_ignores_git_dir(self, tmp_path: Path) -> None:
        hidden = tmp_path / ".git" / "x.csproj"
        hidden.parent.mkdir()
        hidden.write_text("")
        assert find_project_file(tmp_path) is None


class TestDecompilerAvailable:
    @patch("xamlpatch.tools.shutil.which", return_value=None)
    def test_missing(self, _mock_which, cfg: ProjectConfig) -> None:
        assert decompiler_available(cfg) is None

    @patch("xamlpatch.tools.shutil.which", return_value="/home/u/.dotnet/tools/ilspycmd")
    def test_found(self, _mock_which, cfg: ProjectConfig) -> None:
        assert decompiler_available(cfg) == "/home/u/.dotnet/tools/ilspycmd"
