"""Tests for replaying patch sets onto a work directory."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from xamlpatch.apply import app, applicable_patch_sets, apply_patch_sets
from xamlpatch.config import ProjectConfig
from xamlpatch.sdk import SdkVersion
from xamlpatch.tools import ToolError
from xamlpatch.workdir import WorkDir

runner = CliRunner()


@pytest.fixture
def cfg(tmp_path: Path) -> ProjectConfig:
    return ProjectConfig(root=tmp_path, work_dir=tmp_path / "Work", patches_dir=tmp_path / "Patches")


def _work(cfg: ProjectConfig, version: str) -> WorkDir:
    w = WorkDir(root=cfg.work_dir / version / "abcd", sdk_version=SdkVersion(version), dll_hash="abcd")
    w.create()
    return w


def _patch_set(cfg: ProjectConfig, name: str, *patches: str) -> None:
    d = cfg.patches_dir / name
    d.mkdir(parents=True)
    for p in patches:
        (d / p).write_text("diff\n", encoding="utf-8")


@pytest.fixture
def layout(cfg: ProjectConfig) -> ProjectConfig:
    _patch_set(cfg, "Common", "b.cs.patch", "a.cs.patch")
    _patch_set(cfg, "Sdk_Ge_10.0.22621.0", "new.cs.patch")
    _patch_set(cfg, "Sdk_Lt_10.0.22621.0", "old.cs.patch")
    _patch_set(cfg, "drafts", "ignored.cs.patch")
    return cfg


class TestApplicablePatchSets:
    def test_selection(self, layout: ProjectConfig, capsys) -> None:
        work = _work(layout, "10.0.19041.0")
        names = [s.name for s in applicable_patch_sets(layout, work)]
        assert names == ["Common", "Sdk_Lt_10.0.22621.0"]
        assert "ignoring drafts/" in capsys.readouterr().err


class TestApplyPatchSets:
    def test_applies_in_order(self, layout: ProjectConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        work = _work(layout, "10.0.22621.0")
        applied: list[str] = []
        monkeypatch.setattr(
            "xamlpatch.apply.apply_patch",
            lambda _cfg, src, patch: applied.append(f"{patch.parent.name}/{patch.name}"),
        )
        count = apply_patch_sets(layout, work)
        assert count == 3
        assert applied == [
            "Common/a.cs.patch",
            "Common/b.cs.patch",
            "Sdk_Ge_10.0.22621.0/new.cs.patch",
        ]

    def test_stops_at_first_failure(
        self, layout: ProjectConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        work = _work(layout, "10.0.22621.0")
        applied: list[str] = []

        def _apply(_cfg, _src, patch: Path) -> None:
            if patch.name == "b.cs.patch":
                raise ToolError(["git", "apply"], "failed", returncode=1, stderr="error: patch failed")
            applied.append(patch.name)

        monkeypatch.setattr("xamlpatch.apply.apply_patch", _apply)
        with pytest.raises(ToolError, match="Common/b.cs.patch does not apply to SDK 10.0.22621.0"):
            apply_patch_sets(layout, work)
        assert applied == ["a.cs.patch"]

    def test_no_patch_sets(self, cfg: ProjectConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        work = _work(cfg, "10.0.22621.0")
        monkeypatch.setattr("xamlpatch.apply.apply_patch", lambda *a: pytest.fail("applied"))
        assert apply_patch_sets(cfg, work) == 0


class TestCli:
    def test_reset_then_apply(self, layout: ProjectConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        work = _work(layout, "10.0.22621.0")
        calls: list[str] = []
        monkeypatch.setattr("xamlpatch.apply.get_config", lambda: layout)
        monkeypatch.setattr("xamlpatch.apply.reset_to_baseline", lambda _cfg, _src: calls.append("reset"))
        monkeypatch.setattr("xamlpatch.apply.apply_patch", lambda *_a: calls.append("apply"))

        result = runner.invoke(app, ["--work-dir", str(work.root), "--reset"])

        assert result.exit_code == 0, result.output
        assert calls == ["reset", "apply", "apply", "apply"]
        assert "Applied 3 patch(es)" in result.output

    def test_failure_exits_nonzero(
        self, layout: ProjectConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        work = _work(layout, "10.0.22621.0")
        monkeypatch.setattr("xamlpatch.apply.get_config", lambda: layout)

        def _fail(*_a) -> None:
            raise ToolError(["git", "apply"], "failed", returncode=1)

        monkeypatch.setattr("xamlpatch.apply.apply_patch", _fail)
        result = runner.invoke(app, ["--work-dir", str(work.root)])
        assert result.exit_code == 1
