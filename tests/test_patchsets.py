"""Tests for patch set naming, discovery and selection."""

from pathlib import Path

import pytest

from xamlpatch.patchsets import (
    COMMON_SET,
    PatchSet,
    Relation,
    discover_patch_sets,
    parse_patch_set_name,
    patch_set_name,
    sanitize_patch_name,
    select_patch_sets,
)
from xamlpatch.sdk import SdkVersion


def _v(text: str) -> SdkVersion:
    return SdkVersion(text)


def _make_set(patches_dir: Path, name: str, *patches: str) -> Path:
    d = patches_dir / name
    d.mkdir(parents=True)
    for p in patches:
        (d / p).write_text("diff --git a/x b/x\n", encoding="utf-8")
    return d


# ---------------------------------------------------------------------------
# Relation
# ---------------------------------------------------------------------------


class TestRelation:
    @pytest.mark.parametrize("token", ["ge", "Ge", "GE", "gE"])
    def test_parse_case_insensitive(self, token: str) -> None:
        assert Relation.parse(token) is Relation.GE

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown SDK relation"):
            Relation.parse("Ne")

    @pytest.mark.parametrize(
        ("relation", "current", "expected"),
        [
            (Relation.EQ, "10.0.19041.0", True),
            (Relation.EQ, "10.0.22621.0", False),
            (Relation.LT, "10.0.18362.0", True),
            (Relation.LT, "10.0.19041.0", False),
            (Relation.LE, "10.0.19041.0", True),
            (Relation.LE, "10.0.22621.0", False),
            (Relation.GT, "10.0.22621.0", True),
            (Relation.GT, "10.0.19041.0", False),
            (Relation.GE, "10.0.19041.0", True),
            (Relation.GE, "10.0.18362.0", False),
        ],
    )
    def test_matches(self, relation: Relation, current: str, expected: bool) -> None:
        assert relation.matches(_v(current), _v("10.0.19041.0")) is expected


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


class TestPatchSetNames:
    def test_common(self) -> None:
        assert parse_patch_set_name("Common") == (None, None)
        assert parse_patch_set_name("common") == (None, None)

    def test_versioned(self) -> None:
        rel, ver = parse_patch_set_name("Sdk_Ge_10.0.22621.0")
        assert rel is Relation.GE
        assert ver == _v("10.0.22621.0")

    def test_lowercase_relation(self) -> None:
        rel, _ver = parse_patch_set_name("Sdk_lt_10.0.19041.0")
        assert rel is Relation.LT

    @pytest.mark.parametrize(
        "bad", ["Sdk_Ge", "Sdk_Ge_", "Sdk_Ne_10.0.1.0", "Sdk_Ge_latest", "Misc", "sdk_ge_10.0.1.0"]
    )
    def test_invalid(self, bad: str) -> None:
        with pytest.raises(ValueError):
            parse_patch_set_name(bad)

    def test_build_name(self) -> None:
        assert patch_set_name(None) == COMMON_SET
        assert patch_set_name(Relation.LE, "10.0.19041.0") == "Sdk_Le_10.0.19041.0"

    def test_build_name_needs_version(self) -> None:
        with pytest.raises(ValueError):
            patch_set_name(Relation.EQ)


class TestSanitizePatchName:
    def test_nested_path(self) -> None:
        assert (
            sanitize_patch_name("Microsoft/Windows/UI/Xaml/Build/Tasks/CompileXaml.cs")
            == "Microsoft_Windows_UI_Xaml_Build_Tasks_CompileXaml.cs.patch"
        )

    def test_backslashes(self) -> None:
        assert sanitize_patch_name("A\\B\\C.cs") == "A_B_C.cs.patch"

    def test_windows_invalid_characters(self) -> None:
        assert sanitize_patch_name("Gen/List<T>.cs") == "Gen_List_T_.cs.patch"

    def test_top_level_file(self) -> None:
        assert sanitize_patch_name("Project.csproj") == "Project.csproj.patch"

    @pytest.mark.parametrize("bad", ["", "/abs/file.cs", "../escape.cs"])
    def test_rejects_non_relative(self, bad: str) -> None:
        with pytest.raises(ValueError):
            sanitize_patch_name(bad)


# ---------------------------------------------------------------------------
# Discovery and selection
# ---------------------------------------------------------------------------


class TestDiscoverPatchSets:
    def test_missing_dir(self, tmp_path: Path) -> None:
        assert discover_patch_sets(tmp_path / "Patches") == ([], [])

    def test_finds_sets_and_ignores_others(self, tmp_path: Path) -> None:
        _make_set(tmp_path, "Common", "a.patch")
        _make_set(tmp_path, "Sdk_Ge_10.0.22621.0")
        _make_set(tmp_path, "scratch")
        (tmp_path / "README.txt").write_text("notes", encoding="utf-8")

        sets, ignored = discover_patch_sets(tmp_path)
        assert [s.name for s in sets] == ["Common", "Sdk_Ge_10.0.22621.0"]
        assert [p.name for p in ignored] == ["scratch"]
        assert sets[0].is_common
        assert not sets[1].is_common


class TestPatchSet:
    def test_patches_sorted_and_filtered(self, tmp_path: Path) -> None:
        d = _make_set(tmp_path, "Common", "b.cs.patch", "a.cs.patch")
        (d / "notes.md").write_text("x", encoding="utf-8")
        ps = PatchSet(name="Common", directory=d)
        assert [p.name for p in ps.patches()] == ["a.cs.patch", "b.cs.patch"]

    def test_patches_missing_dir(self, tmp_path: Path) -> None:
        assert PatchSet(name="Common", directory=tmp_path / "none").patches() == []

    def test_common_applies_everywhere(self, tmp_path: Path) -> None:
        ps = PatchSet(name="Common", directory=tmp_path)
        assert ps.applies_to(_v("10.0.10240.0"))
        assert ps.describe() == "always"

    def test_describe_versioned(self, tmp_path: Path) -> None:
        ps = PatchSet("Sdk_Lt_10.0.19041.0", tmp_path, Relation.LT, _v("10.0.19041.0"))
        assert ps.describe() == "sdk < 10.0.19041.0"


class TestSelectPatchSets:
    def _sets(self, tmp_path: Path) -> list[PatchSet]:
        for name in (
            "Sdk_Ge_10.0.22621.0",
            "Sdk_Lt_10.0.19041.0",
            "Common",
            "Sdk_Ge_10.0.19041.0",
            "Sdk_Eq_10.0.22621.0",
        ):
            _make_set(tmp_path, name)
        sets, _ignored = discover_patch_sets(tmp_path)
        return sets

    def test_new_sdk(self, tmp_path: Path) -> None:
        selected = select_patch_sets(self._sets(tmp_path), _v("10.0.22621.0"))
        assert [s.name for s in selected] == [
            "Common",
            "Sdk_Ge_10.0.19041.0",
            "Sdk_Eq_10.0.22621.0",
            "Sdk_Ge_10.0.22621.0",
        ]

    def test_old_sdk(self, tmp_path: Path) -> None:
        selected = select_patch_sets(self._sets(tmp_path), _v("10.0.18362.0"))
        assert [s.name for s in selected] == ["Common", "Sdk_Lt_10.0.19041.0"]

    def test_common_always_first(self, tmp_path: Path) -> None:
        selected = select_patch_sets(self._sets(tmp_path), _v("10.0.19041.0"))
        assert selected[0].name == "Common"
        assert [s.name for s in selected[1:]] == ["Sdk_Ge_10.0.19041.0"]
