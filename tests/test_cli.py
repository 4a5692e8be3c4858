"""Tests for the shared CLI helpers."""

import json
from pathlib import Path

import pytest
import typer

from xamlpatch.cli import error_exit, error_message, json_print, rel_display_path


class TestErrorExit:
    def test_raises_exit(self, capsys) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke")
        assert exc_info.value.exit_code == 1
        assert "something broke" in capsys.readouterr().err

    def test_custom_code(self) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("x", code=3)
        assert exc_info.value.exit_code == 3

    def test_json_mode(self, capsys) -> None:
        with pytest.raises(typer.Exit):
            error_exit("bad config", json_mode=True)
        assert json.loads(capsys.readouterr().out) == {"error": "bad config"}

    def test_markup_not_interpreted(self, capsys) -> None:
        with pytest.raises(typer.Exit):
            error_exit("Invalid patch set name: [Sdk_Foo]")
        assert "[Sdk_Foo]" in capsys.readouterr().err


def test_json_print(capsys) -> None:
    json_print({"a": [1, 2]})
    assert json.loads(capsys.readouterr().out) == {"a": [1, 2]}


class TestErrorMessage:
    def test_key_error_unquoted(self) -> None:
        assert error_message(KeyError("missing key")) == "missing key"

    def test_other(self) -> None:
        assert error_message(ValueError("bad")) == "bad"


class TestRelDisplayPath:
    def test_relative(self, tmp_path: Path) -> None:
        assert rel_display_path(tmp_path / "Work" / "x", tmp_path) == str(Path("Work") / "x")

    def test_outside_base(self, tmp_path: Path) -> None:
        other = Path("/elsewhere/file")
        assert rel_display_path(other, tmp_path) == str(other)

    def test_no_base(self) -> None:
        assert rel_display_path(Path("a/b")) == str(Path("a/b"))
