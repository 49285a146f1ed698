"""Unit tests for pipefmt.config.stages — FormatterStage and normalize_stages."""
from __future__ import annotations

import pytest

from pipefmt.config.stages import FormatterStage, normalize_stages
from pipefmt.errors import ConfigError


class TestFormatterStage:
    def test_command_prepends_exe(self) -> None:
        stage = FormatterStage(exe="black", args=("-q", "-"))
        assert stage.command == ["black", "-q", "-"]

    def test_str_is_shell_quoted(self) -> None:
        stage = FormatterStage(exe="sed", args=("s/a b/c/",))
        assert str(stage) == "sed 's/a b/c/'"

    def test_cond_ignored_in_equality(self) -> None:
        assert FormatterStage("a", cond=lambda: True) == FormatterStage("a", cond=lambda: False)

    def test_is_frozen(self) -> None:
        stage = FormatterStage(exe="black")
        with pytest.raises(AttributeError):
            stage.exe = "isort"  # type: ignore[misc]


class TestNormalizeStages:
    def test_none_is_empty(self) -> None:
        assert normalize_stages(None) == ()

    def test_empty_list_is_empty(self) -> None:
        assert normalize_stages([]) == ()

    def test_command_string(self) -> None:
        (stage,) = normalize_stages("prettier --parser 'markdown'")
        assert stage.exe == "prettier"
        assert stage.args == ("--parser", "markdown")

    def test_mapping(self) -> None:
        (stage,) = normalize_stages({"exe": "stylua", "args": ["-"], "cwd": "/tmp"})
        assert stage == FormatterStage(exe="stylua", args=("-",), cwd="/tmp")

    def test_mapping_args_as_string(self) -> None:
        (stage,) = normalize_stages({"exe": "black", "args": "-q -"})
        assert stage.args == ("-q", "-")

    def test_mapping_numeric_args_stringified(self) -> None:
        (stage,) = normalize_stages({"exe": "fmt", "args": ["-w", 80]})
        assert stage.args == ("-w", "80")

    def test_mapping_with_callable_cond(self) -> None:
        (stage,) = normalize_stages({"exe": "black", "cond": lambda: False})
        assert stage.cond is not None
        assert stage.cond() is False

    def test_mixed_list_keeps_order(self) -> None:
        stages = normalize_stages(["isort -", {"exe": "black", "args": ["-"]}, FormatterStage("ruff")])
        assert [s.exe for s in stages] == ["isort", "black", "ruff"]

    def test_empty_string_rejected(self) -> None:
        with pytest.raises(ConfigError, match="empty formatter command"):
            normalize_stages("   ")

    def test_unbalanced_quote_rejected(self) -> None:
        with pytest.raises(ConfigError, match="cannot split"):
            normalize_stages("sed 's/a")

    def test_missing_exe_rejected(self) -> None:
        with pytest.raises(ConfigError, match="'exe'"):
            normalize_stages({"args": ["-"]})

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ConfigError, match="unknown stage key"):
            normalize_stages({"exe": "black", "stdin": True})

    def test_non_callable_cond_rejected(self) -> None:
        with pytest.raises(ConfigError, match="'cond' must be callable"):
            normalize_stages({"exe": "black", "cond": "yes"})

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(ConfigError, match="unsupported stage"):
            normalize_stages(42)

    def test_error_location_names_list_index(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            normalize_stages(["black -", 7], where="filetype.python")
        assert exc_info.value.source == "filetype.python[1]"
