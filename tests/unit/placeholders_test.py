"""Tests for template placeholder substitution."""

import logging

import pytest

from universal_schematic.core.placeholders import find_placeholders, materialize_placeholders, substitute_placeholders
from universal_schematic.tree import InMemoryTree


def test_substitutes_placeholder() -> None:
    text = "const dir = '__distFolder__/assets';"
    result = substitute_placeholders(text, {"distFolder": "dist/out"})

    assert result == "const dir = 'dist/out/assets';"


def test_reapplying_is_a_no_op() -> None:
    values = {"distFolder": "dist/out"}
    once = substitute_placeholders("const dir = '__distFolder__/assets';", values)

    assert substitute_placeholders(once, values) == once
    assert find_placeholders(once) == set()


def test_replaces_every_occurrence() -> None:
    text = "__a__ and __a__ and __b__"
    assert substitute_placeholders(text, {"a": "1", "b": "2"}) == "1 and 1 and 2"


def test_unknown_placeholders_are_left_alone() -> None:
    text = "join('__distFolder__', '__browserDistFolder__')"
    result = substitute_placeholders(text, {"distFolder": "dist"})

    assert result == "join('dist', '__browserDistFolder__')"
    assert find_placeholders(result) == {"browserDistFolder"}


def test_substitution_is_single_pass() -> None:
    result = substitute_placeholders("__a__ __b__", {"a": "__b__", "b": "x"})
    assert result == "__b__ x"


def test_empty_mapping_returns_text() -> None:
    assert substitute_placeholders("__a__", {}) == "__a__"


def test_materialize_writes_back_and_warns_on_leftovers(caplog: pytest.LogCaptureFixture) -> None:
    tree = InMemoryTree({"server.ts": "join('__distFolder__', '__other__')"})

    with caplog.at_level(logging.WARNING, logger="universal_schematic.core.placeholders"):
        result = materialize_placeholders(tree, "server.ts", {"distFolder": "dist"})

    assert result == "join('dist', '__other__')"
    assert tree.read_text("server.ts") == result
    assert "other" in caplog.text


def test_materialize_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        materialize_placeholders(InMemoryTree(), "server.ts", {"distFolder": "dist"})


def test_names_with_underscores_and_digits_are_found() -> None:
    text = "join('__dist_folder__', '__v2_root__', __dirname)"

    assert find_placeholders(text) == {"dist_folder", "v2_root"}


def test_materialize_warns_on_underscored_leftovers(caplog: pytest.LogCaptureFixture) -> None:
    tree = InMemoryTree({"local.js": "require('./__dist_folder__/server');"})

    with caplog.at_level(logging.WARNING, logger="universal_schematic.core.placeholders"):
        materialize_placeholders(tree, "local.js", {"distFolder": "dist"})

    assert "dist_folder" in caplog.text
