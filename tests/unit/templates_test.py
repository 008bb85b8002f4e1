"""Tests for bundled template sets."""

import pytest

from universal_schematic.core.placeholders import find_placeholders
from universal_schematic.core.templates import iter_template_files, merge_templates
from universal_schematic.tree import InMemoryTree


def test_universal_template_set_contents() -> None:
    paths = [path for path, _text in iter_template_files("universal")]

    assert paths == sorted(paths)
    assert set(paths) == {
        "local.js",
        "server.ts",
        "src/app/app.browser.module.ts",
        "src/app/app.server.module.ts",
        "src/main.server.ts",
        "src/tsconfig.server.json",
        "webpack.server.config.js",
    }


def test_server_entry_carries_dist_placeholders() -> None:
    files = dict(iter_template_files("universal"))

    assert find_placeholders(files["server.ts"]) == {"distFolder", "browserDistFolder"}
    assert find_placeholders(files["local.js"]) == {"distFolder"}


def test_merge_writes_under_destination_and_overwrites() -> None:
    tree = InMemoryTree({"apps/web/server.ts": "old"})

    written = merge_templates(tree, "universal", "apps/web")

    assert "apps/web/server.ts" in written
    assert "apps/web/src/main.server.ts" in written
    assert tree.read_text("apps/web/server.ts") != "old"


def test_unknown_template_set_raises() -> None:
    with pytest.raises(FileNotFoundError):
        list(iter_template_files("missing"))
