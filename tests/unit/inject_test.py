"""Tests for routing global references through injected members."""

import pytest

from universal_schematic.core.inject import has_candidate_reference, inject_dependency
from universal_schematic.models import Capability
from universal_schematic.tree import InMemoryTree

WINDOW = Capability(type_label="Window", provider_module="@ng-toolkit/universal", provider_token="WINDOW")

SIZER_TS = """\
import { Component } from '@angular/core';

@Component({ selector: 'app-sizer', template: '' })
export class SizerComponent {
  width(): number {
    return window.innerWidth + windowSize;
  }
}

const windowSize = 10;
"""


def test_gate_requires_a_class_before_the_name() -> None:
    assert has_candidate_reference("class A {\n  f() { return window; }\n}", "window")
    assert not has_candidate_reference("const w = window;\nclass A {}", "window")
    assert not has_candidate_reference("class A {\n  f() { return windowSize; }\n}", "localStorage")


def test_file_without_candidates_is_untouched() -> None:
    source = "export class Plain {\n  run() {\n    return 1;\n  }\n}\n"
    tree = InMemoryTree({"plain.ts": source})

    result = inject_dependency(tree, "plain.ts", "window", WINDOW)

    assert result.matched is False
    assert result.changed is False
    assert tree.read_text("plain.ts") == source


def test_injects_constructor_parameter_and_qualifies_references() -> None:
    tree = InMemoryTree({"sizer.ts": SIZER_TS})

    result = inject_dependency(tree, "sizer.ts", "window", WINDOW)
    text = tree.read_text("sizer.ts")

    assert result.matched is True
    assert result.edits == 1
    assert "import { Component, Inject } from '@angular/core';" in text
    assert "import { WINDOW } from '@ng-toolkit/universal';" in text
    assert "constructor(@Inject(WINDOW) private window: Window) {}" in text
    assert "return this.window.innerWidth + windowSize;" in text
    assert text.endswith("const windowSize = 10;\n")


def test_second_run_changes_nothing() -> None:
    tree = InMemoryTree({"sizer.ts": SIZER_TS})
    inject_dependency(tree, "sizer.ts", "window", WINDOW)
    once = tree.read_text("sizer.ts")

    result = inject_dependency(tree, "sizer.ts", "window", WINDOW)

    assert result.matched is True
    assert result.changed is False
    assert tree.read_text("sizer.ts") == once
    assert once.count("@Inject(WINDOW)") == 1


def test_existing_constructor_receives_the_parameter() -> None:
    source = """\
import { Injectable } from '@angular/core';
import { HttpClient } from '@angular/common/http';

@Injectable()
export class ApiService {
  constructor(private http: HttpClient) {}

  origin() {
    return window.location.origin;
  }
}
"""
    tree = InMemoryTree({"api.service.ts": source})

    inject_dependency(tree, "api.service.ts", "window", WINDOW)
    text = tree.read_text("api.service.ts")

    assert "constructor(private http: HttpClient, @Inject(WINDOW) private window: Window) {}" in text
    assert "import { Injectable, Inject } from '@angular/core';" in text
    assert "return this.window.location.origin;" in text


def test_custom_prefix_is_used_for_rewrites() -> None:
    tree = InMemoryTree({"sizer.ts": SIZER_TS})

    inject_dependency(tree, "sizer.ts", "window", WINDOW, prefix="self.")

    assert "return self.window.innerWidth" in tree.read_text("sizer.ts")


def test_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        inject_dependency(InMemoryTree(), "missing.ts", "window", WINDOW)


def test_derived_class_without_constructor_is_left_alone() -> None:
    source = """\
export class Child extends Base {
  width() {
    return window.innerWidth;
  }
}

export class Plain {
  width() {
    return window.innerWidth;
  }
}
"""
    tree = InMemoryTree({"child.ts": source})

    result = inject_dependency(tree, "child.ts", "window", WINDOW)
    text = tree.read_text("child.ts")

    assert result.edits == 1
    assert "export class Child extends Base {\n  width() {\n    return window.innerWidth;" in text
    assert "export class Plain {\n  constructor(@Inject(WINDOW) private window: Window) {}" in text
    assert "    return this.window.innerWidth;" in text
