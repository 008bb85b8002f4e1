"""Shared fixtures and helpers for tests."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from universal_schematic.core.diagnostics import reset_diagnostics
from universal_schematic.tree import InMemoryTree

_TESTS_ROOT = Path(__file__).parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_TESTS_ROOT)
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Sample Angular 6 workspace
# ---------------------------------------------------------------------------

ANGULAR_JSON = {
    "version": 1,
    "defaultProject": "demo",
    "projects": {
        "demo": {
            "root": "",
            "sourceRoot": "src",
            "projectType": "application",
            "architect": {
                "build": {
                    "builder": "@angular-devkit/build-angular:browser",
                    "options": {
                        "outputPath": "dist/demo",
                        "index": "src/index.html",
                        "main": "src/main.ts",
                        "tsConfig": "src/tsconfig.app.json",
                    },
                    "configurations": {"production": {"serviceWorker": False}},
                }
            },
        }
    },
}

PACKAGE_JSON = {
    "name": "demo",
    "version": "0.0.0",
    "scripts": {"start": "ng serve"},
    "dependencies": {"@angular/core": "^6.0.0"},
}

MAIN_TS = """\
import { enableProdMode } from '@angular/core';
import { platformBrowserDynamic } from '@angular/platform-browser-dynamic';

import { AppModule } from './app/app.module';
import { environment } from './environments/environment';

if (environment.production) {
  enableProdMode();
}

platformBrowserDynamic().bootstrapModule(AppModule)
  .catch(err => console.log(err));
"""

APP_MODULE_TS = """\
import { BrowserModule } from '@angular/platform-browser';
import { NgModule } from '@angular/core';

import { AppComponent } from './app.component';

@NgModule({
  declarations: [
    AppComponent
  ],
  imports: [
    BrowserModule
  ],
  providers: [],
  bootstrap: [AppComponent]
})
export class AppModule { }
"""

APP_COMPONENT_TS = """\
import { Component } from '@angular/core';

@Component({
  selector: 'app-root',
  templateUrl: './app.component.html'
})
export class AppComponent {
  title = 'demo';
  windowSize = 0;

  resize(): void {
    this.windowSize = window.innerWidth;
    localStorage.setItem('width', String(this.windowSize));
  }
}
"""

ENVIRONMENT_TS = """\
export const environment = {
  production: false
};
"""


def sample_project_files() -> dict[str, str]:
    return {
        "angular.json": json.dumps(ANGULAR_JSON, indent=2),
        "package.json": json.dumps(PACKAGE_JSON, indent=2),
        "src/main.ts": MAIN_TS,
        "src/app/app.module.ts": APP_MODULE_TS,
        "src/app/app.component.ts": APP_COMPONENT_TS,
        "src/environments/environment.ts": ENVIRONMENT_TS,
    }


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_tree() -> InMemoryTree:
    return InMemoryTree()


@pytest.fixture
def project_tree() -> InMemoryTree:
    """Return an in-memory tree holding the sample Angular workspace."""
    return InMemoryTree(sample_project_files())


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Write the sample Angular workspace to disk and return its root."""
    for relative_path, text in sample_project_files().items():
        target = tmp_path / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _isolated_diagnostics(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("UNIVERSAL_SCHEMATIC_DIAGNOSTICS", raising=False)
    reset_diagnostics()
    yield
    reset_diagnostics()
