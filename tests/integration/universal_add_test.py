"""End-to-end runs of ``universal-schematic add`` over a workspace on disk."""

import json
from pathlib import Path

from typer.testing import CliRunner

from universal_schematic.cli.app import app

runner = CliRunner()


def test_add_applies_universal_setup(project_dir: Path) -> None:
    result = runner.invoke(app, ["add", str(project_dir), "--skip-install"])

    assert result.exit_code == 0, result.output
    assert "Applied" in result.output

    for relative in (
        "server.ts",
        "local.js",
        "webpack.server.config.js",
        "src/main.server.ts",
        "src/tsconfig.server.json",
        "src/app/app.server.module.ts",
        "src/app/app.browser.module.ts",
        "ng-toolkit.json",
    ):
        assert (project_dir / relative).is_file(), relative

    component = (project_dir / "src/app/app.component.ts").read_text(encoding="utf-8")
    assert "@Inject(WINDOW) private window: Window" in component
    assert "this.window.innerWidth" in component
    assert "this.localStorage.setItem" in component

    main = (project_dir / "src/main.ts").read_text(encoding="utf-8")
    assert "bootstrapModule(AppBrowserModule)" in main

    angular = json.loads((project_dir / "angular.json").read_text(encoding="utf-8"))
    assert angular["projects"]["demo"]["architect"]["build"]["options"]["outputPath"] == "dist/browser"

    toolkit = json.loads((project_dir / "ng-toolkit.json").read_text(encoding="utf-8"))
    assert toolkit["universal"]["skipInstall"] is True


def test_inject_step_leaves_non_class_sources_alone(project_dir: Path) -> None:
    environment = (project_dir / "src/environments/environment.ts").read_text(encoding="utf-8")

    result = runner.invoke(app, ["add", str(project_dir), "--skip-install"])

    assert result.exit_code == 0, result.output
    assert (project_dir / "src/environments/environment.ts").read_text(encoding="utf-8") == environment


def test_unknown_project_fails_without_writing(project_dir: Path) -> None:
    result = runner.invoke(app, ["add", str(project_dir), "--project", "missing", "--skip-install"])

    assert result.exit_code == 1
    assert not (project_dir / "server.ts").exists()
