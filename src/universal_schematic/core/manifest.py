"""JSON manifest edits: ``package.json``, ``angular.json`` and ``ng-toolkit.json``."""

import json
import logging
import posixpath
from typing import Any

from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.models import UniversalOptions

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"
ANGULAR_JSON = "angular.json"
TOOLKIT_JSON = "ng-toolkit.json"


def project_path(options: UniversalOptions, *parts: str) -> str:
    """Join ``parts`` onto the project directory as a normalized tree path."""
    return posixpath.normpath(posixpath.join(options.directory, *parts))


def read_json(tree: StagedTree, path: str) -> dict[str, Any]:
    data = json.loads(tree.read_text(path))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


def write_json(tree: StagedTree, path: str, data: dict[str, Any]) -> None:
    tree.write_text(path, json.dumps(data, indent=2) + "\n")


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


def get_package_json(tree: StagedTree, options: UniversalOptions) -> dict[str, Any]:
    return read_json(tree, project_path(options, PACKAGE_JSON))


def has_dependency(tree: StagedTree, options: UniversalOptions, name: str) -> bool:
    package = get_package_json(tree, options)
    return any(name in package.get(section, {}) for section in ("dependencies", "devDependencies"))


def add_dependency(tree: StagedTree, options: UniversalOptions, name: str, version_range: str) -> None:
    path = project_path(options, PACKAGE_JSON)
    package = read_json(tree, path)
    package.setdefault("dependencies", {})[name] = version_range
    write_json(tree, path, package)
    logger.debug("%s: dependency %s@%s", path, name, version_range)


def set_script(tree: StagedTree, options: UniversalOptions, name: str, command: str) -> None:
    path = project_path(options, PACKAGE_JSON)
    package = read_json(tree, path)
    package.setdefault("scripts", {})[name] = command
    write_json(tree, path, package)
    logger.debug("%s: script %s", path, name)


# ---------------------------------------------------------------------------
# angular.json
# ---------------------------------------------------------------------------


def get_angular_config(tree: StagedTree, options: UniversalOptions) -> dict[str, Any]:
    return read_json(tree, project_path(options, ANGULAR_JSON))


def write_angular_config(tree: StagedTree, options: UniversalOptions, config: dict[str, Any]) -> None:
    write_json(tree, project_path(options, ANGULAR_JSON), config)


def resolve_project(tree: StagedTree, options: UniversalOptions) -> str:
    """Return the configured project, falling back to ``defaultProject`` or the only project."""
    config = get_angular_config(tree, options)
    projects: dict[str, Any] = config.get("projects", {})
    if options.project:
        if options.project not in projects:
            raise ValueError(f"Project '{options.project}' not found. Available: {sorted(projects)}")
        return options.project
    default = config.get("defaultProject")
    if default in projects:
        return str(default)
    if len(projects) == 1:
        return next(iter(projects))
    raise ValueError(f"Cannot choose a project, pass one explicitly. Available: {sorted(projects)}")


def _project_config(config: dict[str, Any], options: UniversalOptions) -> dict[str, Any]:
    if options.project is None:
        raise ValueError("Project must be resolved before reading its configuration.")
    return config["projects"][options.project]


def _build_options(config: dict[str, Any], options: UniversalOptions) -> dict[str, Any]:
    return _project_config(config, options)["architect"]["build"]["options"]


def get_source_root(tree: StagedTree, options: UniversalOptions) -> str:
    project = _project_config(get_angular_config(tree, options), options)
    return str(project.get("sourceRoot", "src"))


def get_main_file_path(tree: StagedTree, options: UniversalOptions) -> str:
    return str(_build_options(get_angular_config(tree, options), options)["main"])


def get_dist_folder(tree: StagedTree, options: UniversalOptions) -> str:
    """Return the folder holding both the browser and server bundles.

    That is the parent of the current browser ``outputPath``, so ``dist/app``
    and an already rewritten ``dist/browser`` both yield ``dist``.
    """
    output_path = str(_build_options(get_angular_config(tree, options), options)["outputPath"]).rstrip("/")
    parent = posixpath.dirname(output_path)
    return parent or output_path


def get_browser_dist_folder(tree: StagedTree, options: UniversalOptions) -> str:
    """Return the browser bundle folder relative to the dist folder."""
    return "browser"


def has_service_worker(tree: StagedTree, options: UniversalOptions) -> bool:
    project = _project_config(get_angular_config(tree, options), options)
    production = project["architect"]["build"].get("configurations", {}).get("production", {})
    return bool(production.get("serviceWorker"))


def configure_server_target(tree: StagedTree, options: UniversalOptions, dist_folder: str) -> None:
    """Point the browser build at ``<dist>/browser`` and add the ``server`` target."""
    config = get_angular_config(tree, options)
    project = _project_config(config, options)
    source_root = str(project.get("sourceRoot", "src"))
    project["architect"]["build"]["options"]["outputPath"] = f"{dist_folder}/browser"
    project["architect"]["server"] = {
        "builder": "@angular-devkit/build-angular:server",
        "options": {
            "outputPath": f"{dist_folder}/server",
            "main": f"{source_root}/main.server.ts",
            "tsConfig": f"{source_root}/tsconfig.server.json",
        },
    }
    write_angular_config(tree, options, config)


# ---------------------------------------------------------------------------
# ng-toolkit.json
# ---------------------------------------------------------------------------


def get_toolkit_info(tree: StagedTree, options: UniversalOptions) -> dict[str, Any]:
    path = project_path(options, TOOLKIT_JSON)
    if not tree.exists(path):
        return {}
    return read_json(tree, path)


def update_toolkit_info(tree: StagedTree, options: UniversalOptions, info: dict[str, Any]) -> None:
    write_json(tree, project_path(options, TOOLKIT_JSON), info)
