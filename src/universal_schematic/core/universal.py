"""The universal rule: add server-side rendering to an Angular application."""

import logging
import re

from universal_schematic.core.inject import inject_dependency
from universal_schematic.core.languages import is_typescript_source
from universal_schematic.core.manifest import (
    add_dependency,
    configure_server_target,
    get_browser_dist_folder,
    get_dist_folder,
    get_main_file_path,
    get_source_root,
    get_toolkit_info,
    has_dependency,
    has_service_worker,
    project_path,
    resolve_project,
    set_script,
    update_toolkit_info,
)
from universal_schematic.core.pipeline import Pipeline, RuleContext, Step
from universal_schematic.core.placeholders import materialize_placeholders
from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.core.tasks import external_schematic, node_package_install
from universal_schematic.core.templates import merge_templates
from universal_schematic.core.wiring import (
    add_clause_entry,
    add_import_statement,
    get_app_entry_module,
    get_bootstrap_components,
    get_relative_path,
    remove_clause_entry,
)
from universal_schematic.models import Capability, EntryModule, UniversalOptions

logger = logging.getLogger(__name__)

TOOLKIT_PACKAGE = "@ng-toolkit/universal"
SERVERLESS_PACKAGE = "@ng-toolkit/serverless"
PWA_PACKAGE = "@ng-toolkit/pwa"

_SERVER_MODULE = "src/app/app.server.module.ts"
_BROWSER_MODULE = "src/app/app.browser.module.ts"
_PLACEHOLDER_FILES = ("server.ts", "local.js", "webpack.server.config.js")

_DEPENDENCIES = (
    ("@angular/platform-browser", "^6.0.0"),
    ("@angular/platform-server", "^6.0.0"),
    ("@nguniversal/module-map-ngfactory-loader", "^6.0.0"),
    ("webpack-cli", "^2.1.4"),
    ("ts-loader", "4.2.0"),
    ("@nguniversal/express-engine", "^6.0.0"),
    ("cors", "~2.8.4"),
)

# Injected in this order; ``window`` is checked against the text left by the ``localStorage`` pass.
BROWSER_GLOBALS = (
    ("localStorage", Capability(type_label="any", provider_module=TOOLKIT_PACKAGE, provider_token="LOCAL_STORAGE")),
    ("window", Capability(type_label="Window", provider_module=TOOLKIT_PACKAGE, provider_token="WINDOW")),
)


def _entry_module(context: RuleContext) -> EntryModule:
    if context.entry_module is None:
        raise ValueError("Entry module has not been resolved yet.")
    return context.entry_module


def _dist_folder(context: RuleContext) -> str:
    if context.dist_folder is None:
        raise ValueError("Dist folder has not been resolved yet.")
    return context.dist_folder


def _transition_import(app_id: str) -> str:
    return f"BrowserModule.withServerTransition({{appId: '{app_id}'}})"


def resolve_project_step(context: RuleContext) -> None:
    project = resolve_project(context.tree, context.options)
    context.options = context.options.model_copy(update={"project": project})
    logger.info("Using project %s", project)


def remove_serverless_conflicts(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    if not has_dependency(tree, options, SERVERLESS_PACKAGE):
        return
    for name in _PLACEHOLDER_FILES:
        path = project_path(options, name)
        if tree.exists(path):
            tree.delete(path)
            logger.info("Removed %s in favour of the universal template", path)


def merge_universal_templates(context: RuleContext) -> None:
    merge_templates(context.tree, "universal", context.options.directory)


def add_dependencies(context: RuleContext) -> None:
    for name, version_range in _DEPENDENCIES:
        add_dependency(context.tree, context.options, name, version_range)


def update_angular_config(context: RuleContext) -> None:
    context.dist_folder = get_dist_folder(context.tree, context.options)
    configure_server_target(context.tree, context.options, context.dist_folder)


def wire_server_module(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    main_path = project_path(options, get_main_file_path(tree, options))
    entry = get_app_entry_module(tree, main_path)
    context.entry_module = entry
    context.bootstrap_components = get_bootstrap_components(tree, entry.file_path)

    server_module = project_path(options, _SERVER_MODULE)
    add_import_statement(tree, server_module, entry.module_name, get_relative_path(server_module, entry.file_path))
    add_clause_entry(tree, server_module, "imports", entry.module_name)
    for component in context.bootstrap_components:
        add_import_statement(
            tree, server_module, component.component, get_relative_path(server_module, component.file_path)
        )
        add_clause_entry(tree, server_module, "bootstrap", component.component)
        add_clause_entry(tree, server_module, "imports", _transition_import(component.app_id))


def wire_browser_module(context: RuleContext) -> None:
    tree = context.tree
    entry = _entry_module(context)
    browser_module = project_path(context.options, _BROWSER_MODULE)
    for component in context.bootstrap_components:
        add_import_statement(tree, browser_module, entry.module_name, get_relative_path(browser_module, entry.file_path))
        add_clause_entry(tree, browser_module, "imports", entry.module_name)
        add_clause_entry(tree, browser_module, "imports", _transition_import(component.app_id))
        add_clause_entry(tree, browser_module, "bootstrap", component.component)
        add_import_statement(
            tree, browser_module, component.component, get_relative_path(browser_module, component.file_path)
        )


def rewire_entry_module(context: RuleContext) -> None:
    tree = context.tree
    path = _entry_module(context).file_path
    add_clause_entry(tree, path, "imports", "CommonModule")
    add_clause_entry(tree, path, "imports", "NgtUniversalModule")
    remove_clause_entry(tree, path, "imports", "BrowserModule")
    remove_clause_entry(tree, path, "bootstrap")
    add_import_statement(tree, path, "CommonModule", "@angular/common")
    add_import_statement(tree, path, "NgtUniversalModule", TOOLKIT_PACKAGE)


def update_main_file(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    entry = _entry_module(context)
    main_path = project_path(options, get_main_file_path(tree, options))
    pattern = re.compile(rf"bootstrapModule\(\s*{re.escape(entry.module_name)}\s*\)")
    tree.write_text(main_path, pattern.sub("bootstrapModule(AppBrowserModule)", tree.read_text(main_path)))

    browser_module = project_path(options, _BROWSER_MODULE)
    add_import_statement(tree, main_path, "AppBrowserModule", get_relative_path(main_path, browser_module))


def resolve_placeholders(context: RuleContext) -> None:
    values = {
        "distFolder": _dist_folder(context),
        "browserDistFolder": get_browser_dist_folder(context.tree, context.options),
    }
    for name in _PLACEHOLDER_FILES:
        materialize_placeholders(context.tree, project_path(context.options, name), values)


def add_scripts(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    scripts = {
        "build:server:prod": (
            f"ng run {options.project}:server && webpack --config webpack.server.config.js --progress --colors"
        ),
        "build:browser:prod": "ng build --prod",
        "build:prod": "npm run build:server:prod && npm run build:browser:prod",
        "server": "node local.js",
    }
    for name, command in scripts.items():
        set_script(tree, options, name, command)


def inject_browser_globals(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    source_root = project_path(options, get_source_root(tree, options))
    for path in list(tree.visit(source_root)):
        if not is_typescript_source(path):
            continue
        for name, capability in BROWSER_GLOBALS:
            context.injections.append(inject_dependency(tree, path, name, capability))

    changed = [result for result in context.injections if result.changed]
    logger.info("Qualified browser globals in %d file pass(es)", len(changed))


def queue_install(context: RuleContext) -> None:
    if not context.options.skip_install:
        context.tasks.queue(node_package_install(context.options.directory))


def chain_toolkit_schematics(context: RuleContext) -> None:
    tree, options = context.tree, context.options
    info = get_toolkit_info(tree, options)
    info["universal"] = options.model_dump(by_alias=True, exclude_none=True)

    serverless = info.get("serverless")
    if serverless is None and tree.exists(project_path(options, ".firebaserc")):
        serverless = {"provider": "firebase"}
        info["serverless"] = serverless
        add_dependency(tree, options, SERVERLESS_PACKAGE, "1.1.28")
    if serverless is not None:
        serverless.update(directory=options.directory, skipInstall=True)
        context.tasks.queue(external_schematic(options.directory, SERVERLESS_PACKAGE, "ng-add", dict(serverless)))

    if has_service_worker(tree, options):
        pwa = info.setdefault("pwa", {})
        pwa.update(directory=options.directory, skipInstall=True)
        context.tasks.queue(external_schematic(options.directory, PWA_PACKAGE, "ng-add", dict(pwa)))

    update_toolkit_info(tree, options, info)


def build_universal_pipeline() -> Pipeline:
    return Pipeline(
        [
            Step("resolve-project", resolve_project_step),
            Step("remove-serverless-conflicts", remove_serverless_conflicts),
            Step("merge-templates", merge_universal_templates),
            Step("add-dependencies", add_dependencies),
            Step("update-angular-config", update_angular_config),
            Step("wire-server-module", wire_server_module),
            Step("wire-browser-module", wire_browser_module),
            Step("rewire-entry-module", rewire_entry_module),
            Step("update-main-file", update_main_file),
            Step("resolve-placeholders", resolve_placeholders),
            Step("add-scripts", add_scripts),
            Step("inject-browser-globals", inject_browser_globals),
            Step("queue-install", queue_install),
            Step("chain-toolkit-schematics", chain_toolkit_schematics),
        ]
    )


def run_universal(tree: StagedTree, options: UniversalOptions) -> RuleContext:
    """Apply the universal rule to ``tree`` and return the finished context."""
    context = RuleContext(tree=tree, options=options)
    build_universal_pipeline().run(context)
    return context
