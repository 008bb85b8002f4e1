"""Structural edits on Angular module and component sources.

Every edit parses the current text, computes edit spans against it and
splices them in with ``apply_edits``; untouched regions keep their bytes.
"""

import logging
import posixpath

from universal_schematic.core.patch import apply_edits
from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.core.syntax import SourceDocument, class_members, iter_classes, iter_nodes, string_value
from universal_schematic.models import BootstrapComponent, EditSpan, EntryModule, SyntaxNode

logger = logging.getLogger(__name__)

_DEFAULT_APP_ID = "serverApp"


def _write(tree: StagedTree, document: SourceDocument, spans: list[EditSpan]) -> bool:
    if not spans:
        return False
    tree.write_text(document.path, apply_edits(document.text, spans))
    return True


def _insert(offset: int, text: str) -> EditSpan:
    return EditSpan(start=offset, end=offset, replacement=text)


def _compact(text: str) -> str:
    return "".join(text.split())


# ---------------------------------------------------------------------------
# Import statements
# ---------------------------------------------------------------------------


def _import_statements(document: SourceDocument) -> list[SyntaxNode]:
    return [node for node in document.root.children if node.kind == "import_statement"]


def _named_imports(node: SyntaxNode) -> SyntaxNode | None:
    for clause in node.children:
        if clause.kind == "import_clause":
            for child in clause.children:
                if child.kind == "named_imports":
                    return child
    return None


def _imported_names(document: SourceDocument, node: SyntaxNode) -> list[str]:
    names: list[str] = []
    for clause in node.children:
        if clause.kind != "import_clause":
            continue
        for child in clause.children:
            if child.kind == "identifier":
                names.append(document.token(child))
            elif child.kind == "namespace_import":
                names.extend(document.token(n) for n in child.children if n.kind == "identifier")
            elif child.kind == "named_imports":
                for specifier in child.children:
                    if specifier.kind != "import_specifier":
                        continue
                    local = specifier.child("alias") or specifier.child("name")
                    if local is not None:
                        names.append(document.token(local))
    return names


def find_import_source(document: SourceDocument, symbol: str) -> str | None:
    """Return the module specifier ``symbol`` is imported from, if any."""
    for node in _import_statements(document):
        source = node.child("source")
        if source is not None and symbol in _imported_names(document, node):
            return string_value(document, source)
    return None


def add_import_statement(tree: StagedTree, path: str, symbol: str, module: str) -> bool:
    """Import ``symbol`` from ``module`` unless the file already imports it."""
    document = SourceDocument.load(tree, path)
    imports = _import_statements(document)
    if any(symbol in _imported_names(document, node) for node in imports):
        return False

    for node in imports:
        source = node.child("source")
        named = _named_imports(node)
        if source is None or named is None or string_value(document, source) != module:
            continue
        specifiers = [child for child in named.children if child.kind == "import_specifier"]
        if specifiers:
            span = _insert(specifiers[-1].end, f", {symbol}")
        else:
            span = _insert(named.start + 1, f" {symbol} ")
        return _write(tree, document, [span])

    statement = f"import {{ {symbol} }} from '{module}';"
    if imports:
        span = _insert(imports[-1].end, f"\n{statement}")
    else:
        span = _insert(0, f"{statement}\n")
    return _write(tree, document, [span])


def get_relative_path(from_path: str, to_path: str) -> str:
    """Return the import specifier that reaches ``to_path`` from ``from_path``."""
    target = to_path[: -len(".ts")] if to_path.endswith(".ts") else to_path
    relative = posixpath.relpath(target, posixpath.dirname(from_path) or ".")
    if not relative.startswith("."):
        relative = f"./{relative}"
    return relative


def _resolve_import(from_path: str, specifier: str) -> str:
    return posixpath.normpath(posixpath.join(posixpath.dirname(from_path), specifier)) + ".ts"


# ---------------------------------------------------------------------------
# Decorator metadata and clauses
# ---------------------------------------------------------------------------


def _decorator_metadata(document: SourceDocument, decorator: str) -> SyntaxNode | None:
    """Return the object literal passed to ``@decorator({...})``."""
    for node in iter_nodes(document.root):
        if node.kind != "decorator":
            continue
        for call in node.children:
            if call.kind != "call_expression":
                continue
            function = call.child("function")
            arguments = call.child("arguments")
            if function is None or arguments is None or document.token(function) != decorator:
                continue
            for argument in arguments.named_children():
                if argument.kind == "object":
                    return argument
    return None


def _find_pair(document: SourceDocument, metadata: SyntaxNode, clause: str) -> SyntaxNode | None:
    for pair in metadata.named_children():
        if pair.kind != "pair":
            continue
        key = pair.child("key")
        if key is None:
            continue
        name = string_value(document, key) if key.kind == "string" else document.token(key)
        if name == clause:
            return pair
    return None


def _clause_array(document: SourceDocument, pair: SyntaxNode) -> SyntaxNode:
    value = pair.child("value")
    if value is None or value.kind != "array":
        raise ValueError(f"{document.path}: clause is not an array literal")
    return value


def _ng_module_metadata(document: SourceDocument) -> SyntaxNode:
    metadata = _decorator_metadata(document, "NgModule")
    if metadata is None:
        raise ValueError(f"{document.path}: no @NgModule metadata found")
    return metadata


def _removal_span(container: SyntaxNode, items: list[SyntaxNode], item: SyntaxNode) -> EditSpan:
    """Span removing ``item`` from a comma separated list with one separator."""
    index = items.index(item)
    if index + 1 < len(items):
        return EditSpan(start=item.start, end=items[index + 1].start, replacement="")
    if index > 0:
        return EditSpan(start=items[index - 1].end, end=item.end, replacement="")
    end = item.end
    tokens = container.children
    position = tokens.index(item)
    if position + 1 < len(tokens) and tokens[position + 1].kind == ",":
        end = tokens[position + 1].end
    return EditSpan(start=item.start, end=end, replacement="")


def clause_entries(tree: StagedTree, path: str, clause: str) -> list[str]:
    document = SourceDocument.load(tree, path)
    pair = _find_pair(document, _ng_module_metadata(document), clause)
    if pair is None:
        return []
    return [document.token(element) for element in _clause_array(document, pair).named_children()]


def add_clause_entry(tree: StagedTree, path: str, clause: str, entry: str) -> bool:
    """Add ``entry`` to the ``clause`` array of the file's ``@NgModule``."""
    document = SourceDocument.load(tree, path)
    metadata = _ng_module_metadata(document)
    pair = _find_pair(document, metadata, clause)

    if pair is None:
        properties = metadata.named_children()
        if properties:
            span = _insert(properties[-1].end, f",\n  {clause}: [{entry}]")
        else:
            span = _insert(metadata.start + 1, f"\n  {clause}: [{entry}]\n")
        logger.debug("%s: created clause '%s'", path, clause)
        return _write(tree, document, [span])

    array = _clause_array(document, pair)
    elements = array.named_children()
    if any(_compact(document.token(element)) == _compact(entry) for element in elements):
        logger.debug("%s: '%s' already in '%s'", path, entry, clause)
        return False
    if elements:
        span = _insert(elements[-1].end, f", {entry}")
    else:
        span = _insert(array.start + 1, entry)
    return _write(tree, document, [span])


def remove_clause_entry(tree: StagedTree, path: str, clause: str, entry: str | None = None) -> bool:
    """Remove ``entry`` from ``clause``, or the whole clause when ``entry`` is None."""
    document = SourceDocument.load(tree, path)
    metadata = _ng_module_metadata(document)
    pair = _find_pair(document, metadata, clause)
    if pair is None:
        return False

    if entry is None:
        return _write(tree, document, [_removal_span(metadata, metadata.named_children(), pair)])

    array = _clause_array(document, pair)
    elements = array.named_children()
    match = next((e for e in elements if _compact(document.token(e)) == _compact(entry)), None)
    if match is None:
        return False
    return _write(tree, document, [_removal_span(array, elements, match)])


# ---------------------------------------------------------------------------
# Constructor injection
# ---------------------------------------------------------------------------


def _find_constructor(document: SourceDocument, class_node: SyntaxNode) -> SyntaxNode | None:
    for member in class_members(class_node):
        name = member.child("name")
        if member.kind == "method_definition" and name is not None and document.token(name) == "constructor":
            return member
    return None


def _parameter_name(document: SourceDocument, parameter: SyntaxNode) -> str | None:
    pattern = parameter.child("pattern")
    return document.token(pattern) if pattern is not None else None


def _extends(class_node: SyntaxNode) -> bool:
    return any(
        heritage.kind == "class_heritage" and any(clause.kind == "extends_clause" for clause in heritage.children)
        for heritage in class_node.children
    )


def receives_dependency(document: SourceDocument, class_node: SyntaxNode, name: str) -> bool:
    """True when the class constructor declares a parameter called ``name``."""
    constructor = _find_constructor(document, class_node)
    parameters = constructor.child("parameters") if constructor is not None else None
    if parameters is None:
        return False
    return any(_parameter_name(document, parameter) == name for parameter in parameters.named_children())


def register_constructor_dependency(
    tree: StagedTree,
    path: str,
    name: str,
    type_label: str,
    provider_module: str,
    provider_token: str,
) -> int:
    """Inject ``provider_token`` as constructor parameter ``name`` into every class.

    Classes whose constructor already declares ``name`` are left alone, as are
    derived classes without a constructor.
    Returns the number of classes changed.
    """
    document = SourceDocument.load(tree, path)
    parameter = f"@Inject({provider_token}) private {name}: {type_label}"
    spans: list[EditSpan] = []

    for class_node in iter_classes(document.root):
        constructor = _find_constructor(document, class_node)
        if constructor is None:
            if _extends(class_node):
                class_name = class_node.child("name")
                logger.warning(
                    "%s: %s extends another class and has no constructor, not injecting '%s'",
                    path,
                    document.token(class_name) if class_name is not None else "class",
                    name,
                )
                continue
            body = class_node.child("body")
            if body is not None:
                spans.append(_insert(body.start + 1, f"\n  constructor({parameter}) {{}}\n"))
            continue

        parameters = constructor.child("parameters")
        if parameters is None:
            continue
        declared = parameters.named_children()
        if any(_parameter_name(document, p) == name for p in declared):
            logger.debug("%s: constructor already receives '%s'", path, name)
            continue
        if declared:
            spans.append(_insert(declared[-1].end, f", {parameter}"))
        else:
            spans.append(_insert(parameters.start + 1, parameter))

    if not _write(tree, document, spans):
        return 0

    add_import_statement(tree, path, "Inject", "@angular/core")
    add_import_statement(tree, path, provider_token, provider_module)
    logger.info("%s: injected %s as '%s' into %d class(es)", path, provider_token, name, len(spans))
    return len(spans)


# ---------------------------------------------------------------------------
# Application discovery
# ---------------------------------------------------------------------------


def get_app_entry_module(tree: StagedTree, main_path: str) -> EntryModule:
    """Find the module passed to ``bootstrapModule(...)`` in the main file."""
    document = SourceDocument.load(tree, main_path)
    for node in iter_nodes(document.root):
        if node.kind != "call_expression":
            continue
        function = node.child("function")
        arguments = node.child("arguments")
        if function is None or arguments is None or function.kind != "member_expression":
            continue
        member = function.child("property")
        if member is None or document.token(member) != "bootstrapModule":
            continue
        candidates = [a for a in arguments.named_children() if a.kind == "identifier"]
        if not candidates:
            continue
        module_name = document.token(candidates[0])
        source = find_import_source(document, module_name)
        if source is None:
            raise ValueError(f"{main_path}: '{module_name}' is not imported")
        return EntryModule(module_name=module_name, file_path=_resolve_import(main_path, source))

    raise ValueError(f"{main_path}: no bootstrapModule(...) call found")


def _component_selector(tree: StagedTree, path: str) -> str | None:
    if not tree.exists(path):
        return None
    document = SourceDocument.load(tree, path)
    metadata = _decorator_metadata(document, "Component")
    if metadata is None:
        return None
    pair = _find_pair(document, metadata, "selector")
    value = pair.child("value") if pair is not None else None
    if value is None or value.kind != "string":
        return None
    return string_value(document, value)


def get_bootstrap_components(tree: StagedTree, module_path: str) -> list[BootstrapComponent]:
    """Return the components listed in the module's ``bootstrap`` clause."""
    document = SourceDocument.load(tree, module_path)
    pair = _find_pair(document, _ng_module_metadata(document), "bootstrap")
    if pair is None:
        return []

    components: list[BootstrapComponent] = []
    for element in _clause_array(document, pair).named_children():
        if element.kind != "identifier":
            continue
        component = document.token(element)
        source = find_import_source(document, component)
        file_path = _resolve_import(module_path, source) if source else module_path
        app_id = _component_selector(tree, file_path) or _DEFAULT_APP_ID
        components.append(BootstrapComponent(component=component, file_path=file_path, app_id=app_id))
    return components
