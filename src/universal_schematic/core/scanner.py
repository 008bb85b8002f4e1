"""Find free references to a global name inside class method bodies.

The walk runs over the tree-sitter TypeScript grammar. Only ``identifier``
leaves can be free references: member names are ``property_identifier``,
type names are ``type_identifier`` and string or comment content has no
identifier children at all. An already qualified ``this.window`` therefore
never matches again, since its ``window`` is a ``property_identifier``.

Shadowing follows JavaScript scoping. Parameters and ``var`` declarations
cover the whole function. ``let``, ``const``, class and function
declarations cover their block, a catch parameter its catch clause and a
loop declaration its loop.
"""

import logging
from collections.abc import Callable, Iterable, Iterator

from universal_schematic.core.syntax import SourceDocument, class_members, iter_classes
from universal_schematic.models import EditSpan, SyntaxNode, TargetReference

logger = logging.getLogger(__name__)

_BINDING_KINDS = frozenset({"identifier", "shorthand_property_identifier_pattern"})

# Nodes that rebind ``this``; a reference inside them belongs to another scope.
_SCOPE_BOUNDARIES = frozenset(
    {
        "abstract_class_declaration",
        "class",
        "class_declaration",
        "function",
        "function_declaration",
        "function_expression",
        "generator_function",
        "generator_function_declaration",
        "method_definition",
    }
)

_NAMED_DECLARATIONS = frozenset(
    {
        "abstract_class_declaration",
        "class_declaration",
        "function_declaration",
        "generator_function_declaration",
    }
)

_OPAQUE_KINDS = frozenset(
    {
        "comment",
        "regex",
        "string",
        "type_annotation",
        "type_arguments",
        "type_parameters",
        "type_query",
    }
)

_DECLARATION_FIELDS = frozenset(
    {
        ("arrow_function", "parameter"),
        ("catch_clause", "parameter"),
        ("optional_parameter", "pattern"),
        ("required_parameter", "pattern"),
        ("variable_declarator", "name"),
    }
)

_DEFAULT_VALUE_PARENTS = frozenset({"assignment_pattern", "object_assignment_pattern"})

_BLOCK_SCOPES = frozenset({"catch_clause", "for_in_statement", "for_statement", "statement_block", "switch_body"})


def _declaration_keyword(statement: SyntaxNode) -> str | None:
    for token in statement.children:
        if token.kind in ("const", "let", "var"):
            return token.kind
    return None


def _is_declaring(parent: SyntaxNode, child: SyntaxNode, declaring: bool) -> bool:
    if declaring:
        return not (parent.kind in _DEFAULT_VALUE_PARENTS and child.field == "right")
    if parent.kind == "for_in_statement" and child.field == "left":
        return _declaration_keyword(parent) is not None
    return (parent.kind, child.field) in _DECLARATION_FIELDS


def _walk(roots: Iterable[SyntaxNode], declaring: bool = False) -> Iterator[tuple[SyntaxNode, bool]]:
    """Depth-first, source-ordered walk yielding ``(node, declaring)``.

    Identifiers, scope boundaries, arrow functions and opaque regions are
    yielded but never descended into.
    """
    stack = [(node, declaring) for node in roots]
    stack.reverse()
    while stack:
        node, in_declaration = stack.pop()
        yield node, in_declaration
        if node.kind == "identifier" or node.kind == "arrow_function":
            continue
        if node.kind in _SCOPE_BOUNDARIES or node.kind in _OPAQUE_KINDS:
            continue
        for child in reversed(node.children):
            stack.append((child, _is_declaring(node, child, in_declaration)))


def _binds(document: SourceDocument, name: str, pattern: SyntaxNode | None, declaring: bool = True) -> bool:
    """True when ``pattern`` introduces ``name``; pass ``declaring=False`` for a parameter list."""
    if pattern is None:
        return False
    return any(
        in_declaration and node.kind in _BINDING_KINDS and document.token(node) == name
        for node, in_declaration in _walk([pattern], declaring)
    )


def _declares_lexically(document: SourceDocument, name: str, statements: Iterable[SyntaxNode]) -> bool:
    for statement in statements:
        if statement.kind == "lexical_declaration":
            for declarator in statement.named_children():
                if declarator.kind == "variable_declarator" and _binds(document, name, declarator.child("name")):
                    return True
        elif statement.kind in _NAMED_DECLARATIONS:
            declared = statement.child("name")
            if declared is not None and document.token(declared) == name:
                return True
    return False


def _hoists(document: SourceDocument, name: str, root: SyntaxNode) -> bool:
    """True when a ``var`` declaration anywhere in the function body binds ``name``."""
    for node, _in_declaration in _walk([root]):
        if node.kind == "variable_declaration":
            for declarator in node.named_children():
                if declarator.kind == "variable_declarator" and _binds(document, name, declarator.child("name")):
                    return True
        elif node.kind == "for_in_statement" and _declaration_keyword(node) == "var":
            if _binds(document, name, node.child("left")):
                return True
    return False


def _block_declares(document: SourceDocument, name: str, node: SyntaxNode) -> bool:
    if node.kind == "statement_block":
        return _declares_lexically(document, name, node.named_children())
    if node.kind == "switch_body":
        statements = [
            child for case in node.named_children() for child in case.named_children() if child.field != "value"
        ]
        return _declares_lexically(document, name, statements)
    if node.kind == "catch_clause":
        return _binds(document, name, node.child("parameter"))
    if node.kind == "for_statement":
        declarations = [child for child in node.children if child.kind == "lexical_declaration"]
        return _declares_lexically(document, name, declarations)
    if node.kind == "for_in_statement" and _declaration_keyword(node) in ("const", "let"):
        return _binds(document, name, node.child("left"))
    return False


def _scan_scope(
    document: SourceDocument,
    target: TargetReference,
    parameters: list[SyntaxNode],
    body: SyntaxNode,
    spans: list[EditSpan],
) -> None:
    """Collect references in one function scope: a method body or an arrow function."""
    shadowing_parameter = any(
        _binds(document, target.name, parameter, declaring=parameter.field == "parameter") for parameter in parameters
    )
    if shadowing_parameter or _hoists(document, target.name, body):
        logger.debug("%s: '%s' is a parameter or var, skipping scope", document.path, target.name)
        return

    stack: list[tuple[SyntaxNode, bool]] = [(body, False)]
    while stack:
        node, in_declaration = stack.pop()
        if node.kind == "arrow_function":
            arrow_body = node.child("body")
            arrow_parameters = [child for child in node.children if child.field in ("parameter", "parameters")]
            if arrow_body is not None:
                _scan_scope(document, target, arrow_parameters, arrow_body, spans)
            continue
        if node.kind in _BLOCK_SCOPES and _block_declares(document, target.name, node):
            logger.debug("%s: '%s' is declared in a %s, skipping it", document.path, target.name, node.kind)
            continue
        if node.kind == "identifier":
            token = document.token(node)
            if not in_declaration and token == target.name:
                spans.append(EditSpan(start=node.start, end=node.end, replacement=target.qualified(token)))
            continue
        if node.kind in _SCOPE_BOUNDARIES or node.kind in _OPAQUE_KINDS:
            continue
        for child in reversed(node.children):
            stack.append((child, _is_declaring(node, child, in_declaration)))


def iter_methods(class_node: SyntaxNode, document: SourceDocument) -> Iterator[SyntaxNode]:
    """Yield instance methods and accessors that have a body, skipping the constructor."""
    for member in class_members(class_node):
        if member.kind != "method_definition" or member.child("body") is None:
            continue
        if any(child.kind == "static" for child in member.children):
            continue
        name = member.child("name")
        if name is not None and document.token(name) == "constructor":
            continue
        yield member


def scan_references(
    document: SourceDocument,
    target: TargetReference,
    include: Callable[[SyntaxNode], bool] | None = None,
) -> list[EditSpan]:
    """Return one edit span per free reference to ``target.name``, in source order.

    ``include`` restricts the scan to the classes it accepts.
    """
    spans: list[EditSpan] = []
    for class_node in iter_classes(document.root):
        if include is not None and not include(class_node):
            continue
        for method in iter_methods(class_node, document):
            body = method.child("body")
            if body is None:
                continue
            parameters = [child for child in method.children if child.field == "parameters"]
            _scan_scope(document, target, parameters, body, spans)

    spans.sort(key=lambda span: span.start)
    logger.debug("%s: %d reference(s) to '%s'", document.path, len(spans), target.name)
    return spans
