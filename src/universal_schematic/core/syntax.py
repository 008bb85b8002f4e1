from collections.abc import Iterator
from typing import cast

from tree_sitter import Tree, TreeCursor
from tree_sitter_language_pack import SupportedLanguage, get_parser

from universal_schematic.core.languages import resolve_language
from universal_schematic.core.ports.tree import StagedTree
from universal_schematic.models import SyntaxNode


class SourceParseError(ValueError):
    """Raised when a source file does not parse cleanly."""

    def __init__(self, path: str, line: int, column: int, kind: str) -> None:
        self.path = path
        self.line = line
        self.column = column
        self.kind = kind
        super().__init__(f"{path}:{line}:{column}: syntax error ({kind})")


def _char_offsets(text: str) -> list[int] | None:
    """Map UTF-8 byte offsets to character offsets, or None for ASCII text."""
    if text.isascii():
        return None
    table: list[int] = []
    for index, char in enumerate(text):
        table.extend([index] * len(char.encode("utf-8")))
    table.append(len(text))
    return table


def _tree_to_model(tree: Tree, offsets: list[int] | None) -> tuple[SyntaxNode, tuple[int, str] | None]:
    first_error: tuple[int, str] | None = None

    def to_char(byte_offset: int) -> int:
        return offsets[byte_offset] if offsets is not None else byte_offset

    def build(cursor: TreeCursor, field: str | None) -> SyntaxNode:
        nonlocal first_error
        node = cursor.node
        if node is None:
            raise ValueError("tree cursor is not positioned on a node")
        if first_error is None and (node.type == "ERROR" or node.is_missing):
            first_error = (node.start_byte, "missing " + node.type if node.is_missing else node.type)

        children: list[SyntaxNode] = []
        if cursor.goto_first_child():
            while True:
                children.append(build(cursor, cursor.field_name))
                if not cursor.goto_next_sibling():
                    break
            cursor.goto_parent()

        return SyntaxNode(
            kind=node.type,
            start=to_char(node.start_byte),
            end=to_char(node.end_byte),
            field=field,
            named=node.is_named,
            children=children,
        )

    root = build(tree.walk(), None)
    if first_error is not None:
        return root, (to_char(first_error[0]), first_error[1])
    return root, None


def parse_source(text: str, path: str = "<memory>", language: str | None = None) -> SyntaxNode:
    """Parse ``text`` into an immutable syntax snapshot.

    Offsets on the returned nodes are character offsets into ``text``.
    Raises ``SourceParseError`` when the parser had to recover from errors.
    """
    if language is None and path == "<memory>":
        language = "typescript"
    resolved_language = resolve_language(language, path)
    parser = get_parser(cast(SupportedLanguage, resolved_language))
    tree = parser.parse(text.encode("utf-8"))

    root, error = _tree_to_model(tree, _char_offsets(text))
    if error is not None:
        offset, kind = error
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        raise SourceParseError(path, line, column, kind)
    return root


class SourceDocument:
    """A file path and its text, with a syntax tree built on first use."""

    def __init__(self, path: str, text: str, language: str | None = None) -> None:
        self.path = path
        self._text = text
        self._language = language
        self._root: SyntaxNode | None = None

    @classmethod
    def load(cls, tree: StagedTree, path: str, language: str | None = None) -> "SourceDocument":
        return cls(path, tree.read_text(path), language)

    @property
    def text(self) -> str:
        return self._text

    @property
    def root(self) -> SyntaxNode:
        if self._root is None:
            self._root = parse_source(self._text, self.path, self._language)
        return self._root

    def replace_text(self, text: str) -> None:
        self._text = text
        self._root = None

    def token(self, node: SyntaxNode) -> str:
        return self._text[node.start : node.end]

    def save(self, tree: StagedTree) -> None:
        tree.write_text(self.path, self._text)


def iter_nodes(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield ``root`` and all of its descendants in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_classes(root: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield top-level class declarations, including exported ones."""
    for node in root.children:
        if node.kind == "export_statement":
            declaration = node.child("declaration")
            if declaration is not None:
                node = declaration
        if node.kind in ("class_declaration", "abstract_class_declaration"):
            yield node


def class_members(class_node: SyntaxNode) -> list[SyntaxNode]:
    body = class_node.child("body")
    if body is None:
        return []
    return body.named_children()


def string_value(document: SourceDocument, node: SyntaxNode) -> str:
    """Return the contents of a string literal node without its quotes."""
    return document.token(node)[1:-1]
