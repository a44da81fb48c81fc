"""JavaScript source parsing backed by tree-sitter.

Wraps the parsed tree together with the original bytes so that any node can
be sliced back into source text.
"""

from collections.abc import Iterator
from dataclasses import dataclass

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

from express_openapi.errors import SourceParseError

JS_LANGUAGE = Language(tree_sitter_javascript.language())

FUNCTION_TYPES = frozenset({
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
})


@dataclass(frozen=True)
class SourceFile:
    """A parsed JavaScript file."""

    text: str
    data: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text_of(self, node: Node | None) -> str:
        """Return the exact source text spanned by ``node``."""
        if node is None:
            return ""
        return self.data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def code_of(self, node: Node | None) -> str:
        """Like text_of, but with every comment inside ``node`` blanked out.

        Each comment becomes spaces, keeping its newlines, so line structure
        survives.
        """
        if node is None:
            return ""
        data = bytearray(self.data[node.start_byte:node.end_byte])
        for comment in iter_nodes(node, "comment"):
            for offset in range(comment.start_byte, comment.end_byte):
                index = offset - node.start_byte
                if data[index] != ord("\n"):
                    data[index] = ord(" ")
        return data.decode("utf-8", errors="replace")


def parse_source(text: str) -> SourceFile:
    """Parse JavaScript source text.

    Raises SourceParseError if tree-sitter had to recover from any syntax
    error; a partially recovered tree is never returned.
    """
    data = text.encode("utf-8")
    tree = Parser(JS_LANGUAGE).parse(data)
    if tree.root_node.has_error:
        line, column = _first_error_position(tree.root_node)
        raise SourceParseError("Invalid JavaScript syntax", line=line, column=column)
    return SourceFile(text=text, data=data, tree=tree)


def iter_nodes(root: Node, *types: str) -> Iterator[Node]:
    """Yield nodes below ``root`` in source order, optionally filtered by type."""
    stack = [root]
    while stack:
        node = stack.pop()
        if not types or node.type in types:
            yield node
        stack.extend(reversed(node.children))


def arguments_of(call: Node) -> list[Node]:
    """Return the argument expressions of a call or ``new`` expression."""
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [child for child in args.named_children if child.type != "comment"]


def is_function(node: Node | None) -> bool:
    return node is not None and node.type in FUNCTION_TYPES


def _first_error_position(root: Node) -> tuple[int, int]:
    for node in iter_nodes(root):
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point[0], node.start_point[1]
            return row + 1, column + 1
    return 1, 1
