"""
Tree-sitter utilities for precise code parsing.
Provides the TSX grammar used for JavaScript, TypeScript and JSX fragments.
"""

from typing import Iterator, Optional, Tuple
import logging
from functools import lru_cache

from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_typescript as tstypescript

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_tsx_language() -> Language:
    """Load the TSX grammar once; Language objects are immutable."""
    language = Language(tstypescript.language_tsx())
    logger.debug("TSX grammar loaded")
    return language


def parse_tsx(code: str) -> Tuple[Tree, bytes]:
    """
    Parse code with a fresh parser.

    Returns:
        The syntax tree and the UTF-8 bytes it was built from (node offsets
        are byte offsets into these bytes).
    """
    source = code.encode("utf-8")
    parser = Parser(get_tsx_language())
    return parser.parse(source), source


def iter_nodes(node: Node) -> Iterator[Node]:
    """Pre-order walk without recursion."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def first_error(node: Node) -> Optional[Node]:
    """Return the first ERROR or MISSING node under node, if any."""
    if not node.has_error:
        return None
    for n in iter_nodes(node):
        if n.is_error or n.is_missing:
            return n
    return None


def describe_error(node: Node) -> str:
    row, column = node.start_point
    if node.is_missing:
        return f"missing '{node.type}' at line {row + 1}, column {column + 1}"
    return f"unexpected syntax at line {row + 1}, column {column + 1}"


def text_of(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

