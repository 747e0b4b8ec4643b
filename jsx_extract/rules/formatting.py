"""
Fixable layout rules used when no external formatter is available.

Each rule reports with a byte-range fix; the linter applies fixes pass by
pass until the text stops changing.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from tree_sitter import Node

from ..parsers.tree_sitter_utils import iter_nodes

if TYPE_CHECKING:
    from ..linter import RuleContext

SEMICOLON_STATEMENTS = {
    "expression_statement",
    "lexical_declaration",
    "variable_declaration",
    "return_statement",
    "throw_statement",
    "break_statement",
    "continue_statement",
    "import_statement",
    "debugger_statement",
    "do_statement",
}

# Statement positions where a declaration carries its own terminator.
_NO_SEMICOLON_PARENTS = {"for_statement", "for_in_statement"}

TRAILING_COMMA_CONTAINERS = {
    "object",
    "object_pattern",
    "array",
    "array_pattern",
    "named_imports",
    "export_clause",
    "arguments",
    "formal_parameters",
}

CURLY_CONTAINERS = {"object", "object_pattern", "named_imports", "export_clause"}

_TRAILING_SPACE = re.compile(rb"[ \t]+(?=\r?$)", re.MULTILINE)


def _fix(start: int, end: int, text: str):
    from ..linter import Fix
    return Fix(range=(start, end), text=text)


def _members(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def _template_ranges(root: Node) -> List[Tuple[int, int]]:
    return [(n.start_byte, n.end_byte) for n in iter_nodes(root) if n.type == "template_string"]


def _in_ranges(offset: int, ranges: List[Tuple[int, int]]) -> bool:
    return any(start < offset < end for start, end in ranges)


def _lines(source: bytes) -> Iterator[Tuple[int, bytes]]:
    """(start offset, line content without newline) for each line."""
    offset = 0
    for line in source.split(b"\n"):
        yield offset, line
        offset += len(line) + 1


def quotes(context: "RuleContext") -> None:
    preferred = context.option(0, "double")
    options = context.option(1, {}) or {}
    avoid_escape = bool(options.get("avoidEscape", False))
    if preferred != "single":
        return
    for node in iter_nodes(context.root):
        if node.type != "string":
            continue
        parent = node.parent
        if parent is not None and parent.type == "jsx_attribute":
            continue
        raw = context.text(node)
        if len(raw) < 2 or raw[0] != '"':
            continue
        body = raw[1:-1]
        if avoid_escape and "'" in body:
            continue
        body = body.replace('\\"', '"').replace("'", "\\'")
        context.report("Strings must use singlequote.", node=node,
                       fix=_fix(node.start_byte, node.end_byte, f"'{body}'"))


def jsx_quotes(context: "RuleContext") -> None:
    if context.option(0, "prefer-double") != "prefer-double":
        return
    for node in iter_nodes(context.root):
        if node.type != "string" or node.parent is None or node.parent.type != "jsx_attribute":
            continue
        raw = context.text(node)
        if len(raw) < 2 or raw[0] != "'" or '"' in raw:
            continue
        context.report("Unexpected usage of singlequote.", node=node,
                       fix=_fix(node.start_byte, node.end_byte, f'"{raw[1:-1]}"'))


def _needs_semicolon(node: Node) -> bool:
    t = node.type
    if t == "export_statement":
        if node.child_by_field_name("declaration") is not None:
            return False
        value = node.child_by_field_name("value")
        if value is not None and value.type in ("function_expression", "class", "function"):
            return False
        return True
    if t == "public_field_definition":
        return True
    if t in SEMICOLON_STATEMENTS:
        parent = node.parent
        return parent is None or parent.type not in _NO_SEMICOLON_PARENTS
    return False


def _has_semicolon(node: Node) -> bool:
    if node.type == "public_field_definition":
        sibling = node.next_sibling
        return sibling is not None and sibling.type == ";"
    return bool(node.children) and node.children[-1].type == ";"


def semi(context: "RuleContext") -> None:
    if context.option(0, "always") != "always":
        return
    for node in iter_nodes(context.root):
        if not node.is_named or not _needs_semicolon(node) or _has_semicolon(node):
            continue
        context.report("Missing semicolon.", offset=node.end_byte,
                       fix=_fix(node.end_byte, node.end_byte, ";"))


def _closing_token(node: Node) -> Optional[Node]:
    if not node.children:
        return None
    last = node.children[-1]
    return last if last.type in ("}", "]", ")") else None


def comma_dangle(context: "RuleContext") -> None:
    if context.option(0, "never") != "always-multiline":
        return
    for node in iter_nodes(context.root):
        if node.type not in TRAILING_COMMA_CONTAINERS:
            continue
        members = _members(node)
        closing = _closing_token(node)
        if not members or closing is None:
            continue
        last = members[-1]
        if last.type == "rest_pattern" or any(c.type == "rest_pattern" for c in last.named_children):
            continue
        if last.end_point[0] == closing.start_point[0]:
            continue
        has_comma = any(c.type == "," and c.start_byte >= last.end_byte for c in node.children)
        if has_comma:
            continue
        context.report("Missing trailing comma.", offset=last.end_byte,
                       fix=_fix(last.end_byte, last.end_byte, ","))


def object_curly_spacing(context: "RuleContext") -> None:
    if context.option(0, "always") != "never":
        return
    for node in iter_nodes(context.root):
        if node.type not in CURLY_CONTAINERS or not _members(node):
            continue
        children = node.children
        if len(children) < 3 or children[0].type != "{" or children[-1].type != "}":
            continue
        opening, after = children[0], children[1]
        if opening.end_point[0] == after.start_point[0] and after.start_byte > opening.end_byte:
            context.report("There should be no space after '{'.", node=opening,
                           fix=_fix(opening.end_byte, after.start_byte, ""))
        closing, before = children[-1], children[-2]
        if closing.start_point[0] == before.end_point[0] and closing.start_byte > before.end_byte:
            context.report("There should be no space before '}'.", node=closing,
                           fix=_fix(before.end_byte, closing.start_byte, ""))


def arrow_parens(context: "RuleContext") -> None:
    if context.option(0, "always") != "always":
        return
    for node in iter_nodes(context.root):
        if node.type != "arrow_function":
            continue
        param = node.child_by_field_name("parameter")
        if param is None:
            continue
        context.report("Expected parentheses around arrow function argument.", node=param,
                       fix=_fix(param.start_byte, param.end_byte, f"({context.text(param)})"))


def no_trailing_spaces(context: "RuleContext") -> None:
    templates = _template_ranges(context.root)
    for match in _TRAILING_SPACE.finditer(context.source):
        if _in_ranges(match.start(), templates):
            continue
        context.report("Trailing spaces not allowed.", offset=match.start(),
                       fix=_fix(match.start(), match.end(), ""))


def no_multiple_empty_lines(context: "RuleContext") -> None:
    options = context.option(0, {}) or {}
    maximum = int(options.get("max", 2))
    templates = _template_ranges(context.root)
    source = context.source
    lines = list(_lines(source))
    # text after the final newline is not a line of its own
    if lines and lines[-1][1] == b"" and source.endswith(b"\n"):
        lines.pop()

    run: List[int] = []
    for offset, line in lines + [(len(source), b"<end>")]:
        if line.strip(b"\r") == b"" and not _in_ranges(offset, templates):
            run.append(offset)
            continue
        if len(run) > maximum:
            start = run[maximum]
            end = min(offset, len(source))
            context.report(f"More than {maximum} blank line{'s' if maximum != 1 else ''} not allowed.",
                           offset=start, fix=_fix(start, end, ""))
        run = []


def eol_last(context: "RuleContext") -> None:
    source = context.source
    if source and not source.endswith(b"\n"):
        context.report("Newline required at end of file but not found.", offset=len(source),
                       fix=_fix(len(source), len(source), "\n"))


FORMATTING_RULE_DEFINITIONS = {
    "quotes": quotes,
    "jsx-quotes": jsx_quotes,
    "semi": semi,
    "comma-dangle": comma_dangle,
    "object-curly-spacing": object_curly_spacing,
    "arrow-parens": arrow_parens,
    "no-trailing-spaces": no_trailing_spaces,
    "no-multiple-empty-lines": no_multiple_empty_lines,
    "eol-last": eol_last,
}
