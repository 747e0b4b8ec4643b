"""
Style extraction: the part of a `StyleSheet.create({...})` object a fragment uses.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from tree_sitter import Node

from .config import settings
from .models import StylesheetResult
from .normalize import normalize_result
from .parsers.tree_sitter_utils import first_error, parse_tsx, text_of

logger = logging.getLogger(__name__)

_LITERALS = {"true": True, "false": False, "null": None}


def _head_pattern() -> re.Pattern:
    helper = re.escape(settings.PLATFORM_STYLE_HELPER)
    return re.compile(rf"(\w+)\s*=\s*{helper}\.create\(\s*\{{")


def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the `}` closing the `{` at start; skips strings and comments."""
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in "'\"`":
            i += 1
            while i < n and text[i] != ch:
                i += 2 if text[i] == "\\" else 1
        elif text.startswith("//", i):
            i = text.find("\n", i)
            if i == -1:
                return None
        elif text.startswith("/*", i):
            i = text.find("*/", i)
            if i == -1:
                return None
            i += 1
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def find_stylesheet(code: str) -> Optional[Tuple[str, str]]:
    """(binding name, object literal text) of the first StyleSheet.create call."""
    match = _head_pattern().search(code)
    if match is None:
        return None
    start = match.end() - 1
    end = _matching_brace(code, start)
    if end is None:
        return None
    return match.group(1), code[start:end + 1]


def _string_value(node: Node, source: bytes) -> str:
    parts = []
    for c in node.named_children:
        raw = text_of(c, source)
        if c.type == "escape_sequence":
            try:
                parts.append(json.loads(f'"{raw}"'))
            except ValueError:
                parts.append(raw[1:])
        else:
            parts.append(raw)
    return "".join(parts)


def _property_key(node: Node, source: bytes) -> str:
    if node.type == "string":
        return _string_value(node, source)
    return text_of(node, source)


def literal_value(node: Node, source: bytes) -> Any:
    """
    Python value of a literal expression node.

    Raises:
        ValueError: for anything that is not a plain literal (identifiers,
            calls, spreads, computed keys, template substitutions...).
    """
    t = node.type
    if t == "object":
        out: Dict[str, Any] = {}
        for c in node.named_children:
            if c.type == "comment":
                continue
            if c.type != "pair":
                raise ValueError(f"unsupported object member {c.type}")
            key = c.child_by_field_name("key")
            if key is None or key.type == "computed_property_name":
                raise ValueError("computed key")
            out[_property_key(key, source)] = literal_value(c.child_by_field_name("value"), source)
        return out
    if t == "array":
        return [literal_value(c, source) for c in node.named_children if c.type != "comment"]
    if t == "string":
        return _string_value(node, source)
    if t == "template_string" and not any(c.type == "template_substitution" for c in node.named_children):
        return text_of(node, source)[1:-1]
    if t == "number":
        raw = text_of(node, source).replace("_", "")
        try:
            return int(raw, 0)
        except ValueError:
            return float(raw)
    if t in _LITERALS:
        return _LITERALS[t]
    if t == "unary_expression":
        operand = node.child_by_field_name("argument")
        operator = node.child_by_field_name("operator")
        value = literal_value(operand, source) if operand is not None else None
        if operator is not None and operator.type in ("-", "+") and isinstance(value, (int, float)):
            return -value if operator.type == "-" else value
    if t == "parenthesized_expression" and node.named_children:
        return literal_value(node.named_children[0], source)
    raise ValueError(f"non-literal value {t}")


def parse_style_object(text: str) -> Dict[str, Any]:
    """Parse an object literal into a dict; raises ValueError when it is not pure data."""
    tree, source = parse_tsx(f"({text})")
    if first_error(tree.root_node) is not None:
        raise ValueError("object literal does not parse")
    statement = tree.root_node.named_children[0]
    expr = statement.named_children[0]
    while expr.type == "parenthesized_expression":
        expr = expr.named_children[0]
    if expr.type != "object":
        raise ValueError(f"expected an object literal, got {expr.type}")
    return literal_value(expr, source)


def used_style_names(selection: str, stylesheet_name: str) -> List[str]:
    found = re.findall(rf"\b{re.escape(stylesheet_name)}\.(\w+)", selection)
    return list(dict.fromkeys(found))


def _regex_styles(object_text: str, names: List[str]) -> Dict[str, Any]:
    styles: Dict[str, Any] = {}
    for name in names:
        match = re.search(rf"\b{re.escape(name)}\s*:\s*(\{{\s*[^{{]*?\}})", object_text)
        if match is None:
            logger.debug(f"No style body found for {name}")
            continue
        styles[name] = normalize_result(match.group(1))
    return styles


def _snippet(name: str, styles: Dict[str, Any]) -> str:
    return f"const {name} = {settings.PLATFORM_STYLE_HELPER}.create({json.dumps(styles, indent=2)});"


def get_stylesheet(code: str, selection: str) -> StylesheetResult:
    """
    Style entries of the file's stylesheet that the selection references.

    Never raises: a missing or unreadable stylesheet yields an empty object.
    """
    name = settings.DEFAULT_STYLESHEET_NAME
    styles: Dict[str, Any] = {}
    source = "default"
    try:
        found = find_stylesheet(code)
        if found is None:
            logger.debug("No stylesheet declaration found")
        else:
            name, object_text = found
            names = used_style_names(selection, name)
            try:
                data = parse_style_object(object_text)
                styles = {key: data[key] for key in names if key in data}
                source = "parsed"
            except ValueError as e:
                logger.debug(f"Structured style parse failed, using regex: {e}")
                styles = _regex_styles(object_text, names)
                source = "regex"
    except (re.error, IndexError) as e:
        logger.warning(f"Style extraction failed: {e}")
        styles, source = {}, "default"
    return StylesheetResult(
        stylesheetName=name,
        stylesheetSnippet=_snippet(name, styles),
        styles=styles,
        source=source,
    )
