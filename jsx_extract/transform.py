"""
Source transformer: TSX/JSX in, plain JavaScript out.

The syntax tree is re-printed node by node. Nodes without a handler are
copied verbatim (including the whitespace and comments between their
children), so identifier names and their binding relationships survive
unchanged. TypeScript-only syntax is dropped, JSX is lowered to
createElement calls, optional chaining and object spread are lowered to
their loose equivalents, and unreferenced import bindings are elided.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Iterable, List, Optional, Set

from tree_sitter import Node

from .config import settings
from .parsers.scope import TYPE_ONLY_TYPES, analyze_scopes
from .parsers.tree_sitter_utils import describe_error, first_error, parse_tsx

logger = logging.getLogger(__name__)

STRIPPED_TYPES = TYPE_ONLY_TYPES | {"accessibility_modifier", "override_modifier"}
MODIFIER_TOKENS = {"readonly", "abstract", "declare", "?", "!"}

_IDENTIFIER_KEY = re.compile(r"^[A-Za-z_$][\w$]*$")
_INTRINSIC_TAG = re.compile(r"^[a-z]")
_LINE_BREAK = re.compile(r"\r\n|\n|\r")


class TransformError(Exception):
    """Source is not syntactically valid JSX/TSX."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


def transform(code: str) -> str:
    """
    Transform JSX/TSX source into plain JavaScript.

    Raises:
        TransformError: if the source does not parse or nests too deeply to re-print.
    """
    tree, source = parse_tsx(code)
    err = first_error(tree.root_node)
    if err is not None:
        raise TransformError(describe_error(err), line=err.start_point[0] + 1, column=err.start_point[1] + 1)

    analysis = analyze_scopes(tree)
    pragma_root = settings.JSX_PRAGMA.split(".")[0]
    elided: Set[int] = set()
    for var in analysis.variables_of_kind("import"):
        if var.references:
            continue
        if var.name == pragma_root and analysis.has_jsx:
            continue
        elided.add(var.node.id)
    if elided:
        logger.debug(f"Eliding {len(elided)} unreferenced import binding(s)")

    try:
        return _Emitter(source, elided).emit(tree.root_node)
    except RecursionError as e:
        raise TransformError("source nests too deeply to transform") from e


def clean_jsx_text(value: str) -> str:
    """Apply JSX whitespace rules to a text child; empty result means no child."""
    lines = _LINE_BREAK.split(value)
    last_non_empty = 0
    for i, line in enumerate(lines):
        if line.strip(" \t"):
            last_non_empty = i

    out = ""
    for i, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if i != 0:
            trimmed = trimmed.lstrip(" ")
        if i != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if i != last_non_empty:
                trimmed += " "
            out += trimmed
    return out


def _named(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type != "comment"]


# Depending on grammar version `?.` is an optional_chain node or a bare token.
OPTIONAL_CHAIN_TYPES = {"optional_chain", "?."}


def _is_optional(node: Node) -> bool:
    return any(c.type in OPTIONAL_CHAIN_TYPES for c in node.children)


class _Emitter:
    def __init__(self, source: bytes, elided: Set[int]):
        self.source = source
        self.elided = elided
        self.pragma = settings.JSX_PRAGMA
        self.fragment_pragma = settings.JSX_FRAGMENT_PRAGMA

    # ---- plumbing ----

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def emit(self, node: Node) -> str:
        if node.type in STRIPPED_TYPES:
            return ""
        handler = getattr(self, f"_emit_{node.type}", None) if node.is_named else None
        if handler is not None:
            return handler(node)
        return self.default(node)

    def default(self, node: Node, skip: Iterable[int] = ()) -> str:
        if node.child_count == 0:
            return self.text(node)
        skip = set(skip)
        parts = []
        cursor = node.start_byte
        for c in node.children:
            parts.append(self.source[cursor:c.start_byte].decode("utf-8", errors="replace"))
            if c.id not in skip:
                parts.append(self.emit(c))
            cursor = c.end_byte
        parts.append(self.source[cursor:node.end_byte].decode("utf-8", errors="replace"))
        return "".join(parts)

    def without_modifiers(self, node: Node) -> str:
        return self.default(node, skip=[c.id for c in node.children if c.type in MODIFIER_TOKENS])

    # ---- imports / exports ----

    def _emit_import_statement(self, node: Node) -> str:
        if any(c.type == "type" for c in node.children):
            return ""
        source_node = node.child_by_field_name("source")
        clause = next((c for c in node.children if c.type == "import_clause"), None)
        if source_node is None or clause is None:
            return self.default(node)

        src = self.text(source_node)
        default_name = None
        namespace = None
        specifiers = []
        bindings = 0
        type_only = 0
        for c in clause.children:
            if c.type == "identifier":
                bindings += 1
                if c.id not in self.elided:
                    default_name = self.text(c)
            elif c.type == "namespace_import":
                ident = next((i for i in c.named_children if i.type == "identifier"), None)
                if ident is not None:
                    bindings += 1
                    if ident.id not in self.elided:
                        namespace = f"* as {self.text(ident)}"
            elif c.type == "named_imports":
                for spec in c.named_children:
                    if spec.type != "import_specifier":
                        continue
                    if any(sc.type == "type" for sc in spec.children):
                        type_only += 1
                        continue
                    bindings += 1
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    local = alias or name
                    if local is None or local.id in self.elided:
                        continue
                    specifiers.append(f"{self.text(name)} as {self.text(alias)}" if alias is not None else self.text(name))

        if bindings == 0:
            return "" if type_only else f"import {src};"
        head = [h for h in (default_name, namespace) if h]
        if specifiers:
            head.append("{ " + ", ".join(specifiers) + " }")
        if not head:
            return ""
        return f"import {', '.join(head)} from {src};"

    def _emit_export_statement(self, node: Node) -> str:
        if any(c.type == "type" for c in node.children):
            return ""
        declaration = node.child_by_field_name("declaration")
        if declaration is not None and declaration.type in STRIPPED_TYPES:
            return ""
        named = _named(node)
        if named and all(c.type in STRIPPED_TYPES for c in named):
            return ""
        return self.default(node)

    def _emit_export_clause(self, node: Node) -> str:
        specs = []
        for spec in node.named_children:
            if spec.type != "export_specifier" or any(sc.type == "type" for sc in spec.children):
                continue
            specs.append(self.text(spec))
        return "{ " + ", ".join(specs) + " }" if specs else "{}"

    # ---- TypeScript syntax ----

    def _emit_required_parameter(self, node: Node) -> str:
        pattern = node.child_by_field_name("pattern")
        value = node.child_by_field_name("value")
        out = self.emit(pattern) if pattern is not None else ""
        if value is not None:
            out += " = " + self.emit(value)
        return out

    _emit_optional_parameter = _emit_required_parameter

    def _emit_public_field_definition(self, node: Node) -> str:
        if any(c.type in ("declare", "abstract") for c in node.children):
            return ""
        return self.without_modifiers(node)

    def _emit_method_definition(self, node: Node) -> str:
        return self.without_modifiers(node)

    def _emit_variable_declarator(self, node: Node) -> str:
        return self.without_modifiers(node)

    def _emit_abstract_class_declaration(self, node: Node) -> str:
        return self.without_modifiers(node)

    def _emit_class_declaration(self, node: Node) -> str:
        return self.without_modifiers(node)

    def _emit_non_null_expression(self, node: Node) -> str:
        return self.emit(_named(node)[0])

    def _emit_as_expression(self, node: Node) -> str:
        return self.emit(_named(node)[0])

    _emit_satisfies_expression = _emit_as_expression

    def _emit_type_assertion(self, node: Node) -> str:
        return self.emit(_named(node)[-1])

    def _emit_enum_declaration(self, node: Node) -> str:
        name = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        members = []
        counter: Optional[int] = 0
        for member in (_named(body) if body is not None else []):
            if member.type == "enum_assignment":
                key_node = member.child_by_field_name("name")
                value_node = member.child_by_field_name("value")
                value = self.emit(value_node) if value_node is not None else "void 0"
                counter = int(value) + 1 if value.isdigit() else None
            else:
                key_node = member
                value = str(counter) if counter is not None else "void 0"
                counter = counter + 1 if counter is not None else None
            if key_node is None:
                continue
            members.append(f"{self.text(key_node)}: {value}")
        return f"var {self.text(name)} = {{{', '.join(members)}}};"

    # ---- optional chaining ----

    def _emit_member_expression(self, node: Node) -> str:
        if not _is_optional(node):
            return self.default(node)
        obj = self.emit(node.child_by_field_name("object"))
        prop = self.text(node.child_by_field_name("property"))
        return f"({obj} == null ? void 0 : {obj}.{prop})"

    def _emit_subscript_expression(self, node: Node) -> str:
        if not _is_optional(node):
            return self.default(node)
        obj = self.emit(node.child_by_field_name("object"))
        index = self.emit(node.child_by_field_name("index"))
        return f"({obj} == null ? void 0 : {obj}[{index}])"

    def _emit_call_expression(self, node: Node) -> str:
        if not _is_optional(node):
            return self.default(node)
        fn = self.emit(node.child_by_field_name("function"))
        args = self.emit(node.child_by_field_name("arguments"))
        return f"({fn} == null ? void 0 : {fn}{args})"

    # ---- object spread ----

    def _emit_object(self, node: Node) -> str:
        members = _named(node)
        if not any(m.type == "spread_element" for m in members):
            return self.default(node)
        items = []
        for m in members:
            if m.type == "spread_element":
                items.append((self.emit(_named(m)[0]), None))
            else:
                items.append((None, self.emit(m)))
        return self.assign_segments(items)

    @staticmethod
    def assign_segments(items) -> str:
        """Object.assign({}, ...) over (spread, member) pairs in source order."""
        segments = ["{}"]
        pending: List[str] = []
        for spread, member in items:
            if spread is None:
                pending.append(member)
                continue
            if pending:
                segments.append("{" + ", ".join(pending) + "}")
                pending = []
            segments.append(spread)
        if pending:
            segments.append("{" + ", ".join(pending) + "}")
        return f"Object.assign({', '.join(segments)})"

    # ---- JSX ----

    def _emit_jsx_element(self, node: Node) -> str:
        open_tag = node.child_by_field_name("open_tag")
        children = [c for c in node.named_children if c.type not in ("jsx_opening_element", "jsx_closing_element")]
        name = open_tag.child_by_field_name("name") if open_tag is not None else None
        return self.create_element(name, open_tag, children)

    def _emit_jsx_self_closing_element(self, node: Node) -> str:
        return self.create_element(node.child_by_field_name("name"), node, [])

    def _emit_jsx_fragment(self, node: Node) -> str:
        return self.create_element(None, None, list(node.named_children))

    def create_element(self, name: Optional[Node], tag_node: Optional[Node], children: List[Node]) -> str:
        args = [self.jsx_tag(name), self.jsx_props(tag_node)]
        args.extend(self.jsx_children(children))
        return f"{self.pragma}({', '.join(args)})"

    def jsx_tag(self, name: Optional[Node]) -> str:
        if name is None:
            return self.fragment_pragma
        text = self.text(name)
        if name.type == "identifier" and (_INTRINSIC_TAG.match(text) or "-" in text):
            return json.dumps(text)
        if name.type == "jsx_namespace_name":
            return json.dumps(text)
        return text

    def jsx_props(self, tag_node: Optional[Node]) -> str:
        if tag_node is None:
            return "null"
        items = []
        for attr in tag_node.named_children:
            if attr.type == "jsx_expression":
                inner = _named(attr)
                if inner and inner[0].type == "spread_element":
                    items.append((self.emit(_named(inner[0])[0]), None))
            elif attr.type == "jsx_attribute":
                pair = self.jsx_attribute(attr)
                if pair is not None:
                    items.append((None, pair))
        if not items:
            return "null"
        if all(spread is None for spread, _ in items):
            return "{" + ", ".join(member for _, member in items) + "}"
        return self.assign_segments(items)

    def jsx_attribute(self, attr: Node) -> Optional[str]:
        named = _named(attr)
        if not named:
            return None
        key = self.text(named[0])
        if not _IDENTIFIER_KEY.match(key):
            key = json.dumps(key)
        if len(named) == 1:
            return f"{key}: true"
        value = named[1]
        if value.type == "jsx_expression":
            inner = _named(value)
            if not inner:
                return None
            return f"{key}: {self.emit(inner[0])}"
        if value.type == "string":
            return f"{key}: {self.text(value)}"
        return f"{key}: {self.emit(value)}"

    def jsx_children(self, children: List[Node]) -> List[str]:
        out: List[str] = []
        raw_text: List[str] = []

        def flush_text() -> None:
            if raw_text:
                cleaned = clean_jsx_text(html.unescape("".join(raw_text)))
                if cleaned:
                    out.append(json.dumps(cleaned, ensure_ascii=False))
                raw_text.clear()

        for child in children:
            if child.type in ("jsx_text", "html_character_reference"):
                raw_text.append(self.text(child))
                continue
            flush_text()
            if child.type == "jsx_expression":
                inner = _named(child)
                if inner:
                    out.append(self.emit(inner[0]))
            elif child.type != "comment":
                out.append(self.emit(child))
        flush_text()
        return out
