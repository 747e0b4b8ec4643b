"""
Scope analysis over the TSX syntax tree.

Two passes: the first creates scopes and records every binding (so hoisted
declarations resolve regardless of order), the second records identifier
references and resolves them against the scope chain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from tree_sitter import Node, Tree

FUNCTION_TYPES = {
    "function_declaration",
    "function_expression",
    "function",
    "arrow_function",
    "method_definition",
    "generator_function",
    "generator_function_declaration",
}

# Subtrees that only describe types and never bind or read values.
TYPE_ONLY_TYPES = {
    "type_annotation",
    "type_arguments",
    "type_parameters",
    "interface_declaration",
    "type_alias_declaration",
    "implements_clause",
    "ambient_declaration",
    "function_signature",
    "index_signature",
    "method_signature",
    "abstract_method_signature",
    "type_predicate_annotation",
    "asserts_annotation",
    "opting_type_annotation",
    "omitting_type_annotation",
    "adding_type_annotation",
}

PATTERN_TYPES = {
    "object_pattern",
    "array_pattern",
    "pair_pattern",
    "assignment_pattern",
    "object_assignment_pattern",
    "rest_pattern",
}

JSX_TAG_TYPES = {"jsx_opening_element", "jsx_self_closing_element"}

# Kinds that may bind the same name more than once in one function scope.
REDECLARABLE_KINDS = {"var", "function", "param"}

_INTRINSIC_TAG = re.compile(r"^[a-z]")


@dataclass(eq=False)
class Reference:
    name: str
    node: Node
    scope: "Scope"
    is_read: bool = True
    is_write: bool = False
    in_jsx: bool = False
    in_typeof: bool = False
    resolved: Optional["Variable"] = None


@dataclass(eq=False)
class Variable:
    name: str
    kind: str  # import | var | let | const | param | function | class | catch | enum | namespace | implicit | function-name | class-name
    node: Optional[Node]
    scope: "Scope"
    declaration: Optional[Node] = None
    exported: bool = False
    has_initializer: bool = False
    param_index: int = -1
    owner: Optional[Node] = None
    references: List[Reference] = field(default_factory=list)
    redeclarations: List[Node] = field(default_factory=list)

    def is_self_reference(self, ref: Reference) -> bool:
        decl = self.declaration
        if decl is None:
            return False
        return decl.start_byte <= ref.node.start_byte and ref.node.end_byte <= decl.end_byte

    @property
    def read_references(self) -> List[Reference]:
        return [r for r in self.references if r.is_read and not self.is_self_reference(r)]

    @property
    def is_written(self) -> bool:
        return self.has_initializer or any(r.is_write for r in self.references)


@dataclass(eq=False)
class Scope:
    type: str  # module | function | block | catch | class
    node: Node
    parent: Optional["Scope"]
    variables: Dict[str, Variable] = field(default_factory=dict)

    def resolve(self, name: str) -> Optional[Variable]:
        curr: Optional[Scope] = self
        while curr is not None:
            if name in curr.variables:
                return curr.variables[name]
            curr = curr.parent
        return None

    def function_scope(self) -> "Scope":
        curr = self
        while curr.type not in ("function", "module") and curr.parent is not None:
            curr = curr.parent
        return curr


@dataclass
class ScopeAnalysis:
    module: Scope
    scopes: List[Scope]
    variables: List[Variable]
    references: List[Reference]
    through: List[Reference]
    has_jsx: bool = False

    def variables_of_kind(self, *kinds: str) -> List[Variable]:
        return [v for v in self.variables if v.kind in kinds]


def binding_identifiers(node: Optional[Node]) -> List[Node]:
    """Name nodes introduced by a binding pattern (defaults are not bindings)."""
    if node is None:
        return []
    t = node.type
    if t in ("identifier", "shorthand_property_identifier_pattern", "type_identifier"):
        return [node]
    if t in ("required_parameter", "optional_parameter"):
        return binding_identifiers(node.child_by_field_name("pattern"))
    if t in ("object_pattern", "array_pattern"):
        out: List[Node] = []
        for c in node.named_children:
            out.extend(binding_identifiers(c))
        return out
    if t == "pair_pattern":
        return binding_identifiers(node.child_by_field_name("value"))
    if t in ("assignment_pattern", "object_assignment_pattern"):
        return binding_identifiers(node.child_by_field_name("left"))
    if t == "rest_pattern":
        named = [c for c in node.named_children if c.type != "comment"]
        return binding_identifiers(named[0]) if named else []
    return []


def function_parameters(fn: Node) -> List[Node]:
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = fn.child_by_field_name("parameters")
    if params is None:
        return []
    return [c for c in params.named_children if c.type not in ("comment", "decorator")]


def jsx_tag_root(name_node: Optional[Node]) -> Optional[Node]:
    """Identifier node a JSX tag name refers to, or None for intrinsic tags."""
    if name_node is None:
        return None
    if name_node.type == "identifier":
        text = name_node.text.decode("utf-8", errors="ignore")
        return None if _INTRINSIC_TAG.match(text) or "-" in text else name_node
    if name_node.type in ("member_expression", "nested_identifier"):
        curr = name_node
        while curr.type in ("member_expression", "nested_identifier"):
            obj = curr.child_by_field_name("object")
            if obj is None:
                obj = curr.named_children[0] if curr.named_children else None
            if obj is None:
                return None
            curr = obj
        return curr if curr.type == "identifier" else None
    return None


def _is_exported(decl: Node) -> bool:
    parent = decl.parent
    return parent is not None and parent.type == "export_statement"


def _declaration_kind(decl: Node) -> str:
    if decl.type == "variable_declaration":
        return "var"
    kind = decl.child_by_field_name("kind")
    if kind is not None:
        return kind.type
    for c in decl.children:
        if c.type in ("let", "const", "var"):
            return c.type
    return "let"


Children = Iterable[Tuple[Node, "Scope"]]


def _walk(root: Node, scope: Scope, visit: Callable[[Node, Scope], Children]) -> None:
    """Pre-order walk where `visit` returns the (child, scope) pairs to descend into."""
    stack = [(root, scope)]
    while stack:
        node, current = stack.pop()
        stack.extend(reversed(list(visit(node, current))))


def analyze_scopes(tree: Tree) -> ScopeAnalysis:
    root = tree.root_node
    scopes: List[Scope] = []
    variables: List[Variable] = []
    references: List[Reference] = []
    through: List[Reference] = []
    binding_ids: Set[int] = set()
    scope_map: Dict[int, Scope] = {}
    state = {"has_jsx": False}

    def new_scope(scope_type: str, node: Node, parent: Optional[Scope]) -> Scope:
        scope = Scope(type=scope_type, node=node, parent=parent)
        scopes.append(scope)
        scope_map[node.id] = scope
        if scope_type == "function" and node.type != "arrow_function":
            scope.variables["arguments"] = Variable(name="arguments", kind="implicit", node=None, scope=scope)
        return scope

    def add_var(name_node: Node, kind: str, scope: Scope, **extra) -> Variable:
        name = name_node.text.decode("utf-8", errors="ignore")
        binding_ids.add(name_node.id)
        existing = scope.variables.get(name)
        if existing is not None and existing.kind in REDECLARABLE_KINDS and kind in REDECLARABLE_KINDS:
            existing.redeclarations.append(name_node)
            existing.has_initializer = existing.has_initializer or extra.get("has_initializer", False)
            existing.exported = existing.exported or extra.get("exported", False)
            return existing
        var = Variable(name=name, kind=kind, node=name_node, scope=scope, **extra)
        scope.variables[name] = var
        variables.append(var)
        return var

    def scope_type_for(n: Node) -> Optional[str]:
        if n.type in FUNCTION_TYPES:
            return "function"
        if n.type == "catch_clause":
            return "catch"
        if n.type == "statement_block":
            parent = n.parent
            if parent is not None and (parent.type in FUNCTION_TYPES or parent.type == "catch_clause"):
                return None
            return "block"
        if n.type in ("for_statement", "for_in_statement", "switch_body"):
            return "block"
        if n.type == "class":
            return "class"
        return None

    def declare_params(fn: Node, scope: Scope) -> None:
        for index, param in enumerate(function_parameters(fn)):
            for ident in binding_identifiers(param):
                add_var(ident, "param", scope, param_index=index, owner=fn)

    def declare_import(n: Node, module: Scope) -> None:
        if any(c.type == "type" for c in n.children):
            return
        clause = None
        for c in n.children:
            if c.type == "import_clause":
                clause = c
                break
        if clause is None:
            return
        for c in clause.children:
            if c.type == "identifier":
                add_var(c, "import", module, declaration=n)
            elif c.type == "namespace_import":
                for ident in c.named_children:
                    if ident.type == "identifier":
                        add_var(ident, "import", module, declaration=n)
            elif c.type == "named_imports":
                for spec in c.named_children:
                    if spec.type != "import_specifier":
                        continue
                    if any(sc.type == "type" for sc in spec.children):
                        continue
                    local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    if local is not None:
                        add_var(local, "import", module, declaration=n)

    def phase1(n: Node, scope: Scope) -> Children:
        if not n.is_named or n.type in TYPE_ONLY_TYPES:
            return []
        next_scope = scope
        st = scope_type_for(n)
        if st is not None:
            next_scope = new_scope(st, n, scope)

        t = n.type
        if t == "import_statement":
            declare_import(n, module_scope)
            return []
        if t in ("lexical_declaration", "variable_declaration"):
            kind = _declaration_kind(n)
            target = scope.function_scope() if kind == "var" else scope
            exported = _is_exported(n)
            for decl in n.named_children:
                if decl.type != "variable_declarator":
                    continue
                value = decl.child_by_field_name("value")
                self_decl = value if value is not None and (value.type in FUNCTION_TYPES or value.type == "class") else None
                for ident in binding_identifiers(decl.child_by_field_name("name")):
                    add_var(ident, kind, target, declaration=self_decl, exported=exported,
                            has_initializer=value is not None)
        elif t in ("function_declaration", "generator_function_declaration"):
            name = n.child_by_field_name("name")
            if name is not None:
                add_var(name, "function", scope, declaration=n, exported=_is_exported(n))
            declare_params(n, next_scope)
        elif t in ("function_expression", "function", "generator_function"):
            name = n.child_by_field_name("name")
            if name is not None:
                add_var(name, "function-name", next_scope)
            declare_params(n, next_scope)
        elif t in ("arrow_function", "method_definition"):
            declare_params(n, next_scope)
        elif t in ("class_declaration", "abstract_class_declaration"):
            name = n.child_by_field_name("name")
            if name is not None:
                add_var(name, "class", scope, declaration=n, exported=_is_exported(n))
        elif t == "class":
            name = n.child_by_field_name("name")
            if name is not None:
                add_var(name, "class-name", next_scope)
        elif t == "catch_clause":
            for ident in binding_identifiers(n.child_by_field_name("parameter")):
                add_var(ident, "catch", next_scope)
        elif t == "for_in_statement":
            kind = next((c.type for c in n.children if c.type in ("const", "let", "var")), None)
            if kind is not None:
                target = next_scope.function_scope() if kind == "var" else next_scope
                for ident in binding_identifiers(n.child_by_field_name("left")):
                    add_var(ident, kind, target, has_initializer=True)
        elif t == "enum_declaration":
            name = n.child_by_field_name("name")
            if name is not None:
                add_var(name, "enum", scope, exported=_is_exported(n))
        elif t in ("internal_module", "module"):
            name = n.child_by_field_name("name")
            if name is not None and name.type == "identifier":
                add_var(name, "namespace", scope, exported=_is_exported(n))

        return [(c, next_scope) for c in n.children]

    def record(node: Node, scope: Scope, **flags) -> None:
        name = node.text.decode("utf-8", errors="ignore")
        if not name:
            return
        ref = Reference(name=name, node=node, scope=scope, **flags)
        ref.resolved = scope.resolve(name)
        references.append(ref)
        if ref.resolved is not None:
            ref.resolved.references.append(ref)
        else:
            through.append(ref)

    def phase2(n: Node, scope: Scope) -> Children:
        if not n.is_named or n.type in TYPE_ONLY_TYPES:
            return []
        scope = scope_map.get(n.id, scope)
        t = n.type

        if t == "import_statement":
            return []
        if t == "export_statement" and n.child_by_field_name("source") is not None:
            return []
        if t in ("as_expression", "satisfies_expression"):
            return [(c, scope) for c in n.named_children[:1]]
        if t in ("jsx_element", "jsx_self_closing_element", "jsx_fragment"):
            state["has_jsx"] = True
        if t in JSX_TAG_TYPES:
            name_node = n.child_by_field_name("name")
            tag = jsx_tag_root(name_node)
            if tag is not None:
                record(tag, scope, in_jsx=True)
            return [(c, scope) for c in n.children if name_node is None or c.id != name_node.id]
        if t == "jsx_closing_element":
            return []

        if t == "identifier":
            visit_identifier(n, scope)
        elif t == "shorthand_property_identifier":
            record(n, scope)
        elif t == "shorthand_property_identifier_pattern" and n.id not in binding_ids:
            record(n, scope, is_read=False, is_write=True)

        return [(c, scope) for c in n.children]

    def visit_identifier(n: Node, scope: Scope) -> None:
        if n.id in binding_ids:
            return
        parent = n.parent
        if parent is None:
            return
        ptype = parent.type
        if ptype == "export_specifier":
            alias = parent.child_by_field_name("alias")
            if alias is not None and alias.id == n.id:
                return
        if ptype in ("jsx_namespace_name", "import_specifier", "namespace_import"):
            return

        is_read, is_write = True, False
        statement_level = parent.parent is not None and parent.parent.type == "expression_statement"
        if ptype == "assignment_expression" and _is_field(parent, "left", n):
            is_read, is_write = False, True
        elif ptype == "augmented_assignment_expression" and _is_field(parent, "left", n):
            is_read, is_write = not statement_level, True
        elif ptype == "update_expression":
            is_read, is_write = not statement_level, True
        elif ptype == "for_in_statement" and _is_field(parent, "left", n):
            is_read, is_write = False, True
        elif _is_destructuring_target(n):
            is_read, is_write = False, True

        in_typeof = ptype == "unary_expression" and any(c.type == "typeof" for c in parent.children)
        record(n, scope, is_read=is_read, is_write=is_write, in_typeof=in_typeof)

    module_scope = new_scope("module", root, None)
    _walk(root, module_scope, phase1)
    _walk(root, module_scope, phase2)

    return ScopeAnalysis(
        module=module_scope,
        scopes=scopes,
        variables=variables,
        references=references,
        through=through,
        has_jsx=state["has_jsx"],
    )


def _is_field(parent: Node, field_name: str, node: Node) -> bool:
    child = parent.child_by_field_name(field_name)
    return child is not None and child.id == node.id


def _is_destructuring_target(n: Node) -> bool:
    """True for identifiers inside the left pattern of `[a, b] = ...` style assignments."""
    child = n
    curr = n.parent
    while curr is not None and curr.type in PATTERN_TYPES:
        if curr.type in ("assignment_pattern", "object_assignment_pattern") and not _is_field(curr, "left", child):
            return False
        if curr.type == "pair_pattern" and not _is_field(curr, "value", child):
            return False
        child = curr
        curr = curr.parent
    if curr is None or child is n:
        return False
    if curr.type in ("assignment_expression", "for_in_statement"):
        return _is_field(curr, "left", child)
    return False
