"""
Variable rules: unused bindings, undefined references, undefined JSX tags.

Message wording follows ESLint so callers can pull the quoted name out of
each message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List

from ..parsers.scope import Variable

if TYPE_CHECKING:
    from ..linter import RuleContext

# ES2017 builtins only; host objects such as console or window are not included.
BUILTIN_GLOBALS = frozenset({
    "Array", "ArrayBuffer", "Atomics", "Boolean", "DataView", "Date",
    "decodeURI", "decodeURIComponent", "encodeURI", "encodeURIComponent",
    "Error", "escape", "eval", "EvalError", "Float32Array", "Float64Array",
    "Function", "globalThis", "Infinity", "Int16Array", "Int32Array", "Int8Array",
    "isFinite", "isNaN", "JSON", "Map", "Math", "NaN", "Number", "Object",
    "parseFloat", "parseInt", "Promise", "Proxy", "RangeError", "ReferenceError",
    "Reflect", "RegExp", "Set", "SharedArrayBuffer", "String", "Symbol",
    "SyntaxError", "TypeError", "Uint16Array", "Uint32Array", "Uint8Array",
    "Uint8ClampedArray", "undefined", "unescape", "URIError", "WeakMap", "WeakSet",
})

# Bindings no-unused-vars never reports.
_NEVER_REPORTED = {"implicit", "function-name", "class-name", "catch"}


def _last_used_param(variables: Iterable[Variable]) -> Dict[int, int]:
    last: Dict[int, int] = {}
    for var in variables:
        if var.kind == "param" and var.owner is not None and var.read_references:
            key = var.owner.id
            last[key] = max(last.get(key, -1), var.param_index)
    return last


def _unused(context: "RuleContext", kinds: Iterable[str] = ()) -> List[Variable]:
    analysis = context.scope_analysis
    pragma_root = context.jsx_pragma_root
    last_used = _last_used_param(analysis.variables)
    wanted = set(kinds)

    out = []
    for var in analysis.variables:
        if wanted and var.kind not in wanted:
            continue
        if var.kind in _NEVER_REPORTED or var.exported:
            continue
        if var.read_references:
            continue
        if var.kind == "import" and var.name == pragma_root and analysis.has_jsx:
            continue
        # args: after-used
        if var.kind == "param" and var.owner is not None and var.param_index < last_used.get(var.owner.id, -1):
            continue
        out.append(var)
    return out


def no_unused_vars(context: "RuleContext") -> None:
    for var in _unused(context):
        if var.kind in ("var", "let", "const") and var.is_written:
            verb = "assigned a value"
        else:
            verb = "defined"
        context.report(f"'{var.name}' is {verb} but never used.", node=var.node)


def no_unused_imports(context: "RuleContext") -> None:
    for var in _unused(context, kinds=("import",)):
        context.report(f"'{var.name}' is defined but never used.", node=var.node)


def no_undef(context: "RuleContext") -> None:
    options = context.option(0, {}) or {}
    check_typeof = bool(options.get("typeof", False))
    known = context.globals
    for ref in context.scope_analysis.through:
        if ref.in_jsx:
            continue
        if ref.in_typeof and not check_typeof:
            continue
        if ref.name in known:
            continue
        context.report(f"'{ref.name}' is not defined.", node=ref.node)


def jsx_no_undef(context: "RuleContext") -> None:
    options = context.option(0, {}) or {}
    allow_globals = bool(options.get("allowGlobals", False))
    for ref in context.scope_analysis.through:
        if not ref.in_jsx:
            continue
        if allow_globals and ref.name in context.globals:
            continue
        context.report(f"'{ref.name}' is not defined.", node=ref.node)


CORE_RULES = {
    "no-unused-vars": no_unused_vars,
    "no-undef": no_undef,
}

PLUGINS = {
    "react": {"jsx-no-undef": jsx_no_undef},
    "unused-imports": {"no-unused-imports": no_unused_imports},
}
