"""
Rule-based identifier analysis.

A `Linter` evaluates named rules over a parsed source and reports
ESLint-style messages. Identifier analysis works off those messages: the
name wrapped in single quotes inside each message is the extracted entity.

The rule registry is built once into a read-only mapping and handed to each
`Linter`; nothing registers rules at call time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from tree_sitter import Node, Tree

from .config import settings
from .models import FixReport, LintMessageModel
from .parsers.scope import ScopeAnalysis, analyze_scopes
from .parsers.tree_sitter_utils import describe_error, first_error, parse_tsx

logger = logging.getLogger(__name__)

ENTITY_NAME = re.compile(r"^[^']*'(?P<entityName>[^']+)'.*", re.DOTALL)

SEVERITIES = {"off": 0, "warn": 1, "error": 2, 0: 0, 1: 1, 2: 2}


class AnalysisError(Exception):
    """Text could not be analyzed (parse failure or bad rule configuration)."""


@dataclass(frozen=True)
class Fix:
    range: Tuple[int, int]  # byte offsets into the parsed source
    text: str


@dataclass
class LintMessage:
    rule_id: Optional[str]
    message: str
    line: int
    column: int
    severity: int = 2
    fix: Optional[Fix] = None
    fatal: bool = False

    def to_model(self) -> LintMessageModel:
        return LintMessageModel(
            ruleId=self.rule_id,
            message=self.message,
            line=self.line,
            column=self.column,
            severity=self.severity,
            fatal=self.fatal,
        )


@dataclass(frozen=True)
class RuleConfig:
    """Rule id -> severity, or [severity, *options] as in an ESLint config."""
    rules: Mapping[str, Any]
    globals: FrozenSet[str] = field(default_factory=frozenset)

    def enabled(self) -> List[Tuple[str, int, List[Any]]]:
        out = []
        for rule_id, value in self.rules.items():
            if isinstance(value, (list, tuple)):
                level, options = value[0], list(value[1:])
            else:
                level, options = value, []
            severity = SEVERITIES.get(level)
            if severity is None:
                raise AnalysisError(f"Invalid severity {level!r} for rule '{rule_id}'")
            if severity:
                out.append((rule_id, severity, options))
        return out


Rule = Callable[["RuleContext"], None]


class RuleContext:
    """What a rule sees: the tree, the source bytes, its options and a report sink."""

    def __init__(self, tree: Tree, source: bytes, rule_id: str, severity: int,
                 options: List[Any], config: RuleConfig, shared: Dict[str, Any]):
        self.tree = tree
        self.source = source
        self.rule_id = rule_id
        self.severity = severity
        self.options = options
        self.config = config
        self.messages: List[LintMessage] = []
        self._shared = shared

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def scope_analysis(self) -> ScopeAnalysis:
        if "scopes" not in self._shared:
            self._shared["scopes"] = analyze_scopes(self.tree)
        return self._shared["scopes"]

    @property
    def globals(self) -> FrozenSet[str]:
        from .rules.variables import BUILTIN_GLOBALS
        return BUILTIN_GLOBALS | self.config.globals

    @property
    def jsx_pragma_root(self) -> str:
        return settings.JSX_PRAGMA.split(".")[0]

    def option(self, index: int, default: Any = None) -> Any:
        return self.options[index] if len(self.options) > index else default

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def position(self, offset: int) -> Tuple[int, int]:
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        line = self.source.count(b"\n", 0, offset) + 1
        column = len(self.source[line_start:offset].decode("utf-8", errors="replace")) + 1
        return line, column

    def report(self, message: str, node: Optional[Node] = None, offset: Optional[int] = None,
               fix: Optional[Fix] = None) -> None:
        if node is not None:
            line, column = node.start_point[0] + 1, node.start_point[1] + 1
        else:
            line, column = self.position(offset or 0)
        self.messages.append(LintMessage(
            rule_id=self.rule_id,
            message=message,
            line=line,
            column=column,
            severity=self.severity,
            fix=fix,
        ))


def build_rule_registry() -> Mapping[str, Rule]:
    """Core rules plus plugin rules namespaced as `plugin/rule`."""
    from .rules.formatting import FORMATTING_RULE_DEFINITIONS
    from .rules.variables import CORE_RULES, PLUGINS

    rules: Dict[str, Rule] = {}
    rules.update(CORE_RULES)
    rules.update(FORMATTING_RULE_DEFINITIONS)
    for plugin_name, plugin_rules in PLUGINS.items():
        for rule_id, rule in plugin_rules.items():
            rules[f"{plugin_name}/{rule_id}"] = rule
    return MappingProxyType(rules)


class Linter:
    def __init__(self, registry: Optional[Mapping[str, Rule]] = None):
        self.registry = registry if registry is not None else build_rule_registry()

    def verify(self, text: str, config: RuleConfig) -> List[LintMessage]:
        """Run the enabled rules; a parse failure yields a single fatal message."""
        enabled = config.enabled()
        for rule_id, _, _ in enabled:
            if rule_id not in self.registry:
                raise AnalysisError(f"Definition for rule '{rule_id}' was not found")

        tree, source = parse_tsx(text)
        err = first_error(tree.root_node)
        if err is not None:
            return [LintMessage(
                rule_id=None,
                message=f"Parsing error: {describe_error(err)}",
                line=err.start_point[0] + 1,
                column=err.start_point[1] + 1,
                fatal=True,
            )]

        shared: Dict[str, Any] = {}
        messages: List[LintMessage] = []
        for rule_id, severity, options in enabled:
            context = RuleContext(tree, source, rule_id, severity, options, config, shared)
            self.registry[rule_id](context)
            messages.extend(context.messages)
        messages.sort(key=lambda m: (m.line, m.column))
        return messages

    def extract_entity_names(self, text: str, config: RuleConfig) -> List[str]:
        """
        Names quoted in the messages of the enabled rules, de-duplicated.

        Raises:
            AnalysisError: if text does not parse.
        """
        messages = self.verify(text, config)
        fatal = next((m for m in messages if m.fatal), None)
        if fatal is not None:
            raise AnalysisError(fatal.message)

        names = []
        for m in messages:
            match = ENTITY_NAME.match(m.message)
            if match:
                names.append(match.group("entityName"))
        return list(dict.fromkeys(names))

    def verify_and_fix(self, text: str, config: RuleConfig, max_passes: Optional[int] = None) -> FixReport:
        """Apply rule fixes until nothing changes or the pass limit is hit."""
        max_passes = settings.MAX_FIX_PASSES if max_passes is None else max_passes
        output = text
        last_good = text
        fixed = False
        passes = 0
        while True:
            messages = self.verify(output, config)
            if any(m.fatal for m in messages):
                logger.debug(f"Autofix stopped on a parse error: {messages[0].message}")
                output = last_good
                break
            last_good = output
            if passes >= max_passes:
                break
            output_after, applied = apply_fixes(output, messages)
            if not applied:
                break
            output = output_after
            fixed = True
            passes += 1
        return FixReport(output=output, fixed=fixed, messages=[m.to_model() for m in messages])


def apply_fixes(text: str, messages: List[LintMessage]) -> Tuple[str, int]:
    """Apply non-overlapping fixes in source order; overlapping ones wait for the next pass."""
    source = text.encode("utf-8")
    fixes = sorted((m.fix for m in messages if m.fix is not None), key=lambda f: f.range)
    parts = []
    cursor = 0
    last_end = -1
    applied = 0
    for fix in fixes:
        start, end = fix.range
        if start <= last_end:
            continue
        parts.append(source[cursor:start])
        parts.append(fix.text.encode("utf-8"))
        cursor = end
        last_end = end
        applied += 1
    parts.append(source[cursor:])
    return b"".join(parts).decode("utf-8"), applied


# ---- Rule presets used by callers ----

UNUSED_VARS_RULES = RuleConfig(rules=MappingProxyType({
    "no-unused-vars": "error",
}))

UNDEFINED_VARS_RULES = RuleConfig(rules=MappingProxyType({
    "react/jsx-no-undef": "error",
    "no-undef": "error",
}))

FORMATTING_RULES = RuleConfig(rules=MappingProxyType({
    "quotes": ["error", "single", {"avoidEscape": True}],
    "jsx-quotes": ["error", "prefer-double"],
    "semi": ["error", "always"],
    "comma-dangle": ["error", "always-multiline"],
    "object-curly-spacing": ["error", "never"],
    "arrow-parens": ["error", "always"],
    "no-trailing-spaces": "error",
    "no-multiple-empty-lines": ["error", {"max": 1}],
    "eol-last": "error",
}))


@lru_cache(maxsize=1)
def get_default_linter() -> Linter:
    """Process-wide linter over the built-in registry, built on first use."""
    return Linter(build_rule_registry())
