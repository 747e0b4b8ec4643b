from .analysis import get_undefined_vars, get_unused_vars
from .autofix import eslint_autofix
from .formatter import pretify
from .heuristics import heuristic_undefined_refs
from .imports import get_imports, get_used_imports
from .linter import (
    FORMATTING_RULES,
    UNDEFINED_VARS_RULES,
    UNUSED_VARS_RULES,
    Linter,
    RuleConfig,
)
from .stylesheet import get_stylesheet
from .transform import transform
from .utils.text import get_number_of_leading_spaces, get_uri_extension

__all__ = [
    "FORMATTING_RULES",
    "UNDEFINED_VARS_RULES",
    "UNUSED_VARS_RULES",
    "Linter",
    "RuleConfig",
    "eslint_autofix",
    "get_imports",
    "get_number_of_leading_spaces",
    "get_stylesheet",
    "get_undefined_vars",
    "get_unused_vars",
    "get_uri_extension",
    "get_used_imports",
    "heuristic_undefined_refs",
    "pretify",
    "transform",
]
