"""
Identifier queries over a code fragment.

Both queries transform the fragment to plain JavaScript first and then run
the rule engine over the result. Undefined-reference detection falls back
to the regex heuristics when that fails; unused-variable detection reports
itself unavailable instead.
"""

import logging
from typing import List, Optional

from .config import settings
from .heuristics import heuristic_undefined_refs
from .linter import UNDEFINED_VARS_RULES, UNUSED_VARS_RULES, AnalysisError, get_default_linter
from .models import AnalysisResult
from .transform import TransformError, transform

logger = logging.getLogger(__name__)


def _without(names: List[str], excluded: str) -> List[str]:
    return [n for n in names if n != excluded]


def get_unused_vars(code: str) -> AnalysisResult:
    """Names the fragment declares but never reads."""
    try:
        transformed = transform(code)
        entities = get_default_linter().extract_entity_names(transformed, UNUSED_VARS_RULES)
    except (TransformError, AnalysisError) as e:
        logger.debug(f"Unused-variable analysis unavailable: {e}")
        return AnalysisResult.unavailable(str(e))
    return AnalysisResult.strict(entities)


def get_undefined_vars(code: str, stylesheet_name: Optional[str] = None) -> AnalysisResult:
    """
    Names the fragment reads but never declares, minus the style binding.

    Never raises: a fragment that cannot be analyzed yields a heuristic
    result built from regex scans over the raw text.
    """
    stylesheet_name = stylesheet_name or settings.DEFAULT_STYLESHEET_NAME
    try:
        transformed = transform(code)
        entities = get_default_linter().extract_entity_names(transformed, UNDEFINED_VARS_RULES)
    except (TransformError, AnalysisError) as e:
        logger.info(f"Falling back to heuristic undefined-reference scan: {e}")
        guessed = heuristic_undefined_refs(code, stylesheet_name)
        return AnalysisResult.heuristic(_without(guessed, stylesheet_name), error=str(e))
    return AnalysisResult.strict(_without(entities, stylesheet_name))
