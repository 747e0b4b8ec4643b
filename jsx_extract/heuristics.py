"""
Regex scans used when a fragment cannot be parsed.

They only guess: a word right after `{` in a JSX expression, or the body of
a one-line arrow function, is probably a free identifier.
"""

import logging
import re
from typing import Iterable, List, Optional

from .config import settings

logger = logging.getLogger(__name__)


def _dedupe(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def heuristic_undefined_refs(fragment: str, stylesheet_name: Optional[str] = None) -> List[str]:
    """
    Guess undefined identifiers in a fragment that does not parse.

    Never raises; a regex failure returns [].
    """
    stylesheet_name = stylesheet_name or settings.DEFAULT_STYLESHEET_NAME
    safe = "".join(f"(?!{re.escape(g)})" for g in settings.HEURISTIC_SAFE_GLOBALS if g)
    try:
        after_brace = re.compile(rf"(?<=\{{)(?!{re.escape(stylesheet_name)})\b[a-zA-Z]+\b(?![\s,(])")
        after_arrow = re.compile(rf"=>\s*\b{safe}([a-zA-Z]+)\b(?![\s,])")
        first = _dedupe(m.group(0) for m in after_brace.finditer(fragment))
        second = _dedupe(m.group(1) for m in after_arrow.finditer(fragment))
    except re.error as e:
        logger.warning(f"Heuristic scan failed: {e}")
        return []
    logger.debug(f"Heuristic scan found {len(first)} + {len(second)} candidates")
    return first + second
