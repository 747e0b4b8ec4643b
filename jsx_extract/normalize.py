"""Whitespace normalization for text captured by regexes."""

import re

_WHITESPACE = re.compile(r"\s+")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_INNER_BRACE_SPACE = re.compile(r"([{\[])\s+|\s+([}\]])")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) into one space."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_result(text: str) -> str:
    """
    Canonical single-line form of a captured object/array body.

    `{\n    flex: 1,\n  }` becomes `{ flex: 1 }`.
    """
    collapsed = normalize_whitespace(text)
    collapsed = _TRAILING_COMMA.sub(r"\1", collapsed)
    collapsed = _INNER_BRACE_SPACE.sub(lambda m: m.group(1) or m.group(2), collapsed)
    if collapsed.startswith("{") and collapsed.endswith("}") and len(collapsed) > 2:
        return "{ " + collapsed[1:-1] + " }"
    return collapsed
