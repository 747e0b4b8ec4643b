import logging
import re

logger = logging.getLogger(__name__)

_MARKUP_START = re.compile(r"^\s*<.*$")
_MARKUP_END = re.compile(r"^\s*[<|/>].*$")
_NON_SPACE = re.compile(r"\S")


def get_number_of_leading_spaces(code: str, end_to_start: bool = False) -> int:
    """
    Indentation of the first markup line of code (the last one if end_to_start).

    Returns 0 when no line looks like markup.
    """
    lines = code.split("\n")
    pattern = _MARKUP_START
    if end_to_start:
        lines.reverse()
        pattern = _MARKUP_END
    for line in lines:
        if pattern.match(line):
            found = _NON_SPACE.search(line)
            return max(0, found.start() if found else 0)
    logger.debug("No markup line found, assuming no indentation")
    return 0


def get_uri_extension(url: str) -> str:
    """Text after the last '.' of url, ignoring any query or fragment."""
    path = re.split(r"[#?]", url, maxsplit=1)[0]
    return path.split(".")[-1].strip()
