"""
Canonical formatting: prettier when available, the built-in fixer otherwise.
"""

import logging
import subprocess

from .config import settings
from .linter import FORMATTING_RULES, AnalysisError, get_default_linter

logger = logging.getLogger(__name__)

PRETTIER_ARGS = [
    "--no-bracket-spacing",
    "--bracket-same-line",
    "--single-quote",
    "--trailing-comma", "all",
    "--stdin-filepath", "file.tsx",
]


class FormatterError(Exception):
    pass


def run_prettier(code: str) -> str:
    """
    Format code with the prettier binary.

    Raises:
        FormatterError: binary missing, non-zero exit or timeout.
    """
    try:
        result = subprocess.run([settings.PRETTIER_BIN, *PRETTIER_ARGS], input=code,
                                capture_output=True, text=True, timeout=settings.FORMATTER_TIMEOUT)
    except OSError as e:
        raise FormatterError(f"{settings.PRETTIER_BIN} could not be started: {e}") from e
    except subprocess.TimeoutExpired as e:
        raise FormatterError(f"{settings.PRETTIER_BIN} timed out after {settings.FORMATTER_TIMEOUT}s") from e
    if result.returncode != 0:
        raise FormatterError(result.stderr.strip() or f"{settings.PRETTIER_BIN} exited with {result.returncode}")
    return result.stdout


def pretify(code: str) -> str:
    """Reformat code to the canonical style; returns code unchanged if nothing applies."""
    if settings.ENABLE_PRIMARY_FORMATTER:
        try:
            return run_prettier(code)
        except FormatterError as e:
            logger.warning(f"Primary formatter failed, using built-in rules: {e}")

    try:
        report = get_default_linter().verify_and_fix(code, FORMATTING_RULES)
    except AnalysisError as e:
        logger.warning(f"Built-in formatter failed: {e}")
        return code
    if not report.fixed:
        logger.debug("Built-in formatter made no changes")
    return report.output
