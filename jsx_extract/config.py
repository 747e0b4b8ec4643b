from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Tuple

def _bool(env: str, default: bool = False) -> bool:
    v = os.getenv(env)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")

@dataclass
class Settings:
    # Framework conventions
    PLATFORM_MODULE: str = os.getenv("PLATFORM_MODULE", "react-native")
    PLATFORM_STYLE_HELPER: str = os.getenv("PLATFORM_STYLE_HELPER", "StyleSheet")
    DEFAULT_STYLESHEET_NAME: str = os.getenv("DEFAULT_STYLESHEET_NAME", "styles")

    # JSX lowering
    JSX_PRAGMA: str = os.getenv("JSX_PRAGMA", "React.createElement")
    JSX_FRAGMENT_PRAGMA: str = os.getenv("JSX_FRAGMENT_PRAGMA", "React.Fragment")

    # Heuristic fallback
    HEURISTIC_SAFE_GLOBALS: Tuple[str, ...] = tuple(os.getenv("HEURISTIC_SAFE_GLOBALS", "console,alert").split(","))

    # External Node tooling
    PRETTIER_BIN: str = os.getenv("PRETTIER_BIN", "prettier")
    ESLINT_BIN: str = os.getenv("ESLINT_BIN", "eslint")
    ENABLE_PRIMARY_FORMATTER: bool = _bool("ENABLE_PRIMARY_FORMATTER", True)
    FORMATTER_TIMEOUT: int = int(os.getenv("FORMATTER_TIMEOUT", "10"))
    AUTOFIX_TIMEOUT: int = int(os.getenv("AUTOFIX_TIMEOUT", "30"))

    # Autofix passes for the built-in rule engine
    MAX_FIX_PASSES: int = int(os.getenv("MAX_FIX_PASSES", "10"))

settings = Settings()
