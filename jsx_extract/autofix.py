"""
Project-aware autofix through the eslint binary.

The project's own eslint configuration applies. Under a legacy eslintrc
setup an override points the babel parser at the babel config discovered
above the file; a flat config (`eslint.config.*`) cannot be layered that
way, so it runs untouched.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from .config import settings

logger = logging.getLogger(__name__)

BABEL_CONFIG_FILES = (
    "babel.config.js",
    "babel.config.json",
    "babel.config.cjs",
    "babel.config.mjs",
    ".babelrc",
    ".babelrc.js",
    ".babelrc.json",
)

ESLINT_FLAT_CONFIG_FILES = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
    "eslint.config.ts",
    "eslint.config.mts",
    "eslint.config.cts",
)


class BabelConfigNotFound(Exception):
    pass


class AutofixError(Exception):
    pass


def _package_json_has_babel(path: Path) -> bool:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"Ignoring unreadable {path}: {e}")
        return False
    return isinstance(data, dict) and "babel" in data


def _start_dir(file_path: Union[str, Path]) -> Path:
    path = Path(file_path).resolve()
    return path if path.is_dir() else path.parent


def find_babel_config(file_path: Union[str, Path]) -> Path:
    """
    Nearest babel config at or above file_path's directory.

    Raises:
        BabelConfigNotFound: if no directory up to the filesystem root has one.
    """
    start = _start_dir(file_path)
    for directory in (start, *start.parents):
        for name in BABEL_CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        package_json = directory / "package.json"
        if package_json.is_file() and _package_json_has_babel(package_json):
            return package_json
    raise BabelConfigNotFound(f"No babel config found above {file_path}")


def find_flat_eslint_config(file_path: Union[str, Path]) -> Optional[Path]:
    """Nearest `eslint.config.*` at or above file_path's directory, if any."""
    start = _start_dir(file_path)
    for directory in (start, *start.parents):
        for name in ESLINT_FLAT_CONFIG_FILES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


async def _run_eslint(code: str, file_path: str, override: Optional[Path],
                      env: Optional[Dict[str, str]] = None) -> str:
    cmd = [settings.ESLINT_BIN, "--fix-dry-run", "--format", "json"]
    if override is not None:
        cmd += ["--config", str(override)]
    cmd += ["--stdin", "--stdin-filename", str(file_path)]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except OSError as e:
        raise AutofixError(f"{settings.ESLINT_BIN} could not be started: {e}") from e

    try:
        stdout, stderr = await proc.communicate(code.encode("utf-8"))
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
        await asyncio.shield(proc.wait())
        raise

    # eslint exits 1 when problems remain; 2 means it could not run
    if proc.returncode not in (0, 1):
        raise AutofixError(stderr.decode("utf-8", errors="replace").strip()
                           or f"{settings.ESLINT_BIN} exited with {proc.returncode}")
    try:
        results = json.loads(stdout.decode("utf-8"))
    except ValueError as e:
        raise AutofixError(f"Unreadable eslint output: {e}") from e
    if not isinstance(results, list):
        raise AutofixError(f"Unexpected eslint output: {type(results).__name__}")
    if not results or not isinstance(results[0], dict):
        return code
    output = results[0].get("output", code)
    return output if isinstance(output, str) else code


def _write_override(babel_config: Path) -> Path:
    override = {"parserOptions": {"babelOptions": {"configFile": str(babel_config)}}}
    with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
        json.dump(override, f)
        return Path(f.name)


async def eslint_autofix(code: str, file_path: Union[str, Path]) -> str:
    """
    Fix code with the project's eslint setup as if it lived at file_path.

    Never raises (cancellation aside): every failure resolves to code.
    """
    try:
        babel_config = find_babel_config(file_path)
    except BabelConfigNotFound as e:
        logger.warning(f"Autofix skipped: {e}")
        return code

    override_path: Optional[Path] = None
    env: Optional[Dict[str, str]] = None
    try:
        flat_config = find_flat_eslint_config(file_path)
        if flat_config is not None:
            logger.debug(f"Using flat eslint config {flat_config}; babel override not applied")
        else:
            override_path = _write_override(babel_config)
            env = {**os.environ, "ESLINT_USE_FLAT_CONFIG": "false"}
        return await asyncio.wait_for(_run_eslint(code, str(file_path), override_path, env),
                                      timeout=settings.AUTOFIX_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f"Autofix timed out after {settings.AUTOFIX_TIMEOUT}s for {file_path}")
        return code
    except OSError as e:
        logger.warning(f"Autofix could not write its eslint override: {e}")
        return code
    except AutofixError as e:
        logger.warning(f"Autofix failed for {file_path}: {e}")
        return code
    finally:
        if override_path is not None:
            override_path.unlink(missing_ok=True)
