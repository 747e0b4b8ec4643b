"""
Tests for babel config discovery and the eslint autofix coroutine.
"""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from jsx_extract.autofix import (
    BabelConfigNotFound,
    eslint_autofix,
    find_babel_config,
    find_flat_eslint_config,
)
from jsx_extract.config import settings


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, delay=0):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode
        self.delay = delay
        self.killed = False
        self.waited = False

    async def communicate(self, data=None):
        self.received = data
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        self.waited = True
        return self.returncode


@pytest.fixture
def project(tmp_path):
    (tmp_path / "babel.config.js").write_text("module.exports = {};")
    src = tmp_path / "src" / "screens"
    src.mkdir(parents=True)
    return tmp_path


class TestFindBabelConfig:
    """Upward babel config discovery."""

    def test_found_in_ancestor(self, project):
        """Test that a config two levels up is found."""
        found = find_babel_config(project / "src" / "screens" / "Home.js")
        assert found == (project / "babel.config.js").resolve()

    def test_nearest_wins(self, project):
        """Test that the closest directory takes precedence."""
        (project / "src" / ".babelrc").write_text("{}")
        found = find_babel_config(project / "src" / "screens" / "Home.js")
        assert found.name == ".babelrc"

    def test_package_json_with_babel_key(self, tmp_path):
        """Test that package.json counts only with a babel key."""
        (tmp_path / "package.json").write_text(json.dumps({"name": "app", "babel": {"presets": []}}))
        assert find_babel_config(tmp_path / "App.js").name == "package.json"

    def test_package_json_without_babel_key_ignored(self, tmp_path):
        """Test that a plain package.json is skipped."""
        (tmp_path / "package.json").write_text(json.dumps({"name": "app"}))
        with pytest.raises(BabelConfigNotFound):
            find_babel_config(tmp_path / "App.js")


class TestEslintAutofix:
    """eslint_autofix never raises and falls back to the input."""

    def test_fixed_output_returned(self, project):
        """Test that eslint's fixed output is used."""
        proc = FakeProcess(stdout=json.dumps([{"output": "fixed();\n"}]).encode(), returncode=1)
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)) as spawn:
            result = asyncio.run(eslint_autofix("fixed()", project / "src" / "App.js"))
        assert result == "fixed();\n"
        assert proc.received == b"fixed()"
        cmd = spawn.call_args[0]
        assert "--fix-dry-run" in cmd
        assert "--stdin-filename" in cmd

    def test_no_output_key_means_unchanged(self, project):
        """Test that results without output return the input."""
        proc = FakeProcess(stdout=json.dumps([{"messages": []}]).encode())
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)):
            assert asyncio.run(eslint_autofix("ok();", project / "App.js")) == "ok();"

    def test_missing_babel_config(self):
        """Test that discovery failure resolves to the input."""
        with patch("jsx_extract.autofix.find_babel_config", side_effect=BabelConfigNotFound("none")):
            assert asyncio.run(eslint_autofix("a;", "/nowhere/App.js")) == "a;"

    def test_missing_binary(self, project):
        """Test that a missing eslint resolves to the input."""
        with patch.object(settings, "ESLINT_BIN", "eslint-binary-that-does-not-exist"):
            assert asyncio.run(eslint_autofix("a;", project / "App.js")) == "a;"

    def test_eslint_crash(self, project):
        """Test that exit code 2 resolves to the input."""
        proc = FakeProcess(stderr=b"Oops! Something went wrong!", returncode=2)
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)):
            assert asyncio.run(eslint_autofix("a;", project / "App.js")) == "a;"

    def test_timeout(self, project):
        """Test that a slow eslint is abandoned, killed and reaped."""
        proc = FakeProcess(returncode=None, delay=5)
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)), \
                patch.object(settings, "AUTOFIX_TIMEOUT", 0.05):
            assert asyncio.run(eslint_autofix("a;", project / "App.js")) == "a;"
        assert proc.killed is True
        assert proc.waited is True

    def test_unwritable_override(self, project):
        """Test that failing to write the override config resolves to the input."""
        spawn = AsyncMock()
        with patch("jsx_extract.autofix.tempfile.NamedTemporaryFile", side_effect=OSError("read-only")), \
                patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=spawn):
            assert asyncio.run(eslint_autofix("a;", project / "App.js")) == "a;"
        spawn.assert_not_called()

    def test_unexpected_result_shapes(self, project):
        """Test that results that are not file objects resolve to the input."""
        for stdout in (b"[1]", b'{"output": "x"}', b'[{"output": 3}]'):
            proc = FakeProcess(stdout=stdout)
            with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)):
                assert asyncio.run(eslint_autofix("a;", project / "App.js")) == "a;"


class TestEslintConfigModes:
    """Legacy eslintrc projects get the babel override; flat config projects run as is."""

    def test_eslintrc_mode(self, project):
        """Test that the override is passed and flat config is switched off."""
        proc = FakeProcess(stdout=b"[]")
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)) as spawn:
            asyncio.run(eslint_autofix("a;", project / "src" / "App.js"))
        cmd = list(spawn.call_args[0])
        override = cmd[cmd.index("--config") + 1]
        assert override.endswith(".json")
        assert spawn.call_args.kwargs["env"]["ESLINT_USE_FLAT_CONFIG"] == "false"

    def test_override_removed_afterwards(self, project):
        """Test that the temporary override file does not outlive the run."""
        proc = FakeProcess(stdout=b"[]")
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)) as spawn:
            asyncio.run(eslint_autofix("a;", project / "App.js"))
        cmd = list(spawn.call_args[0])
        assert not Path(cmd[cmd.index("--config") + 1]).exists()

    def test_flat_config_mode(self, project):
        """Test that a flat config project runs without --config or env changes."""
        (project / "eslint.config.mjs").write_text("export default [];")
        proc = FakeProcess(stdout=json.dumps([{"output": "a;\n"}]).encode())
        with patch("jsx_extract.autofix.asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc)) as spawn:
            assert asyncio.run(eslint_autofix("a;", project / "src" / "App.js")) == "a;\n"
        assert "--config" not in spawn.call_args[0]
        assert spawn.call_args.kwargs["env"] is None

    def test_find_flat_config(self, project):
        """Test upward discovery of eslint.config files."""
        assert find_flat_eslint_config(project / "src" / "screens" / "Home.js") is None
        (project / "eslint.config.js").write_text("module.exports = [];")
        found = find_flat_eslint_config(project / "src" / "screens" / "Home.js")
        assert found == (project / "eslint.config.js").resolve()
