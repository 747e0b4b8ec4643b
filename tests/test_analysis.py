"""
Tests for the identifier queries and their heuristic fallback.
"""

from unittest.mock import patch

from jsx_extract.analysis import get_undefined_vars, get_unused_vars
from jsx_extract.config import settings
from jsx_extract.heuristics import heuristic_undefined_refs
from jsx_extract.transform import TransformError


FRAGMENT = """<View style={styles.box}>
  <Text>{title}</Text>
  <Button onPress={() => onSubmit(value)} />
</View>"""


class TestUnusedVars:
    """get_unused_vars."""

    def test_unread_declaration_reported(self):
        """Test that a declared but unread name is reported."""
        result = get_unused_vars("const x = 1;\nconst y = x;")
        assert result.kind == "strict"
        assert result.ok is True
        assert result.entities == ["y"]

    def test_typescript_fragment(self):
        """Test that TypeScript syntax is handled before analysis."""
        result = get_unused_vars("const total: number = price * 2;\nconst label = `${total}`;\nrender(label);")
        assert result.entities == []

    def test_malformed_fragment_is_unavailable(self):
        """Test that a failure reports unavailable instead of echoing the input."""
        result = get_unused_vars("<View>")
        assert result.kind == "unavailable"
        assert result.ok is False
        assert result.entities == []
        assert result.error

    def test_redeclared_var_is_not_unused(self):
        """Test that a var declared twice and then read is not reported."""
        assert get_unused_vars("var x = 1;\nvar x = 2;\nuse(x);").entities == []
        assert get_unused_vars("function f() {}\nvar f = 1;\nuse(f);").entities == []

    def test_deeply_nested_fragment_is_unavailable(self):
        """Test that a fragment too deep to re-print does not raise."""
        code = "const s = " + " + ".join(f"a{i}" for i in range(5000)) + ";\nuse(s);"
        result = get_unused_vars(code)
        assert result.kind == "unavailable"
        assert result.error


class TestUndefinedVars:
    """get_undefined_vars."""

    def test_free_names_found(self):
        """Test that components and free values are reported."""
        result = get_undefined_vars(FRAGMENT)
        assert result.kind == "strict"
        for name in ("View", "Text", "Button", "title", "onSubmit", "value"):
            assert name in result.entities

    def test_style_binding_excluded(self):
        """Test that the stylesheet name never appears."""
        assert "styles" not in get_undefined_vars(FRAGMENT).entities

    def test_custom_style_binding_excluded(self):
        """Test that a non-default stylesheet name is filtered too."""
        result = get_undefined_vars("<View style={sheet.row} />", stylesheet_name="sheet")
        assert "sheet" not in result.entities
        assert "View" in result.entities

    def test_console_is_undefined_in_strict_mode(self):
        """Test that host objects outside the builtin set are reported."""
        assert get_undefined_vars("console.log(x);").entities == ["console", "x"]

    def test_malformed_fragment_uses_heuristics(self):
        """Test that unparseable fragments fall back and never raise."""
        result = get_undefined_vars("<View style={styles.box}>{title}")
        assert result.kind == "heuristic"
        assert result.entities == ["title"]
        assert result.error

    def test_transform_failure_uses_heuristics(self):
        """Test that any transform error routes to the heuristic scan."""
        with patch("jsx_extract.analysis.transform", side_effect=TransformError("boom")):
            result = get_undefined_vars("<Item value={count} />")
        assert result.kind == "heuristic"
        assert result.entities == ["count"]


    def test_deeply_nested_fragment_falls_back(self):
        """Test that a fragment too deep to re-print falls back instead of raising."""
        code = "const s = " + " + ".join(f"a{i}" for i in range(5000)) + ";"
        result = get_undefined_vars(code)
        assert result.kind == "heuristic"
        assert result.error

class TestHeuristics:
    """heuristic_undefined_refs."""

    def test_brace_and_arrow_scans(self):
        """Test both scans, brace results first."""
        refs = heuristic_undefined_refs("<Button onPress={() => submit} label={label}", "styles")
        assert refs == ["label", "submit"]

    def test_style_binding_skipped(self):
        """Test that the brace scan skips the stylesheet name."""
        assert heuristic_undefined_refs("<View style={styles.box}>{title}", "styles") == ["title"]

    def test_safe_globals_skipped(self):
        """Test that console and alert are not guessed after an arrow."""
        assert heuristic_undefined_refs("onPress={() => console}", "styles") == []
        assert heuristic_undefined_refs("onPress={() => alert}", "styles") == []

    def test_scans_deduplicated_separately(self):
        """Test per-scan de-duplication without cross-scan merging."""
        refs = heuristic_undefined_refs("{item} {item} x => item", "styles")
        assert refs == ["item", "item"]

    def test_followed_by_call_or_comma_skipped(self):
        """Test the lookahead exclusions of the brace scan."""
        assert heuristic_undefined_refs("{fn(1)} {a, b} {ok}", "styles") == ["ok"]

    def test_configured_safe_globals(self):
        """Test that safe globals come from settings."""
        with patch.object(settings, "HEURISTIC_SAFE_GLOBALS", ("console", "alert", "navigate")):
            assert heuristic_undefined_refs("() => navigate", "styles") == []
