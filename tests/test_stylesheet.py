"""
Tests for style extraction.
"""

import json

from jsx_extract.stylesheet import find_stylesheet, get_stylesheet, parse_style_object


SOURCE = """import { StyleSheet } from 'react-native';

const styles = StyleSheet.create({
  box: {
    flex: 1,
    backgroundColor: 'red', // accent
  },
  text: {
    fontSize: 12,
  },
});
"""


class TestStylesheetNarrowing:
    """get_stylesheet keeps only the referenced entries."""

    def test_used_entry_kept(self):
        """Test that box is kept and text dropped."""
        result = get_stylesheet(SOURCE, "<View style={styles.box} />")
        assert result.stylesheetName == "styles"
        assert result.source == "parsed"
        assert result.styles == {"box": {"flex": 1, "backgroundColor": "red"}}
        assert "text" not in result.stylesheetSnippet

    def test_snippet_shape(self):
        """Test the synthetic declaration wrapping the JSON object."""
        result = get_stylesheet(SOURCE, "<View style={styles.box} />")
        body = json.dumps({"box": {"flex": 1, "backgroundColor": "red"}}, indent=2)
        assert result.stylesheetSnippet == f"const styles = StyleSheet.create({body});"

    def test_first_seen_order(self):
        """Test that entries follow their order in the selection."""
        result = get_stylesheet(SOURCE, "<Text style={styles.text}><View style={styles.box} /></Text>")
        assert list(result.styles) == ["text", "box"]

    def test_custom_binding_name(self):
        """Test a stylesheet bound to a different name on one line."""
        code = "const s = StyleSheet.create({ row: { flexDirection: 'row', margin: -4 } });"
        result = get_stylesheet(code, "<View style={s.row} />")
        assert result.stylesheetName == "s"
        assert result.styles == {"row": {"flexDirection": "row", "margin": -4}}

    def test_missing_stylesheet(self):
        """Test the default when no stylesheet is declared."""
        result = get_stylesheet("const a = 1;", "<View style={styles.box} />")
        assert result.stylesheetName == "styles"
        assert result.styles == {}
        assert result.source == "default"
        assert result.stylesheetSnippet == "const styles = StyleSheet.create({});"

    def test_regex_fallback_for_non_literals(self):
        """Test that computed values fall back to normalized text."""
        code = """const styles = StyleSheet.create({
  box: {
    flex: 1,
    color: theme.primary,
  },
});"""
        result = get_stylesheet(code, "styles.box")
        assert result.source == "regex"
        assert result.styles == {"box": "{ flex: 1, color: theme.primary }"}

    def test_unknown_key_ignored(self):
        """Test that references to undeclared entries are skipped."""
        result = get_stylesheet(SOURCE, "styles.missing")
        assert result.styles == {}


class TestStyleObjectParsing:
    """Literal parsing helpers."""

    def test_find_stylesheet_skips_braces_in_strings(self):
        """Test that brace matching ignores braces inside strings."""
        name, text = find_stylesheet("const st = StyleSheet.create({a: {content: '}'}});\nfoo();")
        assert name == "st"
        assert text == "{a: {content: '}'}}"

    def test_parse_quoted_keys_and_literals(self):
        """Test JSON-incompatible but literal object syntax."""
        data = parse_style_object("{'a-b': {w: 1.5, on: true, off: null, list: [1, 2,],},}")
        assert data == {"a-b": {"w": 1.5, "on": True, "off": None, "list": [1, 2]}}
