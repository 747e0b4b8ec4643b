"""
Tests for binding and reference resolution over the TSX tree.
"""

from jsx_extract.parsers.scope import analyze_scopes
from jsx_extract.parsers.tree_sitter_utils import first_error, parse_tsx


def analyze(code):
    tree, _ = parse_tsx(code)
    assert first_error(tree.root_node) is None
    return analyze_scopes(tree)


class TestBindings:
    """Declarations land in the right scope."""

    def test_var_is_hoisted(self):
        """Test that a var used before its declaration resolves."""
        analysis = analyze("x = 1;\nvar x;")
        assert analysis.through == []

    def test_block_scoped_let(self):
        """Test that let does not leak out of its block."""
        analysis = analyze("{ let inner = 1; }\ninner;")
        assert [r.name for r in analysis.through] == ["inner"]

    def test_var_leaks_out_of_block(self):
        """Test that var binds to the enclosing function scope."""
        analysis = analyze("{ var outer = 1; }\nouter;")
        assert analysis.through == []

    def test_implicit_arguments(self):
        """Test that non-arrow functions bind `arguments`."""
        assert analyze("function f() { return arguments; }").through == []
        assert [r.name for r in analyze("const g = () => arguments;").through] == ["arguments"]

    def test_destructuring_patterns(self):
        """Test that nested patterns bind their leaf names only."""
        analysis = analyze("const {a, b: {c}, ...rest} = obj;")
        assert [v.name for v in analysis.variables] == ["a", "c", "rest"]
        assert [r.name for r in analysis.through] == ["obj"]

    def test_type_only_names_ignored(self):
        """Test that type annotations neither bind nor reference."""
        analysis = analyze("interface P { a: Foo }\nconst v: Bar = 1;")
        assert [v.name for v in analysis.variables] == ["v"]
        assert analysis.through == []


class TestReferences:
    """Reference flags."""

    def test_jsx_tag_references(self):
        """Test that only component tags are references."""
        analysis = analyze("<div><Item /><my-tag /></div>;")
        refs = [r for r in analysis.through if r.in_jsx]
        assert [r.name for r in refs] == ["Item"]
        assert analysis.has_jsx is True

    def test_assignment_is_write_only(self):
        """Test that assigning does not count as reading."""
        analysis = analyze("let n;\nn = 2;")
        var = analysis.variables[0]
        assert var.read_references == []
        assert var.is_written is True

    def test_shorthand_property_is_read(self):
        """Test that `{value}` reads value."""
        analysis = analyze("const value = 1;\nconst o = {value};")
        assert len(analysis.variables[0].read_references) == 1

    def test_var_redeclaration_is_one_binding(self):
        """Test that declaring a var twice yields a single variable."""
        analysis = analyze("var x = 1;\nvar x = 2;\nuse(x);")
        assert [v.name for v in analysis.variables] == ["x"]
        x = analysis.variables[0]
        assert len(x.redeclarations) == 1
        assert len(x.read_references) == 1

    def test_function_and_var_share_a_binding(self):
        """Test that a var named like a function declaration reuses it."""
        analysis = analyze("function f() {}\nvar f = 1;\nf;")
        assert [v.name for v in analysis.variables] == ["f"]
        assert analysis.variables[0].kind == "function"
        assert analysis.through == []


class TestDeepTrees:
    """Walks do not depend on the interpreter's recursion limit."""

    def test_long_binary_chain(self):
        """Test that a chain thousands of operands deep is fully resolved."""
        code = "const s = " + " + ".join(f"a{i}" for i in range(3000)) + ";"
        analysis = analyze(code)
        assert [v.name for v in analysis.variables] == ["s"]
        assert len(analysis.through) == 3000
        assert analysis.through[0].name == "a0"
        assert analysis.through[-1].name == "a2999"
