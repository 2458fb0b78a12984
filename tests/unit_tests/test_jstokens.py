"""Unit tests for the JavaScript tokenizer and debugger removal."""

from __future__ import annotations

from asset_optimizer.jstokens import align_source_map, blank_debugger_statements, tokenize


def _texts(code: str) -> list[str]:
    return [token.text for token in tokenize(code)]


def test_tokenize_distinguishes_regex_from_division() -> None:
    """Ensure `/` after an operand divides and after an operator starts a regex."""
    tokens = tokenize("var q = a / b; var r = /x\\/y[/]/g.test(s);")
    kinds = {token.text: token.kind for token in tokens}

    assert kinds["/"] == "punct"
    assert kinds["/x\\/y[/]/g"] == "regex"


def test_tokenize_skips_comments_and_keeps_strings() -> None:
    """Ensure comments vanish and string literals stay whole."""
    assert _texts("a = 'x // y'; // trailing\n/* block */ b") == ["a", "=", "'x // y'", ";", "b"]


def test_tokenize_reads_nested_template_literals() -> None:
    """Ensure template substitutions with braces do not end the literal early."""
    texts = _texts("f(`a${ {b: `c${d}`}.b }e`);")

    assert texts == ["f", "(", "`a${ {b: `c${d}`}.b }e`", ")", ";"]


def test_tokenize_reports_lines_and_columns() -> None:
    """Ensure token positions are zero-based lines and columns."""
    token = tokenize("a\n  b")[1]

    assert (token.text, token.line, token.column) == ("b", 1, 2)


def test_blank_debugger_statement_preserves_offsets() -> None:
    """Ensure debugger statements become same-length empty statements."""
    code = "a();\ndebugger;\nb();"

    blanked, removed = blank_debugger_statements(code, tokenize(code))

    assert removed == 1
    assert blanked == "a();\n        ;\nb();"
    assert len(blanked) == len(code)


def test_blank_debugger_without_semicolon_keeps_empty_statement() -> None:
    """Ensure an ASI-terminated debugger still leaves a statement behind."""
    code = "if (x) debugger\nfoo()"

    blanked, removed = blank_debugger_statements(code, tokenize(code))

    assert removed == 1
    assert blanked == "if (x) ;       \nfoo()"


def test_blank_debugger_ignores_property_names() -> None:
    """Ensure member accesses and object keys named debugger survive."""
    code = "obj.debugger = {debugger: 1};"

    assert blank_debugger_statements(code, tokenize(code)) == (code, 0)


def test_align_source_map_pairs_identical_tokens() -> None:
    """Ensure minified tokens map back to their source positions."""
    source = "var a = 1;\nvar b = 2;\n"

    mapping = align_source_map(
        tokenize(source), "var a=1;var b=2;", source_name="app.js", output_name="app.js"
    )

    assert mapping["version"] == 3
    assert mapping["sources"] == ["app.js"]
    assert mapping["file"] == "app.js"
    assert str(mapping["mappings"]).startswith("AAAA,IAAI,CAAE")


def test_blank_debugger_before_parenthesized_statement() -> None:
    """Ensure a debugger ended by a line break before `(` is still removed."""
    code = "function f(){\n  debugger\n  (g || h)()\n}\n"

    blanked, removed = blank_debugger_statements(code, tokenize(code))

    assert removed == 1
    assert blanked == "function f(){\n  ;       \n  (g || h)()\n}\n"


def test_blank_debugger_keeps_method_named_debugger() -> None:
    """Ensure method definitions named debugger are not statements."""
    code = "var o = {debugger(a) { return a }}; class C { get debugger() { return 1 } }"

    assert blank_debugger_statements(code, tokenize(code)) == (code, 0)


def test_blank_debugger_inside_template_substitution() -> None:
    """Ensure statements inside `${...}` of a template literal are blanked."""
    code = "var s = `${(() => { debugger; return `${x}` })()}`;"

    blanked, removed = blank_debugger_statements(code, tokenize(code))

    assert removed == 1
    assert "debugger" not in blanked
    assert blanked == code.replace("debugger", " " * 8)
