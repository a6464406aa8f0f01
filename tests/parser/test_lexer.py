"""
Tests for the trivia-preserving SystemVerilog lexer.
"""

import sys
import os
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, project_root)

from sv_fmt.errors import ParseError
from sv_fmt.hdl_parser.lexer import lex, LexerError
from sv_fmt.hdl_parser.tokens import TokenType


def _significant(source):
    return [(t.type.name, t.value) for t in lex(source) if not t.is_trivia and t.type != TokenType.EOF]


def test_lossless_round_trip():
    """Test: Concatenating token values reproduces the source exactly"""
    source = (
        "`timescale 1ns/1ps\n"
        "module top #(parameter W = 8) (input logic [W-1:0] a);\n"
        "  /* block\n     comment */\n"
        "  always_ff @(posedge clk) begin // trailing\n"
        "    q <= {a, 4'hF};\n"
        "  end\n"
        "endmodule\n"
    )
    tokens = lex(source)
    assert "".join(t.value for t in tokens) == source
    assert tokens[-1].type == TokenType.EOF
    print("✓ test_lossless_round_trip")


def test_keywords_are_case_sensitive():
    """Test: Reserved words are keywords only in lower case"""
    assert _significant("module Module") == [("KEYWORD", "module"), ("IDENT", "Module")]
    print("✓ test_keywords_are_case_sensitive")


def test_directive_stops_before_line_comment():
    """Test: A directive runs to end of line but leaves a // comment out"""
    tokens = lex("`ifdef FOO // why\n")
    assert [(t.type.name, t.value) for t in tokens] == [
        ("DIRECTIVE", "`ifdef FOO"),
        ("WHITESPACE", " "),
        ("LINE_COMMENT", "// why"),
        ("WHITESPACE", "\n"),
        ("EOF", ""),
    ]
    print("✓ test_directive_stops_before_line_comment")


def test_directive_with_continuation():
    """Test: Backslash-newline continues a `define onto the next line"""
    tokens = lex("`define INC(a) \\\n  a + 1\nx")
    assert tokens[0].type == TokenType.DIRECTIVE
    assert tokens[0].value == "`define INC(a) \\\n  a + 1"
    assert tokens[1].value == "\n"
    assert tokens[2].type == TokenType.IDENT
    print("✓ test_directive_with_continuation")


def test_directive_keeps_comment_marker_inside_string():
    """Test: // inside a string does not end a directive"""
    tokens = lex('`define URL "http://x"\n')
    assert tokens[0].value == '`define URL "http://x"'
    print("✓ test_directive_keeps_comment_marker_inside_string")


def test_macro_usage_is_significant():
    """Test: A backtick word that is not a directive is a MACRO token"""
    assert _significant("x = `WIDTH;") == [
        ("IDENT", "x"), ("SYMBOL", "="), ("MACRO", "`WIDTH"), ("SYMBOL", ";"),
    ]
    print("✓ test_macro_usage_is_significant")


def test_number_formats():
    """Test: Based, unsized, real and time literals are single NUMBER tokens"""
    values = ["8'hFF", "'x", "'sb101", "1.5e3", "10ns", "32'd0", "4'b10_10", "'1", "1step"]
    toks = _significant(" ".join(values))
    assert toks == [("NUMBER", v) for v in values]
    print("✓ test_number_formats")


def test_apostrophe_cast_is_symbol():
    """Test: A cast apostrophe is a plain symbol"""
    assert _significant("int'(x)") == [
        ("KEYWORD", "int"), ("SYMBOL", "'"), ("SYMBOL", "("), ("IDENT", "x"), ("SYMBOL", ")"),
    ]
    print("✓ test_apostrophe_cast_is_symbol")


def test_operators_longest_match():
    """Test: Multi-character operators win over their prefixes"""
    assert _significant("a <= b |-> c::d <<<= e") == [
        ("IDENT", "a"), ("OPERATOR", "<="), ("IDENT", "b"), ("OPERATOR", "|->"),
        ("IDENT", "c"), ("OPERATOR", "::"), ("IDENT", "d"), ("OPERATOR", "<<<="),
        ("IDENT", "e"),
    ]
    print("✓ test_operators_longest_match")


def test_system_and_escaped_identifiers():
    """Test: $system names and \\escaped names are identifiers"""
    assert _significant("$display \\bus[0] x") == [
        ("IDENT", "$display"), ("IDENT", "\\bus[0]"), ("IDENT", "x"),
    ]
    print("✓ test_system_and_escaped_identifiers")


def test_byte_offsets_count_utf8():
    """Test: Offsets are UTF-8 byte offsets, columns are characters"""
    tokens = lex('x = "é"; y')
    y = [t for t in tokens if t.value == "y"][0]
    assert y.offset == 10
    assert y.col == 10
    s = [t for t in tokens if t.type == TokenType.STRING][0]
    assert s.length == 4
    print("✓ test_byte_offsets_count_utf8")


def test_line_and_column_tracking():
    """Test: Tokens carry 1-based line and column"""
    tokens = lex("a\n  b")
    b = [t for t in tokens if t.value == "b"][0]
    assert (b.line, b.col) == (2, 3)
    print("✓ test_line_and_column_tracking")


def test_unterminated_string():
    """Test: A newline inside a string is an error"""
    try:
        lex('x = "abc\n";')
        assert False, "Expected LexerError"
    except LexerError as e:
        assert "Unterminated string" in str(e)
        assert (e.line, e.col) == (1, 5)
        print("✓ test_unterminated_string")


def test_unterminated_block_comment():
    """Test: A block comment running into end of input is an error"""
    try:
        lex("a /* never closed")
        assert False, "Expected LexerError"
    except LexerError as e:
        assert "Unterminated block comment" in str(e)
        print("✓ test_unterminated_block_comment")


def test_unexpected_character():
    """Test: Non-ASCII outside strings and comments is rejected, as a ParseError"""
    try:
        lex("wire €;")
        assert False, "Expected LexerError"
    except ParseError as e:
        assert isinstance(e, LexerError)
        assert "Unexpected character" in str(e)
        assert "^" in str(e)
        print("✓ test_unexpected_character")


def run_all():
    tests = [
        test_lossless_round_trip,
        test_keywords_are_case_sensitive,
        test_directive_stops_before_line_comment,
        test_directive_with_continuation,
        test_directive_keeps_comment_marker_inside_string,
        test_macro_usage_is_significant,
        test_number_formats,
        test_apostrophe_cast_is_symbol,
        test_operators_longest_match,
        test_system_and_escaped_identifiers,
        test_byte_offsets_count_utf8,
        test_line_and_column_tracking,
        test_unterminated_string,
        test_unterminated_block_comment,
        test_unexpected_character,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"✗ {test.__name__}: {e}")
            failed += 1
            import traceback
            traceback.print_exc()

    print(f"\n{'='*50}")
    print(f"Lexer Tests: {passed} passed, {failed} failed, {passed+failed} total")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    print("Running lexer tests...\n")
    run_all()
