"""
End-to-end tests for format_text.
"""

import sys
import os
from dataclasses import replace
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from sv_fmt.config import FormatConfig
from sv_fmt.errors import ParseError
from sv_fmt.formatter.engine import format_text


def cfg(**overrides):
    return replace(FormatConfig(), **overrides)


def test_basic_structure():
    """Test: Indentation, operator spacing and a single-statement else"""
    source = """module top;
initial begin
if(a)b<=c;
else
c<=d;
end
endmodule
"""
    expected = """module top;
  initial begin
    if (a) b <= c;
    else
    c <= d;
  end
endmodule
"""
    assert format_text(source) == expected
    print("✓ test_basic_structure")


def test_preprocessor_flush_left():
    """Test: Directives start in column one by default"""
    source = """module x;
  `ifdef FOO
    assign a = b,c,d;
  `else
foo ( bar );
  `endif
endmodule
"""
    out = format_text(source)
    directives = [line for line in out.split("\n") if line.lstrip().startswith("`")]
    assert len(directives) == 3
    for line in directives:
        assert line.startswith("`"), line
    print("✓ test_preprocessor_flush_left")


def test_preprocessor_indented_when_not_aligned():
    """Test: With align_preprocessor off, directives follow the indent"""
    source = "module x;\n`ifdef FOO\nassign a = b;\n`endif\nendmodule\n"
    out = format_text(source, cfg(align_preprocessor=False))
    assert out == "module x;\n  `ifdef FOO\n  assign a = b;\n  `endif\nendmodule\n"
    print("✓ test_preprocessor_indented_when_not_aligned")


def test_call_and_comma_spacing():
    """Test: No space before a call paren, one space after commas"""
    source = "module x;\ninitial begin\nfoo (a,b ,c);\nend\nendmodule\n"
    assert "foo(a, b, c);" in format_text(source)
    kept = format_text(source, cfg(remove_call_space=False))
    assert "foo (a, b, c);" in kept
    print("✓ test_call_and_comma_spacing")


def test_inline_end_else():
    """Test: end / else on separate lines are joined"""
    source = """module x;
initial begin
if (a) begin
  do_something();
end
else begin
  other();
end
end
endmodule
"""
    assert "end else begin" in format_text(source)
    assert "end else" not in format_text(source, cfg(inline_end_else=False))
    print("✓ test_inline_end_else")


def test_wraps_multiline_if_body():
    """Test: An if body spanning two statements gets begin/end"""
    source = """module x;
initial begin
if (cond)
  a <= 1;
  b <= 2;
end
endmodule
"""
    expected = """module x;
  initial begin
    if (cond)
    begin
      a <= 1;
      b <= 2;
    end
  end
endmodule
"""
    assert format_text(source) == expected
    print("✓ test_wraps_multiline_if_body")


def test_wraps_multiline_else_body():
    """Test: The same applies to a bare else"""
    source = "module m;\ninitial begin\nif (a) x = 1;\nelse\nx = 2;\ny = 3;\nend\nendmodule\n"
    expected = """module m;
  initial begin
    if (a) x = 1;
    else
    begin
      x = 2;
      y = 3;
    end
  end
endmodule
"""
    assert format_text(source) == expected
    print("✓ test_wraps_multiline_else_body")


def test_synthetic_end_flushed_at_eof():
    """Test: A synthetic block still open at end of input is closed"""
    source = "initial\nif (a)\nx = 1;\ny = 2;\n"
    assert format_text(source) == "initial\nif (a)\nbegin\n  x = 1;\n  y = 2;\nend\n"
    print("✓ test_synthetic_end_flushed_at_eof")


def test_no_wrap_when_disabled_or_case_body():
    """Test: No synthetic begin when turned off or for a case body"""
    source = "module x;\ninitial begin\nif (cond)\n  a <= 1;\n  b <= 2;\nend\nendmodule\n"
    out = format_text(source, cfg(wrap_multiline_blocks=False))
    assert "if (cond)\n    begin" not in out
    assert "begin" not in out.replace("initial begin", "")

    case_source = """module x;
always_comb begin
if (cond)
  case(sel)
    0: foo <= 1;
    default: foo <= 0;
  endcase
end
endmodule
"""
    assert "if (cond)\n    begin" not in format_text(case_source)
    print("✓ test_no_wrap_when_disabled_or_case_body")


def test_comment_spacing():
    """Test: Leading, trailing and block comment placement"""
    source = """module x;
initial begin
//leading
assign a = 1;   //  trailing
/* block comment */
assign b = 2;
end
endmodule
"""
    out = format_text(source)
    assert "  //leading" in out
    assert "assign a = 1; //  trailing" in out
    assert "\n\n    /* block comment */\n\n" in out
    print("✓ test_comment_spacing")


def test_block_comment_at_start():
    """Test: A header block comment gets no blank line before it"""
    out = format_text("/* hdr */\nmodule m;\nendmodule\n")
    assert out == "/* hdr */\n\nmodule m;\nendmodule\n"
    print("✓ test_block_comment_at_start")


def test_case_colon_alignment():
    """Test: Case colons are aligned, or left with one space when disabled"""
    source = """module x;
always_comb begin
case(sel)
  2'b0: foo = 0;
  4'b1010: foo = 1;
  default: foo = 2;
endcase
end
endmodule
"""
    lines = format_text(source).split("\n")
    assert "      2'b0    : foo = 0;" in lines
    assert "      4'b1010 : foo = 1;" in lines
    assert "      default : foo = 2;" in lines

    plain = format_text(source, cfg(align_case_colon=False))
    assert "2'b0 : foo = 0;" in plain
    print("✓ test_case_colon_alignment")


def test_blank_lines_around_sections():
    """Test: package/class/interface get a blank line before them"""
    source = """package demo;
class foo;
endclass
class bar;
endclass
endpackage
interface baz();
endinterface
"""
    expected = """package demo;

  class foo;
  endclass

  class bar;
  endclass
endpackage

interface baz();
  endinterface
"""
    assert format_text(source) == expected
    print("✓ test_blank_lines_around_sections")


def test_auto_wrap_long_lines():
    """Test: Long lines are wrapped only when enabled"""
    source = "module x;\nassign data = {foo, bar, baz, quux};\nendmodule\n"
    out = format_text(source, cfg(auto_wrap_long_lines=True, max_line_length=20))
    assert "  assign data = {foo,\n    bar, baz, quux};\n" in out
    unwrapped = format_text(source, cfg(max_line_length=20))
    assert "  assign data = {foo, bar, baz, quux};\n" in unwrapped
    print("✓ test_auto_wrap_long_lines")


def test_tabs_and_indent_width():
    """Test: Indentation unit follows the config"""
    source = "module m;\nwire a;\nendmodule\n"
    assert format_text(source, cfg(use_tabs=True)) == "module m;\n\twire a;\nendmodule\n"
    assert format_text(source, cfg(indent_width=4)) == "module m;\n    wire a;\nendmodule\n"
    print("✓ test_tabs_and_indent_width")


def test_empty_input():
    """Test: Empty or blank input formats to a single newline"""
    assert format_text("") == "\n"
    assert format_text("  \n\n\t\n") == "\n"
    print("✓ test_empty_input")


def test_idempotent_and_deterministic():
    """Test: Formatting formatted output changes nothing"""
    sources = [
        "module top;\ninitial begin\nif(a)b<=c;\nelse\nc<=d;\nend\nendmodule\n",
        "module x;\ninitial begin\nif (cond)\n  a <= 1;\n  b <= 2;\nend\nendmodule\n",
        "package demo;\nclass foo;\nendclass\nendpackage\n",
    ]
    for source in sources:
        once = format_text(source)
        assert format_text(source) == once
        assert format_text(once) == once, once
    print("✓ test_idempotent_and_deterministic")


def test_nested_synthetic_blocks():
    """Test: Each nested multi-statement body gets its own begin/end"""
    source = "initial begin\nif (a)\nif (b)\nx = 1;\ny = 2;\nend\ninitial z = 0;\n"
    expected = """initial begin
  if (a)
  begin
    if (b)
    begin
      x = 1;
      y = 2;
    end
  end
end
initial z = 0;
"""
    out = format_text(source)
    assert out == expected, out
    assert format_text(out) == out
    print("✓ test_nested_synthetic_blocks")


def test_case_inside_synthetic_block():
    """Test: endcase does not close a synthetic block opened around the case"""
    source = "module m;\nalways_comb begin\nif (a)\nx = 1;\ncase (s)\n0: y = 1;\nendcase\nend\nendmodule\n"
    expected = """module m;
  always_comb begin
    if (a)
    begin
      x = 1;
      case (s)
        0 : y = 1;
      endcase
    end
  end
endmodule
"""
    out = format_text(source)
    assert out == expected, out
    assert format_text(out) == out
    print("✓ test_case_inside_synthetic_block")


def test_inner_else_keeps_synthetic_block_open():
    """Test: An else belonging to an if inside the block does not close it"""
    source = "initial begin\nif (a)\nx = 1;\nif (b) y = 2; else y = 3;\nend\n"
    expected = """initial begin
  if (a)
  begin
    x = 1;
    if (b) y = 2; else y = 3;
  end
end
"""
    assert format_text(source) == expected
    print("✓ test_inner_else_keeps_synthetic_block_open")


def test_single_statement_body_not_wrapped():
    """Test: A body followed only by the closing end is left alone"""
    source = "module x;\ninitial begin\nif (cond)\n  a <= 1;\nend\nendmodule\n"
    expected = "module x;\n  initial begin\n    if (cond)\n    a <= 1;\n  end\nendmodule\n"
    assert format_text(source) == expected
    print("✓ test_single_statement_body_not_wrapped")


def test_else_if_body_not_wrapped():
    """Test: An else followed by an if is never given a synthetic block"""
    source = "initial begin\nif (a) x = 1;\nelse\nif (b) y = 2;\nz = 3;\nend\n"
    expected = "initial begin\n  if (a) x = 1;\n  else\n  if (b) y = 2;\n  z = 3;\nend\n"
    assert format_text(source) == expected
    print("✓ test_else_if_body_not_wrapped")


def test_wrap_scan_is_bounded():
    """Test: A statement too long to scan does not trigger a synthetic block"""
    long_rhs = " + ".join(["b"] * 70)
    source = f"initial\nif (a)\nx = 1;\ny = {long_rhs};\n"
    assert format_text(source) == source

    short_rhs = " + ".join(["b"] * 40)
    source = f"initial\nif (a)\nx = 1;\ny = {short_rhs};\n"
    assert format_text(source) == f"initial\nif (a)\nbegin\n  x = 1;\n  y = {short_rhs};\nend\n"
    print("✓ test_wrap_scan_is_bounded")


def test_wait_and_disable_fork_do_not_indent():
    """Test: wait fork / disable fork are plain statements"""
    for stmt in ["wait fork;", "disable fork;"]:
        source = f"task t;\n  fork\n    a();\n  join_none\n  {stmt}\nendtask\n"
        assert format_text(source) == source, format_text(source)
        flat = f"task t;\nfork\na();\njoin_none\n{stmt}\nendtask\n"
        assert format_text(flat) == source

    source = "module m;\n  initial begin\n    wait fork;\n    x = 1;\n  end\nendmodule\n"
    assert format_text(source) == source
    print("✓ test_wait_and_disable_fork_do_not_indent")


def test_case_alignment_uses_formatted_width():
    """Test: Label width is measured after spacing, so a second run is stable"""
    source = "module m;\nalways_comb begin\ncase (s)\na+b: x = 1;\nabcd: x = 2;\nendcase\nend\nendmodule\n"
    out = format_text(source)
    assert "      a + b : x = 1;\n" in out
    assert "      abcd  : x = 2;\n" in out
    assert format_text(out) == out

    source = "module m;\nalways_comb begin\ncase (s)\n0: a = 1;\n1,2: a = 2;\n10: a = 3;\nendcase\nend\nendmodule\n"
    out = format_text(source)
    assert "      0    : a = 1;\n" in out
    assert "      1, 2 : a = 2;\n" in out
    assert "      10   : a = 3;\n" in out
    assert format_text(out) == out
    print("✓ test_case_alignment_uses_formatted_width")


def test_parse_errors_propagate():
    """Test: Malformed input raises instead of producing output"""
    for source in ["module m; initial begin x = 1;", "assign x = (a;", 'x = "open\n";']:
        try:
            format_text(source)
            assert False, f"Expected ParseError for {source!r}"
        except ParseError:
            pass
    print("✓ test_parse_errors_propagate")


def run_all():
    tests = [
        test_basic_structure,
        test_preprocessor_flush_left,
        test_preprocessor_indented_when_not_aligned,
        test_call_and_comma_spacing,
        test_inline_end_else,
        test_wraps_multiline_if_body,
        test_wraps_multiline_else_body,
        test_synthetic_end_flushed_at_eof,
        test_no_wrap_when_disabled_or_case_body,
        test_comment_spacing,
        test_block_comment_at_start,
        test_case_colon_alignment,
        test_blank_lines_around_sections,
        test_auto_wrap_long_lines,
        test_tabs_and_indent_width,
        test_empty_input,
        test_idempotent_and_deterministic,
        test_nested_synthetic_blocks,
        test_case_inside_synthetic_block,
        test_inner_else_keeps_synthetic_block_open,
        test_single_statement_body_not_wrapped,
        test_else_if_body_not_wrapped,
        test_wrap_scan_is_bounded,
        test_wait_and_disable_fork_do_not_indent,
        test_case_alignment_uses_formatted_width,
        test_parse_errors_propagate,
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
    print(f"Engine Tests: {passed} passed, {failed} failed, {passed+failed} total")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    print("Running engine tests...\n")
    run_all()
