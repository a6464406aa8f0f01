"""
Recursive-descent parser producing a concrete syntax tree for SystemVerilog.

The parser only builds structure where the formatter needs it:
  - begin/end and fork/join blocks (with labels)
  - if / else if / else chains, with optional unique/unique0/priority
  - forever, repeat, while, for, foreach, do-while loops
  - case/casex/casez (with inside/matches) and randcase items
  - always*/initial/final blocks, timing controls, labeled statements,
    immediate and concurrent assertions

Everything else (module headers, declarations, expressions, class and
package bodies) is kept as a flat run of Terminals, with brackets checked
for balance. Statement-starting keywords are recognised anywhere in that
run, so control constructs inside functions, tasks, generate regions and
constraint blocks all get structure.
"""

from __future__ import annotations
from typing import Optional

from sv_fmt.errors import ParseError
from sv_fmt.hdl_parser.tokens import CLOSERS, OPENERS, Token, TokenType
from sv_fmt.hdl_parser.lexer import lex
from sv_fmt.hdl_parser.syntax import *


# Keywords that begin a statement wherever they appear.
STATEMENT_KEYWORDS = frozenset({
    "if", "for", "foreach", "while", "repeat", "forever", "do",
    "case", "casex", "casez", "randcase", "randsequence", "begin", "fork",
    "always", "always_ff", "always_comb", "always_latch", "initial", "final",
    "assert", "assume", "cover",
})

CASE_KEYWORDS = frozenset({"case", "casex", "casez"})
LOOP_KEYWORDS = frozenset({"forever", "repeat", "while", "for", "foreach"})
PROCEDURAL_KEYWORDS = frozenset({
    "always", "always_ff", "always_comb", "always_latch", "initial", "final",
})
QUALIFIER_KEYWORDS = frozenset({"unique", "unique0", "priority"})
JOIN_KEYWORDS = frozenset({"join", "join_any", "join_none"})

# Keywords that close an enclosing construct; a plain statement never
# swallows one.
CLOSING_KEYWORDS = frozenset({
    "end", "endcase", "endmodule", "endclass", "endfunction", "endtask",
    "endpackage", "endinterface", "endprogram", "endgenerate", "endgroup",
    "endsequence", "endproperty", "endclocking", "endchecker", "endconfig",
    "endprimitive", "endspecify", "endtable",
}) | JOIN_KEYWORDS

# Tokens after a leading {...} group that mean the group was only the
# left-hand side of a longer statement: {a, b} = c;
_CONTINUES_BRACE = frozenset("=<>+-*/%&|^?")

_TRIVIA_NODES = {
    TokenType.WHITESPACE: WhiteSpace,
    TokenType.LINE_COMMENT: Comment,
    TokenType.BLOCK_COMMENT: Comment,
    TokenType.DIRECTIVE: CompilerDirective,
}


def _locate(tok: Token) -> Locate:
    return Locate(offset=tok.offset, length=tok.length, line=tok.line,
                  col=tok.col, text=tok.value)


class Parser:
    """Recursive-descent parser producing a SourceText tree."""

    def __init__(self, tokens: list[Token], source: str = ""):
        self.source = source
        self.leading: list[Trivia] = []
        self.tokens: list[Token] = []          # significant tokens, EOF last
        self.trailing: list[list[Trivia]] = []  # trivia after each of them
        for tok in tokens:
            if tok.is_trivia:
                node = _TRIVIA_NODES[tok.type](locate=_locate(tok))
                if self.trailing:
                    self.trailing[-1].append(node)
                else:
                    self.leading.append(node)
            else:
                self.tokens.append(tok)
                self.trailing.append([])
        self.pos = 0

    # ---- Token navigation ----

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset=0) -> Token:
        p = self.pos + offset
        if p < len(self.tokens):
            return self.tokens[p]
        return self.tokens[-1]  # EOF

    def _at_eof(self) -> bool:
        return self._cur().type == TokenType.EOF

    def _at_kw(self, *words: str, offset=0) -> bool:
        tok = self._peek(offset)
        return tok.type == TokenType.KEYWORD and tok.value in words

    def _at_sym(self, *chars: str, offset=0) -> bool:
        tok = self._peek(offset)
        return tok.type == TokenType.SYMBOL and tok.value in chars

    def _error(self, msg: str, tok: Optional[Token] = None) -> ParseError:
        tok = tok or self._cur()
        got = "end of input" if tok.type == TokenType.EOF else repr(tok.value)
        return ParseError(f"{msg} (got {got})", tok.line, tok.col, self.source)

    def _terminal(self) -> Terminal:
        """Consume the current token as a Terminal with its trailing trivia."""
        tok = self._cur()
        if tok.type == TokenType.EOF:
            raise self._error("Unexpected end of input")
        term = Terminal(locate=_locate(tok), kind=tok.type,
                        trivia=self.trailing[self.pos])
        self.pos += 1
        return term

    def _eat_kw(self, word: str, context: str) -> Terminal:
        if not self._at_kw(word):
            raise self._error(f"Expected '{word}' {context}")
        return self._terminal()

    def _eat_sym(self, char: str, context: str) -> Terminal:
        if not self._at_sym(char):
            raise self._error(f"Expected '{char}' {context}")
        return self._terminal()

    # ---- Groups ----

    def _parse_group(self) -> Group:
        """Parse a balanced (...), [...] or {...} run."""
        open_tok = self._cur()
        close_char = OPENERS[open_tok.value]
        group = Group(open=self._terminal())
        while True:
            tok = self._cur()
            if tok.type == TokenType.EOF:
                raise self._error(f"Unclosed '{open_tok.value}'", open_tok)
            if tok.type == TokenType.SYMBOL and tok.value in CLOSERS:
                if tok.value != close_char:
                    raise self._error(
                        f"Mismatched '{tok.value}', expected '{close_char}' "
                        f"to close '{open_tok.value}' from L{open_tok.line}:{open_tok.col}")
                group.close = self._terminal()
                return group
            group.items.append(self._parse_item())

    def _parse_item(self) -> SyntaxNode:
        if self._at_sym(*OPENERS):
            return self._parse_group()
        return self._terminal()

    def _expect_group(self, opener: str, after: str) -> Group:
        if not self._at_sym(opener):
            raise self._error(f"Expected '{opener}' after '{after}'")
        return self._parse_group()

    # ---- Top-level ----

    def parse(self) -> SourceText:
        """Parse the whole token stream."""
        root = SourceText(leading=self.leading)
        open_stack: list[Token] = []
        while not self._at_eof():
            if self._starts_statement():
                root.items.append(self._parse_statement())
                continue
            tok = self._cur()
            if tok.type == TokenType.SYMBOL and tok.value in OPENERS:
                open_stack.append(tok)
            elif tok.type == TokenType.SYMBOL and tok.value in CLOSERS:
                if not open_stack:
                    raise self._error(f"Unbalanced '{tok.value}'")
                opener = open_stack.pop()
                if OPENERS[opener.value] != tok.value:
                    raise self._error(
                        f"Mismatched '{tok.value}', expected '{OPENERS[opener.value]}' "
                        f"to close '{opener.value}' from L{opener.line}:{opener.col}")
            root.items.append(self._terminal())
        if open_stack:
            raise self._error(f"Unclosed '{open_stack[-1].value}'", open_stack[-1])
        return root

    def _starts_statement(self) -> bool:
        tok = self._cur()
        if tok.type != TokenType.KEYWORD:
            return False
        if tok.value == "fork" and self.pos > 0:
            # wait fork; disable fork;
            prev = self.tokens[self.pos - 1]
            if prev.type == TokenType.KEYWORD and prev.value in ("wait", "disable"):
                return False
        if tok.value in STATEMENT_KEYWORDS:
            return True
        return tok.value in QUALIFIER_KEYWORDS and self._at_kw("if", *CASE_KEYWORDS, offset=1)

    # ---- Statements ----

    def _parse_statement(self) -> Statement:
        tok = self._cur()

        if self._at_sym(";"):
            return NullStatement(semicolon=self._terminal())

        if tok.type == TokenType.KEYWORD:
            kw = tok.value
            if kw in QUALIFIER_KEYWORDS:
                if self._at_kw("if", offset=1):
                    return self._parse_if(self._terminal())
                if self._at_kw(*CASE_KEYWORDS, offset=1):
                    return self._parse_case(self._terminal())
            if kw == "if":
                return self._parse_if(None)
            if kw in CASE_KEYWORDS:
                return self._parse_case(None)
            if kw == "randcase":
                return self._parse_randcase()
            if kw in LOOP_KEYWORDS:
                return self._parse_loop()
            if kw == "do":
                return self._parse_do_while()
            if kw == "begin":
                return self._parse_seq_block()
            if kw == "fork":
                return self._parse_par_block()
            if kw in PROCEDURAL_KEYWORDS:
                return ProceduralBlock(keyword=self._terminal(),
                                       statement=self._parse_statement())
            if kw in ("assert", "assume", "cover"):
                return self._parse_assertion()
            if kw == "randsequence":
                return self._parse_opaque("endsequence")
            if kw == "wait" and not self._at_kw("fork", offset=1):
                return self._parse_timing_control()

        if self._at_sym("@", "#") or (tok.type == TokenType.OPERATOR and tok.value == "##"):
            return self._parse_timing_control()

        if tok.type == TokenType.IDENT and self._at_sym(":", offset=1):
            return LabeledStatement(label=self._terminal(), colon=self._terminal(),
                                    statement=self._parse_statement())

        return self._parse_simple_statement()

    def _at_statement_boundary(self, items: list[SyntaxNode]) -> bool:
        """True if a simple statement must stop before the current token."""
        tok = self._cur()
        if tok.type == TokenType.EOF:
            return True
        if tok.type != TokenType.KEYWORD:
            return False
        if tok.value in CLOSING_KEYWORDS or tok.value in ("begin", "else"):
            return True
        if tok.value == "fork":
            # wait fork; disable fork;
            last = items[-1] if items else None
            return not (isinstance(last, Terminal) and last.text in ("wait", "disable"))
        return False

    def _parse_simple_statement(self) -> SimpleStatement:
        start = self._cur()
        stmt = SimpleStatement()
        while True:
            if self._at_sym(";"):
                stmt.semicolon = self._terminal()
                break
            if self._at_statement_boundary(stmt.items):
                break
            tok = self._cur()
            if tok.type == TokenType.SYMBOL and tok.value in CLOSERS:
                raise self._error(f"Unbalanced '{tok.value}'")
            stmt.items.append(self._parse_item())
            if start.value == "{" and len(stmt.items) == 1 and not self._continues_brace():
                break

        if not stmt.items and stmt.semicolon is None:
            raise self._error("Expected a statement", start)
        return stmt

    def _continues_brace(self) -> bool:
        tok = self._cur()
        if tok.type == TokenType.OPERATOR:
            return True
        return tok.type == TokenType.SYMBOL and (tok.value == ";" or tok.value in _CONTINUES_BRACE)

    def _parse_block_label(self) -> list[Terminal]:
        """Optional ': name' after begin/end/fork/join."""
        if self._at_sym(":") and self._peek(1).type == TokenType.IDENT:
            return [self._terminal(), self._terminal()]
        return []

    def _parse_seq_block(self) -> SeqBlock:
        begin_tok = self._cur()
        blk = SeqBlock(begin=self._terminal())
        blk.label = self._parse_block_label()
        while not self._at_kw("end"):
            if self._at_eof():
                raise self._error("Unexpected end of input inside begin block", begin_tok)
            blk.statements.append(self._parse_statement())
        blk.end = self._terminal()
        blk.end_label = self._parse_block_label()
        return blk

    def _parse_par_block(self) -> ParBlock:
        fork_tok = self._cur()
        blk = ParBlock(fork=self._terminal())
        blk.label = self._parse_block_label()
        while not self._at_kw(*JOIN_KEYWORDS):
            if self._at_eof():
                raise self._error("Unexpected end of input inside fork block", fork_tok)
            blk.statements.append(self._parse_statement())
        blk.join = self._terminal()
        blk.end_label = self._parse_block_label()
        return blk

    def _parse_if(self, prefix: Optional[Terminal]) -> ConditionalStatement:
        stmt = ConditionalStatement(prefix=prefix)
        stmt.if_keyword = self._terminal()
        stmt.condition = self._expect_group("(", "if")
        stmt.then_statement = self._parse_statement()

        while self._at_kw("else"):
            if self._at_kw("if", offset=1):
                clause = ElseIfClause(else_keyword=self._terminal(),
                                      if_keyword=self._terminal())
                clause.condition = self._expect_group("(", "if")
                clause.statement = self._parse_statement()
                stmt.else_ifs.append(clause)
                continue
            stmt.else_keyword = self._terminal()
            stmt.else_statement = self._parse_statement()
            break

        return stmt

    def _parse_loop(self) -> LoopStatement:
        kind = self._cur().value
        loop = LoopStatement(kind=kind, keyword=self._terminal())
        if kind != "forever":
            loop.header = self._expect_group("(", kind)
        loop.body = self._parse_statement()
        return loop

    def _parse_do_while(self) -> DoWhileStatement:
        stmt = DoWhileStatement(do_keyword=self._terminal())
        stmt.body = self._parse_statement()
        stmt.while_keyword = self._eat_kw("while", "after do-loop body")
        stmt.condition = self._expect_group("(", "while")
        stmt.semicolon = self._eat_sym(";", "after do-while condition")
        return stmt

    def _parse_case(self, prefix: Optional[Terminal]) -> CaseStatement:
        kw_tok = self._cur()
        stmt = CaseStatement(prefix=prefix, keyword=self._terminal())
        stmt.expression = self._expect_group("(", kw_tok.value)
        if self._at_kw("inside", "matches"):
            stmt.modifier = self._terminal()

        while not self._at_kw("endcase"):
            if self._at_eof():
                raise self._error("Unexpected end of input inside case statement", kw_tok)
            stmt.items.append(self._parse_case_item())

        stmt.endcase = self._terminal()
        return stmt

    def _parse_randcase(self) -> RandcaseStatement:
        kw_tok = self._cur()
        stmt = RandcaseStatement(keyword=self._terminal())
        while not self._at_kw("endcase"):
            if self._at_eof():
                raise self._error("Unexpected end of input inside randcase", kw_tok)
            stmt.items.append(self._parse_labeled_item())
        stmt.endcase = self._terminal()
        return stmt

    def _parse_case_item(self) -> CaseItem:
        if self._at_kw("default"):
            item = CaseItem(labels=[self._terminal()], is_default=True)
            if self._at_sym(":"):
                item.colon = self._terminal()
            item.statement = self._parse_statement()
            return item
        return self._parse_labeled_item()

    def _parse_labeled_item(self) -> CaseItem:
        """label {, label} : statement"""
        item = CaseItem()
        while not self._at_sym(":"):
            tok = self._cur()
            if (tok.type == TokenType.EOF or self._at_sym(";")
                    or self._at_kw("endcase")):
                raise self._error("Expected ':' after case item label")
            if tok.type == TokenType.SYMBOL and tok.value in CLOSERS:
                raise self._error(f"Unbalanced '{tok.value}'")
            item.labels.append(self._parse_item())
        if not item.labels:
            raise self._error("Missing case item label")
        item.colon = self._terminal()
        item.statement = self._parse_statement()
        return item

    def _parse_timing_control(self) -> TimingControlStatement:
        """@(...) / @name / @* / #delay / ##cycles / wait (...) followed by a statement."""
        is_wait = self._at_kw("wait")
        stmt = TimingControlStatement(control=[self._terminal()])
        if is_wait:
            stmt.control.append(self._expect_group("(", "wait"))
        elif self._at_sym(*OPENERS):
            stmt.control.append(self._parse_group())
        else:
            stmt.control.append(self._terminal())
            # hierarchical event name: @top.dut.ev
            while self._at_sym(".") and self._peek(1).type == TokenType.IDENT:
                stmt.control.append(self._terminal())
                stmt.control.append(self._terminal())
        stmt.statement = self._parse_statement()
        return stmt

    def _parse_assertion(self) -> AssertionStatement:
        kw_tok = self._cur()
        stmt = AssertionStatement(keyword=self._terminal())
        while True:
            if self._at_kw("property", "sequence", "final"):
                stmt.qualifiers.append(self._terminal())
            elif self._at_sym("#"):
                # deferred assertion: assert #0 (...)
                stmt.qualifiers.append(self._terminal())
                stmt.qualifiers.append(self._terminal())
            else:
                break
        stmt.expression = self._expect_group("(", kw_tok.value)
        if not self._at_kw("else"):
            stmt.action = self._parse_statement()
        if self._at_kw("else"):
            stmt.else_keyword = self._terminal()
            stmt.else_statement = self._parse_statement()
        return stmt

    def _parse_opaque(self, closing: str) -> OpaqueBlock:
        """Keep everything up to and including `closing` as a flat run."""
        start_tok = self._cur()
        blk = OpaqueBlock(items=[self._terminal()])
        while not self._at_kw(closing):
            if self._at_eof():
                raise self._error(
                    f"Unexpected end of input, expected '{closing}'", start_tok)
            blk.items.append(self._parse_item())
        blk.items.append(self._terminal())
        return blk


# ============================================================
# Public API
# ============================================================

def parse_systemverilog(source: str, filename: str = "<input>") -> SourceText:
    """Parse SystemVerilog source text into a lossless syntax tree."""
    tokens = lex(source, filename)
    parser = Parser(tokens, source)
    return parser.parse()
