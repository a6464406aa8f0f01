"""
Hand-written lexer for SystemVerilog source that keeps every byte.

Handles:
  - whitespace runs, // and /* */ comments as trivia tokens
  - compiler directives (`ifdef, `define ...) as whole-line trivia tokens,
    including backslash-newline continuations
  - text macro usages (`WIDTH) as significant tokens
  - number formats: plain decimal, sized/unsized based (8'hFF, 'sb1),
    unbased unsized ('0, 'x), reals (1.5e3) and time literals (10ns)
  - multi-character operators by longest match
"""

from sv_fmt.errors import ParseError
from sv_fmt.hdl_parser.tokens import (
    DIRECTIVES,
    KEYWORDS,
    OPERATORS,
    SYMBOLS,
    TIME_UNITS,
    Token,
    TokenType,
)


class LexerError(ParseError):
    def __init__(self, msg: str, line: int, col: int, source: str = ""):
        super().__init__(f"Lexer error: {msg}", line, col, source)


def _is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch in "_$")


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


class Lexer:
    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.offset = 0     # byte offset matching self.pos
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []

    def _peek(self, offset=0) -> str:
        p = self.pos + offset
        if p < len(self.source):
            return self.source[p]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        self.offset += 1 if ch < "\x80" else len(ch.encode("utf-8"))
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _error(self, msg: str, line: int, col: int) -> LexerError:
        return LexerError(msg, line, col, self.source)

    # ---- Trivia ----

    def _read_whitespace(self):
        while not self._at_end() and self._peek() in " \t\r\n\f\v":
            self._advance()

    def _read_line_comment(self):
        while not self._at_end() and self._peek() != "\n":
            self._advance()

    def _read_block_comment(self, line: int, col: int):
        self._advance()  # /
        self._advance()  # *
        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()
        raise self._error("Unterminated block comment", line, col)

    def _directive_end(self) -> int:
        """Find where the directive starting at self.pos ends.

        The directive runs to the end of the line, through backslash-newline
        continuations, and stops before a // comment that is not inside a
        string. Trailing blanks are left for the whitespace token.
        """
        src = self.source
        i = self.pos
        in_string = False
        while i < len(src):
            ch = src[i]
            if ch == "\\" and src[i + 1:i + 2] == "\n":
                i += 2
                continue
            if ch == "\\" and src[i + 1:i + 3] == "\r\n":
                i += 3
                continue
            if ch in "\r\n":
                break
            if in_string and ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = not in_string
            elif not in_string and ch == "/" and src[i + 1:i + 2] == "/":
                break
            i += 1
        while i > self.pos and src[i - 1] in " \t":
            i -= 1
        return i

    # ---- Significant tokens ----

    def _read_based_digits(self):
        while not self._at_end() and (
            self._peek() in "0123456789abcdefABCDEFxXzZ?_"
        ):
            self._advance()

    def _at_base(self, offset: int) -> bool:
        """True if a base specifier ([sS]?[bBoOdDhH]) starts at pos+offset."""
        ch = self._peek(offset)
        if ch in "sS":
            ch = self._peek(offset + 1)
        return ch in "bBoOdDhH" and ch != "\0"

    def _read_time_unit(self):
        for unit in TIME_UNITS:
            end = self.pos + len(unit)
            if self.source.startswith(unit, self.pos) and not (
                end < len(self.source) and _is_ident_char(self.source[end])
            ):
                for _ in unit:
                    self._advance()
                return

    def _read_number(self):
        """Read a SystemVerilog number literal.

        Formats: 123, 8'hFF, 4'b10_10, 'h1A, 'sb1, 1.5, 2.5e10, 1.0e-3, 10ns
        """
        while not self._at_end() and (self._peek().isdigit() or self._peek() == "_"):
            self._advance()

        # Sized literal: <size>'<base><digits>
        if self._peek() == "'" and self._at_base(1):
            self._advance()  # '
            if self._peek() in "sS":
                self._advance()
            self._advance()  # base char
            self._read_based_digits()
            return

        # Real number: decimal point followed by a digit
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()
            while not self._at_end() and (self._peek().isdigit() or self._peek() == "_"):
                self._advance()

        # Scientific notation
        if self._peek() in "eE" and (
            self._peek(1).isdigit() or (self._peek(1) in "+-" and self._peek(2).isdigit())
        ):
            self._advance()
            if self._peek() in "+-":
                self._advance()
            while not self._at_end() and (self._peek().isdigit() or self._peek() == "_"):
                self._advance()

        self._read_time_unit()

    def _read_apostrophe(self) -> TokenType:
        """Read an unsized based literal, an unbased unsized literal, or a bare '."""
        if self._at_base(1):
            self._advance()  # '
            if self._peek() in "sS":
                self._advance()
            self._advance()  # base char
            self._read_based_digits()
            return TokenType.NUMBER
        if self._peek(1) in "01xXzZ" and not _is_ident_char(self._peek(2)):
            self._advance()
            self._advance()
            return TokenType.NUMBER
        self._advance()
        return TokenType.SYMBOL

    def _read_ident_or_keyword(self) -> TokenType:
        start = self.pos
        while not self._at_end() and _is_ident_char(self._peek()):
            self._advance()
        ident = self.source[start:self.pos]
        return TokenType.KEYWORD if ident in KEYWORDS else TokenType.IDENT

    def _read_escaped_ident(self):
        self._advance()  # backslash
        while not self._at_end() and not self._peek().isspace():
            self._advance()

    def _read_string(self, line: int, col: int):
        self._advance()  # opening "
        while not self._at_end():
            ch = self._peek()
            if ch == '"':
                self._advance()
                return
            if ch == "\n":
                break
            if ch == "\\":
                self._advance()
                if self._at_end():
                    break
            self._advance()
        raise self._error("Unterminated string literal", line, col)

    def _read_backtick(self) -> TokenType:
        """Read a compiler directive line or a text macro usage."""
        start = self.pos
        self._advance()  # `
        if not _is_ident_start(self._peek()):
            return TokenType.SYMBOL
        while not self._at_end() and _is_ident_char(self._peek()):
            self._advance()
        name = self.source[start + 1:self.pos]
        if name not in DIRECTIVES:
            return TokenType.MACRO
        end = self._directive_end()
        while self.pos < end:
            self._advance()
        return TokenType.DIRECTIVE

    def _read_operator(self) -> bool:
        for op in OPERATORS:
            if self.source.startswith(op, self.pos):
                for _ in op:
                    self._advance()
                return True
        return False

    def _next_type(self, line: int, col: int) -> TokenType:
        ch = self._peek()
        nxt = self._peek(1)

        if ch in " \t\r\n\f\v":
            self._read_whitespace()
            return TokenType.WHITESPACE

        if ch == "/" and nxt == "/":
            self._read_line_comment()
            return TokenType.LINE_COMMENT

        if ch == "/" and nxt == "*":
            self._read_block_comment(line, col)
            return TokenType.BLOCK_COMMENT

        if ch == "`":
            return self._read_backtick()

        if ch.isascii() and ch.isdigit():
            self._read_number()
            return TokenType.NUMBER

        if ch == "'":
            return self._read_apostrophe()

        if _is_ident_start(ch):
            return self._read_ident_or_keyword()

        if ch == "$" and _is_ident_char(nxt):
            self._advance()
            self._read_ident_or_keyword()
            return TokenType.IDENT

        if ch == "\\":
            self._read_escaped_ident()
            return TokenType.IDENT

        if ch == '"':
            self._read_string(line, col)
            return TokenType.STRING

        if self._read_operator():
            return TokenType.OPERATOR

        if ch in SYMBOLS:
            self._advance()
            return TokenType.SYMBOL

        raise self._error(f"Unexpected character: {ch!r}", line, col)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source. Returns list of tokens ending with EOF."""
        self.tokens = []

        while not self._at_end():
            start, start_offset = self.pos, self.offset
            start_line, start_col = self.line, self.col
            tt = self._next_type(start_line, start_col)
            self.tokens.append(Token(
                tt,
                self.source[start:self.pos],
                start_line,
                start_col,
                start_offset,
                self.offset - start_offset,
            ))

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col, self.offset, 0))
        return self.tokens


def lex(source: str, filename: str = "<input>") -> list[Token]:
    """Convenience function: lex source code into tokens."""
    return Lexer(source, filename).tokenize()
