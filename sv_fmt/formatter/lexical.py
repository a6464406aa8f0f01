"""
Projects a syntax tree onto the flat token stream the formatting engine
consumes.

Horizontal whitespace is dropped entirely (the engine recomputes all
spacing); each newline inside a whitespace run survives as its own NEWLINE
token. Comments and directives keep their raw text. Everything else is
classified by its text alone.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto

from sv_fmt.hdl_parser.syntax import (
    Comment,
    CompilerDirective,
    Locate,
    SyntaxNode,
    WhiteSpace,
)
from sv_fmt.hdl_parser.tree_walker import NodeEvent, iter_events


class TokenKind(Enum):
    KEYWORD = auto()
    IDENTIFIER = auto()
    SYMBOL = auto()
    NUMBER = auto()
    STRING = auto()
    COMMENT = auto()
    DIRECTIVE = auto()
    NEWLINE = auto()
    OTHER = auto()


# Structural keywords the engine cares about. Matched case-insensitively.
FORMAT_KEYWORDS = frozenset({
    "module", "endmodule", "class", "endclass", "function", "endfunction",
    "task", "endtask", "package", "endpackage", "begin", "end",
    "case", "endcase", "casex", "casez", "randcase", "randsequence",
    "endsequence", "fork", "join", "join_any", "join_none",
    "generate", "endgenerate", "interface", "endinterface",
    "covergroup", "endgroup",
    "if", "else", "for", "foreach", "while", "do", "forever",
})

SYMBOL_CHARS = frozenset("()[]{},;:.+-*/%!~&|^=<>?@")

_NUMBER_CHARS = frozenset("0123456789'_hHbBoOdDxXzZ")


@dataclass(frozen=True)
class Token:
    text: str
    kind: TokenKind
    offset: int
    length: int

    @property
    def lowered(self) -> str:
        return self.text.lower()

    def is_keyword(self, word: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.lowered == word

    def is_identifier_like(self) -> bool:
        return self.kind is TokenKind.IDENTIFIER

    def is_symbol(self, char: str) -> bool:
        return self.kind is TokenKind.SYMBOL and self.text == char


def _is_identifier(text: str) -> bool:
    first = text[0]
    if not (first == "_" or first == "$" or (first.isascii() and first.isalpha())):
        return False
    return all(c in "_$" or (c.isascii() and c.isalnum()) for c in text[1:])


def _is_number(text: str) -> bool:
    if not (text[0].isascii() and text[0].isdigit()):
        return False
    return all(c in _NUMBER_CHARS for c in text[1:])


def classify(text: str) -> TokenKind:
    """Classify a non-empty significant text span."""
    if text.lower() in FORMAT_KEYWORDS:
        return TokenKind.KEYWORD
    if _is_identifier(text):
        return TokenKind.IDENTIFIER
    if _is_number(text):
        return TokenKind.NUMBER
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return TokenKind.STRING
    if len(text) == 1 and text in SYMBOL_CHARS:
        return TokenKind.SYMBOL
    return TokenKind.OTHER


def _newlines(loc: Locate) -> list[Token]:
    tokens = []
    offset = loc.offset
    for ch in loc.text:
        if ch == "\n":
            tokens.append(Token("\n", TokenKind.NEWLINE, offset, 1))
        offset += 1 if ch < "\x80" else len(ch.encode("utf-8"))
    return tokens


def project_tokens(tree: SyntaxNode) -> list[Token]:
    """Flatten `tree` into formatter tokens, in source order."""
    tokens: list[Token] = []
    whitespace_depth = 0
    comment_depth = 0
    directive_depth = 0

    for event, node in iter_events(tree):
        if event is NodeEvent.LEAVE:
            if isinstance(node, WhiteSpace):
                whitespace_depth = max(whitespace_depth - 1, 0)
            elif isinstance(node, Comment):
                comment_depth = max(comment_depth - 1, 0)
            elif isinstance(node, CompilerDirective):
                directive_depth = max(directive_depth - 1, 0)
            continue

        if isinstance(node, WhiteSpace):
            whitespace_depth += 1
        elif isinstance(node, Comment):
            comment_depth += 1
        elif isinstance(node, CompilerDirective):
            directive_depth += 1
        elif isinstance(node, Locate) and node.text:
            if comment_depth:
                tokens.append(Token(node.text, TokenKind.COMMENT, node.offset, node.length))
            elif whitespace_depth:
                tokens.extend(_newlines(node))
            elif directive_depth:
                tokens.append(Token(node.text, TokenKind.DIRECTIVE, node.offset, node.length))
            else:
                tokens.append(Token(node.text, classify(node.text), node.offset, node.length))

    return tokens
