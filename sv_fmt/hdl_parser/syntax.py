"""
Concrete syntax tree nodes for SystemVerilog source.

The tree is lossless: every byte of the input sits in exactly one Locate,
either as a significant Terminal or as trivia (whitespace, comment,
compiler directive) hanging off the Terminal it follows. Structured nodes
exist only for the constructs the formatter reasons about (blocks,
conditionals, loops, case statements); everything else stays a flat run of
Terminals.

Children are yielded in field declaration order, which is source order.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Iterator, Optional

from sv_fmt.hdl_parser.tokens import TokenType


# ============================================================
# Base
# ============================================================

@dataclass
class SyntaxNode:
    """Base class for all syntax tree nodes."""

    def children(self) -> Iterator[SyntaxNode]:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, SyntaxNode):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, SyntaxNode):
                        yield item


@dataclass
class Locate(SyntaxNode):
    """A leaf text span: byte offset/length into the UTF-8 source."""
    offset: int = 0
    length: int = 0
    line: int = 0
    col: int = 0
    text: str = ""

    @property
    def end(self) -> int:
        return self.offset + self.length


# ============================================================
# Trivia
# ============================================================

@dataclass
class Trivia(SyntaxNode):
    locate: Locate = None


@dataclass
class WhiteSpace(Trivia):
    pass


@dataclass
class Comment(Trivia):
    """// line comment or /* block comment */"""
    pass


@dataclass
class CompilerDirective(Trivia):
    """`ifdef, `define ... up to the end of the (continued) line."""
    pass


@dataclass
class Terminal(SyntaxNode):
    """One significant token plus the trivia that follows it."""
    locate: Locate = None
    kind: TokenType = TokenType.SYMBOL
    trivia: list[Trivia] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.locate.text

    @property
    def offset(self) -> int:
        return self.locate.offset


@dataclass
class Group(SyntaxNode):
    """A balanced (...), [...] or {...} run."""
    open: Terminal = None
    items: list[SyntaxNode] = field(default_factory=list)
    close: Terminal = None


@dataclass
class SourceText(SyntaxNode):
    """Root node. `leading` holds trivia before the first token."""
    leading: list[Trivia] = field(default_factory=list)
    items: list[SyntaxNode] = field(default_factory=list)


# ============================================================
# Statements
# ============================================================

@dataclass
class Statement(SyntaxNode):
    """Base class for statements."""
    pass


@dataclass
class SimpleStatement(Statement):
    """Anything up to a ';' the formatter does not look inside:
    assignments, calls, declarations, `return`, `disable fork` ...
    """
    items: list[SyntaxNode] = field(default_factory=list)
    semicolon: Optional[Terminal] = None


@dataclass
class NullStatement(Statement):
    semicolon: Terminal = None


@dataclass
class SeqBlock(Statement):
    """begin [: label] ... end [: label]"""
    begin: Terminal = None
    label: list[Terminal] = field(default_factory=list)
    statements: list[Statement] = field(default_factory=list)
    end: Terminal = None
    end_label: list[Terminal] = field(default_factory=list)


@dataclass
class ParBlock(Statement):
    """fork [: label] ... join | join_any | join_none [: label]"""
    fork: Terminal = None
    label: list[Terminal] = field(default_factory=list)
    statements: list[Statement] = field(default_factory=list)
    join: Terminal = None
    end_label: list[Terminal] = field(default_factory=list)


@dataclass
class ElseIfClause(SyntaxNode):
    """else if (cond) statement"""
    else_keyword: Terminal = None
    if_keyword: Terminal = None
    condition: Group = None
    statement: Statement = None


@dataclass
class ConditionalStatement(Statement):
    """[unique|unique0|priority] if (cond) stmt {else if ...} [else stmt]"""
    prefix: Optional[Terminal] = None
    if_keyword: Terminal = None
    condition: Group = None
    then_statement: Statement = None
    else_ifs: list[ElseIfClause] = field(default_factory=list)
    else_keyword: Optional[Terminal] = None
    else_statement: Optional[Statement] = None


@dataclass
class LoopStatement(Statement):
    """forever | repeat (n) | while (c) | for (...) | foreach (...) + body"""
    kind: str = ""
    keyword: Terminal = None
    header: Optional[Group] = None
    body: Statement = None


@dataclass
class DoWhileStatement(Statement):
    do_keyword: Terminal = None
    body: Statement = None
    while_keyword: Terminal = None
    condition: Group = None
    semicolon: Terminal = None


@dataclass
class CaseItem(SyntaxNode):
    """labels : statement, or default [:] statement"""
    labels: list[SyntaxNode] = field(default_factory=list)
    colon: Optional[Terminal] = None
    statement: Statement = None
    is_default: bool = False


@dataclass
class CaseStatement(Statement):
    prefix: Optional[Terminal] = None
    keyword: Terminal = None
    expression: Group = None
    modifier: Optional[Terminal] = None     # inside / matches
    items: list[CaseItem] = field(default_factory=list)
    endcase: Terminal = None


@dataclass
class RandcaseStatement(Statement):
    keyword: Terminal = None
    items: list[CaseItem] = field(default_factory=list)
    endcase: Terminal = None


@dataclass
class ProceduralBlock(Statement):
    """always / always_ff / always_comb / always_latch / initial / final"""
    keyword: Terminal = None
    statement: Statement = None


@dataclass
class TimingControlStatement(Statement):
    """@(ev) stmt, #delay stmt, ##cycles stmt, wait (cond) stmt"""
    control: list[SyntaxNode] = field(default_factory=list)
    statement: Statement = None


@dataclass
class LabeledStatement(Statement):
    label: Terminal = None
    colon: Terminal = None
    statement: Statement = None


@dataclass
class AssertionStatement(Statement):
    """assert|assume|cover [property|sequence|final|#0] (...) action [else stmt]"""
    keyword: Terminal = None
    qualifiers: list[Terminal] = field(default_factory=list)
    expression: Group = None
    action: Optional[Statement] = None
    else_keyword: Optional[Terminal] = None
    else_statement: Optional[Statement] = None


@dataclass
class OpaqueBlock(Statement):
    """A construct kept as a flat token run (randsequence ... endsequence)."""
    items: list[SyntaxNode] = field(default_factory=list)
