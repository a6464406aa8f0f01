"""
Read-only passes over the syntax tree that build the engine's side tables.

  - collect_statement_spans(): control keyword offset -> byte span of the
    single statement it governs
  - collect_else_owners(): else keyword offset -> offset of the if (or
    assertion) keyword it belongs to
  - collect_case_alignment(): case item colon offset -> spaces to put
    before that colon so every colon of the case lines up
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

from sv_fmt.config import FormatConfig
from sv_fmt.formatter.spacing import render_run
from sv_fmt.hdl_parser.syntax import (
    AssertionStatement,
    CaseItem,
    CaseStatement,
    ConditionalStatement,
    DoWhileStatement,
    LoopStatement,
    RandcaseStatement,
    SyntaxNode,
    Terminal,
)
from sv_fmt.hdl_parser.tree_walker import SyntaxVisitor, iter_terminals


@dataclass(frozen=True)
class ByteSpan:
    start: int
    end: int

    def __contains__(self, offset: int) -> bool:
        return self.start <= offset < self.end


def node_span(node: Optional[SyntaxNode]) -> Optional[ByteSpan]:
    """Span from the first to the end of the last significant token of `node`."""
    if node is None:
        return None
    first = last = None
    for term in iter_terminals(node):
        if first is None:
            first = term
        last = term
    if first is None:
        return None
    return ByteSpan(first.locate.offset, last.locate.end)


class StatementSpanCollector(SyntaxVisitor):
    """Maps each control keyword offset to the span of its body statement."""

    def __init__(self):
        self.spans: dict[int, ByteSpan] = {}

    def _record(self, keyword: Terminal, body: Optional[SyntaxNode]):
        span = node_span(body)
        if span is not None:
            self.spans[keyword.offset] = span

    def visit_ConditionalStatement(self, node: ConditionalStatement) -> Any:
        self._record(node.if_keyword, node.then_statement)
        for clause in node.else_ifs:
            self._record(clause.if_keyword, clause.statement)
        if node.else_keyword is not None:
            self._record(node.else_keyword, node.else_statement)
        return self.generic_visit(node)

    def visit_LoopStatement(self, node: LoopStatement) -> Any:
        self._record(node.keyword, node.body)
        return self.generic_visit(node)

    def visit_DoWhileStatement(self, node: DoWhileStatement) -> Any:
        self._record(node.do_keyword, node.body)
        return self.generic_visit(node)


class ElseOwnerCollector(SyntaxVisitor):
    def __init__(self):
        self.owners: dict[int, int] = {}

    def visit_ConditionalStatement(self, node: ConditionalStatement) -> Any:
        for clause in node.else_ifs:
            self.owners[clause.else_keyword.offset] = node.if_keyword.offset
        if node.else_keyword is not None:
            self.owners[node.else_keyword.offset] = node.if_keyword.offset
        return self.generic_visit(node)

    def visit_AssertionStatement(self, node: AssertionStatement) -> Any:
        if node.else_keyword is not None:
            self.owners[node.else_keyword.offset] = node.keyword.offset
        return self.generic_visit(node)


class CaseAlignmentCollector(SyntaxVisitor):
    """Computes colon padding for plain case and randcase statements.

    Label width is taken from the label as the engine will lay it out, so
    the padding does not depend on how the source was spaced.
    case ... inside / matches statements are left alone.
    """

    def __init__(self, config: FormatConfig):
        self.config = config
        self.alignment: dict[int, int] = {}

    def _entry(self, item: CaseItem) -> Optional[tuple[int, int]]:
        if item.colon is None:
            return None
        texts = [term.text for label in item.labels for term in iter_terminals(label)]
        if not texts:
            return None
        return item.colon.offset, len(render_run(texts, self.config))

    def _apply(self, items: list[CaseItem]):
        entries = [e for e in (self._entry(item) for item in items) if e is not None]
        if len(entries) < 2:
            return
        max_width = max(width for _, width in entries)
        for offset, width in entries:
            self.alignment[offset] = max_width - width + 1

    def visit_CaseStatement(self, node: CaseStatement) -> Any:
        if node.modifier is None:
            self._apply(node.items)
        return self.generic_visit(node)

    def visit_RandcaseStatement(self, node: RandcaseStatement) -> Any:
        self._apply(node.items)
        return self.generic_visit(node)


def collect_statement_spans(tree: SyntaxNode) -> dict[int, ByteSpan]:
    collector = StatementSpanCollector()
    collector.visit(tree)
    return collector.spans


def collect_else_owners(tree: SyntaxNode) -> dict[int, int]:
    collector = ElseOwnerCollector()
    collector.visit(tree)
    return collector.owners


def collect_case_alignment(tree: SyntaxNode, config: Optional[FormatConfig] = None) -> dict[int, int]:
    collector = CaseAlignmentCollector(config or FormatConfig())
    collector.visit(tree)
    return collector.alignment
