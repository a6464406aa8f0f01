"""
Traversal helpers for the concrete syntax tree.

Two styles are provided:
  - iter_events(): a flat stream of (ENTER, node) / (LEAVE, node) pairs in
    source order, for passes that keep nesting counters
  - SyntaxVisitor: visit_<ClassName> dispatch with a generic_visit fallback,
    for passes that only care about a few node types
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Any, Iterator

from sv_fmt.hdl_parser.syntax import (
    SyntaxNode,
    Terminal,
)


class NodeEvent(Enum):
    ENTER = auto()
    LEAVE = auto()


def iter_events(node: SyntaxNode) -> Iterator[tuple[NodeEvent, SyntaxNode]]:
    """Yield enter/leave events for `node` and everything below it.

    Uses an explicit stack, so deeply nested sources do not hit the
    interpreter recursion limit.
    """
    stack: list[tuple[SyntaxNode, Iterator[SyntaxNode]]] = []
    yield NodeEvent.ENTER, node
    stack.append((node, node.children()))
    while stack:
        parent, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            yield NodeEvent.LEAVE, parent
            continue
        yield NodeEvent.ENTER, child
        stack.append((child, child.children()))


def iter_terminals(node: SyntaxNode) -> Iterator[Terminal]:
    """Significant tokens under `node`, in source order."""
    for event, n in iter_events(node):
        if event is NodeEvent.ENTER and isinstance(n, Terminal):
            yield n


class SyntaxVisitor:
    """
    Base class for syntax tree visitors.

    Subclasses override visit_* methods for the node types they care about
    and call generic_visit() to keep descending.

    Usage:
        class IfCounter(SyntaxVisitor):
            def __init__(self):
                self.count = 0

            def visit_ConditionalStatement(self, node):
                self.count += 1
                return self.generic_visit(node)
    """

    def visit(self, node: SyntaxNode) -> Any:
        if node is None:
            return None
        method_name = f'visit_{node.__class__.__name__}'
        visitor_method = getattr(self, method_name, self.generic_visit)
        return visitor_method(node)

    def generic_visit(self, node: SyntaxNode) -> Any:
        for child in node.children():
            self.visit(child)
        return None


class TreeDumper(SyntaxVisitor):
    """
    Visitor that dumps the tree structure as indented text.
    Trivia is left out; terminals show their text.
    """

    def __init__(self, indent: str = "  "):
        self.indent = indent
        self.level = 0
        self.output: list[str] = []

    def dump(self, node: SyntaxNode) -> str:
        self.output = []
        self.level = 0
        self.visit(node)
        return "\n".join(self.output)

    def visit_Terminal(self, node: Terminal) -> Any:
        self.output.append(f"{self.indent * self.level}{node.text!r}")
        return None

    def visit_WhiteSpace(self, node) -> Any:
        return None

    visit_Comment = visit_WhiteSpace
    visit_CompilerDirective = visit_WhiteSpace

    def generic_visit(self, node: SyntaxNode) -> Any:
        self.output.append(f"{self.indent * self.level}{node.__class__.__name__}")
        self.level += 1
        super().generic_visit(node)
        self.level -= 1
        return None
