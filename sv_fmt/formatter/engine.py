"""
Streaming formatting engine.

A single forward pass over the projected token stream drives the Emitter.
Per token kind:
  - NEWLINE: commit a line break (or join `end` / `else` onto one line)
  - COMMENT: line comments stay where they are, block comments get a blank
    line before and after
  - DIRECTIVE: own line, flush left
  - everything else: indentation, spacing and punctuation rules

Alongside runs a small state machine that notices control constructs
(if/else/for/foreach/while/do/forever) whose body spans several statements
without an explicit begin/end, and inserts a synthetic begin ... end pair.
"""

from __future__ import annotations
import logging
import sys
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Optional

from sv_fmt.config import FormatConfig
from sv_fmt.formatter.analysis import (
    ByteSpan,
    collect_case_alignment,
    collect_else_owners,
    collect_statement_spans,
)
from sv_fmt.formatter.emitter import Emitter
from sv_fmt.formatter.lexical import Token, TokenKind, project_tokens
from sv_fmt.formatter.spacing import NO_SPACE_BEFORE, needs_space_after
from sv_fmt.formatter.wrapping import wrap_formatted_output
from sv_fmt.hdl_parser.parser import parse_systemverilog

logger = logging.getLogger(__name__)


# Opening keywords without a matching close keep the extra level until the
# enclosing scope ends: prototypes such as `extern function`, `pure virtual
# task`, `typedef class foo;` and DPI imports are indented as if they had a
# body. `wait fork` / `disable fork` are recognised and do not indent.
INDENT_KEYWORDS = frozenset({
    "module", "class", "function", "task", "package", "begin",
    "case", "casex", "casez", "randcase", "randsequence", "covergroup",
    "fork", "generate", "interface",
})

# endinterface does not dedent.
DEDENT_KEYWORDS = frozenset({
    "end", "endmodule", "endclass", "endfunction", "endtask", "endcase",
    "endsequence", "endpackage", "endgroup", "endgenerate",
    "join", "join_any", "join_none",
})

SECTION_KEYWORDS = frozenset({"package", "class", "interface"})

# Upper bound on tokens looked at when deciding whether a body needs begin/end.
WRAP_SCAN_LIMIT = 128


def _keyword_in(token: Token, words: frozenset[str]) -> bool:
    return token.kind is TokenKind.KEYWORD and token.lowered in words


def is_indent_keyword(token: Token) -> bool:
    return _keyword_in(token, INDENT_KEYWORDS)


def is_dedent_keyword(token: Token) -> bool:
    return _keyword_in(token, DEDENT_KEYWORDS)


# ============================================================
# Auto begin/end state machine
# ============================================================

class WrapMode(Enum):
    IDLE = auto()
    WAITING_CONDITION = auto()   # saw if/for/..., skipping the (...) header
    READY = auto()               # header done, body not yet seen


class WrapKeyword(Enum):
    IF = "if"
    ELSE = "else"
    FOR = "for"
    FOREACH = "foreach"
    WHILE = "while"
    DO = "do"
    FOREVER = "forever"

    @classmethod
    def from_token(cls, token: Token) -> Optional[WrapKeyword]:
        if token.kind is not TokenKind.KEYWORD:
            return None
        try:
            return cls(token.lowered)
        except ValueError:
            return None


_HEADER_KEYWORDS = frozenset({
    WrapKeyword.IF, WrapKeyword.FOR, WrapKeyword.FOREACH, WrapKeyword.WHILE,
})


@dataclass(frozen=True)
class WrapState:
    mode: WrapMode = WrapMode.IDLE
    paren_depth: int = 0
    keyword: Optional[WrapKeyword] = None
    body_span: Optional[ByteSpan] = None


IDLE = WrapState()


def arm(state: WrapState, token: Token, span: Optional[ByteSpan]) -> WrapState:
    """Start tracking a control construct if `token` opens one."""
    kw = WrapKeyword.from_token(token)
    if kw is None:
        return state
    mode = WrapMode.WAITING_CONDITION if kw in _HEADER_KEYWORDS else WrapMode.READY
    return WrapState(mode=mode, paren_depth=0, keyword=kw, body_span=span)


def observe(state: WrapState, token: Token) -> WrapState:
    """Advance the state machine past `token`."""
    if state.mode is WrapMode.WAITING_CONDITION:
        if token.text == "(":
            return replace(state, paren_depth=state.paren_depth + 1)
        if token.text == ")":
            depth = max(state.paren_depth - 1, 0)
            if depth == 0:
                return replace(state, paren_depth=0, mode=WrapMode.READY)
            return replace(state, paren_depth=depth)
        return state
    if state.mode is WrapMode.READY:
        if token.is_keyword("begin") or token.text == ";" or is_dedent_keyword(token):
            return IDLE
    return state


def body_needs_wrap(state: WrapState, tokens: list[Token], index: int) -> bool:
    """Decide whether the body starting at tokens[index] holds more than one statement.

    With a known body span, the body itself is skipped and a single further
    `;` before the enclosing block closes means the source indentation
    implied a longer body. Without one, two terminators are required.
    """
    if state.keyword is None:
        return False

    span = state.body_span
    required = 1 if span is not None else 2
    semicolons = 0
    inspected = 0
    for token in tokens[index:]:
        if token.kind is TokenKind.NEWLINE:
            continue
        if span is not None and token.offset in span:
            continue
        if token.is_keyword("begin"):
            return False
        if state.keyword is WrapKeyword.ELSE and token.is_keyword("if"):
            return False
        if token.is_keyword("else") or is_dedent_keyword(token):
            break
        if token.text == ";":
            semicolons += 1
            if semicolons >= required:
                break
        inspected += 1
        if inspected >= WRAP_SCAN_LIMIT:
            break
    return semicolons >= required


@dataclass(frozen=True)
class SyntheticBlock:
    level: int    # indent level inside the inserted begin
    start: int    # offset of the first token of the body


# ============================================================
# Engine
# ============================================================

class Formatter:
    """One formatting run over a projected token stream."""

    def __init__(
        self,
        config: FormatConfig,
        tokens: list[Token],
        body_spans: dict[int, ByteSpan],
        case_alignment: dict[int, int],
        else_owners: Optional[dict[int, int]] = None,
    ):
        self.config = config
        self.tokens = tokens
        self.body_spans = body_spans
        self.case_alignment = case_alignment
        self.else_owners = else_owners or {}
        self.idx = 0
        self.emitter = Emitter(config)
        self.previous_call_ident = False
        self.inserted_blocks: list[SyntheticBlock] = []
        self.wrap_state = IDLE

    def format(self) -> str:
        while self.idx < len(self.tokens):
            token = self.tokens[self.idx]
            if token.kind is TokenKind.NEWLINE:
                self._handle_newline()
            elif token.kind is TokenKind.COMMENT:
                self._handle_comment(token)
            elif token.kind is TokenKind.DIRECTIVE:
                self._handle_directive(token)
            else:
                self._handle_token(token)
            self.idx += 1

        if self.config.wrap_multiline_blocks:
            while self.inserted_blocks:
                self._close_synthetic_block()

        self.emitter.trim_trailing_whitespace()
        output = self.emitter.text.rstrip("\n") + "\n"
        if self.config.auto_wrap_long_lines and self.config.max_line_length > 0:
            output = wrap_formatted_output(output, self.config)
        return output

    # ---- Lookaround ----

    def _prev_non_newline(self) -> Optional[Token]:
        for i in range(self.idx - 1, -1, -1):
            if self.tokens[i].kind is not TokenKind.NEWLINE:
                return self.tokens[i]
        return None

    def _peek_non_newline(self) -> Optional[Token]:
        for i in range(self.idx + 1, len(self.tokens)):
            if self.tokens[i].kind is not TokenKind.NEWLINE:
                return self.tokens[i]
        return None

    # ---- Per-kind handlers ----

    def _handle_newline(self):
        if self.config.inline_end_else:
            prev = self._prev_non_newline()
            if prev is not None and prev.is_keyword("end"):
                nxt = self._peek_non_newline()
                if nxt is not None and nxt.is_keyword("else"):
                    self.emitter.pending_space = True
                    return

        self.emitter.newline()
        self.previous_call_ident = False

        if self.config.wrap_multiline_blocks:
            self._maybe_insert_auto_begin()

    def _handle_comment(self, token: Token):
        text = token.text.rstrip("\n")
        if text.lstrip().startswith("/*"):
            self._emit_block_comment(text)
        else:
            self._emit_line_comment(text, "\n" in token.text)

    def _emit_line_comment(self, text: str, had_newline: bool):
        em = self.emitter
        if em.at_line_start:
            em.write_indent()
        else:
            em.trim_trailing_whitespace()
            if em.ends_with("\n"):
                em.write_indent()
            else:
                em.push(" ")
        em.push(text)
        if had_newline:
            em.push("\n")
            em.at_line_start = True
        else:
            em.at_line_start = False
        em.pending_space = False
        em.last_line_was_comment = True
        self.previous_call_ident = False

    def _emit_block_comment(self, text: str):
        em = self.emitter
        em.ensure_blank_line()
        em.write_indent()
        em.push(text)
        em.push("\n")
        em.ensure_blank_line_after_comment()
        em.last_line_was_comment = True
        self.previous_call_ident = False

    def _handle_directive(self, token: Token):
        em = self.emitter
        if not em.at_line_start:
            em.newline()
        if not self.config.align_preprocessor:
            em.write_indent()
        em.push(token.text)
        em.at_line_start = False
        em.pending_space = False
        em.last_line_was_comment = False

    def _maybe_section_spacing(self, token: Token):
        if not _keyword_in(token, SECTION_KEYWORDS):
            return
        em = self.emitter
        if em.is_empty() or em.last_line_was_comment:
            return
        em.ensure_blank_line()
        em.last_line_was_comment = False

    def _handle_token(self, token: Token):
        em = self.emitter
        if self.config.wrap_multiline_blocks:
            self._flush_auto_end_before(token)
            self.wrap_state = observe(self.wrap_state, token)

        if is_dedent_keyword(token):
            em.decrease_indent()

        if self.config.align_case_colon and token.text == ":":
            if self._apply_case_alignment(token):
                return

        if em.at_line_start:
            self._maybe_section_spacing(token)
            em.write_indent()
        elif em.pending_space and token.text not in NO_SPACE_BEFORE:
            em.push(" ")

        if token.text == "," and self.config.space_after_comma:
            em.trim_trailing_whitespace()
            em.push(",")
            em.pending_space = True
        elif token.text == "(" and self.config.remove_call_space and self.previous_call_ident:
            em.trim_trailing_whitespace()
            em.push("(")
            em.pending_space = False
        else:
            em.push(token.text)
            nxt = self._peek_non_newline()
            em.pending_space = needs_space_after(token.text, nxt.text if nxt else None)

        if self._opens_scope(token):
            em.increase_indent()

        em.at_line_start = False
        em.last_line_was_comment = False
        self.previous_call_ident = token.is_identifier_like()

        if self.config.wrap_multiline_blocks:
            self.wrap_state = arm(self.wrap_state, token, self.body_spans.get(token.offset))

    def _opens_scope(self, token: Token) -> bool:
        if not is_indent_keyword(token):
            return False
        if token.is_keyword("fork"):
            prev = self._prev_non_newline()
            return prev is None or prev.lowered not in ("wait", "disable")
        return True

    def _apply_case_alignment(self, token: Token) -> bool:
        padding = self.case_alignment.get(token.offset)
        if padding is None:
            return False
        em = self.emitter
        em.trim_trailing_whitespace()
        em.push(" " * padding + ":")
        em.pending_space = True
        em.at_line_start = False
        self.previous_call_ident = False
        return True

    # ---- Synthetic begin/end ----

    def _maybe_insert_auto_begin(self):
        if self.wrap_state.mode is not WrapMode.READY:
            return
        if body_needs_wrap(self.wrap_state, self.tokens, self.idx + 1):
            em = self.emitter
            em.write_indent()
            em.push("begin\n")
            em.increase_indent()
            em.at_line_start = True
            first = self._peek_non_newline()
            start = first.offset if first is not None else sys.maxsize
            self.inserted_blocks.append(SyntheticBlock(level=em.indent_level, start=start))
            logger.debug("Inserted begin for '%s' at indent %d",
                         self.wrap_state.keyword.value, em.indent_level)
        self.wrap_state = IDLE

    def _flush_auto_end_before(self, token: Token):
        """Close the synthetic blocks that `token` ends, innermost first.

        A dedent keyword ends every synthetic block at or below the current
        level; one that closes a construct opened inside the block leaves it
        open. An else ends a block only when its if lies before the block.
        """
        blocks = self.inserted_blocks
        if token.is_keyword("else"):
            owner = self.else_owners.get(token.offset)
            if owner is None:
                return
            while (blocks and owner < blocks[-1].start
                   and blocks[-1].level >= self.emitter.indent_level):
                self._close_synthetic_block()
        elif is_dedent_keyword(token):
            while blocks and blocks[-1].level >= self.emitter.indent_level:
                self._close_synthetic_block()

    def _close_synthetic_block(self):
        self.inserted_blocks.pop()
        self._insert_auto_end()

    def _insert_auto_end(self):
        em = self.emitter
        em.trim_trailing_whitespace()
        em.ensure_trailing_newline()
        em.decrease_indent()
        em.write_indent()
        em.push("end\n")
        em.at_line_start = True
        em.pending_space = False
        self.previous_call_ident = False
        logger.debug("Inserted end at indent %d", em.indent_level)


def format_text(source: str, config: Optional[FormatConfig] = None) -> str:
    """Format SystemVerilog `source`. Raises ParseError on malformed input."""
    config = config or FormatConfig()
    tree = parse_systemverilog(source)
    body_spans = collect_statement_spans(tree)
    case_alignment = collect_case_alignment(tree, config)
    else_owners = collect_else_owners(tree)
    tokens = project_tokens(tree)
    logger.debug("Formatting %d tokens (%d body spans, %d aligned colons)",
                 len(tokens), len(body_spans), len(case_alignment))
    return Formatter(config, tokens, body_spans, case_alignment, else_owners).format()
