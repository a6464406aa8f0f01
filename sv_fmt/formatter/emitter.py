"""
Output accumulator for the formatting engine.

Holds the text written so far together with the indent level and the
line/spacing flags the engine steers by. Text is kept as a list of chunks;
only the tail is ever inspected or trimmed.
"""

from __future__ import annotations

from sv_fmt.config import FormatConfig


class Emitter:
    def __init__(self, config: FormatConfig):
        self.config = config
        self._parts: list[str] = []
        self.indent_level = 0
        self.at_line_start = True
        self.pending_space = False
        self.last_line_was_comment = False

    # ---- Buffer inspection ----

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def is_empty(self) -> bool:
        return not self._parts

    def ends_with(self, suffix: str) -> bool:
        tail = ""
        for part in reversed(self._parts):
            tail = part + tail
            if len(tail) >= len(suffix):
                break
        return tail.endswith(suffix)

    # ---- Indentation ----

    def increase_indent(self):
        self.indent_level += 1

    def decrease_indent(self):
        self.indent_level = max(self.indent_level - 1, 0)

    def indent_text(self, level: int) -> str:
        if self.config.use_tabs:
            return "\t" * level
        return " " * (level * self.config.indent_width)

    def write_indent(self):
        self.push(self.indent_text(self.indent_level))
        self.at_line_start = False
        self.pending_space = False

    # ---- Writing ----

    def push(self, text: str):
        if text:
            self._parts.append(text)

    def trim_trailing_whitespace(self):
        """Drop spaces and tabs at the end of the buffer."""
        while self._parts:
            stripped = self._parts[-1].rstrip(" \t")
            if stripped:
                self._parts[-1] = stripped
                return
            self._parts.pop()

    def ensure_trailing_newline(self):
        if not self.ends_with("\n"):
            self.push("\n")

    def newline(self):
        """Finish the current line."""
        self.trim_trailing_whitespace()
        if not self.is_empty():
            self.ensure_trailing_newline()
        self.at_line_start = True
        self.pending_space = False

    def ensure_blank_line(self):
        """Make sure exactly one blank line separates what follows from what came before."""
        self.trim_trailing_whitespace()
        if self.is_empty():
            self.at_line_start = True
            return
        self._ensure_blank()

    def ensure_blank_line_after_comment(self):
        self._ensure_blank()

    def _ensure_blank(self):
        self.ensure_trailing_newline()
        if not self.ends_with("\n\n"):
            self.push("\n")
        self.at_line_start = True
        self.pending_space = False
