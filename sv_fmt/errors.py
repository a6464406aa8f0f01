"""
Error types raised by the formatter and its collaborators.

Everything derives from FormatterError so a multi-file driver can catch one
type per file and keep going.
"""

from __future__ import annotations


class FormatterError(Exception):
    """Base class for all sv-fmt errors."""
    pass


class ParseError(FormatterError):
    """Raised when the source cannot be lexed or parsed.

    Carries the 1-based line/column of the offending token and, when the
    source text is known, renders the line with a caret underneath.
    """

    def __init__(self, message: str, line: int, col: int, source: str = "") -> None:
        self.message = message
        self.line = line
        self.col = col
        self.source = source
        super().__init__(self.format())

    def format(self, filename: str = "<input>") -> str:
        header = f"error: {self.message}"
        gutter_width = len(str(self.line)) + 1
        pointer = f"{' ' * gutter_width}--> {filename}:{self.line}:{self.col}"
        if not self.source:
            return f"{header}\n{pointer}"

        lines = self.source.split("\n")
        line_idx = self.line - 1
        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\r")
        else:
            source_line = ""

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{self.line:>{gutter_width - 1}} |"
        pad = " " * (self.col - 1)
        return (
            f"{header}\n"
            f"{pointer}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}^"
        )


class ConfigError(FormatterError):
    """Raised when a configuration file cannot be read or holds bad values."""
    pass


class EncodingError(FormatterError):
    """Raised when an input file is not valid UTF-8 text."""
    pass
