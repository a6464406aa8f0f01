"""
Post-pass that breaks lines longer than max_line_length.

Each line is handled on its own. Comment and directive lines are never
touched. A long line is cut greedily after the last whitespace or one of
`, ; + - * / & | =` seen before the limit, and continues one indentation
unit deeper than the line it came from.
"""

from __future__ import annotations

from sv_fmt.config import FormatConfig

BREAK_AFTER = frozenset(",;+-*/&|=")

_UNWRAPPABLE_PREFIXES = ("//", "/*", "*", "`")


def wrap_line(line: str, config: FormatConfig) -> list[str]:
    """Split one line (without its line break) into segments."""
    limit = config.max_line_length
    if limit == 0 or len(line) <= limit:
        return [line]
    body = line.lstrip()
    if not body or body.startswith(_UNWRAPPABLE_PREFIXES):
        return [line]

    indent = line[:len(line) - len(body)]
    if config.use_tabs:
        continuation = indent + "\t"
    else:
        continuation = indent + " " * config.indent_width

    segments: list[str] = []
    current = list(indent)
    last_break = None
    skip_space = False
    for pos, ch in enumerate(body):
        if skip_space:
            if ch.isspace():
                continue
            skip_space = False
        current.append(ch)
        if ch.isspace() or ch in BREAK_AFTER:
            last_break = len(current)

        if len(current) > limit:
            if last_break is None:
                # nothing to cut at: keep the rest of the line as it is
                current.extend(body[pos + 1:])
                break
            head = "".join(current[:last_break]).rstrip()
            tail = "".join(current[last_break:]).lstrip()
            if head.strip():
                segments.append(head)
            current = list(continuation + tail)
            last_break = None
            skip_space = not tail

    segments.append("".join(current))
    return segments


def wrap_formatted_output(text: str, config: FormatConfig) -> str:
    """Wrap every over-long line of already formatted `text`."""
    if config.max_line_length == 0:
        return text
    out: list[str] = []
    for line in text.split("\n"):
        out.extend(wrap_line(line, config))
    return "\n".join(out)
