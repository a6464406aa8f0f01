"""
Inter-token spacing rules shared by the engine and the case-label measure.
"""

from __future__ import annotations
from typing import Optional

from sv_fmt.config import FormatConfig
from sv_fmt.formatter.lexical import TokenKind, classify

NO_SPACE_BEFORE = frozenset({")", "]", "}", ",", ";", "."})
NO_SPACE_AFTER = frozenset({"(", "[", "{", ".", "@"})


def needs_space_after(text: str, next_text: Optional[str]) -> bool:
    if text in NO_SPACE_AFTER:
        return False
    if text == ":":
        return next_text is not None and next_text != ":"
    return True


def render_run(texts: list[str], config: FormatConfig) -> str:
    """Lay out a run of token texts on one line the way the engine does."""
    out = ""
    pending = False
    prev_ident = False
    for i, text in enumerate(texts):
        next_text = texts[i + 1] if i + 1 < len(texts) else None
        if out and pending and text not in NO_SPACE_BEFORE:
            out += " "
        if text == "," and config.space_after_comma:
            out = out.rstrip(" ") + ","
            pending = True
        elif text == "(" and config.remove_call_space and prev_ident:
            out = out.rstrip(" ") + "("
            pending = False
        else:
            out += text
            pending = needs_space_after(text, next_text)
        prev_ident = classify(text) is TokenKind.IDENTIFIER
    return out
