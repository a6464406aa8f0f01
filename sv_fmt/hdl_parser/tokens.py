"""
Token types for the SystemVerilog source lexer.

Unlike a compiler front end, the formatter needs every byte of the input
back, so whitespace, comments and compiler directives are tokens too
("trivia"). Offsets and lengths are in bytes of the UTF-8 encoding.
"""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
    # Trivia
    WHITESPACE = auto()     # spaces, tabs, newlines
    LINE_COMMENT = auto()   # // ...
    BLOCK_COMMENT = auto()  # /* ... */
    DIRECTIVE = auto()      # `ifdef FOO, `define W 8, `timescale 1ns/1ps

    # Significant
    KEYWORD = auto()        # module, begin, if, ...
    IDENT = auto()          # my_signal, $display, \bus[0]
    MACRO = auto()          # `WIDTH, `uvm_info
    NUMBER = auto()         # 32, 8'hFF, 'x, 1.5e3, 10ns
    STRING = auto()         # "hello"
    OPERATOR = auto()       # <=, ==, ::, +:, |-> ...
    SYMBOL = auto()         # single punctuation character

    EOF = auto()


TRIVIA_TYPES = frozenset({
    TokenType.WHITESPACE,
    TokenType.LINE_COMMENT,
    TokenType.BLOCK_COMMENT,
    TokenType.DIRECTIVE,
})


@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    col: int
    offset: int = 0     # byte offset of the first character
    length: int = 0     # byte length of value

    @property
    def is_trivia(self) -> bool:
        return self.type in TRIVIA_TYPES

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col} @{self.offset})"


# Reserved words of IEEE 1800. The lexer is case-sensitive like the language.
KEYWORDS: frozenset[str] = frozenset({
    "accept_on", "alias", "always", "always_comb", "always_ff", "always_latch",
    "and", "assert", "assign", "assume", "automatic", "before", "begin", "bind",
    "bins", "binsof", "bit", "break", "buf", "bufif0", "bufif1", "byte", "case",
    "casex", "casez", "cell", "chandle", "checker", "class", "clocking", "cmos",
    "config", "const", "constraint", "context", "continue", "cover",
    "covergroup", "coverpoint", "cross", "deassign", "default", "defparam",
    "design", "disable", "dist", "do", "edge", "else", "end", "endcase",
    "endchecker", "endclass", "endclocking", "endconfig", "endfunction",
    "endgenerate", "endgroup", "endinterface", "endmodule", "endpackage",
    "endprimitive", "endprogram", "endproperty", "endspecify", "endsequence",
    "endtable", "endtask", "enum", "event", "eventually", "expect", "export",
    "extends", "extern", "final", "first_match", "for", "force", "foreach",
    "forever", "fork", "forkjoin", "function", "generate", "genvar", "global",
    "highz0", "highz1", "if", "iff", "ifnone", "ignore_bins", "illegal_bins",
    "implements", "implies", "import", "incdir", "include", "initial", "inout",
    "input", "inside", "instance", "int", "integer", "interconnect",
    "interface", "intersect", "join", "join_any", "join_none", "large", "let",
    "liblist", "library", "local", "localparam", "logic", "longint",
    "macromodule", "matches", "medium", "modport", "module", "nand", "negedge",
    "nettype", "new", "nexttime", "nmos", "nor", "noshowcancelled", "not",
    "notif0", "notif1", "null", "or", "output", "package", "packed",
    "parameter", "pmos", "posedge", "primitive", "priority", "program",
    "property", "protected", "pull0", "pull1", "pulldown", "pullup",
    "pulsestyle_ondetect", "pulsestyle_onevent", "pure", "rand", "randc",
    "randcase", "randsequence", "rcmos", "real", "realtime", "ref", "reg",
    "reject_on", "release", "repeat", "restrict", "return", "rnmos", "rpmos",
    "rtran", "rtranif0", "rtranif1", "s_always", "s_eventually", "s_nexttime",
    "s_until", "s_until_with", "scalared", "sequence", "shortint",
    "shortreal", "showcancelled", "signed", "small", "soft", "solve",
    "specify", "specparam", "static", "string", "strong", "strong0",
    "strong1", "struct", "super", "sync_accept_on", "sync_reject_on",
    "table", "tagged", "task", "this", "throughout", "time", "timeprecision",
    "timeunit", "tran", "tranif0", "tranif1", "tri", "tri0", "tri1", "triand",
    "trior", "trireg", "type", "typedef", "union", "unique", "unique0",
    "unsigned", "until", "until_with", "untyped", "use", "uwire", "var",
    "vectored", "virtual", "void", "wait", "wait_order", "wand", "weak",
    "weak0", "weak1", "while", "wildcard", "wire", "with", "within", "wor",
    "xnor", "xor",
})

# Backtick words that start a compiler directive line. Any other backtick
# identifier is a text macro usage and stays in the token stream.
DIRECTIVES: frozenset[str] = frozenset({
    "begin_keywords", "celldefine", "default_nettype", "define", "else",
    "elsif", "end_keywords", "endcelldefine", "endif", "ifdef", "ifndef",
    "include", "line", "nounconnected_drive", "pragma", "resetall",
    "timescale", "unconnected_drive", "undef", "undefineall",
})

# Multi-character operators, longest first so a prefix never wins.
OPERATORS: tuple[str, ...] = (
    "<<<=", ">>>=",
    "===", "!==", "==?", "!=?", "<<<", ">>>", "<<=", ">>=", "|->", "|=>",
    "<->", "->>",
    "==", "!=", "<=", ">=", "&&", "||", "->", "<<", ">>", "**", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "::", "+:", "-:", "##",
    "~&", "~|", "~^", "^~", ".*",
)

SYMBOLS = "()[]{},;:.+-*/%!~&|^=<>?@#'$`"

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = frozenset(OPENERS.values())

TIME_UNITS: tuple[str, ...] = ("step", "fs", "ps", "ns", "us", "ms", "s")
