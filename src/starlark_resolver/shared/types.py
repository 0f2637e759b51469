"""
Operator and Kind Enums

Closed sets of tags used by the AST. The enum value is the source spelling,
so the transformer can build members straight from tokens (``BinaryOp("+")``)
and nodes can print themselves back as source.
"""

from enum import Enum


class BinaryOp(Enum):
    """Binary operators - compile-time checked enum"""
    # Logical
    OR = "or"
    AND = "and"

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"
    NOT_IN = "not in"

    # Bitwise
    PIPE = "|"
    CARET = "^"
    AMPERSAND = "&"
    LSHIFT = "<<"
    RSHIFT = ">>"

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    FLOOR_DIV = "//"
    MOD = "%"

    def __str__(self) -> str:
        return self.value


class UnaryOp(Enum):
    """Unary operators - compile-time checked enum"""
    NOT = "not"
    NEG = "-"
    POS = "+"
    INVERT = "~"

    def __str__(self) -> str:
        return self.value


class FlowKind(Enum):
    """Loop-control and no-op statements"""
    BREAK = "break"
    CONTINUE = "continue"
    PASS = "pass"

    def __str__(self) -> str:
        return self.value


class ArgumentKind(Enum):
    """Call-site argument forms: f(x), f(k=x), f(*x), f(**x)"""
    POSITIONAL = "positional"
    KEYWORD = "keyword"
    STAR = "star"
    STAR_STAR = "star_star"


class ParameterKind(Enum):
    """Definition-site parameter forms: def f(a, b=1, *args, **kwargs)"""
    MANDATORY = "mandatory"
    OPTIONAL = "optional"
    STAR = "star"
    STAR_STAR = "star_star"
