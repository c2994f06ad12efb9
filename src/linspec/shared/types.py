"""
Operator Types

Operator symbols that can appear in generated expression trees. The arithmetic
operators are exactly the ones a Field may substitute.
"""

from enum import Enum


class BinaryOp(Enum):
    """Binary operators - compile-time checked enum"""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


class UnaryOp(Enum):
    """Unary operators - compile-time checked enum"""
    NEG = "-"
    SQRT = "sqrt"
