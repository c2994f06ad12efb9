"""
Template Transformer

Converts the Lark parse tree of a template into IR nodes.
"""

from typing import Tuple

from lark import Transformer, v_args
from lark.lexer import Token
from typing_extensions import TypeAlias

from ..ir.nodes import (
    ExpressionIR, LiteralIR, VariableIR, IndexIR, FieldAccessIR, BinaryOpIR,
    UnaryOpIR, ArrayLiteralIR, RecordIR, SequenceIR, CallIR,
)
from ..shared.types import BinaryOp, UnaryOp

Entry: TypeAlias = Tuple[str, ExpressionIR]

SQRT_NAME = UnaryOp.SQRT.value


@v_args(inline=True)
class TemplateTransformer(Transformer):
    """
    Builds IR for one template.

    ``native`` is stamped on every operator the template spells out: field
    templates describe host arithmetic (native), generator templates describe
    abstract field operations.
    """

    def __init__(self, native: bool = False) -> None:
        super().__init__()
        self.native = native

    def number(self, token: Token) -> LiteralIR:
        text = str(token)
        if text.isdigit():
            return LiteralIR(int(text))
        return LiteralIR(float(text))

    def variable(self, token: Token) -> VariableIR:
        return VariableIR(str(token))

    def binary(self, left: ExpressionIR, operator: Token, right: ExpressionIR) -> BinaryOpIR:
        return BinaryOpIR(BinaryOp(str(operator)), left, right, self.native)

    def negate(self, _minus: Token, operand: ExpressionIR) -> ExpressionIR:
        # -2 is a literal, not an operation on 2
        if isinstance(operand, LiteralIR):
            return LiteralIR(-operand.value)
        return UnaryOpIR(UnaryOp.NEG, operand, self.native)

    def index(self, base: ExpressionIR, index: ExpressionIR) -> IndexIR:
        return IndexIR(base, index)

    def field_access(self, base: ExpressionIR, name: Token) -> FieldAccessIR:
        return FieldAccessIR(base, str(name))

    def call(self, callee: ExpressionIR, arguments: Tuple[ExpressionIR, ...] = ()) -> ExpressionIR:
        if callee == VariableIR(SQRT_NAME) and len(arguments) == 1:
            return UnaryOpIR(UnaryOp.SQRT, arguments[0], self.native)
        return CallIR(callee, tuple(arguments))

    def arguments(self, *items: ExpressionIR) -> Tuple[ExpressionIR, ...]:
        return tuple(items)

    def array(self, elements: Tuple[ExpressionIR, ...] = ()) -> ArrayLiteralIR:
        return ArrayLiteralIR(tuple(elements))

    def record(self, entries: Tuple[Entry, ...] = ()) -> RecordIR:
        return RecordIR(tuple(entries))

    def entries(self, *items: Entry) -> Tuple[Entry, ...]:
        return tuple(items)

    def entry(self, name: Token, value: ExpressionIR) -> Entry:
        return (str(name), value)

    def sequence(self, *items: ExpressionIR) -> SequenceIR:
        return SequenceIR(tuple(items))
