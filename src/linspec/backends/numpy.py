"""
NumPy Backend

Tree interpreter for generated functions. It executes a FunctionSpec body
directly over Python/NumPy values so generated tables can be checked
numerically; it does no performance work.

Value model:
- numbers stay Python/NumPy scalars
- array literals of numbers become ``np.ndarray``; arrays holding records
  stay lists
- records become dicts, field access is a key lookup
- a ReferenceIR evaluates to a callable running the referenced spec
"""

import functools
import logging
import numbers
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import numpy as np

from ..ir.nodes import (
    IRVisitor, ExpressionIR, LiteralIR, VariableIR, IndexIR, FieldAccessIR,
    BinaryOpIR, UnaryOpIR, ArrayLiteralIR, RecordIR, SequenceIR, CallIR,
    ReferenceIR, FunctionSpec,
)
from ..ir.visitor import post_order
from ..shared.errors import EvaluationError
from ..shared.types import BinaryOp, UnaryOp

logger = logging.getLogger("linspec.backends.numpy")


def _safe_true_divide(l, r):
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.true_divide(l, r)


_BINARY_OP_MAP = {
    BinaryOp.ADD: lambda l, r: l + r,
    BinaryOp.SUB: lambda l, r: l - r,
    BinaryOp.MUL: lambda l, r: l * r,
    BinaryOp.DIV: _safe_true_divide,
}

_UNARY_OP_MAP = {
    UnaryOp.NEG: lambda o: -o,
    UnaryOp.SQRT: np.sqrt,
}


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (numbers.Number, np.ndarray, np.generic))


class _Evaluator(IRVisitor[Any]):
    """Evaluates one tree in one environment."""

    def __init__(self, backend: 'NumpyBackend', env: Mapping[str, Any]):
        self.backend = backend
        self.env = env
        self._values: Dict[int, Tuple[ExpressionIR, Any]] = {}

    def evaluate(self, node: ExpressionIR) -> Any:
        # children first, each node object once: a field template that reads
        # _x twice shares that sub-tree
        values = self._values
        for current in post_order(node, values):
            values[id(current)] = (current, current.accept(self))
        return values[id(node)][1]

    def visit_literal(self, node: LiteralIR) -> Any:
        return node.value

    def visit_variable(self, node: VariableIR) -> Any:
        if node.name not in self.env:
            raise EvaluationError(f"unbound variable '{node.name}'")
        return self.env[node.name]

    def visit_index(self, node: IndexIR) -> Any:
        base = self.evaluate(node.base)
        index = self.evaluate(node.index)
        try:
            return base[int(index)]
        except (IndexError, KeyError, TypeError) as e:
            raise EvaluationError(f"cannot index {type(base).__name__} with {index!r}: {e}") from e

    def visit_field_access(self, node: FieldAccessIR) -> Any:
        base = self.evaluate(node.base)
        if not isinstance(base, Mapping):
            raise EvaluationError(f"field access '.{node.field}' on {type(base).__name__}")
        if node.field not in base:
            raise EvaluationError(f"record has no field '{node.field}'")
        return base[node.field]

    def visit_binary_op(self, node: BinaryOpIR) -> Any:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        try:
            return _BINARY_OP_MAP[node.operator](left, right)
        except TypeError as e:
            raise EvaluationError(
                f"'{node.operator.value}' not defined for {type(left).__name__} and "
                f"{type(right).__name__}"
            ) from e

    def visit_unary_op(self, node: UnaryOpIR) -> Any:
        operand = self.evaluate(node.operand)
        try:
            return _UNARY_OP_MAP[node.operator](operand)
        except TypeError as e:
            raise EvaluationError(
                f"'{node.operator.value}' not defined for {type(operand).__name__}"
            ) from e

    def visit_array_literal(self, node: ArrayLiteralIR) -> Any:
        elements = [self.evaluate(e) for e in node.elements]
        if all(_is_numeric(e) for e in elements):
            return np.array(elements)
        return elements

    def visit_record(self, node: RecordIR) -> Any:
        return {key: self.evaluate(value) for key, value in node.entries}

    def visit_sequence(self, node: SequenceIR) -> Any:
        return tuple(self.evaluate(e) for e in node.elements)

    def visit_call(self, node: CallIR) -> Any:
        callee = self.evaluate(node.callee)
        if not callable(callee):
            raise EvaluationError(f"{type(callee).__name__} is not callable")
        args = [self.evaluate(a) for a in node.arguments]
        return callee(*args)

    def visit_reference(self, node: ReferenceIR) -> Any:
        return functools.partial(self.backend.call, node.target)


class NumpyBackend:
    """
    Execute generated functions.

    ``globals`` are visible to every evaluation; ``bind`` adds the table's
    functions so call-by-name sites resolve too.
    """

    def __init__(self, globals: Optional[Mapping[str, Any]] = None):
        self.globals: Dict[str, Any] = dict(globals or {})

    def evaluate(self, tree: ExpressionIR, env: Optional[Mapping[str, Any]] = None) -> Any:
        scope = dict(self.globals)
        scope.update(env or {})
        return _Evaluator(self, scope).evaluate(tree)

    def call(self, spec: FunctionSpec, *args: Any) -> Any:
        if len(args) != spec.arity:
            raise EvaluationError(
                f"'{spec.name}' takes {spec.arity} argument(s), got {len(args)}"
            )
        return self.evaluate(spec.body, dict(zip(spec.formals, args)))

    def bind(self, table: Mapping[str, FunctionSpec]) -> Dict[str, Callable[..., Any]]:
        """Callables for every function of *table*, keyed like the table."""
        bound = {name: functools.partial(self.call, table[name]) for name in table}
        self.globals.update(bound)
        logger.debug(f"bound {len(bound)} function(s)")
        return bound
