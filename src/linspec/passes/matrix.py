"""
Matrix Generator

Componentwise matrix operations are two nested reductions: the cell template
is reduced over the column hole ``j`` into a row, the row (still open in
``i``) becomes the component of an outer reduction over ``i``. Both levels use
the ``[x]`` / ``x, y`` array wrap and fold.

    transpose, n=2:  [[a[0][0], a[1][0]], [a[0][1], a[1][1]]]

Matrix ``times`` and ``determinant`` are known by name but have no generator.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ..ir.matching import Template
from ..ir.nodes import ExpressionIR, FunctionSpec
from ..shared.errors import ConfigurationError, UnsupportedOperationError
from ..utils.config import COLUMN_INDEX_HOLE, ROW_INDEX_HOLE
from .base import BasePass, Functions, GenerationContext
from .field_rewrite import apply_field
from .reduction import ARRAY_FOLD, ARRAY_WRAP, FOLD_HOLES, WRAP_HOLES, check_dimension, reduce

logger = logging.getLogger("linspec.passes.matrix")


@dataclass(frozen=True)
class Componentwise:
    name: str
    formals: Tuple[str, ...]
    cell: str


MATRIX_COMPONENTWISE: Tuple[Componentwise, ...] = (
    Componentwise("plus", ("a", "b"), "a[i][j] + b[i][j]"),
    Componentwise("minus", ("a", "b"), "a[i][j] - b[i][j]"),
    Componentwise("scale", ("a", "b"), "a[i][j] * b"),
    Componentwise("transpose", ("a",), "a[j][i]"),
)

# Known operations with no generator yet (no agreed unrolled form)
MATRIX_UNSUPPORTED: Tuple[str, ...] = ("times", "determinant")

MATRIX_OPERATIONS: Tuple[str, ...] = tuple(op.name for op in MATRIX_COMPONENTWISE) + MATRIX_UNSUPPORTED


def componentwise(n: int, formals: Sequence[str], cell: str, name: str = "matrix") -> ExpressionIR:
    """Unroll *cell* over ``i`` and ``j`` into an n x n array literal."""
    check_dimension(n)
    wrap = Template.parse(ARRAY_WRAP, WRAP_HOLES, name=f"<{name}:wrap>")
    fold = Template.parse(ARRAY_FOLD, FOLD_HOLES, name=f"<{name}:fold>")
    cell_template = Template.parse(cell, {COLUMN_INDEX_HOLE}, name=f"<{name}:cell>")

    # The row still mentions i, which the outer reduction binds
    row = reduce(n, tuple(formals) + (ROW_INDEX_HOLE,), wrap, fold, cell_template,
                 index=COLUMN_INDEX_HOLE)
    return reduce(n, formals, wrap, fold, Template(row, {ROW_INDEX_HOLE}), index=ROW_INDEX_HOLE)


def select_operations(operations: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """
    Validate a requested subset of matrix operations.

    None selects every generated operation. Unknown names raise
    ConfigurationError, ``times`` and ``determinant`` raise
    UnsupportedOperationError.
    """
    if operations is None:
        return tuple(op.name for op in MATRIX_COMPONENTWISE)
    if isinstance(operations, str):
        operations = (operations,)

    selected = tuple(dict.fromkeys(operations))
    unknown = [name for name in selected if name not in MATRIX_OPERATIONS]
    if unknown:
        raise ConfigurationError(
            f"unknown matrix operation(s) {', '.join(map(repr, unknown))}; "
            f"expected one of {', '.join(MATRIX_OPERATIONS)}"
        )
    for name in selected:
        if name in MATRIX_UNSUPPORTED:
            raise UnsupportedOperationError(f"matrix '{name}' is not implemented yet")
    return selected


class MatrixComponentwisePass(BasePass):
    """Generate the selected componentwise matrix operations."""
    requires = []

    def run(self, functions: Functions, ctx: GenerationContext) -> Functions:
        selected = select_operations(ctx.operations)
        merged = dict(functions)
        for op in MATRIX_COMPONENTWISE:
            if op.name not in selected:
                continue
            body = apply_field(componentwise(ctx.dimension, op.formals, op.cell, name=op.name), ctx.field)
            merged[op.name] = FunctionSpec(op.name, op.formals, body)
        logger.debug(f"n={ctx.dimension}: generated matrix {', '.join(selected)}")
        return merged
