"""
Reduction Generator

Unrolls a per-component template over ``0..n-1`` and folds the results into
one loop-free body. Every vector base function is one row of
VECTOR_REDUCTIONS: a wrap template over ``x``, a fold template over ``x, y``
and a component template over the index hole ``i``.

    plus, n=3:  [a[0] + b[0], a[1] + b[1], a[2] + b[2]]
    dot,  n=2:  (a[0] * b[0]) + (a[1] * b[1])
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from ..ir.matching import Template
from ..ir.nodes import ExpressionIR, FunctionSpec
from ..shared.errors import ConfigurationError, PatternMismatchError
from ..utils.config import ACC_HOLE, MIN_DIMENSION, NEXT_HOLE, ROW_INDEX_HOLE
from .base import BasePass, Functions, GenerationContext
from .field_rewrite import apply_field

logger = logging.getLogger("linspec.passes.reduction")

WRAP_HOLES = frozenset({ACC_HOLE})
FOLD_HOLES = frozenset({ACC_HOLE, NEXT_HOLE})


def check_dimension(n) -> int:
    """Dimension must be an int (not bool) of at least MIN_DIMENSION."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise ConfigurationError(f"dimension must be an integer, got {n!r}")
    if n < MIN_DIMENSION:
        raise ConfigurationError(f"dimension must be >= {MIN_DIMENSION}, got {n}")
    return n


def reduce(n: int, formals: Sequence[str], wrap: Template, fold: Template,
           component: Template, index: str = ROW_INDEX_HOLE) -> ExpressionIR:
    """
    Instantiate *component* for index 0..n-1, left-fold with *fold*, wrap.

    ``acc = c0; acc = fold(x=acc, y=c1); ...; wrap(x=acc)``

    Free names left in the result must all be *formals*; a stray name means
    the templates do not belong to this signature.
    """
    check_dimension(n)
    # free names of the result, read off the templates rather than the n-fold body
    free = (component.variables - {index}) | (wrap.variables - WRAP_HOLES)
    if n > 1:
        free |= fold.variables - FOLD_HOLES
    stray = free - set(formals)
    if stray:
        raise PatternMismatchError(
            f"reduction over `{component}` leaves free name(s) {', '.join(sorted(stray))} "
            f"outside formals ({', '.join(formals)})"
        )

    acc = component.instantiate({index: 0})
    for idx in range(1, n):
        acc = fold.instantiate({ACC_HOLE: acc, NEXT_HOLE: component.instantiate({index: idx})})
    return wrap.instantiate({ACC_HOLE: acc})


@dataclass(frozen=True)
class Reduction:
    """One row of a reduction table."""
    name: str
    formals: Tuple[str, ...]
    wrap: str
    fold: str
    component: str

    def templates(self, index: str = ROW_INDEX_HOLE) -> Tuple[Template, Template, Template]:
        return (
            Template.parse(self.wrap, WRAP_HOLES, name=f"<{self.name}:wrap>"),
            Template.parse(self.fold, FOLD_HOLES, name=f"<{self.name}:fold>"),
            Template.parse(self.component, {index}, name=f"<{self.name}:component>"),
        )

    def build(self, n: int) -> FunctionSpec:
        wrap, fold, component = self.templates()
        return FunctionSpec(self.name, self.formals, reduce(n, self.formals, wrap, fold, component))


ARRAY_WRAP = "[x]"
ARRAY_FOLD = "x, y"
SUM_FOLD = "x + y"

VECTOR_REDUCTIONS: Tuple[Reduction, ...] = (
    Reduction("plus", ("a", "b"), ARRAY_WRAP, ARRAY_FOLD, "a[i] + b[i]"),
    Reduction("minus", ("a", "b"), ARRAY_WRAP, ARRAY_FOLD, "a[i] - b[i]"),
    Reduction("times", ("a", "b"), ARRAY_WRAP, ARRAY_FOLD, "a[i] * b[i]"),
    Reduction("scale", ("a", "b"), ARRAY_WRAP, ARRAY_FOLD, "a[i] * b"),
    Reduction("dot", ("a", "b"), "x", SUM_FOLD, "a[i] * b[i]"),
    Reduction("norm", ("a",), "sqrt(x)", SUM_FOLD, "a[i] * a[i]"),
)

# Base functions whose body applies sqrt
NEEDS_SQRT = frozenset({"norm"})


def build_reductions(n: int, field, reductions: Iterable[Reduction]) -> Functions:
    """Build each reduction for dimension *n* and run its body through *field*."""
    check_dimension(n)
    functions: Functions = {}
    for reduction in reductions:
        if reduction.name in NEEDS_SQRT and not field.has_sqrt:
            logger.info(f"field '{field.name}' has no sqrt; '{reduction.name}' is not generated")
            continue
        spec = reduction.build(n)
        body = apply_field(spec.body, field)
        functions[spec.name] = spec if body is spec.body else FunctionSpec(spec.name, spec.formals, body)
    return functions


class VectorReductionPass(BasePass):
    """Generate the base vector table (plus, minus, times, scale, dot, norm)."""
    requires = []

    def run(self, functions: Functions, ctx: GenerationContext) -> Functions:
        base = build_reductions(ctx.dimension, ctx.field, VECTOR_REDUCTIONS)
        logger.debug(f"n={ctx.dimension}: generated {', '.join(base)}")
        ctx.set_analysis(VectorReductionPass, base)
        merged = dict(functions)
        merged.update(base)
        return merged
