"""
Composite Generator

Builds functions defined in terms of base functions (``unit``, ``proj``,
``orth``). A composite body is written with calls by name:

    proj(a, b) = scale(b, dot(a, b) / dot(b, b))

Composition binds ``zero`` / ``one`` to the field constants, runs the body
through the field, then replaces each call-by-name of a base function with a
call through a ReferenceIR holding that exact FunctionSpec. The referenced
body stays reachable, so a later optimizer can inline it and share
subexpressions across the call boundary.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence, Set, Tuple

from ..ir.matching import Template, substitute
from ..ir.nodes import CallIR, ExpressionIR, FunctionSpec, ReferenceIR, VariableIR
from ..ir.visitor import IRTransformer, VariableCollector
from ..shared.errors import PatternMismatchError
from ..utils.config import ONE_NAME, ZERO_NAME
from .base import BasePass, Functions, GenerationContext
from .field_rewrite import apply_field
from .fields import Field
from .reduction import VectorReductionPass

logger = logging.getLogger("linspec.passes.composite")


@dataclass(frozen=True)
class Composite:
    name: str
    formals: Tuple[str, ...]
    body: str


VECTOR_COMPOSITES: Tuple[Composite, ...] = (
    Composite("unit", ("a",), "scale(a, one / norm(a))"),
    Composite("proj", ("a", "b"), "scale(b, dot(a, b) / dot(b, b))"),
    Composite("orth", ("a", "b"), "minus(a, scale(b, dot(a, b) / dot(b, b)))"),
)


class _ReferenceBinder(IRTransformer):
    """Turn ``name(args)`` into ``ref(name)(args)`` for every base function."""

    def __init__(self, base: Mapping[str, FunctionSpec]):
        super().__init__()
        self.base = base

    def visit_call(self, node: CallIR) -> ExpressionIR:
        rebuilt = super().visit_call(node)
        callee = rebuilt.callee
        if not isinstance(callee, VariableIR) or callee.name not in self.base:
            return rebuilt
        spec = self.base[callee.name]
        if len(rebuilt.arguments) != spec.arity:
            raise PatternMismatchError(
                f"'{spec.name}' takes {spec.arity} argument(s), "
                f"called with {len(rebuilt.arguments)}"
            )
        return CallIR(ReferenceIR(spec), rebuilt.arguments)


class _CalleeCollector(VariableCollector):
    """Names used in callee position"""

    def __init__(self):
        super().__init__()
        self.callees: Set[str] = set()

    def visit_call(self, node: CallIR) -> None:
        if isinstance(node.callee, VariableIR):
            self.callees.add(node.callee.name)


def called_names(tree: ExpressionIR) -> Set[str]:
    collector = _CalleeCollector()
    collector.collect(tree)
    return collector.callees


def compose(base: Mapping[str, FunctionSpec], name: str, formals: Sequence[str],
            body: ExpressionIR, field: Field) -> FunctionSpec:
    """
    Build one composite function over *base*.

    ``zero`` and ``one`` are bound to the field constants unless they are
    formals of the composite.
    """
    constants = {ZERO_NAME: field.zero, ONE_NAME: field.one}
    body = substitute(body, {k: v for k, v in constants.items() if k not in formals})
    body = apply_field(body, field)
    body = _ReferenceBinder(base).transform(body)
    return FunctionSpec(name, formals, body)


def build_composites(base: Mapping[str, FunctionSpec], field: Field,
                     composites: Sequence[Composite]) -> Functions:
    """
    Compose each definition over *base*.

    A composite calling a function missing from *base* (``unit`` when the
    field has no sqrt and ``norm`` was left out) is skipped.
    """
    functions: Functions = {}
    for composite in composites:
        template = Template.parse(composite.body, (), name=f"<{composite.name}>")
        missing = called_names(template.tree) - set(base)
        if missing:
            logger.info(
                f"'{composite.name}' is not generated: needs {', '.join(sorted(missing))}"
            )
            continue
        functions[composite.name] = compose(base, composite.name, composite.formals,
                                            template.tree, field)
    return functions


class CompositeFunctionsPass(BasePass):
    """Generate unit, proj and orth over the base vector table."""
    requires = [VectorReductionPass]

    def run(self, functions: Functions, ctx: GenerationContext) -> Functions:
        base = ctx.get_analysis(VectorReductionPass)
        composites = build_composites(base, ctx.field, VECTOR_COMPOSITES)
        logger.debug(f"composed {', '.join(composites) or 'nothing'}")
        # Composites win on name collision
        merged = dict(functions)
        merged.update(composites)
        return merged
