"""
Field Rewriting

Replaces abstract arithmetic in a generated body with a field's templates.
Rewriting is bottom-up: children are rewritten first, then the operator itself
is replaced by ``template(_x=left, _y=right)``.

A template may itself contain abstract operators (the replacement has to be
rewritten again until none are left). That happens once per operator and
field, on the template alone with ``_x`` / ``_y`` as plain variables: the
closed template is then instantiated with already rewritten children. Bound
children are never walked again, so the cost stays proportional to the size
of the input tree even when a template uses a hole more than once.

Termination is not guaranteed for arbitrary fields (a field whose ``+``
template contains an abstract ``+`` loops forever), so two limits apply:
MAX_REWRITE_DEPTH bounds the nesting of template closings and MAX_REWRITES
bounds the total number of template instantiations of one ``apply_field``
call. Exceeding either raises ConfigurationError.
"""

import logging
from typing import Dict, Optional, Union

from ..ir.nodes import BinaryOpIR, ExpressionIR, UnaryOpIR
from ..ir.visitor import IRTransformer
from ..ir.matching import Bindings, Template
from ..shared.errors import ConfigurationError
from ..shared.types import BinaryOp, UnaryOp
from ..utils.config import FIELD_LEFT_HOLE, FIELD_RIGHT_HOLE, MAX_REWRITE_DEPTH, MAX_REWRITES
from .fields import Field

logger = logging.getLogger("linspec.passes.field_rewrite")

Operator = Union[BinaryOp, UnaryOp]


class FieldRewriter(IRTransformer):
    """Bottom-up rewriter for one field; holds the limits of one apply_field call."""

    def __init__(self, field: Field, max_depth: int = MAX_REWRITE_DEPTH,
                 max_rewrites: int = MAX_REWRITES):
        super().__init__()
        self.field = field
        self.max_depth = max_depth
        self.max_rewrites = max_rewrites
        self.depth = 0
        self.rewrites = 0
        self._closed: Dict[Operator, Optional[Template]] = {}

    def visit_binary_op(self, node: BinaryOpIR) -> ExpressionIR:
        rebuilt = super().visit_binary_op(node)
        if node.native:
            return rebuilt
        template = self.closed_template(node.operator)
        if template is None:
            return rebuilt
        return self._instantiate(template, {
            FIELD_LEFT_HOLE: rebuilt.left,
            FIELD_RIGHT_HOLE: rebuilt.right,
        })

    def visit_unary_op(self, node: UnaryOpIR) -> ExpressionIR:
        rebuilt = super().visit_unary_op(node)
        if node.native:
            return rebuilt
        template = self.closed_template(node.operator)
        if template is None:
            return rebuilt
        return self._instantiate(template, {FIELD_LEFT_HOLE: rebuilt.operand})

    def closed_template(self, operator: Operator) -> Optional[Template]:
        """The field's template for *operator* with its own abstract operators rewritten."""
        if operator in self._closed:
            return self._closed[operator]
        template = self.field.template_for(operator)
        if template is not None:
            if self.depth >= self.max_depth:
                raise ConfigurationError(
                    f"field '{self.field.name}' does not terminate: '{operator.value}' was "
                    f"rewritten {self.max_depth} times in a row"
                )
            self.depth += 1
            try:
                tree = self.transform(template.tree)
            finally:
                self.depth -= 1
            if tree is not template.tree:
                template = Template(tree, template.holes, template.source)
        self._closed[operator] = template
        return template

    def _instantiate(self, template: Template, bindings: Bindings) -> ExpressionIR:
        self.rewrites += 1
        if self.rewrites > self.max_rewrites:
            raise ConfigurationError(
                f"field '{self.field.name}' exceeded the rewrite budget of "
                f"{self.max_rewrites} rewrites"
            )
        return template.instantiate(bindings)


def apply_field(tree: ExpressionIR, field: Field, max_depth: int = MAX_REWRITE_DEPTH,
                max_rewrites: int = MAX_REWRITES) -> ExpressionIR:
    """
    Rewrite every abstract operator of *tree* through *field*.

    The identity field returns *tree* itself.
    """
    if field.identity:
        return tree
    rewriter = FieldRewriter(field, max_depth=max_depth, max_rewrites=max_rewrites)
    result = rewriter.transform(tree)
    logger.debug(f"field '{field.name}': {rewriter.rewrites} rewrite(s)")
    return result
