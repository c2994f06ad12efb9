"""
Visitor Helper Utilities

Reusable visitors over expression trees:
- post_order: children-first walk with an explicit stack
- IRTransformer: rebuilds a tree bottom-up; subclasses override only the
  node kinds they rewrite
- VariableCollector: names of all VariableIR occurrences

Generated bodies are deep (a left fold over n components nests n operators)
and, once a field has been applied, share sub-trees: a template that uses
``_x`` twice points at the same child object twice. Walks therefore never
recurse through the depth of a tree, and every node object is handled once
per walk.
"""

from dataclasses import fields
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .nodes import (
    IRVisitor, ExpressionIR, LiteralIR, VariableIR, IndexIR, FieldAccessIR,
    BinaryOpIR, UnaryOpIR, ArrayLiteralIR, RecordIR, SequenceIR, CallIR,
    ReferenceIR,
)


def child_nodes(node: ExpressionIR) -> Iterator[ExpressionIR]:
    """Direct sub-expressions of *node* in field order; reference targets are not children."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, ExpressionIR):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                # record entries are (key, value) pairs
                if isinstance(item, tuple):
                    item = item[1]
                if isinstance(item, ExpressionIR):
                    yield item


def post_order(root: ExpressionIR, done: Dict[int, Any]) -> Iterator[ExpressionIR]:
    """
    Yield *root* and its descendants, children before parents.

    Nodes whose ``id`` is a key of *done* are skipped along with their
    sub-trees. The caller records each yielded node in *done* before asking
    for the next one, so a shared node is yielded once.
    """
    stack: List[Tuple[ExpressionIR, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if id(node) in done:
            continue
        if expanded:
            yield node
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(tuple(child_nodes(node))))


class IRTransformer(IRVisitor[ExpressionIR]):
    """
    Identity transformer.

    Leaves are returned as-is; inner nodes are rebuilt only when a child
    changed, so an untouched tree comes back as the very same object.

    Results are memoized per node object for the lifetime of the transformer.
    ``transform`` visits children before their parent, so by the time a
    ``visit_*`` method asks for ``self.transform(child)`` the answer is
    already known and the call does not nest.
    """

    def __init__(self):
        self._memo: Dict[int, Tuple[ExpressionIR, ExpressionIR]] = {}

    def transform(self, node: ExpressionIR) -> ExpressionIR:
        memo = self._memo
        for current in post_order(node, memo):
            # the key object is kept alive so its id is not reused
            memo[id(current)] = (current, current.accept(self))
        return memo[id(node)][1]

    def visit_literal(self, node: LiteralIR) -> ExpressionIR:
        return node

    def visit_variable(self, node: VariableIR) -> ExpressionIR:
        return node

    def visit_reference(self, node: ReferenceIR) -> ExpressionIR:
        return node

    def visit_index(self, node: IndexIR) -> ExpressionIR:
        base = self.transform(node.base)
        index = self.transform(node.index)
        if base is node.base and index is node.index:
            return node
        return IndexIR(base, index)

    def visit_field_access(self, node: FieldAccessIR) -> ExpressionIR:
        base = self.transform(node.base)
        if base is node.base:
            return node
        return FieldAccessIR(base, node.field)

    def visit_binary_op(self, node: BinaryOpIR) -> ExpressionIR:
        left = self.transform(node.left)
        right = self.transform(node.right)
        if left is node.left and right is node.right:
            return node
        return BinaryOpIR(node.operator, left, right, node.native)

    def visit_unary_op(self, node: UnaryOpIR) -> ExpressionIR:
        operand = self.transform(node.operand)
        if operand is node.operand:
            return node
        return UnaryOpIR(node.operator, operand, node.native)

    def visit_array_literal(self, node: ArrayLiteralIR) -> ExpressionIR:
        elements = self._transform_all(node.elements)
        if elements is None:
            return node
        return ArrayLiteralIR(elements)

    def visit_record(self, node: RecordIR) -> ExpressionIR:
        values = self._transform_all([value for _, value in node.entries])
        if values is None:
            return node
        return RecordIR(tuple(zip([key for key, _ in node.entries], values)))

    def visit_sequence(self, node: SequenceIR) -> ExpressionIR:
        elements = self._transform_all(node.elements)
        if elements is None:
            return node
        return SequenceIR(elements)

    def visit_call(self, node: CallIR) -> ExpressionIR:
        callee = self.transform(node.callee)
        arguments = self._transform_all(node.arguments)
        if callee is node.callee and arguments is None:
            return node
        return CallIR(callee, arguments if arguments is not None else node.arguments)

    def _transform_all(self, children) -> Optional[Tuple[ExpressionIR, ...]]:
        """Transform a child list; None when every child came back unchanged."""
        changed = False
        out: List[ExpressionIR] = []
        for child in children:
            new_child = self.transform(child)
            changed = changed or new_child is not child
            out.append(new_child)
        return tuple(out) if changed else None


class VariableCollector(IRVisitor[None]):
    """
    Collect variable names (free names, formals and holes alike)

    ``collect`` drives the walk; each ``visit_*`` method only looks at its own
    node, so subclasses override the node kinds they care about without
    calling back into the children.
    """

    def __init__(self):
        self.names: Set[str] = set()

    def collect(self, node: ExpressionIR) -> Set[str]:
        seen: Dict[int, ExpressionIR] = {}
        for current in post_order(node, seen):
            seen[id(current)] = current
            current.accept(self)
        return self.names

    def visit_literal(self, node) -> None:
        return None

    def visit_variable(self, node: VariableIR) -> None:
        self.names.add(node.name)

    def visit_reference(self, node) -> None:
        return None

    def visit_index(self, node) -> None:
        return None

    def visit_field_access(self, node) -> None:
        return None

    def visit_binary_op(self, node) -> None:
        return None

    def visit_unary_op(self, node) -> None:
        return None

    def visit_array_literal(self, node) -> None:
        return None

    def visit_record(self, node) -> None:
        return None

    def visit_sequence(self, node) -> None:
        return None

    def visit_call(self, node) -> None:
        return None


def variables_of(node: ExpressionIR) -> Set[str]:
    """All variable names occurring in *node*."""
    return VariableCollector().collect(node)
