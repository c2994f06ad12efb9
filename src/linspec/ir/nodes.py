"""
IR Nodes

Expression trees produced by the template parser and the generator passes.

Design:
- Every node is a frozen dataclass; children are tuples, so trees are
  immutable values compared and hashed structurally
- Rewrites always build new nodes, sub-trees may be shared freely because
  nothing can mutate them
- Dispatch goes through ``accept`` / ``IRVisitor`` (no isinstance chains in
  passes)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Tuple, TypeVar, Generic
from abc import ABC, abstractmethod

from ..shared.types import BinaryOp, UnaryOp
from ..shared.errors import UnsupportedOperationError

T = TypeVar('T')


@dataclass(frozen=True)
class ExpressionIR:
    """Base class for all expression nodes."""

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        raise NotImplementedError(f"accept() not implemented for {self.__class__.__name__}")


@dataclass(frozen=True)
class LiteralIR(ExpressionIR):
    """Numeric literal"""
    value: Any

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_literal(self)


@dataclass(frozen=True)
class VariableIR(ExpressionIR):
    """Variable reference: formal parameter, template hole, or free name (``sqrt``, ``one``)."""
    name: str

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_variable(self)


@dataclass(frozen=True)
class IndexIR(ExpressionIR):
    """Array indexing: base[index]. Matrix access is two nested IndexIR nodes."""
    base: ExpressionIR
    index: ExpressionIR

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_index(self)


@dataclass(frozen=True)
class FieldAccessIR(ExpressionIR):
    """Object field access: base.field (e.g. ``x.r`` in a complex field template)"""
    base: ExpressionIR
    field: str

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_field_access(self)


@dataclass(frozen=True)
class BinaryOpIR(ExpressionIR):
    """
    Binary operation.

    ``native`` marks host arithmetic written inside a field template. Native
    operators are never rewritten by a field; abstract ones (the default) are.
    """
    operator: BinaryOp
    left: ExpressionIR
    right: ExpressionIR
    native: bool = False

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_binary_op(self)


@dataclass(frozen=True)
class UnaryOpIR(ExpressionIR):
    """Unary operation (negation, sqrt). ``native`` as for BinaryOpIR."""
    operator: UnaryOp
    operand: ExpressionIR
    native: bool = False

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_unary_op(self)


@dataclass(frozen=True)
class ArrayLiteralIR(ExpressionIR):
    """Array literal: [a, b, c]"""
    elements: Tuple[ExpressionIR, ...]

    def __post_init__(self):
        object.__setattr__(self, 'elements', splice_sequences(self.elements))

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_array_literal(self)


@dataclass(frozen=True)
class RecordIR(ExpressionIR):
    """Object literal: {r: expr, i: expr}. Entry order is preserved."""
    entries: Tuple[Tuple[str, ExpressionIR], ...]

    def __post_init__(self):
        object.__setattr__(self, 'entries', tuple((k, v) for k, v in self.entries))

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_record(self)


@dataclass(frozen=True)
class SequenceIR(ExpressionIR):
    """
    Comma sequence: x, y

    Built by the ``x, y`` fold. Nested sequences are flattened on
    construction, and a sequence placed into an element list (array literal,
    call arguments) is spliced into that list.
    """
    elements: Tuple[ExpressionIR, ...]

    def __post_init__(self):
        object.__setattr__(self, 'elements', splice_sequences(self.elements))

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_sequence(self)


@dataclass(frozen=True)
class CallIR(ExpressionIR):
    """Function call. The callee is a VariableIR before composition and a ReferenceIR after."""
    callee: ExpressionIR
    arguments: Tuple[ExpressionIR, ...]

    def __post_init__(self):
        object.__setattr__(self, 'arguments', splice_sequences(self.arguments))

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_call(self)


@dataclass(frozen=True)
class ReferenceIR(ExpressionIR):
    """
    Opaque reference to one exact generated function.

    Holds the FunctionSpec value itself, so the reference keeps pointing at
    the function compiled for its own (dimension, field) instantiation and a
    later optimizer can inline through ``target.body``.
    """
    target: 'FunctionSpec'

    @property
    def name(self) -> str:
        return self.target.name

    def accept(self, visitor: 'IRVisitor[T]') -> T:
        return visitor.visit_reference(self)


def splice_sequences(elements: Iterable[ExpressionIR]) -> Tuple[ExpressionIR, ...]:
    """Flatten SequenceIR members of an element list into the list itself."""
    out = []
    for element in elements:
        if isinstance(element, SequenceIR):
            out.extend(element.elements)
        else:
            out.append(element)
    return tuple(out)


@dataclass(frozen=True)
class FunctionSpec:
    """
    A generated function: name, ordered formals and its body.

    The body is kept verbatim after generation so later stages can inspect
    and inline through it.
    """
    name: str
    formals: Tuple[str, ...]
    body: ExpressionIR

    def __post_init__(self):
        object.__setattr__(self, 'formals', tuple(self.formals))

    @property
    def arity(self) -> int:
        return len(self.formals)


class FunctionTable(Mapping):
    """
    Immutable name -> FunctionSpec mapping produced by one generate call.

    ``unsupported`` lists names that are known but have no generator yet;
    looking one of them up raises UnsupportedOperationError rather than
    KeyError. They are not keys of the mapping.
    """
    __slots__ = ('_functions', '_unsupported')

    def __init__(self, functions: Optional[Mapping] = None,
                 unsupported: Iterable[str] = ()):
        self._functions: Dict[str, FunctionSpec] = dict(functions or {})
        self._unsupported: FrozenSet[str] = frozenset(unsupported)

    @property
    def unsupported(self) -> FrozenSet[str]:
        return self._unsupported

    def __getitem__(self, name: str) -> FunctionSpec:
        if name in self._functions:
            return self._functions[name]
        if name in self._unsupported:
            raise UnsupportedOperationError(f"'{name}' is not implemented yet")
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __eq__(self, other):
        if isinstance(other, FunctionTable):
            return self._functions == other._functions and self._unsupported == other._unsupported
        return super().__eq__(other)

    def __hash__(self):
        # names only; equal tables have equal names
        return hash((frozenset(self._functions), self._unsupported))

    def __repr__(self) -> str:
        return f"FunctionTable({sorted(self._functions)!r})"


class IRVisitor(ABC, Generic[T]):
    """Visitor for expression nodes (no isinstance needed)."""

    @abstractmethod
    def visit_literal(self, node: LiteralIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_variable(self, node: VariableIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_index(self, node: IndexIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_field_access(self, node: FieldAccessIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_binary_op(self, node: BinaryOpIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_unary_op(self, node: UnaryOpIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_array_literal(self, node: ArrayLiteralIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_record(self, node: RecordIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_sequence(self, node: SequenceIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_call(self, node: CallIR) -> T:
        raise NotImplementedError

    @abstractmethod
    def visit_reference(self, node: ReferenceIR) -> T:
        raise NotImplementedError
