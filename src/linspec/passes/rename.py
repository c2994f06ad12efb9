"""
Namespace Assembly

Prefixing and merging of generated tables. Renaming applies to table keys,
to each FunctionSpec's ``name`` and to the targets of embedded references,
so ``vunit`` refers to ``vscale`` and ``vnorm`` rather than to the unprefixed
originals.
"""

import logging
from typing import Dict, Mapping, Tuple

from ..ir.nodes import ExpressionIR, FunctionSpec, FunctionTable, ReferenceIR
from ..ir.visitor import IRTransformer

logger = logging.getLogger("linspec.passes.rename")


class _Renamer(IRTransformer):
    """Rebuild references so each target is its renamed counterpart."""

    def __init__(self, prefix: str):
        super().__init__()
        self.prefix = prefix
        # keyed by id: hashing a spec walks its whole body
        self.renamed: Dict[int, Tuple[FunctionSpec, FunctionSpec]] = {}

    def rename(self, spec: FunctionSpec) -> FunctionSpec:
        entry = self.renamed.get(id(spec))
        if entry is None:
            entry = (spec, FunctionSpec(self.prefix + spec.name, spec.formals,
                                        self.transform(spec.body)))
            self.renamed[id(spec)] = entry
        return entry[1]

    def visit_reference(self, node: ReferenceIR) -> ExpressionIR:
        return ReferenceIR(self.rename(node.target))


def rename(functions: Mapping[str, FunctionSpec], prefix: str) -> Dict[str, FunctionSpec]:
    """Prefix every key, spec name and reference target with *prefix*."""
    if not prefix:
        return dict(functions)
    renamer = _Renamer(prefix)
    return {prefix + key: renamer.rename(spec) for key, spec in functions.items()}


def merge(*tables: Mapping[str, FunctionSpec]) -> FunctionTable:
    """
    Union of *tables*; later tables win on key collision.

    Unsupported names carry over unless a later table defines the name.
    """
    functions: Dict[str, FunctionSpec] = {}
    unsupported = set()
    for table in tables:
        overlap = functions.keys() & table.keys()
        if overlap:
            logger.debug(f"merge: {', '.join(sorted(overlap))} replaced by a later table")
        functions.update((key, table[key]) for key in table)
        unsupported.difference_update(table.keys())
        unsupported.update(getattr(table, "unsupported", ()))
    return FunctionTable(functions, unsupported.difference(functions))
