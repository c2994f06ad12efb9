"""
Base Pass System

Generation runs as a small pipeline of passes ordered by their declared
dependencies. Each pass receives the function table built so far and returns
a new one; nothing is modified in place.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Type

from ..ir.nodes import FunctionSpec
from .fields import Field

logger = logging.getLogger("linspec.passes.base")

Functions = Dict[str, FunctionSpec]


class GenerationContext:
    """
    Per-call generation state.

    - Created fresh by every generate call and dropped afterwards, so no two
      calls share anything mutable
    - Pass results are stored here (not in passes), keyed by pass class
    - ``prefix`` is applied by the driver once all passes have run
    """

    def __init__(self, dimension: int, field: Field, prefix: str = "",
                 operations: Optional[Tuple[str, ...]] = None):
        self.dimension = dimension
        self.field = field
        self.prefix = prefix
        self.operations = operations
        self._analysis_results: Dict[Type['BasePass'], Any] = {}

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get results recorded by a pass that already ran"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for generation passes.

    - Explicit dependencies via ``requires``
    - Results shared through GenerationContext
    - Returns a new function table
    """
    requires: List[Type['BasePass']] = []

    @abstractmethod
    def run(self, functions: Functions, ctx: GenerationContext) -> Functions:
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    Passes run in topological order of ``requires``; independent passes keep
    their registration order.
    """

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], set] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, functions: Functions, ctx: GenerationContext,
                dump_ir: bool = False) -> Functions:
        """
        Run all passes in dependency order.

        Args:
            functions: Starting table (usually empty)
            ctx: Generation context
            dump_ir: Log each function as an S-expression after every pass
        """
        for pass_class in self._topological_sort():
            pass_name = pass_class.__name__
            functions = pass_class().run(functions, ctx)
            logger.debug(f"{pass_name}: {len(functions)} function(s) after pass")

            if dump_ir:
                from ..ir.serialization import serialize_function
                for spec in functions.values():
                    logger.debug(f"After {pass_name}:\n{serialize_function(spec)}")

        return functions

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies"""
        in_degree = {p: len(self._dependency_graph[p] & set(self.passes)) for p in self.passes}
        queue = [p for p in self.passes if in_degree[p] == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
