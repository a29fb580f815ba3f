"""Custom indicator graph engine.

Public API:
- IndicatorEngine: evaluates CustomIndicator graphs with an owned cache
- compile_graph: validates a graph into a CompiledGraph arena
- GraphError and subclasses: malformed-graph failures
"""

from analytics.engine.errors import (
    GraphCycleError,
    GraphError,
    InsufficientInputsError,
    InvalidNodeError,
    NodeNotFoundError,
    UnknownIndicatorError,
    UnknownOperatorError,
)
from analytics.engine.evaluator import IndicatorEngine, evaluate_graph
from analytics.engine.graph import (
    ArithmeticOperator,
    BuiltinIndicator,
    CompiledGraph,
    ConditionOperator,
    compile_graph,
)

__all__ = [
    "IndicatorEngine",
    "evaluate_graph",
    "compile_graph",
    "CompiledGraph",
    "BuiltinIndicator",
    "ArithmeticOperator",
    "ConditionOperator",
    "GraphError",
    "GraphCycleError",
    "InsufficientInputsError",
    "InvalidNodeError",
    "NodeNotFoundError",
    "UnknownIndicatorError",
    "UnknownOperatorError",
]
