"""Compile a custom indicator into a validated, acyclic node arena.

Only nodes reachable from the output node are compiled (and validated).
The arena is filled in DFS post-order, so every node's inputs have
smaller handles than the node itself and the arena order is a valid
evaluation order. The walk uses an explicit stack; graph depth is not
limited by the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from analytics.engine.errors import (
    GraphCycleError,
    InsufficientInputsError,
    InvalidNodeError,
    NodeNotFoundError,
    UnknownIndicatorError,
    UnknownOperatorError,
)
from analytics.models.graph import CustomIndicator, IndicatorNode, NodeType

logger = logging.getLogger(__name__)


class BuiltinIndicator(str, Enum):
    """Series an indicator node can read."""

    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    VOLUME = "volume"

    @property
    def default_period(self) -> int | None:
        return _DEFAULT_PERIODS.get(self)


_DEFAULT_PERIODS = {
    BuiltinIndicator.SMA: 20,
    BuiltinIndicator.EMA: 20,
    BuiltinIndicator.RSI: 14,
}


class ArithmeticOperator(str, Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class ConditionOperator(str, Enum):
    GREATER = ">"
    LESS = "<"
    EQUAL = "=="
    AND = "&&"
    OR = "||"


@dataclass(frozen=True, slots=True)
class ConstantOp:
    value: float


@dataclass(frozen=True, slots=True)
class IndicatorOp:
    indicator: BuiltinIndicator
    period: int | None


@dataclass(frozen=True, slots=True)
class ArithmeticOp:
    operator: ArithmeticOperator
    left: int
    right: int


@dataclass(frozen=True, slots=True)
class ConditionOp:
    operator: ConditionOperator
    left: int
    right: int


CompiledNode = ConstantOp | IndicatorOp | ArithmeticOp | ConditionOp


@dataclass(frozen=True, slots=True)
class CompiledGraph:
    """Validated arena for one custom indicator.

    Attributes:
        indicator_id: Id of the source CustomIndicator.
        nodes: Compiled nodes in evaluation order; inputs are arena handles.
        node_ids: Source node id for each handle.
        output: Handle of the output node (always the last one).
    """

    indicator_id: str
    nodes: tuple[CompiledNode, ...]
    node_ids: tuple[str, ...]
    output: int

    def __len__(self) -> int:
        return len(self.nodes)


def _inputs_of(node: IndicatorNode) -> list[str]:
    """Inputs a node depends on (the first two for binary nodes)."""
    if node.type in (NodeType.OPERATOR, NodeType.CONDITION):
        if len(node.inputs) < 2:
            raise InsufficientInputsError(node.id, node.type.value, len(node.inputs))
        return node.inputs[:2]
    return []


def _constant_value(node: IndicatorNode) -> float:
    if node.value is None:
        return 0.0
    try:
        return float(node.value)
    except ValueError:
        raise InvalidNodeError(
            f"Constant node {node.id} has a non-numeric value: {node.value!r}"
        ) from None


def _indicator_period(node: IndicatorNode, indicator: BuiltinIndicator) -> int | None:
    default = indicator.default_period
    if default is None:
        return None
    raw = node.params.get("period", default)
    message = f"Indicator node {node.id} needs a whole period >= 1, got {raw!r}"
    try:
        period = int(raw)
    except (OverflowError, TypeError, ValueError):
        raise InvalidNodeError(message) from None
    if period != raw or period < 1:
        raise InvalidNodeError(message)
    return period


def _lower(node: IndicatorNode, handles: dict[str, int]) -> CompiledNode:
    """Translate one source node whose inputs already have handles."""
    match node.type:
        case NodeType.CONSTANT:
            return ConstantOp(_constant_value(node))

        case NodeType.INDICATOR:
            try:
                indicator = BuiltinIndicator(node.indicator)
            except ValueError:
                raise UnknownIndicatorError(node.id, node.indicator) from None
            return IndicatorOp(indicator, _indicator_period(node, indicator))

        case NodeType.OPERATOR:
            try:
                operator = ArithmeticOperator(node.operator)
            except ValueError:
                raise UnknownOperatorError(node.id, node.operator, "operator") from None
            return ArithmeticOp(operator, handles[node.inputs[0]], handles[node.inputs[1]])

        case NodeType.CONDITION:
            try:
                condition = ConditionOperator(node.operator)
            except ValueError:
                raise UnknownOperatorError(node.id, node.operator, "condition") from None
            return ConditionOp(condition, handles[node.inputs[0]], handles[node.inputs[1]])

    raise InvalidNodeError(f"Unsupported node type: {node.type}")


def compile_graph(indicator: CustomIndicator) -> CompiledGraph:
    """
    Validate a custom indicator and compile it into an arena.

    Raises:
        NodeNotFoundError: The output node or a referenced input is missing
            (an empty graph fails here too).
        InsufficientInputsError: A reachable binary node has < 2 inputs.
        UnknownIndicatorError: A reachable indicator node names an unknown builtin.
        UnknownOperatorError: A reachable binary node has an invalid symbol.
        InvalidNodeError: Non-numeric constant or invalid period.
        GraphCycleError: The reachable graph is cyclic.
    """
    by_id: dict[str, IndicatorNode] = {}
    for node in indicator.nodes:
        # First definition wins for duplicated ids
        by_id.setdefault(node.id, node)

    handles: dict[str, int] = {}
    arena: list[CompiledNode] = []
    arena_ids: list[str] = []

    path: list[str] = []
    on_path: set[str] = set()
    stack: list[tuple[IndicatorNode, Iterator[str]]] = []

    def enter(node_id: str) -> None:
        node = by_id.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        stack.append((node, iter(_inputs_of(node))))
        path.append(node_id)
        on_path.add(node_id)

    enter(indicator.output_node_id)

    while stack:
        node, pending = stack[-1]
        child = next(pending, None)
        if child is not None:
            if child in handles:
                continue
            if child in on_path:
                raise GraphCycleError(path[path.index(child):] + [child])
            enter(child)
            continue

        stack.pop()
        path.pop()
        on_path.discard(node.id)
        handles[node.id] = len(arena)
        arena.append(_lower(node, handles))
        arena_ids.append(node.id)

    logger.debug(
        "Compiled indicator %s: %d reachable of %d nodes",
        indicator.id, len(arena), len(indicator.nodes),
    )

    return CompiledGraph(
        indicator_id=indicator.id,
        nodes=tuple(arena),
        node_ids=tuple(arena_ids),
        output=handles[indicator.output_node_id],
    )
