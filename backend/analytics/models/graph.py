"""Custom indicator graph models.

A custom indicator is authored in the dashboard as a flat list of nodes
whose ``inputs`` reference other nodes by id. These models describe the
graph as it arrives (from storage or across the worker boundary); the
engine compiles it into a validated arena before evaluation.
"""

from enum import Enum

from pydantic import ConfigDict, Field

from analytics.models.base import WireModel


class NodeType(str, Enum):
    """Kind of graph node."""

    CONSTANT = "constant"
    INDICATOR = "indicator"
    OPERATOR = "operator"
    CONDITION = "condition"


class IndicatorNode(WireModel):
    """One node of a custom indicator graph.

    ``indicator`` and ``operator`` are kept as raw strings here so an
    unknown kind or symbol surfaces as a graph error at compile time
    rather than as a schema error.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeType
    value: float | str | None = None
    indicator: str | None = None
    params: dict[str, float] = Field(default_factory=dict)
    operator: str | None = None
    inputs: list[str] = Field(default_factory=list)


class CustomIndicator(WireModel):
    """User-authored indicator: a node graph plus the id of its output node."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    nodes: list[IndicatorNode] = Field(default_factory=list)
    output_node_id: str
    created_at: int | None = None
    updated_at: int | None = None
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
