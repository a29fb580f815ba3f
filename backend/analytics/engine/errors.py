"""Errors raised while compiling a custom indicator graph.

All of them are ``ValueError`` subclasses: a malformed graph is bad input,
and retrying the same graph fails the same way.
"""


class GraphError(ValueError):
    """Base class for malformed custom indicator graphs."""


class NodeNotFoundError(GraphError):
    """A referenced node id (or the output node id) does not exist."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found")


class InsufficientInputsError(GraphError):
    """An operator or condition node has fewer than two inputs."""

    def __init__(self, node_id: str, kind: str, count: int):
        self.node_id = node_id
        super().__init__(
            f"{kind.capitalize()} node {node_id} requires at least 2 inputs, got {count}"
        )


class UnknownIndicatorError(GraphError):
    """An indicator node names a builtin the engine does not provide."""

    def __init__(self, node_id: str, indicator: str | None):
        self.node_id = node_id
        self.indicator = indicator
        super().__init__(f"Unknown indicator: {indicator} (node {node_id})")


class UnknownOperatorError(GraphError):
    """An operator symbol is missing or invalid for its node type."""

    def __init__(self, node_id: str, operator: str | None, kind: str):
        self.node_id = node_id
        self.operator = operator
        super().__init__(f"Unknown {kind} operator: {operator} (node {node_id})")


class InvalidNodeError(GraphError):
    """A node carries an unusable value (non-numeric constant, bad period)."""


class GraphCycleError(GraphError):
    """The graph reachable from the output node contains a cycle.

    ``cycle`` lists the node ids along the cycle, starting and ending with
    the same id.
    """

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cycle detected: {' -> '.join(cycle)}")
