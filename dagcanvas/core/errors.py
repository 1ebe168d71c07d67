"""
Errors raised by the graph core.

Validation failures are not errors (see validation.Verdict). These
exceptions signal input the editor should never have produced, or a bad
layout configuration. They subclass ValueError so API handlers can map
them to HTTP 400 like any other bad input.
"""


class GraphPreconditionError(ValueError):
    """A snapshot violates a structural invariant."""


class DuplicateNodeError(GraphPreconditionError):
    def __init__(self, node_id: str):
        super().__init__(f"Duplicate node id: {node_id}")
        self.node_id = node_id


class DanglingEdgeError(GraphPreconditionError):
    def __init__(self, edge_id: str, node_id: str):
        super().__init__(f"Edge {edge_id} references non-existent node: {node_id}")
        self.edge_id = edge_id
        self.node_id = node_id


class SelfLoopError(GraphPreconditionError):
    def __init__(self, edge_id: str):
        super().__init__(f"Self-referencing edge: {edge_id}")
        self.edge_id = edge_id


class PortMismatchError(GraphPreconditionError):
    def __init__(self, edge_id: str):
        super().__init__(f"Edge {edge_id} must run from the outgoing port to the incoming port")
        self.edge_id = edge_id


class DuplicateEdgeError(GraphPreconditionError):
    def __init__(self, edge_id: str):
        super().__init__(f"Duplicate edge: {edge_id}")
        self.edge_id = edge_id


class LayoutConfigError(ValueError):
    """Unknown layout direction or invalid spacing."""
