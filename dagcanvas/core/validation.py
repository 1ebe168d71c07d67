"""
Graph validation - Check that the graph is a DAG with no isolated node.

The validator is a pure function over a snapshot. It keeps no state
between calls and performs a full pass every time; graphs edited by hand
are small enough that correctness wins over incremental updates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, TYPE_CHECKING

from .traversal import build_adjacency, check_snapshot, find_cycle, incident_node_ids

if TYPE_CHECKING:
    from .models import Node, Edge, GraphSnapshot


VALID_MESSAGE = "Valid DAG"


class VerdictReason(str, Enum):
    """Closed set of reasons a graph is invalid."""
    TOO_FEW_NODES = "too_few_nodes"
    CYCLE_DETECTED = "cycle_detected"
    ISOLATED_NODE = "isolated_node"

    @property
    def message(self) -> str:
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    VerdictReason.TOO_FEW_NODES: "At least two nodes required.",
    VerdictReason.CYCLE_DETECTED: "Cycle detected in DAG.",
    VerdictReason.ISOLATED_NODE: "All nodes must be connected.",
}


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of a validation pass.

    `reason` is None for a valid graph. `node_ids` holds diagnostics: the
    cycle path for CYCLE_DETECTED, the isolated nodes for ISOLATED_NODE.
    """
    reason: Optional[VerdictReason] = None
    node_ids: tuple[str, ...] = ()

    @classmethod
    def valid(cls) -> "Verdict":
        return cls()

    @classmethod
    def invalid(cls, reason: VerdictReason, node_ids: Sequence[str] = ()) -> "Verdict":
        return cls(reason=reason, node_ids=tuple(node_ids))

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        return VALID_MESSAGE if self.reason is None else self.reason.message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "valid": self.is_valid,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }
        if self.node_ids:
            result["node_ids"] = list(self.node_ids)
        return result


def validate(nodes: Sequence["Node"], edges: Sequence["Edge"]) -> Verdict:
    """
    Validate a graph and return a verdict.

    Checks, in order (first failure wins):
    - Fewer than two nodes - TOO_FEW_NODES (regardless of edges)
    - Directed cycle - CYCLE_DETECTED
    - Node with no incident edge - ISOLATED_NODE

    Connectivity is deliberately weak: several separate components are
    fine as long as every node has at least one edge.

    Args:
        nodes: Nodes of the graph
        edges: Edges of the graph

    Returns:
        The Verdict

    Raises:
        GraphPreconditionError: On dangling, self-referencing or duplicate
            edges, or duplicate node ids
    """
    if len(nodes) < 2:
        return Verdict.invalid(VerdictReason.TOO_FEW_NODES)

    check_snapshot(nodes, edges)

    successors, _ = build_adjacency((n.id for n in nodes), edges)
    cycle = find_cycle(successors)
    if cycle is not None:
        return Verdict.invalid(VerdictReason.CYCLE_DETECTED, cycle)

    connected = incident_node_ids(edges)
    isolated = [n.id for n in nodes if n.id not in connected]
    if isolated:
        return Verdict.invalid(VerdictReason.ISOLATED_NODE, isolated)

    return Verdict.valid()


def validate_snapshot(snapshot: "GraphSnapshot") -> Verdict:
    """Validate a GraphSnapshot."""
    return validate(snapshot.nodes, snapshot.edges)
