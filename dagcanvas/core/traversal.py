"""
Graph traversal utilities shared by validation and layout.

All helpers take plain node/edge sequences, iterate in input order, and
never recurse, so results are deterministic and deep graphs are safe.
"""

from typing import Iterable, Optional, Sequence, TYPE_CHECKING

from .errors import (
    DanglingEdgeError,
    DuplicateEdgeError,
    DuplicateNodeError,
    PortMismatchError,
    SelfLoopError,
)
from .models import Port

if TYPE_CHECKING:
    from .models import Node, Edge


def check_snapshot(nodes: Sequence["Node"], edges: Sequence["Edge"]) -> None:
    """
    Fail fast on structurally malformed input.

    Raises:
        DuplicateNodeError: Two nodes share an id
        DanglingEdgeError: An edge endpoint does not reference a node
        SelfLoopError: An edge connects a node to itself
        PortMismatchError: An edge does not leave by the outgoing port and
            enter by the incoming port
        DuplicateEdgeError: Two edges share the same port pair
    """
    node_ids: set[str] = set()
    for node in nodes:
        if node.id in node_ids:
            raise DuplicateNodeError(node.id)
        node_ids.add(node.id)

    seen_keys: set[tuple] = set()
    for edge in edges:
        if edge.source not in node_ids:
            raise DanglingEdgeError(edge.id, edge.source)
        if edge.target not in node_ids:
            raise DanglingEdgeError(edge.id, edge.target)
        if edge.source == edge.target:
            raise SelfLoopError(edge.id)
        if edge.source_handle != Port.SOURCE or edge.target_handle != Port.TARGET:
            raise PortMismatchError(edge.id)
        if edge.key in seen_keys:
            raise DuplicateEdgeError(edge.id)
        seen_keys.add(edge.key)


def build_adjacency(
    node_ids: Iterable[str],
    edges: Iterable["Edge"]
) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """
    Build directed adjacency lists.

    Returns:
        (successors, predecessors), both keyed by every node id in input
        order, neighbour lists in edge order
    """
    successors: dict[str, list[str]] = {nid: [] for nid in node_ids}
    predecessors: dict[str, list[str]] = {nid: [] for nid in successors}
    for edge in edges:
        successors[edge.source].append(edge.target)
        predecessors[edge.target].append(edge.source)
    return successors, predecessors


def find_cycle(successors: dict[str, list[str]]) -> Optional[list[str]]:
    """
    Find one directed cycle using an explicit-stack depth-first search.

    Traversal restarts from every node not yet visited, so disconnected
    components are covered. A node is only a cycle witness while it is on
    the active path; reaching a finished node again (a diamond) is fine.

    Returns:
        The cycle as a list of node ids with the first id repeated at the
        end, or None if the graph is acyclic
    """
    visited: set[str] = set()
    on_path: set[str] = set()

    for start in successors:
        if start in visited:
            continue

        visited.add(start)
        on_path.add(start)
        path = [start]
        stack = [(start, iter(successors[start]))]

        while stack:
            current, neighbors = stack[-1]
            for neighbor in neighbors:
                if neighbor in on_path:
                    return path[path.index(neighbor):] + [neighbor]
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_path.add(neighbor)
                    path.append(neighbor)
                    stack.append((neighbor, iter(successors[neighbor])))
                    break
            else:
                # All neighbors explored: leave the active path
                stack.pop()
                on_path.discard(current)
                path.pop()

    return None


def incident_node_ids(edges: Iterable["Edge"]) -> set[str]:
    """Ids of every node that is an endpoint of at least one edge."""
    connected: set[str] = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)
    return connected
