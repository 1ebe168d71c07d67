"""
Hierarchical (layered) layout for directed graphs.

The layout runs in three phases:
- Rank assignment: longest-path ranks, so every edge points to a later rank
- Ordering: barycenter sweeps reduce crossings between adjacent ranks
- Coordinates: ranks become columns (LR) or rows (TB) as deep as their
  largest node, separated by fixed gaps

Layout is a pure function. It never touches the input nodes; callers fold
the returned positions back in with apply_positions().
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union, TYPE_CHECKING

from .config import LayoutConfig, resolve_direction
from .errors import GraphPreconditionError
from .models import LayoutDirection
from .traversal import build_adjacency, check_snapshot

if TYPE_CHECKING:
    from .models import Node, Edge, GraphSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """Top-left corner of a node's bounding box."""
    x: float
    y: float


@dataclass(frozen=True)
class LayoutResult:
    """
    New positions for every node of a snapshot.

    `revision` identifies the snapshot the result was computed from.
    """
    positions: dict[str, Position] = field(default_factory=dict)
    direction: LayoutDirection = LayoutDirection.LR
    revision: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "direction": self.direction.value,
            "revision": self.revision,
            "positions": {
                node_id: {"x": pos.x, "y": pos.y}
                for node_id, pos in self.positions.items()
            },
        }


# --- Phase 1: Ranks ---

def assign_ranks(
    node_ids: Sequence[str],
    successors: dict[str, list[str]],
    predecessors: dict[str, list[str]]
) -> dict[str, int]:
    """
    Assign longest-path ranks in Kahn topological order.

    For every edge u -> v of an acyclic graph, rank(v) > rank(u). Sources,
    isolated nodes included, get rank 0.

    Cyclic input does not fail: when no node is ready, the earliest
    remaining node (input order) is ranked anyway and its unprocessed
    incoming edges are ignored. The arrangement of such a component is
    unspecified.

    Returns:
        Mapping node_id -> rank, in input order
    """
    ranks: dict[str, int] = {nid: 0 for nid in node_ids}
    pending: dict[str, int] = {nid: len(predecessors[nid]) for nid in node_ids}
    done: set[str] = set()
    queue = deque(nid for nid in node_ids if pending[nid] == 0)

    while len(done) < len(ranks):
        if not queue:
            forced = next(nid for nid in node_ids if nid not in done)
            logger.warning(f"Graph has a cycle; breaking it at node {forced}")
            queue.append(forced)

        current = queue.popleft()
        if current in done:
            continue
        done.add(current)

        for succ in successors[current]:
            if succ in done:
                continue  # Back edge of a broken cycle
            ranks[succ] = max(ranks[succ], ranks[current] + 1)
            pending[succ] -= 1
            if pending[succ] == 0:
                queue.append(succ)

    return ranks


# --- Phase 2: Ordering ---

def count_crossings(ordering: list[list[str]], successors: dict[str, list[str]]) -> int:
    """Count edge crossings between each pair of adjacent ranks."""
    total = 0
    for rank_idx in range(len(ordering) - 1):
        next_pos = {nid: i for i, nid in enumerate(ordering[rank_idx + 1])}
        segments: list[tuple[int, int]] = []
        for src_pos, src in enumerate(ordering[rank_idx]):
            for succ in successors[src]:
                if succ in next_pos:
                    segments.append((src_pos, next_pos[succ]))

        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a1, b1), (a2, b2) = segments[i], segments[j]
                if (a1 - a2) * (b1 - b2) < 0:
                    total += 1
    return total


def _sort_by_barycenter(
    layer: list[str],
    reference: list[str],
    neighbors: dict[str, list[str]]
) -> None:
    """Stable in-place sort of a rank by mean neighbour index in `reference`."""
    ref_pos = {nid: i for i, nid in enumerate(reference)}
    keys: dict[str, float] = {}
    for idx, nid in enumerate(layer):
        positions = [ref_pos[nb] for nb in neighbors[nid] if nb in ref_pos]
        # No neighbour in the reference rank: keep the current slot
        keys[nid] = sum(positions) / len(positions) if positions else float(idx)
    layer.sort(key=lambda nid: keys[nid])


def order_ranks(
    ranks: dict[str, int],
    successors: dict[str, list[str]],
    predecessors: dict[str, list[str]],
    sweeps: int = 24
) -> list[list[str]]:
    """
    Order the nodes of each rank to reduce crossings (barycenter heuristic).

    Starts from input order, then alternates a downward sweep (by
    predecessors) and an upward sweep (by successors). Keeps the best
    ordering seen and stops as soon as a sweep does not improve it.

    Returns:
        One list of node ids per rank
    """
    rank_count = (max(ranks.values()) + 1) if ranks else 0
    ordering: list[list[str]] = [[] for _ in range(rank_count)]
    for nid, rank in ranks.items():
        ordering[rank].append(nid)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(best, successors)

    for _sweep in range(sweeps):
        if best_crossings == 0:
            break

        for rank_idx in range(1, rank_count):
            _sort_by_barycenter(ordering[rank_idx], ordering[rank_idx - 1], predecessors)
        for rank_idx in range(rank_count - 2, -1, -1):
            _sort_by_barycenter(ordering[rank_idx], ordering[rank_idx + 1], successors)

        crossings = count_crossings(ordering, successors)
        if crossings >= best_crossings:
            break
        best = [list(layer) for layer in ordering]
        best_crossings = crossings

    return best


# --- Phase 3: Coordinates ---

def assign_coordinates(
    ordering: list[list[str]],
    sizes: dict[str, tuple[float, float]],
    direction: LayoutDirection,
    config: LayoutConfig
) -> dict[str, tuple[float, float]]:
    """
    Place node centers.

    The rank index drives the primary axis (x for LR, y for TB) and the
    index within the rank drives the cross axis. A rank is as deep as its
    largest node, so every node of a later rank starts past the end of
    every node of an earlier one. Nodes inside a rank are packed by their
    own cross size, and each rank is centered against the longest rank.

    Args:
        ordering: Node ids per rank, in cross-axis order
        sizes: Mapping node_id -> (width, height)
        direction: LR or TB
        config: Gaps between ranks and between nodes

    Returns:
        Mapping node_id -> (center_x, center_y)
    """
    def extents(nid: str) -> tuple[float, float]:
        width, height = sizes[nid]
        if direction == LayoutDirection.LR:
            return width, height
        return height, width

    rank_lengths = []
    for layer in ordering:
        cross_total = sum(extents(nid)[1] for nid in layer)
        rank_lengths.append(cross_total + config.node_sep * max(len(layer) - 1, 0))
    longest = max(rank_lengths, default=0.0)

    centers: dict[str, tuple[float, float]] = {}
    rank_start = 0.0
    for layer, length in zip(ordering, rank_lengths):
        depth = max((extents(nid)[0] for nid in layer), default=0.0)
        primary = rank_start + depth / 2
        cursor = (longest - length) / 2
        for nid in layer:
            cross_size = extents(nid)[1]
            cross = cursor + cross_size / 2
            cursor += cross_size + config.node_sep
            if direction == LayoutDirection.LR:
                centers[nid] = (primary, cross)
            else:
                centers[nid] = (cross, primary)
        rank_start += depth + config.rank_sep
    return centers


# --- Entry points ---

def hierarchical_layout(
    nodes: Sequence["Node"],
    edges: Sequence["Edge"],
    direction: Union[str, LayoutDirection, None] = None,
    config: Optional[LayoutConfig] = None,
    revision: int = 0
) -> LayoutResult:
    """
    Compute a layered layout.

    Args:
        nodes: Nodes to arrange (not modified)
        edges: Edges defining the hierarchy
        direction: "LR" or "TB"; defaults to the config's direction
        config: Spacing and sizing rules (defaults if None)
        revision: Revision of the snapshot the nodes come from

    Returns:
        LayoutResult with a top-left position for every node

    Raises:
        LayoutConfigError: Unknown direction
        GraphPreconditionError: Malformed graph
    """
    config = config or LayoutConfig()
    resolved = resolve_direction(direction if direction is not None else config.direction)
    check_snapshot(nodes, edges)

    node_ids = [n.id for n in nodes]
    successors, predecessors = build_adjacency(node_ids, edges)
    ranks = assign_ranks(node_ids, successors, predecessors)
    ordering = order_ranks(ranks, successors, predecessors, sweeps=config.sweeps)
    sizes = {n.id: (n.width, n.height) for n in nodes}
    centers = assign_coordinates(ordering, sizes, resolved, config)

    # Centers become top-left anchors
    positions: dict[str, Position] = {}
    for node in nodes:
        cx, cy = centers[node.id]
        positions[node.id] = Position(x=cx - node.width / 2, y=cy - node.height / 2)

    logger.debug(
        f"Laid out {len(nodes)} nodes in {len(ordering)} ranks ({resolved.value})"
    )
    return LayoutResult(positions=positions, direction=resolved, revision=revision)


def layout_snapshot(
    snapshot: "GraphSnapshot",
    direction: Union[str, LayoutDirection, None] = None,
    config: Optional[LayoutConfig] = None
) -> LayoutResult:
    """Compute a layered layout for a GraphSnapshot, tagged with its revision."""
    return hierarchical_layout(
        snapshot.nodes, snapshot.edges,
        direction=direction, config=config, revision=snapshot.revision
    )


def apply_positions(nodes: Sequence["Node"], result: LayoutResult) -> list["Node"]:
    """
    Write layout positions onto nodes in-place.

    The result must cover exactly the given nodes; otherwise nothing is
    written.

    Returns:
        The same nodes (modified in-place)

    Raises:
        GraphPreconditionError: If node ids and result ids differ
    """
    node_ids = {n.id for n in nodes}
    if node_ids != set(result.positions):
        raise GraphPreconditionError("Layout result does not match the current nodes")

    for node in nodes:
        pos = result.positions[node.id]
        node.x = pos.x
        node.y = pos.y
    return list(nodes)
