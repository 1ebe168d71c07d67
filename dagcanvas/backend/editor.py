"""
Graph Editor - Owner of the mutable graph.

This module implements:
- Node creation with injected id generation and random initial placement
- Connection rules (no self-connections, one edge per port pair)
- Selection and cascading deletion of the selection
- Re-validation after every structural change
- Applying layered layouts, discarding results computed from stale snapshots
"""

import itertools
import logging
import random
from typing import Callable, Iterable, Optional, Union

from ..core.config import LayoutConfig
from ..core.layout import LayoutResult, apply_positions, layout_snapshot
from ..core.models import Edge, GraphSnapshot, LayoutDirection, Node, Port
from ..core.validation import Verdict, validate

logger = logging.getLogger(__name__)

# Initial nodes land somewhere in this square until a layout is applied
INITIAL_SPREAD = 250


def sequential_ids(prefix: str = "node_") -> Callable[[], str]:
    """Return a generator of ids: node_0, node_1, ..."""
    counter = itertools.count()
    return lambda: f"{prefix}{next(counter)}"


class GraphEditor:
    """
    Manages a single graph's state and validity.

    Features:
    - O(1) node/edge lookups via index dictionaries
    - Structural revision counter, bumped on every add/delete
    - Change callbacks receiving the new verdict
    - Fit callbacks receiving the bounding box after a layout

    Ids come from the injected `id_generator`; the editor never invents them
    any other way.
    """

    def __init__(
        self,
        id_generator: Optional[Callable[[], str]] = None,
        rng: Optional[random.Random] = None,
        layout_config: Optional[LayoutConfig] = None
    ):
        self._id_generator = id_generator or sequential_ids()
        self._rng = rng or random.Random()
        self._layout_config = layout_config or LayoutConfig()
        self._nodes: list[Node] = []
        self._edges: list[Edge] = []
        self._revision = 0
        self._verdict: Verdict = validate([], [])
        self._on_change_callbacks: list[Callable[[Verdict], None]] = []
        self._on_fit_callbacks: list[Callable[[tuple[float, float, float, float]], None]] = []

        # O(1) lookup indexes
        self._node_index: dict[str, Node] = {}          # node_id -> Node
        self._edge_index: dict[str, Edge] = {}          # edge_id -> Edge
        self._edges_by_node: dict[str, set[str]] = {}   # node_id -> set of edge_ids

    # --- Index Management ---

    def _index_edge(self, edge: Edge):
        """Add an edge to the indexes."""
        self._edge_index[edge.id] = edge
        self._edges_by_node.setdefault(edge.source, set()).add(edge.id)
        self._edges_by_node.setdefault(edge.target, set()).add(edge.id)

    def _unindex_edge(self, edge: Edge):
        """Remove an edge from the indexes."""
        self._edge_index.pop(edge.id, None)
        if edge.source in self._edges_by_node:
            self._edges_by_node[edge.source].discard(edge.id)
        if edge.target in self._edges_by_node:
            self._edges_by_node[edge.target].discard(edge.id)

    # --- Properties ---

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    @property
    def verdict(self) -> Verdict:
        """Verdict of the last validation pass."""
        return self._verdict

    @property
    def revision(self) -> int:
        """Structural revision, bumped on every node/edge add or removal."""
        return self._revision

    @property
    def layout_config(self) -> LayoutConfig:
        return self._layout_config

    # --- Callbacks ---

    def on_change(self, callback: Callable[[Verdict], None]):
        """Register a callback for structural changes."""
        self._on_change_callbacks.append(callback)

    def on_fit(self, callback: Callable[[tuple[float, float, float, float]], None]):
        """Register a callback asked to refit the view after a layout."""
        self._on_fit_callbacks.append(callback)

    def _structure_changed(self):
        """Bump the revision, re-validate and notify listeners."""
        self._revision += 1
        self._verdict = validate(self._nodes, self._edges)
        logger.debug(f"Revision {self._revision}: {self._verdict.message}")
        for callback in self._on_change_callbacks:
            callback(self._verdict)

    # --- Graph Lifecycle ---

    def new_graph(self):
        """Discard every node and edge. Ids stay unique across graphs."""
        self._nodes.clear()
        self._edges.clear()
        self._node_index.clear()
        self._edge_index.clear()
        self._edges_by_node.clear()
        self._structure_changed()
        logger.info("Started a new graph")

    # --- Node Operations ---

    def add_node(self, label: str) -> Node:
        """
        Add a node at a random position.

        Raises:
            ValueError: If the label is empty
        """
        if not label or not label.strip():
            raise ValueError("Node label must not be empty")

        node = Node(
            id=self._id_generator(),
            label=label,
            x=self._rng.random() * INITIAL_SPREAD,
            y=self._rng.random() * INITIAL_SPREAD,
            width=self._layout_config.node_width,
            height=self._layout_config.node_height,
        )
        if node.id in self._node_index:
            raise ValueError(f"Id generator produced a duplicate id: {node.id}")

        self._nodes.append(node)
        self._node_index[node.id] = node
        logger.info(f"Added node {node.id} ({label})")
        self._structure_changed()
        return node

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(1) lookup)."""
        return self._node_index.get(node_id)

    # --- Edge Operations ---

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: Union[Port, str, None] = None,
        target_handle: Union[Port, str, None] = None
    ) -> Optional[Edge]:
        """
        Connect source's outgoing port to target's incoming port.

        Returns None (and changes nothing) when the connection is rejected:
        a self-connection, ends not going from the outgoing to the incoming
        port, or an edge with the same port pair already exists.

        Raises:
            ValueError: If either node does not exist or a handle is unknown
        """
        if source not in self._node_index:
            raise ValueError(f"Source node not found: {source}")
        if target not in self._node_index:
            raise ValueError(f"Target node not found: {target}")

        source_port = Port(source_handle) if source_handle is not None else Port.SOURCE
        target_port = Port(target_handle) if target_handle is not None else Port.TARGET

        if source == target:
            logger.warning(f"Rejected self-connection on {source}")
            return None
        if source_port != Port.SOURCE or target_port != Port.TARGET:
            # Only outgoing -> incoming; covers both ends on the same port
            logger.warning(
                f"Rejected {source} -> {target}: {source_port.value} -> {target_port.value} ports"
            )
            return None

        edge = Edge(source=source, target=target, source_handle=source_port, target_handle=target_port)
        if edge.id in self._edge_index:
            logger.warning(f"Rejected duplicate edge {edge.id}")
            return None

        self._edges.append(edge)
        self._index_edge(edge)
        logger.info(f"Connected {source} -> {target}")
        self._structure_changed()
        return edge

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(1) lookup)."""
        return self._edge_index.get(edge_id)

    def get_edges_for_node(self, node_id: str) -> list[Edge]:
        """Get all edges connected to a node (O(1) index lookup)."""
        return [self._edge_index[eid] for eid in self._edges_by_node.get(node_id, ()) if eid in self._edge_index]

    # --- Selection ---

    def select(
        self,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        additive: bool = False
    ):
        """
        Mark nodes and edges as selected.

        Without `additive`, the previous selection is replaced. Selection is
        not a structural change: no re-validation, no revision bump.

        Raises:
            ValueError: If an id does not exist (nothing is changed)
        """
        node_ids = list(node_ids)
        edge_ids = list(edge_ids)
        for node_id in node_ids:
            if node_id not in self._node_index:
                raise ValueError(f"Node not found: {node_id}")
        for edge_id in edge_ids:
            if edge_id not in self._edge_index:
                raise ValueError(f"Edge not found: {edge_id}")

        if not additive:
            self.clear_selection()
        for node_id in node_ids:
            self._node_index[node_id].selected = True
        for edge_id in edge_ids:
            self._edge_index[edge_id].selected = True

    def clear_selection(self):
        """Deselect everything."""
        for node in self._nodes:
            node.selected = False
        for edge in self._edges:
            edge.selected = False

    def get_selection(self) -> dict:
        """Ids of the selected nodes and edges."""
        return {
            "node_ids": [n.id for n in self._nodes if n.selected],
            "edge_ids": [e.id for e in self._edges if e.selected],
        }

    def delete_selected(self) -> tuple[list[Node], list[Edge]]:
        """
        Delete all selected nodes and edges.

        Edges touching a deleted node are deleted too, so no edge is ever
        left dangling.

        Returns:
            (removed nodes, removed edges)
        """
        removed_nodes = [n for n in self._nodes if n.selected]
        removed_node_ids = {n.id for n in removed_nodes}
        removed_edges = [
            e for e in self._edges
            if e.selected or e.source in removed_node_ids or e.target in removed_node_ids
        ]
        if not removed_nodes and not removed_edges:
            return [], []

        removed_edge_ids = {e.id for e in removed_edges}
        self._nodes = [n for n in self._nodes if n.id not in removed_node_ids]
        self._edges = [e for e in self._edges if e.id not in removed_edge_ids]
        for edge in removed_edges:
            self._unindex_edge(edge)
        for node in removed_nodes:
            self._node_index.pop(node.id, None)
            self._edges_by_node.pop(node.id, None)

        logger.info(f"Deleted {len(removed_nodes)} nodes and {len(removed_edges)} edges")
        self._structure_changed()
        return removed_nodes, removed_edges

    # --- Snapshots & Layout ---

    def snapshot(self) -> GraphSnapshot:
        """Capture an immutable copy of the current graph."""
        return GraphSnapshot.capture(self._nodes, self._edges, revision=self._revision)

    def compute_layout(self, direction: Union[str, LayoutDirection, None] = None) -> LayoutResult:
        """
        Lay out the current graph without applying it.

        Raises:
            LayoutConfigError: Unknown direction
        """
        return layout_snapshot(self.snapshot(), direction=direction, config=self._layout_config)

    def apply_layout(self, result: LayoutResult) -> bool:
        """
        Apply a layout result if it was computed from the current graph.

        A result from an older revision is discarded, never merged.

        Returns:
            True if the positions were applied
        """
        if result.revision != self._revision:
            logger.warning(
                f"Discarded stale layout (revision {result.revision}, current {self._revision})"
            )
            return False

        apply_positions(self._nodes, result)
        bounds = self.bounds()
        if bounds is not None:
            for callback in self._on_fit_callbacks:
                callback(bounds)
        return True

    def auto_layout(self, direction: Union[str, LayoutDirection, None] = None) -> LayoutResult:
        """Compute and apply a layered layout."""
        result = self.compute_layout(direction)
        self.apply_layout(result)
        logger.info(f"Applied {result.direction.value} layout to {len(result.positions)} nodes")
        return result

    def bounds(self) -> Optional[tuple[float, float, float, float]]:
        """Bounding box (x, y, right, bottom) of all nodes, or None if empty."""
        if not self._nodes:
            return None
        boxes = [n.bounds() for n in self._nodes]
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    # --- State ---

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "nodes": [n.model_dump() for n in self._nodes],
            "edges": [e.to_json_dict() for e in self._edges],
            "verdict": self._verdict.to_dict(),
            "revision": self._revision,
        }

