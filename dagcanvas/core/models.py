"""
Core data models for the graph editor.

These models define the canonical schema for a graph:
- Nodes with a label, a top-left anchored position and a fixed logical size
- Edges connecting one node's outgoing port to another node's incoming port
- Snapshots pairing nodes and edges for the validator and the layout engine

Field Naming Convention:
- Edges use `source` and `target` (industry standard from D3, Cytoscape, etc.)
- Ports use the handle ids of the canvas node: incoming on the left,
  outgoing on the right
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field


# Fixed logical size of every node on the canvas
NODE_WIDTH = 172.0
NODE_HEIGHT = 36.0


class Port(str, Enum):
    """Connection ports. Each node exposes exactly one of each."""
    SOURCE = "right"   # Outgoing port
    TARGET = "left"    # Incoming port


class LayoutDirection(str, Enum):
    """Primary flow direction of a layered layout."""
    LR = "LR"  # Left to right (ranks are columns)
    TB = "TB"  # Top to bottom (ranks are rows)


class Node(BaseModel):
    """A node in the graph."""
    id: str
    label: str
    x: float = 0
    y: float = 0
    width: float = Field(default=NODE_WIDTH, gt=0)
    height: float = Field(default=NODE_HEIGHT, gt=0)
    selected: bool = False

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class Edge(BaseModel):
    """
    A directed connection between two nodes.

    The identity of an edge is its (source port, target port) pair, so two
    edges between the same ports are the same edge.
    """
    source: str  # Source node ID
    target: str  # Target node ID
    source_handle: Port = Port.SOURCE
    target_handle: Port = Port.TARGET
    selected: bool = False

    @computed_field
    @property
    def id(self) -> str:
        return f"{self.source}:{self.source_handle.value}->{self.target}:{self.target_handle.value}"

    @property
    def key(self) -> tuple[str, Port, str, Port]:
        """The port pair identifying this edge."""
        return (self.source, self.source_handle, self.target, self.target_handle)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "source_handle": self.source_handle.value,
            "target_handle": self.target_handle.value,
            "selected": self.selected,
        }


class GraphSnapshot(BaseModel):
    """
    An immutable pairing of the current nodes and edges.

    `revision` is the editor's structural revision when the snapshot was
    taken; layout results carry it so stale results can be discarded.
    """
    model_config = ConfigDict(frozen=True)

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    revision: int = 0

    @classmethod
    def capture(cls, nodes: list[Node], edges: list[Edge], revision: int = 0) -> "GraphSnapshot":
        """Build a snapshot from deep copies so later mutations never leak in."""
        return cls(
            nodes=tuple(n.model_copy(deep=True) for n in nodes),
            edges=tuple(e.model_copy(deep=True) for e in edges),
            revision=revision,
        )

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


# --- API Request/Response Models ---

class CreateNodeRequest(BaseModel):
    """Request to create a new node."""
    label: str


class CreateEdgeRequest(BaseModel):
    """Request to connect two nodes."""
    source: str
    target: str
    source_handle: Optional[Port] = None
    target_handle: Optional[Port] = None


class SelectionRequest(BaseModel):
    """Request to select nodes and edges."""
    node_ids: list[str] = Field(default_factory=list)
    edge_ids: list[str] = Field(default_factory=list)
    additive: bool = False


class AutoLayoutRequest(BaseModel):
    """Request to run the layered layout. `direction` is checked by the engine."""
    direction: Optional[str] = None
