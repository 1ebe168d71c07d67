"""
dagcanvas core - Graph models, validation and hierarchical layout.

This module provides the pure graph logic used by both the editor backend
and the CLI, ensuring a single source of truth for validation and layout.
"""

from .models import (
    # Enums
    Port,
    LayoutDirection,
    # Core models
    Node,
    Edge,
    GraphSnapshot,
    # Request models (for API)
    CreateNodeRequest,
    CreateEdgeRequest,
    SelectionRequest,
    AutoLayoutRequest,
)

from .errors import (
    GraphPreconditionError,
    DuplicateNodeError,
    DanglingEdgeError,
    SelfLoopError,
    PortMismatchError,
    DuplicateEdgeError,
    LayoutConfigError,
)
from .config import LayoutConfig, Settings, resolve_direction
from .validation import validate, validate_snapshot, Verdict, VerdictReason
from .layout import (
    hierarchical_layout,
    layout_snapshot,
    apply_positions,
    LayoutResult,
    Position,
)

__all__ = [
    # Enums
    "Port",
    "LayoutDirection",
    # Models
    "Node",
    "Edge",
    "GraphSnapshot",
    # Request models
    "CreateNodeRequest",
    "CreateEdgeRequest",
    "SelectionRequest",
    "AutoLayoutRequest",
    # Errors
    "GraphPreconditionError",
    "DuplicateNodeError",
    "DanglingEdgeError",
    "SelfLoopError",
    "PortMismatchError",
    "DuplicateEdgeError",
    "LayoutConfigError",
    # Config
    "LayoutConfig",
    "Settings",
    "resolve_direction",
    # Validation
    "validate",
    "validate_snapshot",
    "Verdict",
    "VerdictReason",
    # Layout
    "hierarchical_layout",
    "layout_snapshot",
    "apply_positions",
    "LayoutResult",
    "Position",
]
