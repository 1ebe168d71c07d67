"""Editor controller and HTTP API for dagcanvas."""

from .editor import GraphEditor, sequential_ids

__all__ = ["GraphEditor", "sequential_ids"]
