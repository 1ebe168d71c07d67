"""dagcanvas - Build directed graphs, keep them valid DAGs, and lay them out in layers."""

__version__ = "1.0.0"
