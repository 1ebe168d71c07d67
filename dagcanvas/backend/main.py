"""
dagcanvas Backend - FastAPI Application

This is the main entry point for the graph editor backend.
It provides:
- REST API for graph mutations (nodes, edges, selection, deletion)
- The validation verdict after every mutation
- Layered auto-layout on request
- CORS for the browser origins listed in the settings
"""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..core import (
    AutoLayoutRequest,
    CreateEdgeRequest,
    CreateNodeRequest,
    LayoutDirection,
    SelectionRequest,
    Settings,
)
from .editor import GraphEditor

logger = logging.getLogger(__name__)

settings = Settings.from_env()

# Global instance for the application
graph_editor = GraphEditor(layout_config=settings.layout)


# --- FastAPI App ---

app = FastAPI(
    title="dagcanvas API",
    description="Backend API for the DAG editor",
    version="1.0.0",
)

# CORS for browser clients named in DAGCANVAS_CORS_ORIGINS
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "revision": graph_editor.revision}


# --- Graph State ---

@app.get("/api/graph")
async def get_graph():
    """Get the current graph state."""
    return graph_editor.get_state()


@app.post("/api/graph/new")
async def new_graph():
    """Discard the current graph."""
    graph_editor.new_graph()
    return {"success": True, "verdict": graph_editor.verdict.to_dict()}


# --- Node Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest):
    """Create a new node."""
    try:
        node = graph_editor.add_node(request.label)
        return {
            "success": True,
            "node": node.model_dump(),
            "verdict": graph_editor.verdict.to_dict()
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node."""
    node = graph_editor.get_node(node_id)
    if node:
        return {"success": True, "node": node.model_dump()}
    raise HTTPException(status_code=404, detail="Node not found")


# --- Edge Operations ---

@app.post("/api/edges")
async def create_edge(request: CreateEdgeRequest):
    """Connect two nodes. A rejected connection is not an error."""
    try:
        edge = graph_editor.add_edge(
            source=request.source,
            target=request.target,
            source_handle=request.source_handle,
            target_handle=request.target_handle
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if edge is None:
        return {
            "success": False,
            "rejected": True,
            "verdict": graph_editor.verdict.to_dict()
        }
    return {
        "success": True,
        "edge": edge.to_json_dict(),
        "verdict": graph_editor.verdict.to_dict()
    }


# --- Selection ---

@app.get("/api/selection")
async def get_selection():
    """Get the selected node and edge ids."""
    return {"success": True, **graph_editor.get_selection()}


@app.post("/api/selection")
async def select(request: SelectionRequest):
    """Select nodes and edges."""
    try:
        graph_editor.select(
            node_ids=request.node_ids,
            edge_ids=request.edge_ids,
            additive=request.additive
        )
        return {"success": True, **graph_editor.get_selection()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/api/selection")
async def delete_selected():
    """Delete the selection and every edge touching a deleted node."""
    nodes, edges = graph_editor.delete_selected()
    return {
        "success": True,
        "deleted_nodes": [n.id for n in nodes],
        "deleted_edges": [e.id for e in edges],
        "verdict": graph_editor.verdict.to_dict()
    }


# --- Validation ---

@app.get("/api/graph/validate")
async def validate_current_graph():
    """Get the verdict for the current graph."""
    return {"success": True, "verdict": graph_editor.verdict.to_dict()}


# --- Layout ---

@app.post("/api/layout/auto")
async def auto_layout(request: AutoLayoutRequest):
    """Arrange all nodes in a layered layout."""
    try:
        result = graph_editor.auto_layout(direction=request.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        **result.to_dict(),
        "bounds": graph_editor.bounds()
    }


# --- Enums for Frontend ---

@app.get("/api/enums/directions")
async def get_directions():
    """Get available layout directions."""
    return {"directions": [d.value for d in LayoutDirection]}


# --- Run with uvicorn ---

def run(host: str | None = None, port: int | None = None):
    """Serve the API with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger.info("Starting dagcanvas API")
    uvicorn.run(app, host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":
    run()
