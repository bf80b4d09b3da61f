"""
arcio Backend - FastAPI Application

This is the main entry point for the arcio backend.
It provides:
- REST API for editing operations (nodes, edges, control points, drags,
  undo/redo, clipboard, file ops)
- Edge rendering (path string + handles) for the canvas
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from arcio import (
    ArcioError,
    ControlPoint,
    ControlPointNotFoundError,
    CurveAlgorithm,
    EdgeNotFoundError,
    NodeNotFoundError,
    Point,
    Side,
    Sides,
    Size,
)
from arcio.editor import side_of
from arcio.persistence import GraphFormatError

from .models import (
    AdoptPointsRequest,
    ConnectRequest,
    CreateNodeRequest,
    DragEndRequest,
    DragRequest,
    GraphUpdatedEvent,
    GuidesEvent,
    InsertPointRequest,
    MovePointRequest,
    OpenGraphRequest,
    PasteRequest,
    RenderEdgeRequest,
    SaveGraphRequest,
    SelectNodesRequest,
    UpdateEdgeRequest,
)
from .session_manager import session_manager
from .event_feed import event_feed

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = (NodeNotFoundError, EdgeNotFoundError, ControlPointNotFoundError)


# --- Async change notification ---
# Bridge between sync SessionManager callbacks and async WebSocket broadcasts

_change_event = asyncio.Event()


def graph_updated_event() -> GraphUpdatedEvent:
    editor = session_manager.editor
    return GraphUpdatedEvent(
        can_undo=editor.can_undo,
        can_redo=editor.can_redo,
        is_dirty=session_manager.is_dirty,
        node_count=len(editor.graph.nodes),
        edge_count=len(editor.graph.edges),
    )


def on_graph_change():
    """Callback for graph changes - sets event for async handler."""
    _change_event.set()


async def change_broadcaster():
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await _change_event.wait()
        _change_event.clear()

        await event_feed.publish(graph_updated_event())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    session_manager.on_change(on_graph_change)

    broadcaster_task = asyncio.create_task(change_broadcaster())

    yield

    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="arcio API",
    description="Editing backend for the architecture diagram canvas",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _edit_error(e: ArcioError) -> HTTPException:
    if isinstance(e, NOT_FOUND_ERRORS):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": event_feed.connection_count}


# --- Graph State ---

@app.get("/api/graph")
async def get_graph():
    """Get the current graph state."""
    return session_manager.get_state()


@app.get("/api/enums/algorithms")
async def get_algorithms():
    """Get the available curve algorithms."""
    return {"algorithms": [a.value for a in CurveAlgorithm]}


# --- File Operations ---

@app.post("/api/graph/new")
async def new_graph():
    """Start a new empty graph."""
    graph = session_manager.new_graph()
    return {"success": True, "graph": graph.to_json_dict()}


@app.post("/api/graph/open")
async def open_graph(request: OpenGraphRequest):
    """Open a graph from a JSON file."""
    try:
        graph = session_manager.open_graph(request.file_path)
        return {
            "success": True,
            "graph": graph.to_json_dict(),
            "file_path": str(session_manager.file_path)
        }
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GraphFormatError as e:
        raise HTTPException(status_code=400, detail=f"Failed to open graph: {e}")


@app.post("/api/graph/save")
async def save_graph(request: SaveGraphRequest):
    """Save the graph to a JSON file."""
    try:
        path = session_manager.save_graph(request.file_path)
        return {"success": True, "file_path": str(path)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to save: {e}")


# --- Undo/Redo ---

@app.post("/api/undo")
async def undo():
    """Undo the last edit."""
    if session_manager.apply(lambda ed: ed.undo()):
        return {"success": True, "graph": session_manager.editor.graph.to_json_dict()}
    return {"success": False, "message": "Nothing to undo"}


@app.post("/api/redo")
async def redo():
    """Redo the last undone edit."""
    if session_manager.apply(lambda ed: ed.redo()):
        return {"success": True, "graph": session_manager.editor.graph.to_json_dict()}
    return {"success": False, "message": "Nothing to redo"}


# --- Clipboard ---

@app.post("/api/copy")
async def copy():
    """Copy the selected nodes and the edges between them."""
    buffer = session_manager.apply(lambda ed: ed.copy(), notify=False)
    return {"success": True, "nodes": len(buffer.nodes), "edges": len(buffer.edges)}


@app.post("/api/cut")
async def cut():
    """Cut the selected nodes and the edges between them."""
    buffer = session_manager.apply(lambda ed: ed.cut())
    return {
        "success": True,
        "nodes": len(buffer.nodes),
        "edges": len(buffer.edges),
        "graph": session_manager.editor.graph.to_json_dict(),
    }


@app.post("/api/paste")
async def paste(request: PasteRequest):
    """Paste the clipboard with its top-left corner at the cursor."""
    cursor = Point(x=request.x, y=request.y)
    if session_manager.apply(lambda ed: ed.paste(cursor)):
        return {"success": True, "graph": session_manager.editor.graph.to_json_dict()}
    return {"success": False, "message": "Clipboard is empty"}


# --- Node Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest):
    """Create a new node."""
    measured = None
    if request.width is not None and request.height is not None:
        measured = Size(width=request.width, height=request.height)
    try:
        node = session_manager.apply(lambda ed: ed.add_node(
            position=Point(x=request.x, y=request.y),
            measured=measured,
            node_type=request.type,
            data=request.data,
            node_id=request.id,
        ))
        return {"success": True, "node": node.model_dump(mode="json")}
    except ArcioError as e:
        raise _edit_error(e)


@app.delete("/api/nodes/{node_id}")
async def delete_node(node_id: str):
    """Delete a node and its edges."""
    removed = session_manager.apply(lambda ed: ed.remove_nodes([node_id]))
    if removed:
        return {"success": True}
    raise HTTPException(status_code=404, detail="Node not found")


@app.post("/api/selection")
async def select_nodes(request: SelectNodesRequest):
    """Replace the node selection."""
    session_manager.apply(lambda ed: ed.select_nodes(request.node_ids), notify=False)
    return {"success": True}


# --- Dragging ---

@app.post("/api/drag")
async def drag(request: DragRequest):
    """Apply one drag frame; returns guide lines and snapped positions."""
    guides = session_manager.apply(lambda ed: ed.drag_nodes(request.changes), notify=False)
    positions = {
        c.id: session_manager.editor.graph.get_node(c.id).position.model_dump()
        for c in request.changes
        if session_manager.editor.graph.get_node(c.id) is not None
    }
    await event_feed.publish(GuidesEvent(horizontal=guides.horizontal, vertical=guides.vertical))
    return {"guides": guides.to_dict(), "positions": positions}


@app.post("/api/drag/end")
async def drag_end(request: DragEndRequest):
    """Finish a node drag and record it in the history."""
    try:
        session_manager.apply(lambda ed: ed.end_drag(request.node_id, request.position))
        return {"success": True, "can_undo": session_manager.editor.can_undo}
    except ArcioError as e:
        raise _edit_error(e)


# --- Edge Operations ---

@app.post("/api/edges")
async def create_edge(request: ConnectRequest):
    """Connect two nodes with an editable edge."""
    try:
        edge = session_manager.apply(lambda ed: ed.connect(
            source=request.source,
            target=request.target,
            source_handle=request.source_handle,
            target_handle=request.target_handle,
            algorithm=request.algorithm,
        ))
        return {"success": True, "edge": edge.model_dump(mode="json", by_alias=True)}
    except ArcioError as e:
        raise _edit_error(e)


@app.post("/api/edges/algorithm")
async def set_all_algorithms(request: UpdateEdgeRequest):
    """Switch every edge to one curve algorithm."""
    session_manager.apply(lambda ed: ed.set_all_algorithms(request.algorithm))
    return {"success": True}


@app.patch("/api/edges/{edge_id}")
async def update_edge(edge_id: str, request: UpdateEdgeRequest):
    """Change an edge's curve algorithm."""
    try:
        edge = session_manager.apply(lambda ed: ed.set_edge_algorithm(edge_id, request.algorithm))
        return {"success": True, "edge": edge.model_dump(mode="json", by_alias=True)}
    except ArcioError as e:
        raise _edit_error(e)


@app.delete("/api/edges/{edge_id}")
async def delete_edge(edge_id: str):
    """Delete an edge."""
    try:
        session_manager.apply(lambda ed: ed.remove_edge(edge_id))
        return {"success": True}
    except ArcioError as e:
        raise _edit_error(e)


@app.post("/api/edges/{edge_id}/render")
async def render_edge(edge_id: str, request: RenderEdgeRequest):
    """Compute the path string and handles of an edge."""
    editor = session_manager.editor
    edge = editor.graph.get_edge(edge_id)
    if edge is None:
        raise HTTPException(status_code=404, detail="Edge not found")

    sides = Sides(
        from_side=request.from_side or side_of(edge.source_handle, Side.RIGHT),
        to_side=request.to_side or side_of(edge.target_handle, Side.LEFT),
    )
    render = session_manager.apply(
        lambda ed: ed.render_edge(edge_id, request.source_anchor, request.target_anchor, sides),
        notify=False,
    )
    return render.model_dump(mode="json")


# --- Control Points ---

@app.post("/api/edges/{edge_id}/points")
async def insert_point(edge_id: str, request: InsertPointRequest):
    """Insert a control point."""
    point = ControlPoint(id=request.id or "", x=request.x, y=request.y)
    try:
        inserted = session_manager.apply(lambda ed: ed.insert_point(edge_id, request.index, point))
        return {"success": True, "point": inserted.model_dump(mode="json")}
    except ArcioError as e:
        raise _edit_error(e)


@app.post("/api/edges/{edge_id}/points/adopt")
async def adopt_points(edge_id: str, request: AdoptPointsRequest):
    """Make rendered handles the edge's own points (start of a handle drag)."""
    try:
        edge = session_manager.apply(
            lambda ed: ed.adopt_control_points(edge_id, request.control_points),
            notify=False,
        )
        return {"success": True, "edge": edge.model_dump(mode="json", by_alias=True)}
    except ArcioError as e:
        raise _edit_error(e)


@app.patch("/api/edges/{edge_id}/points/{point_id}")
async def move_point(edge_id: str, point_id: str, request: MovePointRequest):
    """Move a control point; `final` ends the drag and records history."""
    position = Point(x=request.x, y=request.y)
    try:
        if request.final:
            session_manager.apply(lambda ed: ed.end_point_drag(edge_id, point_id, position))
        else:
            session_manager.apply(lambda ed: ed.move_point(edge_id, point_id, position), notify=False)
        return {"success": True}
    except ArcioError as e:
        raise _edit_error(e)


@app.delete("/api/edges/{edge_id}/points/{point_id}")
async def delete_point(edge_id: str, point_id: str):
    """Remove a control point."""
    try:
        session_manager.apply(lambda ed: ed.remove_point(edge_id, point_id))
        return {"success": True}
    except ArcioError as e:
        raise _edit_error(e)


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive graph_updated and guides events.
    """
    await event_feed.serve(websocket)


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        app,
        host=os.environ.get("ARCIO_HOST", "127.0.0.1"),
        port=int(os.environ.get("ARCIO_PORT", "8765")),
    )
