"""
Pydantic models for the backend API.

Geometry and graph types come from the arcio package; these models only
describe the request bodies the canvas sends and the events pushed to it
over the WebSocket.
"""

from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from arcio import ControlPoint, NodePositionChange, Point, Side


class OpenGraphRequest(BaseModel):
    file_path: str


class SaveGraphRequest(BaseModel):
    file_path: Optional[str] = None


class CreateNodeRequest(BaseModel):
    """Request to create a new node."""
    id: Optional[str] = None
    type: str = "custom-shape"
    x: float = 0
    y: float = 0
    width: Optional[float] = None   # measured size, if already known
    height: Optional[float] = None
    data: dict[str, Any] = Field(default_factory=dict)


class SelectNodesRequest(BaseModel):
    node_ids: list[str] = Field(default_factory=list)


class DragRequest(BaseModel):
    """One drag frame: the position changes emitted by the canvas."""
    changes: list[NodePositionChange]


class DragEndRequest(BaseModel):
    node_id: Optional[str] = None
    position: Optional[Point] = None


class ConnectRequest(BaseModel):
    """Request to connect two nodes."""
    model_config = ConfigDict(populate_by_name=True)

    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    algorithm: Optional[str] = None  # unknown names fall back to "default"


class UpdateEdgeRequest(BaseModel):
    """Request to change an edge's curve algorithm."""
    algorithm: str


class RenderEdgeRequest(BaseModel):
    """Anchors and sides supplied by the host; omitted ones are derived."""
    source_anchor: Optional[Point] = None
    target_anchor: Optional[Point] = None
    from_side: Optional[Side] = None
    to_side: Optional[Side] = None


class InsertPointRequest(BaseModel):
    index: int
    x: float
    y: float
    id: Optional[str] = None


class MovePointRequest(BaseModel):
    x: float
    y: float
    final: bool = True  # False while dragging, True on release


class AdoptPointsRequest(BaseModel):
    control_points: list[ControlPoint]


class PasteRequest(BaseModel):
    x: float
    y: float


# --- WebSocket events ---

class GraphUpdatedEvent(BaseModel):
    """Sent after every committed edit; clients re-fetch GET /api/graph."""
    type: Literal["graph_updated"] = "graph_updated"
    can_undo: bool
    can_redo: bool
    is_dirty: bool
    node_count: int
    edge_count: int


class GuidesEvent(BaseModel):
    """Guide lines of the node drag in progress (None = no line on that axis)."""
    type: Literal["guides"] = "guides"
    horizontal: Optional[float] = None
    vertical: Optional[float] = None


class PongEvent(BaseModel):
    type: Literal["pong"] = "pong"
