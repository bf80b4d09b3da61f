"""
Core data models for editable-edge diagrams.

These models define the canonical in-memory schema shared by every
component of the engine:
- Points and control points (plane coordinates, optionally with identity)
- Nodes as supplied by the rendering host (position + measured size)
- Edges carrying a curve algorithm and their user-placed control points
- Graphs, which double as history snapshots and clipboard buffers

All models are frozen. Edits always build new objects, so a snapshot can
keep references to a graph without deep-copying it.

Field Naming Convention:
- Edges use `source` and `target` like the host canvas does
- Handles are `source_handle`/`target_handle`; the camelCase names used by
  the browser canvas (`sourceHandle`, `targetHandle`) are accepted on input
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import uuid


class Side(str, Enum):
    """Compass side of a node at which an edge leaves or enters."""
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


class CurveAlgorithm(str, Enum):
    """Curve algorithms an editable edge can be drawn with."""
    DEFAULT = "default"
    LINEAR = "linear"
    CATMULL_ROM = "catmull-rom"
    BEZIER_CATMULL_ROM = "bezier-catmull-rom"

    @classmethod
    def coerce(cls, value: Any) -> "CurveAlgorithm":
        """Map any input to an algorithm, falling back to DEFAULT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT


# Stroke colour per algorithm, used by the host when drawing the edge
ALGORITHM_COLORS: dict[CurveAlgorithm, str] = {
    CurveAlgorithm.DEFAULT: "#777777",
    CurveAlgorithm.LINEAR: "#0375ff",
    CurveAlgorithm.BEZIER_CATMULL_ROM: "#68D391",
    CurveAlgorithm.CATMULL_ROM: "#FF0072",
}


def generate_id() -> str:
    """Generate a collision-resistant random ID."""
    return str(uuid.uuid4())


class Point(BaseModel):
    """A plane coordinate."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(x=self.x + dx, y=self.y + dy)


class ControlPoint(Point):
    """
    A point along an edge's path.

    `active=False` marks a point synthesized by a curve algorithm rather than
    placed by the user. An empty `id` means no identity has been assigned yet.
    """
    id: str = ""
    active: bool = True

    def moved_to(self, position: Point) -> "ControlPoint":
        return self.model_copy(update={"x": position.x, "y": position.y})


class Sides(BaseModel):
    """Sides at which a path leaves the source and enters the target."""
    model_config = ConfigDict(frozen=True)

    from_side: Side = Side.LEFT
    to_side: Side = Side.RIGHT


class Size(BaseModel):
    """Measured size of a node."""
    model_config = ConfigDict(frozen=True)

    width: float = 0
    height: float = 0


class Node(BaseModel):
    """A node on the canvas, as laid out by the host."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    type: str = "custom-shape"
    position: Point = Field(default_factory=lambda: Point(x=0, y=0))
    measured: Optional[Size] = None  # None until the host has measured it
    selected: bool = False
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def width(self) -> float:
        return self.measured.width if self.measured else 0

    @property
    def height(self) -> float:
        return self.measured.height if self.measured else 0


class Edge(BaseModel):
    """
    An editable edge connecting two nodes.

    `points` never includes the source/target anchors; those come from the
    node handles at render time.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    type: str = "editable-edge"
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    algorithm: CurveAlgorithm = CurveAlgorithm.DEFAULT
    points: list[ControlPoint] = Field(default_factory=list)
    selected: bool = False

    @model_validator(mode='before')
    @classmethod
    def convert_canvas_fields(cls, data: Any) -> Any:
        """Lift `data.algorithm`/`data.points` from the canvas edge shape."""
        if isinstance(data, dict) and isinstance(data.get('data'), dict):
            data = dict(data)
            extra = data.pop('data')
            if 'algorithm' in extra and 'algorithm' not in data:
                data['algorithm'] = extra['algorithm']
            if 'points' in extra and 'points' not in data:
                data['points'] = extra['points']
        return data

    @field_validator('algorithm', mode='before')
    @classmethod
    def coerce_algorithm(cls, value: Any) -> CurveAlgorithm:
        if value is None:
            return CurveAlgorithm.DEFAULT
        return CurveAlgorithm.coerce(value)

    def with_points(self, points: list[ControlPoint]) -> "Edge":
        return self.model_copy(update={"points": list(points)})


class Graph(BaseModel):
    """
    A complete node/edge graph.

    Used as the live editing state, as a history snapshot and as the
    clipboard buffer.
    """
    model_config = ConfigDict(frozen=True)

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(n))."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def replace_edge(self, edge: Edge) -> "Graph":
        return self.model_copy(update={
            "edges": [edge if e.id == edge.id else e for e in self.edges]
        })

    def replace_nodes(self, nodes: list[Node]) -> "Graph":
        return self.model_copy(update={"nodes": list(nodes)})

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with canvas field names."""
        return {
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "edges": [e.model_dump(mode="json", by_alias=True) for e in self.edges],
        }


class DrawingSession(BaseModel):
    """In-progress connection line while the user drags out a new edge."""
    connection_line: list[Point] = Field(default_factory=list)


class NodePositionChange(BaseModel):
    """A single position change emitted by the host during a node drag."""
    model_config = ConfigDict(frozen=True)

    id: str
    position: Optional[Point] = None
    dragging: bool = False


class EdgeRender(BaseModel):
    """Everything the host needs to draw one edge."""
    path: str
    control_points: list[ControlPoint] = Field(default_factory=list)
    color: str = ALGORITHM_COLORS[CurveAlgorithm.DEFAULT]
