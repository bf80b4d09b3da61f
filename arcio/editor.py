"""
Diagram editor - One editing session over a node/edge graph.

The editor is the single owner of the live graph. Every interaction of the
canvas goes through it:

    Idle -> Dragging(node | control point) -> Idle   snapshot on drag end
    Idle -> Connecting -> Idle                       snapshot on connect
    Idle -> Undo | Redo | Copy | Cut | Paste -> Idle

Drag frames update the graph without touching history; the snapshot taken
when the drag ends therefore holds the settled (snapped) position. A drag
that is abandoned without an end event is not rolled back.
"""

import logging
from typing import Callable, Iterable, Optional

from .alignment import SnapResult, apply_node_changes
from .clipboard import ClipboardManager
from .config import EditorSettings
from .control_points import ControlPointStore
from .errors import EdgeNotFoundError, InvalidOperationError, NodeNotFoundError
from .geometry import anchor_point, compute_control_points, compute_path
from .history import HistoryManager
from .models import (
    ALGORITHM_COLORS,
    ControlPoint,
    CurveAlgorithm,
    DrawingSession,
    Edge,
    EdgeRender,
    Graph,
    Node,
    NodePositionChange,
    Point,
    Side,
    Sides,
    Size,
    generate_id,
)

logger = logging.getLogger(__name__)


def side_of(handle: Optional[str], default: Side) -> Side:
    """Interpret a handle ID as a side, e.g. "right" or "node-1-right"."""
    if handle:
        for side in Side:
            if handle == side.value or handle.endswith(f"-{side.value}"):
                return side
    return default


class DiagramEditor:
    """
    Editing session: graph + history + clipboard + control points.

    Features:
    - Helper-line snapping for single-node drags
    - Snapshot-based undo/redo seeded with the initial graph as baseline
    - Copy/cut/paste of induced subgraphs
    - Control-point editing with stable point identities
    """

    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        graph: Optional[Graph] = None,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.settings = settings or EditorSettings()
        self._id_factory = id_factory
        self._guides = SnapResult()

        self.history = HistoryManager(max_history=self.settings.max_history)
        self.clipboard = ClipboardManager(id_factory=id_factory)
        self.control_points = ControlPointStore(id_factory=id_factory)

        self._graph = self._adopt_graph(graph or Graph())
        self.history.clear(baseline=self._graph)

    # --- Properties ---

    @property
    def graph(self) -> Graph:
        """Get the current graph."""
        return self._graph

    @property
    def guides(self) -> SnapResult:
        """Guide lines of the drag in progress (empty when idle)."""
        return self._guides

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # --- Internals ---

    def _adopt_graph(self, graph: Graph) -> Graph:
        """Register every edge's points, assigning IDs to points that have none."""
        for edge in graph.edges:
            graph = self.control_points.ensure_ids(graph, edge.id)
        return graph

    def _commit(self, graph: Graph):
        """Make `graph` current and record it in the history."""
        self._graph = graph
        self.history.take_snapshot(graph)

    def _require_node(self, node_id: str) -> Node:
        node = self._graph.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def _require_edge(self, edge_id: str) -> Edge:
        edge = self._graph.get_edge(edge_id)
        if edge is None:
            raise EdgeNotFoundError(edge_id)
        return edge

    # --- Document ---

    def load(self, graph: Graph):
        """Replace the graph and start a fresh history with it as baseline."""
        self.control_points.reset()
        self._graph = self._adopt_graph(graph)
        self._guides = SnapResult()
        self.history.clear(baseline=self._graph)

    # --- Nodes ---

    def add_node(
        self,
        position: Point,
        measured: Optional[Size] = None,
        node_type: str = "custom-shape",
        data: Optional[dict] = None,
        node_id: Optional[str] = None,
    ) -> Node:
        """Add a node to the canvas."""
        node = Node(
            id=node_id or self._id_factory(),
            type=node_type,
            position=position,
            measured=measured,
            data=data or {},
        )
        if self._graph.get_node(node.id) is not None:
            raise InvalidOperationError(f"Node already exists: {node.id}")
        self._commit(self._graph.replace_nodes(list(self._graph.nodes) + [node]))
        return node

    def remove_nodes(self, node_ids: Iterable[str]) -> int:
        """Delete nodes and every edge attached to them."""
        doomed = set(node_ids)
        nodes = [n for n in self._graph.nodes if n.id not in doomed]
        removed = len(self._graph.nodes) - len(nodes)
        if removed == 0:
            return 0
        edges = []
        for edge in self._graph.edges:
            if edge.source in doomed or edge.target in doomed:
                self.control_points.forget(edge.id)
            else:
                edges.append(edge)
        self._commit(Graph(nodes=nodes, edges=edges))
        return removed

    def select_nodes(self, node_ids: Iterable[str]):
        """Set the selection. Selection changes are not history entries."""
        wanted = set(node_ids)
        self._graph = self._graph.replace_nodes([
            n if n.selected == (n.id in wanted) else n.model_copy(update={"selected": n.id in wanted})
            for n in self._graph.nodes
        ])

    def drag_nodes(self, changes: list[NodePositionChange]) -> SnapResult:
        """
        Apply one drag frame.

        A single dragged node snaps to its neighbours; the guide lines are
        returned and kept in `guides` until the drag ends.
        """
        nodes, self._guides = apply_node_changes(
            changes, self._graph.nodes, self.settings.snap_threshold
        )
        self._graph = self._graph.replace_nodes(nodes)
        return self._guides

    def end_drag(self, node_id: Optional[str] = None, position: Optional[Point] = None):
        """
        Finish a drag and take a snapshot.

        A final position reported with the release is snapped like any other
        drag frame, so the snapshot always holds the settled position.
        """
        graph = self._graph
        if node_id is not None and position is not None:
            self._require_node(node_id)
            change = NodePositionChange(id=node_id, position=position, dragging=True)
            nodes, _ = apply_node_changes([change], graph.nodes, self.settings.snap_threshold)
            graph = graph.replace_nodes(nodes)
        self._guides = SnapResult()
        self._commit(graph)

    # --- Edges ---

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
        algorithm: Optional[CurveAlgorithm] = None,
        session: Optional[DrawingSession] = None,
    ) -> Edge:
        """Create an edge between two existing nodes."""
        self._require_node(source)
        self._require_node(target)

        edge = Edge(
            id=self._id_factory(),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
            algorithm=algorithm or self.settings.default_algorithm,
        )
        self.control_points.register(edge)
        if session is not None:
            session.connection_line = []
        self._commit(self._graph.model_copy(update={"edges": list(self._graph.edges) + [edge]}))
        return edge

    def remove_edge(self, edge_id: str):
        self._require_edge(edge_id)
        self.control_points.forget(edge_id)
        self._commit(self._graph.model_copy(update={
            "edges": [e for e in self._graph.edges if e.id != edge_id]
        }))

    def set_edge_algorithm(self, edge_id: str, algorithm) -> Edge:
        """Switch the curve algorithm of one edge."""
        edge = self._require_edge(edge_id)
        edge = edge.model_copy(update={"algorithm": CurveAlgorithm.coerce(algorithm)})
        self.control_points.forget(edge_id)
        self._commit(self._graph.replace_edge(edge))
        return edge

    def set_all_algorithms(self, algorithm):
        """Switch the curve algorithm of every edge."""
        resolved = CurveAlgorithm.coerce(algorithm)
        for edge in self._graph.edges:
            self.control_points.forget(edge.id)
        self._commit(self._graph.model_copy(update={
            "edges": [e.model_copy(update={"algorithm": resolved}) for e in self._graph.edges]
        }))

    def render_edge(
        self,
        edge_id: str,
        source_anchor: Optional[Point] = None,
        target_anchor: Optional[Point] = None,
        sides: Optional[Sides] = None,
    ) -> EdgeRender:
        """
        Compute the path and handles of an edge.

        Anchors and sides default to the midpoints of the sides named by the
        edge's handles. An edge whose endpoints cannot be resolved renders
        as an empty path.
        """
        edge = self._require_edge(edge_id)
        color = ALGORITHM_COLORS[edge.algorithm]
        if sides is None:
            sides = Sides(
                from_side=side_of(edge.source_handle, Side.RIGHT),
                to_side=side_of(edge.target_handle, Side.LEFT),
            )
        if source_anchor is None:
            source_anchor = anchor_point(self._graph.get_node(edge.source), sides.from_side)
        if target_anchor is None:
            target_anchor = anchor_point(self._graph.get_node(edge.target), sides.to_side)
        if source_anchor is None or target_anchor is None:
            return EdgeRender(path="", control_points=[], color=color)

        points = [source_anchor, *edge.points, target_anchor]
        gap = self.settings.corner_gap
        path = compute_path(points, edge.algorithm, sides, corner_gap=gap)
        handles = compute_control_points(points, edge.algorithm, sides, corner_gap=gap)
        return EdgeRender(
            path=path,
            control_points=self.control_points.stable_ids(edge_id, handles),
            color=color,
        )

    # --- Control points ---

    def insert_point(self, edge_id: str, index: int, point: Point) -> ControlPoint:
        graph, inserted = self.control_points.insert_point(self._graph, edge_id, index, point)
        self._commit(graph)
        return inserted

    def move_point(self, edge_id: str, point_id: str, position: Point):
        """Move a control point during a drag (no snapshot)."""
        self._graph = self.control_points.move_point(self._graph, edge_id, point_id, position)

    def end_point_drag(self, edge_id: str, point_id: str, position: Optional[Point] = None):
        """Finish a control-point drag and take a snapshot."""
        graph = self._graph
        if position is not None:
            graph = self.control_points.move_point(graph, edge_id, point_id, position)
        self._commit(graph)

    def remove_point(self, edge_id: str, point_id: str):
        self._commit(self.control_points.remove_point(self._graph, edge_id, point_id))

    def adopt_control_points(self, edge_id: str, control_points: list[ControlPoint]) -> Edge:
        """Turn rendered handles into the edge's own points (drag start)."""
        self._graph = self.control_points.adopt(self._graph, edge_id, control_points)
        return self._graph.get_edge(edge_id)

    # --- Undo/Redo ---

    def undo(self) -> bool:
        """Undo the last edit. Returns False if there was nothing to undo."""
        graph = self.history.undo()
        if graph is None:
            return False
        self._graph = graph
        self._guides = SnapResult()
        return True

    def redo(self) -> bool:
        """Redo the last undone edit. Returns False if there was nothing to redo."""
        graph = self.history.redo()
        if graph is None:
            return False
        self._graph = graph
        self._guides = SnapResult()
        return True

    # --- Clipboard ---

    def copy(self) -> Graph:
        return self.clipboard.copy(self._graph)

    def cut(self) -> Graph:
        """Cut the selection; returns the buffered subgraph."""
        graph = self.clipboard.cut(self._graph)
        kept = {e.id for e in graph.edges}
        for edge in self._graph.edges:
            if edge.id not in kept:
                self.control_points.forget(edge.id)
        self._commit(graph)
        return self.clipboard.buffer

    def paste(self, cursor: Point) -> bool:
        """Paste the clipboard at the cursor. Returns False if it was empty."""
        if self.clipboard.is_empty:
            return False
        graph = self.clipboard.paste(self._graph, cursor)
        for edge in graph.edges[len(self._graph.edges):]:
            self.control_points.register(edge)
        self._commit(graph)
        return True
