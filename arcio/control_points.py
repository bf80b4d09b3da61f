"""
Control-point store - Structural edits on an edge's control points.

Each edge owns an ordered list of control points (source to target). The
store inserts, moves and removes points on that list and hands back a new
graph; it never mutates the graph it was given.

Identity:
- Every point gets an ID when it is created and keeps it for life
- The store keeps a per-edge arena of every ID it has seen, so an ID is
  never handed out twice on the same edge, even after the point is removed
- Handles synthesized by a curve algorithm get IDs from a per-edge cache,
  so rendering the same shape again yields the same IDs
"""

import logging
from collections import defaultdict
from typing import Callable, Sequence

from .errors import ControlPointNotFoundError, EdgeNotFoundError, InvalidOperationError
from .models import ControlPoint, Edge, Graph, Point, generate_id

logger = logging.getLogger(__name__)


class ControlPointStore:
    """Per-edge control-point arena with stable identities."""

    def __init__(self, id_factory: Callable[[], str] = generate_id):
        self._id_factory = id_factory
        self._issued: dict[str, set[str]] = defaultdict(set)  # edge_id -> every ID seen
        self._stable: dict[str, list[str]] = {}               # edge_id -> cached handle IDs

    # --- Identity ---

    def _new_id(self, edge_id: str) -> str:
        issued = self._issued[edge_id]
        point_id = self._id_factory()
        while point_id in issued:
            point_id = self._id_factory()
        issued.add(point_id)
        return point_id

    def register(self, edge: Edge):
        """Record the IDs an edge already carries (e.g. after loading)."""
        self._issued[edge.id].update(p.id for p in edge.points if p.id)

    def reset(self):
        """Drop every arena and render cache (a different graph was loaded)."""
        self._issued.clear()
        self._stable.clear()

    def forget(self, edge_id: str):
        """Drop the render cache of an edge (its arena is kept)."""
        self._stable.pop(edge_id, None)

    def stable_ids(self, edge_id: str, control_points: Sequence[ControlPoint]) -> list[ControlPoint]:
        """
        Give ID-less handles an ID that survives re-renders.

        IDs are reused position by position as long as the number of handles
        stays the same; a different count starts a fresh cache.
        """
        cache = self._stable.get(edge_id)
        if cache is not None and len(cache) == len(control_points):
            return [
                p if p.id else p.model_copy(update={"id": cache[i]})
                for i, p in enumerate(control_points)
            ]

        cache = []
        result = []
        for point in control_points:
            if not point.id:
                point = point.model_copy(update={"id": self._new_id(edge_id)})
            cache.append(point.id)
            result.append(point)
        self._stable[edge_id] = cache
        return result

    # --- Structural edits ---

    def _edge(self, graph: Graph, edge_id: str) -> Edge:
        edge = graph.get_edge(edge_id)
        if edge is None:
            raise EdgeNotFoundError(edge_id)
        return edge

    def _index_of(self, edge: Edge, point_id: str) -> int:
        for i, point in enumerate(edge.points):
            if point.id == point_id:
                return i
        raise ControlPointNotFoundError(edge.id, point_id)

    def ensure_ids(self, graph: Graph, edge_id: str) -> Graph:
        """Assign IDs to any point of the edge that has none."""
        edge = self._edge(graph, edge_id)
        self.register(edge)
        if all(p.id for p in edge.points):
            return graph
        points = [
            p if p.id else p.model_copy(update={"id": self._new_id(edge_id)})
            for p in edge.points
        ]
        return graph.replace_edge(edge.with_points(points))

    def insert_point(self, graph: Graph, edge_id: str, index: int, point: Point) -> tuple[Graph, ControlPoint]:
        """
        Insert a point before position `index` of the edge's list.

        Returns:
            (new graph, inserted control point with its ID)
        """
        edge = self._edge(graph, edge_id)
        if not 0 <= index <= len(edge.points):
            raise InvalidOperationError(
                f"Insert index {index} out of range for edge {edge_id} with {len(edge.points)} points"
            )
        self.register(edge)

        point_id = getattr(point, "id", "")
        if point_id:
            if point_id in self._issued[edge_id]:
                raise InvalidOperationError(f"Control point ID already used on edge {edge_id}: {point_id}")
            self._issued[edge_id].add(point_id)
        else:
            point_id = self._new_id(edge_id)

        new_point = ControlPoint(
            id=point_id,
            x=point.x,
            y=point.y,
            active=getattr(point, "active", True),
        )
        points = list(edge.points)
        points.insert(index, new_point)
        self.forget(edge_id)
        return graph.replace_edge(edge.with_points(points)), new_point

    def move_point(self, graph: Graph, edge_id: str, point_id: str, position: Point) -> Graph:
        """Move a point, keeping its ID and place in the list."""
        edge = self._edge(graph, edge_id)
        index = self._index_of(edge, point_id)
        points = list(edge.points)
        points[index] = points[index].moved_to(position)
        return graph.replace_edge(edge.with_points(points))

    def remove_point(self, graph: Graph, edge_id: str, point_id: str) -> Graph:
        """Remove a point; its ID is retired for this edge."""
        edge = self._edge(graph, edge_id)
        index = self._index_of(edge, point_id)
        points = list(edge.points)
        del points[index]
        self.forget(edge_id)
        return graph.replace_edge(edge.with_points(points))

    def adopt(self, graph: Graph, edge_id: str, control_points: Sequence[ControlPoint]) -> Graph:
        """
        Make rendered handles the edge's own points.

        Called when the user grabs a synthesized handle: every handle becomes
        an active point of the edge so it can be moved from then on.
        """
        edge = self._edge(graph, edge_id)
        self.register(edge)
        points = []
        for point in self.stable_ids(edge_id, control_points):
            self._issued[edge_id].add(point.id)
            points.append(point.model_copy(update={"active": True}))
        logger.debug("Edge %s adopted %d control points", edge_id, len(points))
        return graph.replace_edge(edge.with_points(points))
