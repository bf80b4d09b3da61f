"""
Edge geometry - Turn anchor and control points into drawable paths.

Every curve algorithm is a router: a pair of pure functions that map the
polyline [source_anchor, *edge.points, target_anchor] to
- an SVG path string, and
- the control points the host renders as draggable handles.

Both functions of a router are always evaluated with the same algorithm,
so the handles a user sees always belong to the path being drawn.

Routers:
- Default: straight line between the anchors, no handles
- Linear: straight segments through every point
- CatmullRom: orthogonal route with corner stubs (right -> left only)
- BezierCatmullRom: one cubic Bezier with two handles

None of these functions raise. A polyline with fewer than two points (an
edge whose nodes are not resolved yet) yields an empty path and no handles.
"""

import logging
import re
from typing import Optional, Sequence, Union, TYPE_CHECKING

from .config import DEFAULT_CORNER_GAP
from .models import ControlPoint, CurveAlgorithm, Point, Side, Sides

if TYPE_CHECKING:
    from .models import Node

logger = logging.getLogger(__name__)

PointLike = Union[Point, ControlPoint]

# Handle placement of the bezier router, as fractions of the anchor span
BEZIER_HANDLE_X = (0.25, 0.75)
BEZIER_HANDLE_Y = 0.1

_PATH_TOKEN = re.compile(r"[MLC]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def format_number(value: float) -> str:
    """Format a coordinate the way the canvas prints it (100, not 100.0)."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _xy(point: PointLike) -> str:
    return f"{format_number(point.x)} {format_number(point.y)}"


def _polyline(points: Sequence[PointLike]) -> str:
    head, *rest = points
    return " ".join([f"M {_xy(head)}"] + [f"L {_xy(p)}" for p in rest])


def _as_control_points(points: Sequence[PointLike]) -> list[ControlPoint]:
    """Intermediate points as handles, keeping identity where present."""
    result = []
    for point in points:
        if isinstance(point, ControlPoint):
            result.append(point)
        else:
            result.append(ControlPoint(x=point.x, y=point.y))
    return result


class EdgeRouter:
    """Base router: the straight-line fallback."""

    algorithm = CurveAlgorithm.DEFAULT

    def __init__(self, corner_gap: float = DEFAULT_CORNER_GAP):
        self.corner_gap = corner_gap

    def path(self, points: Sequence[PointLike], sides: Sides) -> str:
        if len(points) < 2:
            return ""
        return _polyline([points[0], points[-1]])

    def control_points(self, points: Sequence[PointLike], sides: Sides) -> list[ControlPoint]:
        return []


class DefaultRouter(EdgeRouter):
    """Straight line between the anchors; user points are ignored."""


class LinearRouter(EdgeRouter):
    algorithm = CurveAlgorithm.LINEAR

    def path(self, points, sides):
        if len(points) < 2:
            return ""
        return _polyline(points)

    def control_points(self, points, sides):
        if len(points) < 2:
            return []
        return _as_control_points(points[1:-1])


class CatmullRomRouter(EdgeRouter):
    """
    Orthogonal (Manhattan) routing.

    Only a source leaving on the right and a target entering on the left is
    routed: the path steps `corner_gap` away from each node border and joins
    the two stubs with a vertical leg. Other side pairings are drawn as a
    straight line. Once the user has taken over the corners (the edge carries
    its own points) the path runs straight through them instead.
    """

    algorithm = CurveAlgorithm.CATMULL_ROM

    def corners(self, start: PointLike, end: PointLike) -> list[Point]:
        gap = self.corner_gap
        return [
            Point(x=start.x + gap, y=start.y),
            Point(x=start.x + gap, y=end.y),
            Point(x=end.x - gap, y=end.y),
        ]

    def _is_routed(self, sides: Sides) -> bool:
        return sides.from_side == Side.RIGHT and sides.to_side == Side.LEFT

    def path(self, points, sides):
        if len(points) < 2:
            return ""
        start, end = points[0], points[-1]
        if len(points) > 2:
            return _polyline(points)
        if not self._is_routed(sides):
            return _polyline([start, end])
        return _polyline([start, *self.corners(start, end), end])

    def control_points(self, points, sides):
        if len(points) < 2:
            return []
        if len(points) > 2:
            return _as_control_points(points[1:-1])
        if not self._is_routed(sides):
            return []
        return [
            ControlPoint(x=c.x, y=c.y, active=False)
            for c in self.corners(points[0], points[-1])
        ]


class BezierCatmullRomRouter(EdgeRouter):
    """
    A single cubic Bezier from source to target.

    The two handles sit at 25% and 75% of the horizontal span and are pulled
    10% of the vertical span towards the anchors, giving a gentle S-curve.
    An edge that carries exactly two points of its own uses them as handles.
    """

    algorithm = CurveAlgorithm.BEZIER_CATMULL_ROM

    def handles(self, points: Sequence[PointLike]) -> list[ControlPoint]:
        if len(points) == 4:
            return _as_control_points(points[1:3])

        start, end = points[0], points[-1]
        dx = end.x - start.x
        dy = end.y - start.y
        return [
            ControlPoint(
                x=start.x + dx * BEZIER_HANDLE_X[0],
                y=start.y + dy * BEZIER_HANDLE_Y,
                active=False,
            ),
            ControlPoint(
                x=start.x + dx * BEZIER_HANDLE_X[1],
                y=end.y - dy * BEZIER_HANDLE_Y,
                active=False,
            ),
        ]

    def path(self, points, sides):
        if len(points) < 2:
            return ""
        start, end = points[0], points[-1]
        c1, c2 = self.handles(points)
        return f"M {_xy(start)} C {_xy(c1)}, {_xy(c2)}, {_xy(end)}"

    def control_points(self, points, sides):
        if len(points) < 2:
            return []
        return self.handles(points)


_ROUTER_TYPES: dict[CurveAlgorithm, type[EdgeRouter]] = {
    CurveAlgorithm.DEFAULT: DefaultRouter,
    CurveAlgorithm.LINEAR: LinearRouter,
    CurveAlgorithm.CATMULL_ROM: CatmullRomRouter,
    CurveAlgorithm.BEZIER_CATMULL_ROM: BezierCatmullRomRouter,
}

_missing = set(CurveAlgorithm) - set(_ROUTER_TYPES)
if _missing:
    raise RuntimeError(f"No router registered for: {sorted(a.value for a in _missing)}")


def get_router(algorithm, corner_gap: float = DEFAULT_CORNER_GAP) -> EdgeRouter:
    """Return the router for an algorithm; unknown values get the default."""
    resolved = CurveAlgorithm.coerce(algorithm)
    if resolved is CurveAlgorithm.DEFAULT and algorithm not in (None, CurveAlgorithm.DEFAULT, "default"):
        logger.debug("Unknown curve algorithm %r, using default router", algorithm)
    router = _ROUTER_TYPES[resolved](corner_gap=corner_gap)
    logger.debug("Using %s for algorithm %s", type(router).__name__, resolved.value)
    return router


def compute_path(
    points: Sequence[PointLike],
    algorithm=CurveAlgorithm.DEFAULT,
    sides: Optional[Sides] = None,
    corner_gap: float = DEFAULT_CORNER_GAP,
) -> str:
    """
    Compute the SVG path for a polyline.

    Args:
        points: [source_anchor, *control_points, target_anchor]
        algorithm: Curve algorithm (unknown values fall back to default)
        sides: Sides at which the path leaves the source / enters the target
        corner_gap: Stub length for orthogonal routes

    Returns:
        Path string, empty if fewer than two points are given
    """
    return get_router(algorithm, corner_gap).path(points, sides or Sides())


def compute_control_points(
    points: Sequence[PointLike],
    algorithm=CurveAlgorithm.DEFAULT,
    sides: Optional[Sides] = None,
    corner_gap: float = DEFAULT_CORNER_GAP,
) -> list[ControlPoint]:
    """
    Compute the handles for a polyline.

    Takes the same arguments as compute_path(). Handles synthesized by the
    algorithm are inactive and have no ID yet.
    """
    return get_router(algorithm, corner_gap).control_points(points, sides or Sides())


def anchor_point(node: "Node", side: Optional[Side]) -> Optional[Point]:
    """Midpoint of a node's side, where a handle on that side sits."""
    if node is None:
        return None
    x, y = node.position.x, node.position.y
    w, h = node.width, node.height
    if side == Side.LEFT:
        return Point(x=x, y=y + h / 2)
    if side == Side.RIGHT:
        return Point(x=x + w, y=y + h / 2)
    if side == Side.TOP:
        return Point(x=x + w / 2, y=y)
    if side == Side.BOTTOM:
        return Point(x=x + w / 2, y=y + h)
    return Point(x=x + w / 2, y=y + h / 2)


def parse_path(d: str) -> list[tuple[str, list[Point]]]:
    """
    Split a path string into (command, points) pairs.

    Only the commands emitted by the routers (M, L, C) are understood.
    """
    commands: list[tuple[str, list[Point]]] = []
    numbers: list[float] = []
    command: Optional[str] = None

    def flush():
        if command is not None:
            pts = [Point(x=numbers[i], y=numbers[i + 1]) for i in range(0, len(numbers) - 1, 2)]
            commands.append((command, pts))

    for token in _PATH_TOKEN.findall(d):
        if token in ("M", "L", "C"):
            flush()
            command = token
            numbers = []
        else:
            numbers.append(float(token))
    flush()
    return commands
