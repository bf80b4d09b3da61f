"""
Helper-line alignment for dragged nodes.

While a single node is dragged, its pending bounding box is compared with
every other node. When an edge of the dragged box comes within the snap
threshold of an edge of another box, the node snaps onto it and a guide
line is reported for the host to draw across the canvas.

Vertical guides come from x-axis relations (left/right edges), horizontal
guides from y-axis relations (top/bottom edges). At most one guide per axis
is reported: the closest relation wins, and on equal distance the first
relation found wins.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, TYPE_CHECKING

from .config import DEFAULT_SNAP_THRESHOLD
from .models import Point

if TYPE_CHECKING:
    from .models import Node, NodePositionChange


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box of a node."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @classmethod
    def of(cls, node: "Node", position: Optional[Point] = None) -> "Bounds":
        pos = position or node.position
        return cls(left=pos.x, top=pos.y, width=node.width, height=node.height)


@dataclass
class SnapPosition:
    """Snapped coordinates; None on an axis that did not snap."""
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass
class SnapResult:
    """Outcome of one alignment pass."""
    horizontal: Optional[float] = None  # y of the horizontal guide line
    vertical: Optional[float] = None    # x of the vertical guide line
    snap_position: SnapPosition = field(default_factory=SnapPosition)

    def apply(self, position: Point) -> Point:
        """Replace the snapped axes of a pending position."""
        return Point(
            x=self.snap_position.x if self.snap_position.x is not None else position.x,
            y=self.snap_position.y if self.snap_position.y is not None else position.y,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "horizontal": self.horizontal,
            "vertical": self.vertical,
            "snap_position": {"x": self.snap_position.x, "y": self.snap_position.y},
        }


def _relations(a: Bounds, b: Bounds):
    """
    The eight alignment relations between dragged box `a` and box `b`, in
    priority order, as (axis, distance, snapped coordinate, guide coordinate).
    """
    return [
        ("x", abs(a.left - b.left), b.left, b.left),
        ("x", abs(a.right - b.right), b.right - a.width, b.right),
        ("x", abs(a.left - b.right), b.right, b.right),
        ("x", abs(a.right - b.left), b.left - a.width, b.left),
        ("y", abs(a.top - b.top), b.top, b.top),
        ("y", abs(a.bottom - b.top), b.top - a.height, b.top),
        ("y", abs(a.bottom - b.bottom), b.bottom - a.height, b.bottom),
        ("y", abs(a.top - b.bottom), b.bottom, b.bottom),
    ]


def compute_snap(
    dragged: "Node",
    others: Sequence["Node"],
    threshold: float = DEFAULT_SNAP_THRESHOLD,
    position: Optional[Point] = None,
) -> SnapResult:
    """
    Find guide lines and the snapped position for a dragged node.

    Args:
        dragged: The node being dragged
        others: All other nodes (the dragged node itself is skipped)
        threshold: A relation snaps only if its distance is strictly less
        position: Pending position of the dragged node (defaults to its
            current position)

    Returns:
        SnapResult with at most one guide per axis
    """
    result = SnapResult()
    a = Bounds.of(dragged, position)
    best = {"x": threshold, "y": threshold}

    for other in others:
        if other.id == dragged.id:
            continue
        b = Bounds.of(other)
        for axis, distance, snapped, guide in _relations(a, b):
            if distance >= best[axis]:
                continue
            best[axis] = distance
            if axis == "x":
                result.snap_position.x = snapped
                result.vertical = guide
            else:
                result.snap_position.y = snapped
                result.horizontal = guide

    return result


def apply_node_changes(
    changes: Sequence["NodePositionChange"],
    nodes: Sequence["Node"],
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> tuple[list["Node"], SnapResult]:
    """
    Apply drag-frame position changes, snapping single-node drags.

    Only a lone change that is mid-drag and carries a position is snapped;
    multi-node drags are applied as given.

    Returns:
        (updated node list, snap result - empty when nothing was snapped)
    """
    snap = SnapResult()
    positions = {c.id: c.position for c in changes if c.position is not None}

    if len(changes) == 1 and changes[0].dragging and changes[0].position is not None:
        change = changes[0]
        dragged = next((n for n in nodes if n.id == change.id), None)
        if dragged is not None:
            snap = compute_snap(dragged, nodes, threshold, change.position)
            positions[change.id] = snap.apply(change.position)

    updated = [
        n.model_copy(update={"position": positions[n.id]}) if n.id in positions else n
        for n in nodes
    ]
    return updated, snap
