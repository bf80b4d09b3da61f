"""
arcio - Edge geometry and interaction history for architecture diagrams.

This package holds the editing engine used by the backend and by any
canvas host: curve routing for editable edges, control-point editing,
helper-line snapping, undo/redo and the clipboard.
"""

from .models import (
    # Enums
    Side,
    CurveAlgorithm,
    ALGORITHM_COLORS,
    # Core models
    Point,
    ControlPoint,
    Sides,
    Size,
    Node,
    Edge,
    Graph,
    DrawingSession,
    NodePositionChange,
    EdgeRender,
    generate_id,
)

from .errors import (
    ArcioError,
    NodeNotFoundError,
    EdgeNotFoundError,
    ControlPointNotFoundError,
    InvalidOperationError,
)
from .config import EditorSettings, load_settings
from .geometry import compute_path, compute_control_points, get_router, parse_path
from .control_points import ControlPointStore
from .alignment import SnapResult, compute_snap, apply_node_changes
from .history import HistoryManager
from .clipboard import ClipboardManager
from .editor import DiagramEditor

__all__ = [
    # Enums
    "Side",
    "CurveAlgorithm",
    "ALGORITHM_COLORS",
    # Models
    "Point",
    "ControlPoint",
    "Sides",
    "Size",
    "Node",
    "Edge",
    "Graph",
    "DrawingSession",
    "NodePositionChange",
    "EdgeRender",
    "generate_id",
    # Errors
    "ArcioError",
    "NodeNotFoundError",
    "EdgeNotFoundError",
    "ControlPointNotFoundError",
    "InvalidOperationError",
    # Configuration
    "EditorSettings",
    "load_settings",
    # Geometry
    "compute_path",
    "compute_control_points",
    "get_router",
    "parse_path",
    # Components
    "ControlPointStore",
    "SnapResult",
    "compute_snap",
    "apply_node_changes",
    "HistoryManager",
    "ClipboardManager",
    "DiagramEditor",
]
