"""
Error types raised by the editing engine.

Everything recoverable (short paths, unknown algorithms, empty history) is
handled in place and never raises. These exceptions signal that a caller
broke the contract, e.g. by addressing an edge that does not exist.
"""


class ArcioError(ValueError):
    """Base class for contract violations."""


class NodeNotFoundError(ArcioError):
    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id


class EdgeNotFoundError(ArcioError):
    def __init__(self, edge_id: str):
        super().__init__(f"Edge not found: {edge_id}")
        self.edge_id = edge_id


class ControlPointNotFoundError(ArcioError):
    def __init__(self, edge_id: str, point_id: str):
        super().__init__(f"Control point {point_id} not found on edge {edge_id}")
        self.edge_id = edge_id
        self.point_id = point_id


class InvalidOperationError(ArcioError):
    """An operation was called with arguments outside its contract."""
