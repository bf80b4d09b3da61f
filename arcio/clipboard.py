"""
Copy, cut and paste of node selections.

The clipboard holds an induced subgraph: the selected nodes plus the edges
whose source and target are both selected. Pasting deep-clones it with
fresh node, edge and control-point IDs, rewires the cloned edges to the cloned nodes and moves the group so
its top-left-most corner lands on the cursor.
"""

import logging
from typing import Callable

from .models import Graph, Point, generate_id

logger = logging.getLogger(__name__)


class ClipboardManager:
    """Owns the clipboard buffer; every operation returns a new graph."""

    def __init__(self, id_factory: Callable[[], str] = generate_id):
        self._id_factory = id_factory
        self._buffer = Graph()

    @property
    def buffer(self) -> Graph:
        return self._buffer

    @property
    def is_empty(self) -> bool:
        return not self._buffer.nodes

    def copy(self, graph: Graph) -> Graph:
        """Buffer the selected nodes and the edges fully inside the selection."""
        nodes = [n for n in graph.nodes if n.selected]
        node_ids = {n.id for n in nodes}
        edges = [e for e in graph.edges if e.source in node_ids and e.target in node_ids]
        self._buffer = Graph(nodes=nodes, edges=edges)
        logger.debug("Copied %d nodes, %d edges", len(nodes), len(edges))
        return self._buffer

    def cut(self, graph: Graph) -> Graph:
        """Copy the selection, then remove it and every edge touching it."""
        buffer = self.copy(graph)
        node_ids = {n.id for n in buffer.nodes}
        return Graph(
            nodes=[n for n in graph.nodes if n.id not in node_ids],
            edges=[e for e in graph.edges
                   if e.source not in node_ids and e.target not in node_ids],
        )

    def paste(self, graph: Graph, cursor: Point) -> Graph:
        """
        Append a fresh copy of the buffer, offset to the cursor.

        Existing nodes and edges are deselected; the pasted ones come out
        selected. An empty buffer leaves the graph unchanged.

        Args:
            graph: Current graph
            cursor: Canvas position for the top-left-most pasted node

        Returns:
            The graph with the pasted group appended
        """
        if self.is_empty:
            return graph

        buffer = self._buffer
        offset_x = cursor.x - min(n.position.x for n in buffer.nodes)
        offset_y = cursor.y - min(n.position.y for n in buffer.nodes)

        id_map: dict[str, str] = {}
        new_nodes = []
        for node in buffer.nodes:
            new_id = self._id_factory()
            id_map[node.id] = new_id
            new_nodes.append(node.model_copy(update={
                "id": new_id,
                "position": node.position.offset(offset_x, offset_y),
                "selected": True,
            }, deep=True))

        new_edges = []
        for edge in buffer.edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in id_map:
                    logger.warning("Pasted edge %s keeps dangling endpoint %s", edge.id, endpoint)
            new_edges.append(edge.model_copy(update={
                "id": self._id_factory(),
                "source": id_map.get(edge.source, edge.source),
                "target": id_map.get(edge.target, edge.target),
                "points": [
                    p.model_copy(update={
                        "id": self._id_factory(),
                        "x": p.x + offset_x,
                        "y": p.y + offset_y,
                    })
                    for p in edge.points
                ],
                "selected": True,
            }, deep=True))

        return Graph(
            nodes=[n.model_copy(update={"selected": False}) for n in graph.nodes] + new_nodes,
            edges=[e.model_copy(update={"selected": False}) for e in graph.edges] + new_edges,
        )
